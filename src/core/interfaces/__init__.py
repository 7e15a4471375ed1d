"""Core interfaces (ports) for dependency injection."""

from src.core.interfaces.local_store import ILocalStore
from src.core.interfaces.remote_store import IRemoteStore

__all__ = [
    "ILocalStore",
    "IRemoteStore",
]
