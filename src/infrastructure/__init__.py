"""Infrastructure layer implementations."""

from src.infrastructure import remote, storage

__all__ = ["storage", "remote"]
