"""Remote store clients."""

from src.infrastructure.remote.postgrest import PostgRESTRemoteStore, parse_error

# Singleton instance
_remote_store: PostgRESTRemoteStore | None = None


def get_remote_store() -> PostgRESTRemoteStore:
    """Get singleton remote store configured from settings."""
    global _remote_store
    if _remote_store is None:
        _remote_store = PostgRESTRemoteStore()
    return _remote_store


def reset_remote_store() -> None:
    """Drop the singleton (for testing)."""
    global _remote_store
    _remote_store = None


__all__ = [
    "PostgRESTRemoteStore",
    "get_remote_store",
    "parse_error",
    "reset_remote_store",
]
