"""
Service factory functions for dependency injection.

This module provides factory functions that wire infrastructure
implementations to core services. Use cases should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from src.config import get_settings
from src.core.entities.sync import SyncState
from src.core.services import (
    AdminTokenService,
    InventoryService,
    StockWebhookService,
    SyncEngine,
)

if TYPE_CHECKING:
    from src.core.interfaces import ILocalStore, IRemoteStore


# Singleton service instances
_sync_engine: SyncEngine | None = None
_inventory_service: InventoryService | None = None
_webhook_service: StockWebhookService | None = None
_admin_token_service: AdminTokenService | None = None


async def get_sync_engine(
    local_store: "ILocalStore | None" = None,
    remote_store: "IRemoteStore | None" = None,
) -> SyncEngine:
    """
    Get or create the process-wide SyncEngine.

    Args:
        local_store: Optional local store override
        remote_store: Optional remote store override

    Returns:
        Configured SyncEngine
    """
    global _sync_engine

    if _sync_engine is not None and local_store is None and remote_store is None:
        return _sync_engine

    # Lazy import infrastructure to avoid circular imports
    from src.infrastructure.remote import get_remote_store
    from src.infrastructure.storage.sqlite import get_local_store

    settings = get_settings()
    engine = SyncEngine(
        local_store=local_store or await get_local_store(),
        remote_store=remote_store or get_remote_store(),
        state=SyncState(online=settings.sync.start_online),
        max_attempts=settings.sync.max_attempts,
        device_user_fk_column=settings.remote.device_user_fk_column,
    )

    if local_store is None and remote_store is None:
        _sync_engine = engine

    return engine


async def get_inventory_service(
    local_store: "ILocalStore | None" = None,
    sync_engine: SyncEngine | None = None,
) -> InventoryService:
    """
    Get or create InventoryService instance.

    Args:
        local_store: Optional local store override
        sync_engine: Optional sync engine override

    Returns:
        Configured InventoryService
    """
    global _inventory_service

    if _inventory_service is not None and local_store is None and sync_engine is None:
        return _inventory_service

    from src.infrastructure.storage.sqlite import get_local_store

    service = InventoryService(
        local_store=local_store or await get_local_store(),
        sync_engine=sync_engine or await get_sync_engine(),
    )

    if local_store is None and sync_engine is None:
        _inventory_service = service

    return service


def get_webhook_service(remote_store: "IRemoteStore | None" = None) -> StockWebhookService:
    """
    Get or create StockWebhookService instance.

    Args:
        remote_store: Optional remote store override

    Returns:
        Configured StockWebhookService
    """
    global _webhook_service

    if _webhook_service is not None and remote_store is None:
        return _webhook_service

    from src.infrastructure.remote import get_remote_store

    settings = get_settings().webhook
    service = StockWebhookService(
        remote_store=remote_store or get_remote_store(),
        secret=settings.secret,
        replay_window_seconds=settings.replay_window_seconds,
        default_condition=settings.default_condition,
        uncategorized_category_id=settings.uncategorized_category_id,
    )

    if remote_store is None:
        _webhook_service = service

    return service


def get_admin_token_service() -> AdminTokenService:
    """Get or create AdminTokenService instance."""
    global _admin_token_service

    if _admin_token_service is None:
        settings = get_settings().admin
        _admin_token_service = AdminTokenService(
            pin=settings.pin,
            ttl_hours=settings.token_ttl_hours,
        )
    return _admin_token_service


def reset_services() -> None:
    """Reset all service singletons (for testing)."""
    global _sync_engine, _inventory_service, _webhook_service, _admin_token_service

    _sync_engine = None
    _inventory_service = None
    _webhook_service = None
    _admin_token_service = None
