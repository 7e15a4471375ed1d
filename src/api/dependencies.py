"""
Dependency injection container for FastAPI.

Provides service instances to route handlers.
"""

from functools import lru_cache

from fastapi import Depends, Header

from src.application.services import (
    get_admin_token_service,
    get_inventory_service,
    get_sync_engine,
)
from src.application.use_cases import (
    AdjustStockUseCase,
    ProcessStockWebhookUseCase,
    TriggerSyncUseCase,
    VerifyAdminPinUseCase,
)
from src.config import Settings, get_settings
from src.core.services import AdminTokenService, InventoryService, SyncEngine


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Service dependencies
async def get_inventory() -> InventoryService:
    """Get inventory service."""
    return await get_inventory_service()


async def get_engine() -> SyncEngine:
    """Get sync engine."""
    return await get_sync_engine()


def get_token_service() -> AdminTokenService:
    """Get admin token service."""
    return get_admin_token_service()


# Use case dependencies
def get_adjust_stock_use_case() -> AdjustStockUseCase:
    """Get adjust stock use case."""
    return AdjustStockUseCase()


def get_process_webhook_use_case() -> ProcessStockWebhookUseCase:
    """Get stock webhook use case."""
    return ProcessStockWebhookUseCase()


def get_trigger_sync_use_case() -> TriggerSyncUseCase:
    """Get trigger sync use case."""
    return TriggerSyncUseCase()


def get_verify_admin_pin_use_case() -> VerifyAdminPinUseCase:
    """Get admin PIN use case."""
    return VerifyAdminPinUseCase()


# Auth dependencies
def require_admin(
    authorization: str | None = Header(default=None),
    tokens: AdminTokenService = Depends(get_token_service),
) -> None:
    """Reject the request unless it carries a valid admin bearer token."""
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    tokens.require(token)
