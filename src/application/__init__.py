"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection
"""

from src.application.services import (
    get_admin_token_service,
    get_inventory_service,
    get_sync_engine,
    get_webhook_service,
    reset_services,
)
from src.application.use_cases import (
    AdjustStockUseCase,
    ProcessStockWebhookUseCase,
    TriggerSyncUseCase,
    VerifyAdminPinUseCase,
)

__all__ = [
    # Use Cases
    "AdjustStockUseCase",
    "ProcessStockWebhookUseCase",
    "TriggerSyncUseCase",
    "VerifyAdminPinUseCase",
    # Service factories
    "get_sync_engine",
    "get_inventory_service",
    "get_webhook_service",
    "get_admin_token_service",
    "reset_services",
]
