"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/interfaces/*
- src/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from src.core.services.admin_tokens import AdminTokenService, IssuedToken, TokenValidation
from src.core.services.inventory_service import CURRENT_DEVICE_USER_KEY, InventoryService
from src.core.services.stock_ledger import (
    apply_delta,
    condition_breakdown,
    format_change,
    ledger_balance,
)
from src.core.services.sync_engine import SyncEngine
from src.core.services.webhook_service import (
    UNCATEGORIZED_CATEGORY_ID,
    StockWebhookService,
    compute_signature,
)

__all__ = [
    # Ledger
    "apply_delta",
    "condition_breakdown",
    "format_change",
    "ledger_balance",
    # Sync
    "SyncEngine",
    # Inventory
    "InventoryService",
    "CURRENT_DEVICE_USER_KEY",
    # Webhook
    "StockWebhookService",
    "UNCATEGORIZED_CATEGORY_ID",
    "compute_signature",
    # Admin
    "AdminTokenService",
    "IssuedToken",
    "TokenValidation",
]
