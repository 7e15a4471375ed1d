"""Core domain entities."""

from src.core.entities.inventory import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    Category,
    Condition,
    ConditionBreakdown,
    DeviceUser,
    EntryMethod,
    InventoryItem,
    ItemDraft,
    MovementType,
    StockMovement,
)
from src.core.entities.sync import (
    OutboundQueueEntry,
    QueueSummary,
    SyncAction,
    SyncReport,
    SyncState,
    SyncTable,
)
from src.core.entities.webhook import WebhookAction, WebhookPayload, WebhookResult

__all__ = [
    # Inventory
    "DEFAULT_LOW_STOCK_THRESHOLD",
    "Category",
    "Condition",
    "ConditionBreakdown",
    "DeviceUser",
    "EntryMethod",
    "InventoryItem",
    "ItemDraft",
    "MovementType",
    "StockMovement",
    # Sync
    "OutboundQueueEntry",
    "QueueSummary",
    "SyncAction",
    "SyncReport",
    "SyncState",
    "SyncTable",
    # Webhook
    "WebhookAction",
    "WebhookPayload",
    "WebhookResult",
]
