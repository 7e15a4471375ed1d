"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.core.entities.inventory import Condition, EntryMethod, MovementType
from src.core.entities.sync import SyncAction, SyncTable


class InventoryItemResponse(BaseModel):
    """Inventory item with derived stock flags."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    sku: str
    current_quantity: int = Field(..., description="Signed on-hand quantity")
    category_id: str | None = None
    condition: Condition | None = None
    low_stock_threshold: int | None = None
    reference_image_url: str | None = None
    is_low_stock: bool = False
    is_negative: bool = False
    created_at: datetime
    updated_at: datetime


class StockMovementResponse(BaseModel):
    """Stock movement ledger entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    item_id: str
    device_user_id: str | None = None
    movement_type: MovementType
    quantity: int
    entry_method: EntryMethod
    ai_confidence: float | None = None
    notes: str | None = None
    condition: Condition | None = None
    created_at: datetime


class AdjustStockResponse(BaseModel):
    """Result of a quantity adjustment."""

    item: InventoryItemResponse
    previous_quantity: int
    new_quantity: int
    change: str = Field(..., description="Signed change, e.g. +5 or -2")


class ConditionBreakdownResponse(BaseModel):
    """Per-condition stock derived from the movement ledger."""

    item_id: str
    new: int = 0
    good: int = 0
    damaged: int = 0
    broken: int = 0
    total: int = 0


class DeviceUserResponse(BaseModel):
    """Device user."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: datetime


class CurrentDeviceUserResponse(BaseModel):
    """Currently selected device user, if any."""

    user: DeviceUserResponse | None = None


class QueueEntryResponse(BaseModel):
    """Outbound queue entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    action: SyncAction
    table_name: SyncTable
    record_data: dict[str, Any] | str
    synced: bool
    attempts: int
    last_error: str | None = None
    poisoned: bool
    created_at: datetime


class QueueSummaryResponse(BaseModel):
    """Queue entry counts by state."""

    model_config = ConfigDict(from_attributes=True)

    pending: int
    synced: int
    poisoned: int


class SyncStatusResponse(BaseModel):
    """Sync engine status."""

    online: bool
    in_progress: bool
    last_sync_at: datetime | None = None
    last_error: str | None = None
    queue: QueueSummaryResponse


class SyncReportResponse(BaseModel):
    """Outcome of a sync trigger."""

    started: bool = Field(..., description="False when offline or already syncing")
    pushed: int = 0
    failed: int = 0
    skipped: int = 0
    poisoned: int = 0
    pulled: dict[str, int] = Field(default_factory=dict)
    purged: int = 0
    finished_at: datetime | None = None


class WebhookResponse(BaseModel):
    """Stock webhook outcome."""

    status: str
    action: str
    message: str | None = None
    requires_confirmation: bool | None = None
    item: InventoryItemResponse | None = None
    previous_quantity: int | None = None
    new_quantity: int | None = None
    change: str | None = None
    movement_recorded: bool | None = None


class AdminTokenResponse(BaseModel):
    """Issued admin token."""

    valid: bool = True
    token: str
    expires_at: int = Field(..., description="Expiry as unix milliseconds")


class TokenValidationResponse(BaseModel):
    """Admin token validation result."""

    valid: bool
    reason: str | None = None


class ProviderHealthResponse(BaseModel):
    """Provider health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ProviderHealthResponse | None = None
    remote: ProviderHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. ITEM_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
