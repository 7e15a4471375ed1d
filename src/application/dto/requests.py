"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.
"""

from typing import Literal

from pydantic import BaseModel, Field

from src.core.entities.inventory import (
    DEFAULT_LOW_STOCK_THRESHOLD,
    Condition,
    EntryMethod,
    MovementType,
)


class CreateItemRequest(BaseModel):
    """Request to create an inventory item."""

    name: str = Field(..., min_length=1, description="Display name", examples=["Ethernet cable 2m"])
    sku: str = Field(..., min_length=1, description="Unique stock keeping unit", examples=["ETH-2M"])
    current_quantity: int = Field(default=0, description="Opening quantity")
    category_id: str | None = Field(default=None, description="Category ID")
    condition: Condition | None = Field(default=None, description="Default condition")
    low_stock_threshold: int | None = Field(
        default=DEFAULT_LOW_STOCK_THRESHOLD,
        ge=0,
        description="Quantity at or below which the item is low on stock",
    )
    reference_image_url: str | None = Field(default=None, description="Reference photo URL")


class UpdateItemRequest(BaseModel):
    """Partial item update. Only fields that are set are applied.

    Quantity changes go through the adjust endpoint so they are recorded
    in the movement ledger.
    """

    name: str | None = Field(default=None, min_length=1)
    sku: str | None = Field(default=None, min_length=1)
    category_id: str | None = None
    condition: Condition | None = None
    low_stock_threshold: int | None = Field(default=None, ge=0)
    reference_image_url: str | None = None


class AdjustStockRequest(BaseModel):
    """Request to add or remove stock from an item."""

    quantity: int = Field(..., gt=0, description="Units moved", examples=[5])
    movement_type: MovementType = Field(..., description="add or remove")
    device_user_id: str | None = Field(
        default=None,
        description="Acting device user; defaults to the currently selected one",
    )
    entry_method: EntryMethod = Field(default=EntryMethod.MANUAL)
    ai_confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    notes: str | None = Field(default=None, max_length=1000)
    condition: Condition | None = Field(default=None, description="Condition of the moved units")


class RecordMovementRequest(AdjustStockRequest):
    """Request to record a movement without changing the item's quantity."""


class CreateDeviceUserRequest(BaseModel):
    """Request to register a device user."""

    name: str = Field(..., min_length=1, max_length=100, examples=["Alex"])


class RenameDeviceUserRequest(BaseModel):
    """Request to rename a device user."""

    name: str = Field(..., min_length=1, max_length=100)


class SelectDeviceUserRequest(BaseModel):
    """Select the device user new movements are attributed to (null clears it)."""

    user_id: str | None = None


class ConnectivityRequest(BaseModel):
    """Connectivity signal from the host."""

    online: bool


class AdminPinRequest(BaseModel):
    """Admin PIN verification or token validation."""

    action: Literal["verify", "validate"] = Field(default="verify")
    pin: str | None = Field(default=None, description="Admin PIN (verify)")
    token: str | None = Field(default=None, description="Previously issued token (validate)")
