"""Inventory domain entities."""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

DEFAULT_LOW_STOCK_THRESHOLD = 5


def utcnow() -> datetime:
    return datetime.now(UTC)


def new_id() -> str:
    return str(uuid4())


class Condition(str, Enum):
    """Quality tag for stock units."""

    NEW = "new"
    GOOD = "good"
    DAMAGED = "damaged"
    BROKEN = "broken"


class MovementType(str, Enum):
    """Direction of a stock movement."""

    ADD = "add"
    REMOVE = "remove"


class EntryMethod(str, Enum):
    """How a movement was captured on the device."""

    MANUAL = "manual"
    AI_ASSISTED = "ai_assisted"


class Category(BaseModel):
    """Admin-managed category; only used here as a lookup for items."""

    id: str = Field(default_factory=new_id)
    name: str
    parent_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class InventoryItem(BaseModel):
    """
    A stocked item.

    ``current_quantity`` is signed: over-removal drives it negative on
    purpose so the shortfall stays visible instead of being rejected.
    """

    id: str = Field(default_factory=new_id)
    name: str
    sku: str
    current_quantity: int = 0
    category_id: str | None = None
    condition: Condition | None = None  # display default, not per-unit
    low_stock_threshold: int | None = DEFAULT_LOW_STOCK_THRESHOLD
    reference_image_url: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def effective_threshold(self) -> int:
        if self.low_stock_threshold is None:
            return DEFAULT_LOW_STOCK_THRESHOLD
        return self.low_stock_threshold

    @property
    def is_low_stock(self) -> bool:
        """At or below the item's threshold (negative stock included)."""
        return self.current_quantity <= self.effective_threshold

    @property
    def is_negative(self) -> bool:
        return self.current_quantity < 0


class StockMovement(BaseModel):
    """Append-only ledger entry; never edited after creation."""

    id: str = Field(default_factory=new_id)
    item_id: str
    device_user_id: str | None = None
    movement_type: MovementType
    quantity: int = Field(..., gt=0)
    entry_method: EntryMethod = EntryMethod.MANUAL
    ai_confidence: float | None = None
    notes: str | None = None
    condition: Condition | None = None
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def signed_quantity(self) -> int:
        if self.movement_type == MovementType.ADD:
            return self.quantity
        return -self.quantity


class DeviceUser(BaseModel):
    """Lightweight actor picked on the tablet and attached to movements."""

    id: str = Field(default_factory=new_id)
    name: str
    created_at: datetime = Field(default_factory=utcnow)


class ConditionBreakdown(BaseModel):
    """Per-condition stock derived from an item's movement history."""

    new: int = 0
    good: int = 0
    damaged: int = 0
    broken: int = 0

    @property
    def total(self) -> int:
        return self.new + self.good + self.damaged + self.broken


class ItemDraft(BaseModel):
    """Fields a caller supplies to create an item; ids and timestamps are assigned."""

    name: str = Field(..., min_length=1)
    sku: str = Field(..., min_length=1)
    current_quantity: int = 0
    category_id: str | None = None
    condition: Condition | None = None
    low_stock_threshold: int | None = DEFAULT_LOW_STOCK_THRESHOLD
    reference_image_url: str | None = None
