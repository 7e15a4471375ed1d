"""
Outbound sync queue entities.

A queue entry is the only record of a local write that has not yet reached
the remote store, so it carries a full snapshot of what must be replayed.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from src.core.entities.inventory import new_id, utcnow


class SyncAction(str, Enum):
    """Mutation kind recorded in the queue."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class SyncTable(str, Enum):
    """Target collection of a queue entry."""

    INVENTORY_ITEMS = "inventory_items"
    STOCK_MOVEMENTS = "stock_movements"
    DEVICE_USERS = "device_users"
    CATEGORIES = "categories"
    # Item snapshot + movement replayed together: {"item": ..., "movement": ...}
    STOCK_ADJUSTMENTS = "stock_adjustments"


class OutboundQueueEntry(BaseModel):
    """Pending mutation awaiting remote application."""

    id: str = Field(default_factory=new_id)
    action: SyncAction
    table_name: SyncTable
    # Producers always enqueue dicts; a str here is a double-encoded
    # payload from an older client, unwrapped by the push phase.
    record_data: dict[str, Any] | str
    synced: bool = False
    attempts: int = 0
    last_error: str | None = None
    poisoned: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    synced_at: datetime | None = None


class QueueSummary(BaseModel):
    """Counts of queue entries by state."""

    pending: int = 0
    synced: int = 0
    poisoned: int = 0


class SyncState(BaseModel):
    """Process-wide connectivity and non-reentrancy flags for one engine."""

    online: bool = False
    in_progress: bool = False
    last_sync_at: datetime | None = None
    last_error: str | None = None


class SyncReport(BaseModel):
    """Outcome of one push/pull/purge pass."""

    pushed: int = 0
    failed: int = 0
    skipped: int = 0
    poisoned: int = 0
    pulled: dict[str, int] = Field(default_factory=dict)
    purged: int = 0
    started_at: datetime = Field(default_factory=utcnow)
    finished_at: datetime | None = None
