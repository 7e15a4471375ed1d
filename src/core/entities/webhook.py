"""Stock webhook payload and result entities."""

from enum import Enum
from typing import Any

from pydantic import BaseModel

from src.core.entities.inventory import Condition, InventoryItem


class WebhookAction(str, Enum):
    """What the external caller asks for."""

    INCOMING = "incoming"  # stage only, a human confirms later
    ADD = "add"
    REMOVE = "remove"


class WebhookPayload(BaseModel):
    """Decoded webhook body. Field checks happen in the handler."""

    action: WebhookAction
    item_name: str | None = None
    sku: str | None = None
    amount: Any = None
    condition: Condition | None = None


class WebhookResult(BaseModel):
    """Outcome of a processed webhook, ready to render."""

    status: str
    action: str
    status_code: int = 200
    message: str | None = None
    requires_confirmation: bool = False
    item: InventoryItem | None = None
    previous_quantity: int | None = None
    new_quantity: int | None = None
    change: str | None = None
    movement_recorded: bool = True
