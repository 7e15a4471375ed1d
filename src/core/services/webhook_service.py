"""
Stock Webhook Service.

Authenticates and applies stock events posted by external systems
directly against the remote store. Requests are signed with
HMAC-SHA256 over ``"<timestamp>.<raw body>"`` and must arrive within the
replay window.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.config import get_logger
from src.core.entities.inventory import (
    Condition,
    EntryMethod,
    InventoryItem,
    MovementType,
    StockMovement,
    utcnow,
)
from src.core.entities.webhook import WebhookAction, WebhookPayload, WebhookResult
from src.core.exceptions import (
    ItemNameMismatchError,
    ItemNotFoundError,
    RemoteStoreError,
    ValidationError,
    WebhookAuthenticationError,
    WebhookNotConfiguredError,
)
from src.core.interfaces.remote_store import IRemoteStore
from src.core.services.stock_ledger import apply_delta, format_change

logger = get_logger(__name__)

UNCATEGORIZED_CATEGORY_ID = "00000000-0000-0000-0000-000000000000"


def compute_signature(secret: str, timestamp: str, body: bytes) -> str:
    """Hex HMAC-SHA256 of ``timestamp + "." + body`` keyed by ``secret``."""
    message = timestamp.encode() + b"." + body
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value > 0:
        return value
    return None


class StockWebhookService:
    """
    Signed stock webhook processor.

    Args:
        remote_store: Remote store the webhook writes to.
        secret: Shared HMAC secret. Without one every request is refused.
        replay_window_seconds: Maximum clock skew accepted, either direction.
        default_condition: Condition recorded when the payload omits one.
        uncategorized_category_id: Category given to items created here.
        clock: Seconds-since-epoch source.
    """

    def __init__(
        self,
        remote_store: IRemoteStore,
        secret: str | None,
        replay_window_seconds: int = 300,
        default_condition: Condition | str = Condition.GOOD,
        uncategorized_category_id: str = UNCATEGORIZED_CATEGORY_ID,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._remote = remote_store
        self._secret = secret
        self.replay_window_seconds = replay_window_seconds
        self.default_condition = Condition(default_condition)
        self.uncategorized_category_id = uncategorized_category_id
        self._clock = clock

    @property
    def is_configured(self) -> bool:
        return bool(self._secret)

    def verify(self, body: bytes, signature: str | None, timestamp: str | None) -> None:
        """
        Check the request signature and freshness.

        Raises:
            WebhookNotConfiguredError: No secret is configured.
            WebhookAuthenticationError: Headers missing, stale or mismatched.
        """
        if not self._secret:
            logger.error("webhook_secret_missing")
            raise WebhookNotConfiguredError()

        if not signature or not timestamp:
            logger.warning("webhook_rejected", reason="missing_headers")
            raise WebhookAuthenticationError("Missing signature or timestamp headers")

        try:
            request_ms = int(timestamp)
        except ValueError:
            logger.warning("webhook_rejected", reason="bad_timestamp")
            raise WebhookAuthenticationError("Timestamp expired or invalid") from None

        now_ms = int(self._clock() * 1000)
        if abs(now_ms - request_ms) > self.replay_window_seconds * 1000:
            logger.warning("webhook_rejected", reason="stale_timestamp", skew_ms=now_ms - request_ms)
            raise WebhookAuthenticationError("Timestamp expired or invalid")

        expected = compute_signature(self._secret, timestamp, body)
        if not hmac.compare_digest(expected.encode(), signature.encode("utf-8", "replace")):
            logger.warning("webhook_rejected", reason="bad_signature")
            raise WebhookAuthenticationError("Invalid signature")

    @staticmethod
    def parse(body: bytes) -> WebhookPayload:
        try:
            data = json.loads(body)
        except ValueError:
            raise ValidationError("body", "Invalid JSON body") from None
        if not isinstance(data, dict):
            raise ValidationError("body", "Body must be a JSON object")
        if not data.get("action"):
            raise ValidationError("action", "Action is required")
        try:
            return WebhookPayload.model_validate(data)
        except PydanticValidationError as e:
            error = e.errors()[0]
            field = str(error["loc"][0]) if error["loc"] else "body"
            raise ValidationError(field, f"Invalid {field}", data.get(field)) from None

    async def process(
        self, body: bytes, signature: str | None, timestamp: str | None
    ) -> WebhookResult:
        """Authenticate, decode and apply one webhook request."""
        self.verify(body, signature, timestamp)
        payload = self.parse(body)

        if payload.action == WebhookAction.INCOMING:
            logger.info("webhook_staged", sku=payload.sku)
            return WebhookResult(
                status="pending",
                action=payload.action.value,
                message="Webhook received. Awaiting confirmation.",
                requires_confirmation=True,
            )

        if not payload.item_name or not payload.sku or payload.amount is None:
            raise ValidationError("body", "item_name, sku and amount are required")
        amount = _positive_int(payload.amount)
        if amount is None:
            raise ValidationError("amount", "Amount must be a positive integer", payload.amount)

        movement_type = MovementType(payload.action.value)
        condition = payload.condition or self.default_condition

        row = await self._remote.find_item_by_sku(payload.sku)
        if row is None:
            if movement_type == MovementType.REMOVE:
                logger.warning("webhook_item_missing", sku=payload.sku)
                raise ItemNotFoundError(sku=payload.sku)
            return await self._create_item(payload.item_name, payload.sku, amount, condition)

        item = InventoryItem.model_validate(row)
        if item.name.lower() != payload.item_name.lower():
            logger.warning("webhook_name_mismatch", sku=payload.sku, expected=item.name)
            raise ItemNameMismatchError(payload.sku, item.name, payload.item_name)

        return await self._adjust_item(item, movement_type, amount, condition)

    async def _create_item(
        self, name: str, sku: str, amount: int, condition: Condition
    ) -> WebhookResult:
        item = InventoryItem(
            name=name,
            sku=sku,
            current_quantity=amount,
            category_id=self.uncategorized_category_id,
            condition=condition,
        )
        created = InventoryItem.model_validate(
            await self._remote.upsert("inventory_items", item.model_dump(mode="json"))
        )
        movement_recorded = await self._record_movement(
            created.id, MovementType.ADD, amount, condition, "Created via webhook"
        )
        logger.info("webhook_item_created", item_id=created.id, sku=sku, quantity=amount)
        return WebhookResult(
            status="success",
            action="created",
            status_code=201,
            item=created,
            previous_quantity=0,
            new_quantity=amount,
            change=format_change(amount, MovementType.ADD),
            movement_recorded=movement_recorded,
        )

    async def _adjust_item(
        self,
        item: InventoryItem,
        movement_type: MovementType,
        amount: int,
        condition: Condition,
    ) -> WebhookResult:
        previous = item.current_quantity
        new_quantity = apply_delta(previous, amount, movement_type)
        updated = InventoryItem.model_validate(
            await self._remote.update(
                "inventory_items",
                item.id,
                {"current_quantity": new_quantity, "updated_at": utcnow().isoformat()},
            )
        )
        movement_recorded = await self._record_movement(
            item.id, movement_type, amount, condition, "Updated via webhook"
        )
        logger.info(
            "webhook_item_adjusted",
            item_id=item.id,
            movement_type=movement_type.value,
            previous_quantity=previous,
            new_quantity=new_quantity,
        )
        if new_quantity < 0:
            logger.warning("negative_stock", item_id=item.id, quantity=new_quantity)
        return WebhookResult(
            status="success",
            action=movement_type.value,
            item=updated,
            previous_quantity=previous,
            new_quantity=new_quantity,
            change=format_change(amount, movement_type),
            movement_recorded=movement_recorded,
        )

    async def _record_movement(
        self,
        item_id: str,
        movement_type: MovementType,
        amount: int,
        condition: Condition,
        notes: str,
    ) -> bool:
        """Write the ledger entry; the quantity is already applied, so failures are reported."""
        movement = StockMovement(
            item_id=item_id,
            movement_type=movement_type,
            quantity=amount,
            entry_method=EntryMethod.MANUAL,
            notes=notes,
            condition=condition,
        )
        try:
            await self._remote.upsert("stock_movements", movement.model_dump(mode="json"))
        except RemoteStoreError as e:
            logger.error("webhook_movement_failed", item_id=item_id, error=e.message)
            return False
        return True
