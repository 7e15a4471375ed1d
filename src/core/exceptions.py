"""
Domain exceptions for the Stockpad application.

Provides specific exception types for different error scenarios.
"""

from typing import Any


class StockpadError(Exception):
    """Base exception for all Stockpad errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(StockpadError):
    """Base exception for local storage operations."""

    pass


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class DuplicateSkuError(StorageError):
    """Another item already holds this SKU."""

    def __init__(self, sku: str):
        super().__init__(
            f"An item with SKU '{sku}' already exists",
            code="DUPLICATE_SKU",
            details={"sku": sku},
        )


# Not-found Exceptions
class NotFoundError(StockpadError):
    """Base exception for missing records."""

    pass


class ItemNotFoundError(NotFoundError):
    """Inventory item not found."""

    def __init__(self, item_id: str | None = None, sku: str | None = None):
        ref = f"SKU {sku}" if sku is not None else str(item_id)
        super().__init__(
            f"Item not found: {ref}",
            code="ITEM_NOT_FOUND",
            details={"item_id": item_id, "sku": sku},
        )


class DeviceUserNotFoundError(NotFoundError):
    """Device user not found."""

    def __init__(self, user_id: str):
        super().__init__(
            f"Device user not found: {user_id}",
            code="DEVICE_USER_NOT_FOUND",
            details={"user_id": user_id},
        )


class QueueEntryNotFoundError(NotFoundError):
    """Sync queue entry not found."""

    def __init__(self, entry_id: str):
        super().__init__(
            f"Queue entry not found: {entry_id}",
            code="QUEUE_ENTRY_NOT_FOUND",
            details={"entry_id": entry_id},
        )


# Validation Exceptions
class ValidationError(StockpadError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class ItemNameMismatchError(ValidationError):
    """SKU resolved to an item with a different name."""

    def __init__(self, sku: str, expected: str, received: str):
        super().__init__(
            field="item_name",
            message=f"Item name mismatch for SKU '{sku}'",
            value=received,
        )
        self.code = "ITEM_NAME_MISMATCH"
        self.details.update({"sku": sku, "expected": expected, "received": received})


# Remote store Exceptions
class RemoteStoreError(StockpadError):
    """Remote store rejected a request."""

    # Rejections that may succeed on a later attempt without operator action
    TRANSIENT_STATUSES = frozenset({408, 409, 425, 429})

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        pg_code: str | None = None,
        table: str | None = None,
    ):
        super().__init__(
            f"Remote store error: {message}",
            code="REMOTE_STORE_ERROR",
            details={"status_code": status_code, "pg_code": pg_code, "table": table},
        )
        self.status_code = status_code
        self.pg_code = pg_code
        self.table = table

    @property
    def is_permanent(self) -> bool:
        """A 4xx the remote will keep returning for the same payload."""
        if self.status_code is None:
            return False
        return 400 <= self.status_code < 500 and self.status_code not in self.TRANSIENT_STATUSES


class ForeignKeyViolationError(RemoteStoreError):
    """Write referenced a row the remote does not have."""

    def __init__(
        self,
        message: str,
        constraint: str | None = None,
        column: str | None = None,
        table: str | None = None,
        status_code: int | None = 409,
    ):
        super().__init__(message, status_code=status_code, pg_code="23503", table=table)
        self.code = "FOREIGN_KEY_VIOLATION"
        self.constraint = constraint
        self.column = column
        self.details.update({"constraint": constraint, "column": column})

    @property
    def is_permanent(self) -> bool:
        # The referenced row may still arrive from another queue entry
        return False


class RemoteUnavailableError(RemoteStoreError):
    """Remote store could not be reached."""

    def __init__(self, reason: str):
        super().__init__(f"unavailable ({reason})")
        self.code = "REMOTE_UNAVAILABLE"
        self.details["reason"] = reason


# Webhook Exceptions
class WebhookError(StockpadError):
    """Base exception for webhook ingestion."""

    pass


class WebhookNotConfiguredError(WebhookError):
    """No shared secret configured; the endpoint fails closed."""

    def __init__(self) -> None:
        super().__init__(
            "Webhook not configured: WEBHOOK_SECRET must be set to enable webhook functionality",
            code="WEBHOOK_NOT_CONFIGURED",
        )


class WebhookAuthenticationError(WebhookError):
    """Signature or timestamp check failed."""

    def __init__(self, reason: str):
        super().__init__(
            "Unauthorized",
            code="WEBHOOK_UNAUTHORIZED",
            details={"reason": reason},
        )
        self.reason = reason


# Admin Exceptions
class AdminAuthError(StockpadError):
    """Admin PIN or token rejected."""

    def __init__(self, reason: str = "Invalid PIN"):
        super().__init__(reason, code="ADMIN_UNAUTHORIZED", details={"reason": reason})


class ConfigurationError(StockpadError):
    """Configuration error."""

    pass
