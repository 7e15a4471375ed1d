"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from src.application.dto.requests import (
    AdjustStockRequest,
    AdminPinRequest,
    ConnectivityRequest,
    CreateDeviceUserRequest,
    CreateItemRequest,
    RecordMovementRequest,
    RenameDeviceUserRequest,
    SelectDeviceUserRequest,
    UpdateItemRequest,
)
from src.application.dto.responses import (
    AdjustStockResponse,
    AdminTokenResponse,
    ConditionBreakdownResponse,
    CurrentDeviceUserResponse,
    DeviceUserResponse,
    ErrorResponse,
    HealthResponse,
    InventoryItemResponse,
    ProviderHealthResponse,
    QueueEntryResponse,
    QueueSummaryResponse,
    StockMovementResponse,
    SyncReportResponse,
    SyncStatusResponse,
    TokenValidationResponse,
    WebhookResponse,
)

__all__ = [
    # Requests
    "CreateItemRequest",
    "UpdateItemRequest",
    "AdjustStockRequest",
    "RecordMovementRequest",
    "CreateDeviceUserRequest",
    "RenameDeviceUserRequest",
    "SelectDeviceUserRequest",
    "ConnectivityRequest",
    "AdminPinRequest",
    # Responses
    "InventoryItemResponse",
    "StockMovementResponse",
    "AdjustStockResponse",
    "ConditionBreakdownResponse",
    "DeviceUserResponse",
    "CurrentDeviceUserResponse",
    "QueueEntryResponse",
    "QueueSummaryResponse",
    "SyncStatusResponse",
    "SyncReportResponse",
    "WebhookResponse",
    "AdminTokenResponse",
    "TokenValidationResponse",
    "HealthResponse",
    "ProviderHealthResponse",
    "ErrorResponse",
]
