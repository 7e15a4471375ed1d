"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.application.dto.responses import ErrorResponse
from src.config import get_logger
from src.core.exceptions import (
    AdminAuthError,
    ConfigurationError,
    DuplicateSkuError,
    NotFoundError,
    RemoteStoreError,
    StockpadError,
    StorageError,
    ValidationError,
    WebhookAuthenticationError,
    WebhookNotConfiguredError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes; first isinstance match wins
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    WebhookAuthenticationError: status.HTTP_401_UNAUTHORIZED,
    WebhookNotConfiguredError: status.HTTP_503_SERVICE_UNAVAILABLE,
    AdminAuthError: status.HTTP_401_UNAUTHORIZED,
    DuplicateSkuError: status.HTTP_409_CONFLICT,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    # Includes RemoteUnavailableError; 503 means an unconfigured webhook only
    RemoteStoreError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Hint messages per error code / exception type
HINT_MAP: dict[str, str] = {
    "ITEM_NOT_FOUND": "Check the item ID or SKU and try GET /api/items to list items.",
    "DEVICE_USER_NOT_FOUND": "Try GET /api/device-users to list device users.",
    "QUEUE_ENTRY_NOT_FOUND": "Try GET /api/sync/queue to list pending entries.",
    "DUPLICATE_SKU": "Another item already uses this SKU. Pick a different SKU.",
    "ITEM_NAME_MISMATCH": "The SKU belongs to an item with a different name. Check the SKU.",
    "WEBHOOK_UNAUTHORIZED": "Sign timestamp + '.' + body with the shared secret and send a fresh timestamp.",
    "WEBHOOK_NOT_CONFIGURED": "Set WEBHOOK_SECRET on the server.",
    "ADMIN_UNAUTHORIZED": "Verify the admin PIN at POST /api/admin/verify-pin.",
    "REMOTE_UNAVAILABLE": "The remote store is unreachable. Local changes stay queued until it returns.",
    "REMOTE_STORE_ERROR": "The remote store rejected the request. Check server logs.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    401: "Authentication failed.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The request conflicts with existing data.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
    503: "The service is temporarily unavailable. Retry later.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def _status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def build_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert exception to standardized JSON response."""
    status_code = _status_for(exc)

    # Get error code: prefer StockpadError.code, fall back to class name
    if isinstance(exc, StockpadError):
        error_code = exc.code
        message = exc.message
    else:
        error_code = exc.__class__.__name__
        message = str(exc)

    request_id = getattr(request.state, "request_id", None)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=request_id,
        path=request.url.path,
        status=status_code,
        error_type=error_code,
        error=message,
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    detail = None
    if isinstance(exc, StockpadError) and exc.details:
        detail = "; ".join(f"{k}={v}" for k, v in exc.details.items() if v is not None) or None

    error_response = ErrorResponse(
        error_code=error_code,
        message=message,
        hint=_get_hint(error_code, status_code),
        detail=detail,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Converts exceptions to standardized JSON error responses.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Handle request with error catching."""
        try:
            return await call_next(request)

        except Exception as e:
            return build_error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(StockpadError)
    async def domain_exception_handler(
        request: Request,
        exc: StockpadError,
    ) -> JSONResponse:
        """Handle domain errors raised by routes and use cases."""
        return build_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                hint="Check the request body fields and types.",
                detail="; ".join(errors),
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with standardized format."""
        error_code = _infer_error_code(exc.status_code)
        hint = _get_hint(error_code, exc.status_code)

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=exc.detail or "An error occurred",
                hint=hint,
                path=request.url.path,
            ).model_dump(mode="json"),
            headers=getattr(exc, "headers", None),
        )


def _infer_error_code(status_code: int) -> str:
    """Infer a machine-readable error code from an HTTPException status."""
    return {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        422: "UNPROCESSABLE_ENTITY",
    }.get(status_code, "HTTP_ERROR")
