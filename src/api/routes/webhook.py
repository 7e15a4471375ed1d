"""Signed stock webhook endpoint."""

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from src.api.dependencies import get_process_webhook_use_case
from src.application.dto.responses import ErrorResponse, WebhookResponse
from src.application.use_cases.process_stock_webhook import ProcessStockWebhookUseCase

router = APIRouter(tags=["webhook"])


@router.post(
    "/stock-webhook",
    response_model=WebhookResponse,
    responses={
        201: {"model": WebhookResponse},
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def stock_webhook(
    request: Request,
    x_webhook_signature: str | None = Header(default=None),
    x_webhook_timestamp: str | None = Header(default=None),
    use_case: ProcessStockWebhookUseCase = Depends(get_process_webhook_use_case),
) -> JSONResponse:
    """
    Apply a stock event from an external system.

    The signature covers the raw body, so it is read before any parsing.
    Returns 201 when the item had to be created.
    """
    body = await request.body()
    result = await use_case.execute(body, x_webhook_signature, x_webhook_timestamp)
    response = use_case.to_response(result)
    return JSONResponse(
        status_code=result.status_code,
        content=response.model_dump(mode="json", exclude_none=True),
    )
