"""Process Stock Webhook Use Case."""

from src.application.dto.responses import InventoryItemResponse, WebhookResponse
from src.config import get_logger
from src.core.entities.webhook import WebhookResult
from src.core.services import StockWebhookService

logger = get_logger(__name__)


class ProcessStockWebhookUseCase:
    """Authenticate and apply a signed stock webhook."""

    def __init__(self, webhook_service: StockWebhookService | None = None):
        self._webhook_service = webhook_service

    def _get_webhook_service(self) -> StockWebhookService:
        if self._webhook_service is None:
            from src.application.services import get_webhook_service

            self._webhook_service = get_webhook_service()
        return self._webhook_service

    async def execute(
        self,
        body: bytes,
        signature: str | None,
        timestamp: str | None,
    ) -> WebhookResult:
        """
        Execute the webhook.

        Args:
            body: Raw request body, exactly as signed
            signature: X-Webhook-Signature header
            timestamp: X-Webhook-Timestamp header (unix ms)
        """
        service = self._get_webhook_service()
        result = await service.process(body, signature, timestamp)
        logger.info(
            "stock_webhook_processed",
            status=result.status,
            action=result.action,
            status_code=result.status_code,
        )
        return result

    def to_response(self, result: WebhookResult) -> WebhookResponse:
        """Convert result to API response."""
        if result.requires_confirmation:
            return WebhookResponse(
                status=result.status,
                action=result.action,
                message=result.message,
                requires_confirmation=True,
            )
        return WebhookResponse(
            status=result.status,
            action=result.action,
            message=result.message,
            item=InventoryItemResponse.model_validate(result.item) if result.item else None,
            previous_quantity=result.previous_quantity,
            new_quantity=result.new_quantity,
            change=result.change,
            movement_recorded=result.movement_recorded,
        )
