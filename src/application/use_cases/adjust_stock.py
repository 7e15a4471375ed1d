"""Adjust Stock Use Case: add or remove units and record the movement."""

from dataclasses import dataclass

from src.application.dto.requests import AdjustStockRequest
from src.application.dto.responses import AdjustStockResponse, InventoryItemResponse
from src.config import get_logger
from src.core.entities.inventory import InventoryItem, MovementType
from src.core.exceptions import ItemNotFoundError
from src.core.services import InventoryService, format_change

logger = get_logger(__name__)


@dataclass
class AdjustStockResult:
    """Result of adjusting stock."""

    item: InventoryItem
    previous_quantity: int
    quantity: int
    movement_type: MovementType


class AdjustStockUseCase:
    """Apply a stock movement, attributing it to the selected device user by default."""

    def __init__(
        self,
        inventory_service: InventoryService | None = None,
    ):
        self._inventory_service = inventory_service

    async def _get_inventory_service(self) -> InventoryService:
        if self._inventory_service is None:
            from src.application.services import get_inventory_service

            self._inventory_service = await get_inventory_service()
        return self._inventory_service

    async def execute(self, item_id: str, request: AdjustStockRequest) -> AdjustStockResult:
        """Execute adjust stock use case."""
        service = await self._get_inventory_service()

        device_user_id = request.device_user_id
        if device_user_id is None:
            current = await service.get_current_device_user()
            device_user_id = current.id if current else None

        item = await service.update_quantity(
            item_id,
            request.quantity,
            request.movement_type,
            device_user_id=device_user_id,
            entry_method=request.entry_method,
            ai_confidence=request.ai_confidence,
            notes=request.notes,
            condition=request.condition,
        )
        if item is None:
            raise ItemNotFoundError(item_id=item_id)

        signed = request.quantity if request.movement_type == MovementType.ADD else -request.quantity
        return AdjustStockResult(
            item=item,
            previous_quantity=item.current_quantity - signed,
            quantity=request.quantity,
            movement_type=request.movement_type,
        )

    def to_response(self, result: AdjustStockResult) -> AdjustStockResponse:
        """Convert result to API response."""
        return AdjustStockResponse(
            item=InventoryItemResponse.model_validate(result.item),
            previous_quantity=result.previous_quantity,
            new_quantity=result.item.current_quantity,
            change=format_change(result.quantity, result.movement_type),
        )
