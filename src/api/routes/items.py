"""Inventory item endpoints."""

from fastapi import APIRouter, Depends, Response, status

from src.api.dependencies import get_adjust_stock_use_case, get_inventory, require_admin
from src.application.dto.requests import (
    AdjustStockRequest,
    CreateItemRequest,
    RecordMovementRequest,
    UpdateItemRequest,
)
from src.application.dto.responses import (
    AdjustStockResponse,
    ConditionBreakdownResponse,
    ErrorResponse,
    InventoryItemResponse,
    StockMovementResponse,
)
from src.application.use_cases.adjust_stock import AdjustStockUseCase
from src.core.entities.inventory import ItemDraft
from src.core.exceptions import ItemNotFoundError
from src.core.services import InventoryService

router = APIRouter(prefix="/api/items", tags=["items"])


@router.get("", response_model=list[InventoryItemResponse])
async def list_items(
    service: InventoryService = Depends(get_inventory),
) -> list[InventoryItemResponse]:
    """List all items in the local store."""
    items = await service.list_items()
    return [InventoryItemResponse.model_validate(item) for item in items]


@router.post(
    "",
    response_model=InventoryItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def create_item(
    request: CreateItemRequest,
    service: InventoryService = Depends(get_inventory),
) -> InventoryItemResponse:
    """Create an item locally and queue it for sync."""
    item = await service.add_item(ItemDraft(**request.model_dump()))
    return InventoryItemResponse.model_validate(item)


@router.get("/low-stock", response_model=list[InventoryItemResponse])
async def list_low_stock(
    service: InventoryService = Depends(get_inventory),
) -> list[InventoryItemResponse]:
    """Items at or below their low-stock threshold."""
    items = await service.list_low_stock_items()
    return [InventoryItemResponse.model_validate(item) for item in items]


@router.get("/negative", response_model=list[InventoryItemResponse])
async def list_negative_stock(
    service: InventoryService = Depends(get_inventory),
) -> list[InventoryItemResponse]:
    """Items whose quantity went below zero."""
    items = await service.list_negative_stock_items()
    return [InventoryItemResponse.model_validate(item) for item in items]


@router.get(
    "/{item_id}",
    response_model=InventoryItemResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_item(
    item_id: str,
    service: InventoryService = Depends(get_inventory),
) -> InventoryItemResponse:
    item = await service.get_item(item_id)
    return InventoryItemResponse.model_validate(item)


@router.patch(
    "/{item_id}",
    response_model=InventoryItemResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_item(
    item_id: str,
    request: UpdateItemRequest,
    service: InventoryService = Depends(get_inventory),
) -> InventoryItemResponse:
    """Apply the fields present in the body."""
    item = await service.update_item(item_id, request.model_dump(exclude_unset=True))
    if item is None:
        raise ItemNotFoundError(item_id=item_id)
    return InventoryItemResponse.model_validate(item)


@router.delete(
    "/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
    responses={401: {"model": ErrorResponse}},
)
async def delete_item(
    item_id: str,
    service: InventoryService = Depends(get_inventory),
) -> Response:
    """Delete an item (admin only)."""
    await service.delete_item(item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{item_id}/adjust",
    response_model=AdjustStockResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def adjust_stock(
    item_id: str,
    request: AdjustStockRequest,
    use_case: AdjustStockUseCase = Depends(get_adjust_stock_use_case),
) -> AdjustStockResponse:
    """Add or remove units. Quantities may go negative."""
    result = await use_case.execute(item_id, request)
    return use_case.to_response(result)


@router.post(
    "/{item_id}/movements",
    response_model=StockMovementResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
)
async def record_movement(
    item_id: str,
    request: RecordMovementRequest,
    service: InventoryService = Depends(get_inventory),
) -> StockMovementResponse:
    """
    Record a movement without changing the quantity, e.g. opening stock.

    Attributed to the selected device user unless the request names one.
    """
    await service.get_item(item_id)
    device_user_id = request.device_user_id
    if device_user_id is None:
        current = await service.get_current_device_user()
        device_user_id = current.id if current else None
    movement = await service.add_stock_movement(
        item_id,
        request.quantity,
        request.movement_type,
        device_user_id=device_user_id,
        entry_method=request.entry_method,
        ai_confidence=request.ai_confidence,
        notes=request.notes,
        condition=request.condition,
    )
    return StockMovementResponse.model_validate(movement)


@router.get("/{item_id}/movements", response_model=list[StockMovementResponse])
async def list_movements(
    item_id: str,
    service: InventoryService = Depends(get_inventory),
) -> list[StockMovementResponse]:
    """Movement history for an item, newest first."""
    movements = await service.list_movements(item_id)
    return [StockMovementResponse.model_validate(m) for m in movements]


@router.get(
    "/{item_id}/breakdown",
    response_model=ConditionBreakdownResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_breakdown(
    item_id: str,
    service: InventoryService = Depends(get_inventory),
) -> ConditionBreakdownResponse:
    """Stock per condition, derived from the movement ledger."""
    await service.get_item(item_id)
    breakdown = await service.get_condition_breakdown(item_id)
    return ConditionBreakdownResponse(
        item_id=item_id,
        **breakdown.model_dump(),
        total=breakdown.total,
    )
