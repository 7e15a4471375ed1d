"""Device user endpoints."""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_inventory
from src.application.dto.requests import (
    CreateDeviceUserRequest,
    RenameDeviceUserRequest,
    SelectDeviceUserRequest,
)
from src.application.dto.responses import (
    CurrentDeviceUserResponse,
    DeviceUserResponse,
    ErrorResponse,
)
from src.core.exceptions import DeviceUserNotFoundError
from src.core.services import InventoryService

router = APIRouter(prefix="/api/device-users", tags=["device-users"])


@router.get("", response_model=list[DeviceUserResponse])
async def list_device_users(
    service: InventoryService = Depends(get_inventory),
) -> list[DeviceUserResponse]:
    users = await service.list_device_users()
    return [DeviceUserResponse.model_validate(user) for user in users]


@router.post("", response_model=DeviceUserResponse, status_code=status.HTTP_201_CREATED)
async def create_device_user(
    request: CreateDeviceUserRequest,
    service: InventoryService = Depends(get_inventory),
) -> DeviceUserResponse:
    user = await service.add_device_user(request.name)
    return DeviceUserResponse.model_validate(user)


@router.get("/current", response_model=CurrentDeviceUserResponse)
async def get_current_device_user(
    service: InventoryService = Depends(get_inventory),
) -> CurrentDeviceUserResponse:
    """Device user new movements are attributed to."""
    user = await service.get_current_device_user()
    return CurrentDeviceUserResponse(
        user=DeviceUserResponse.model_validate(user) if user else None
    )


@router.put(
    "/current",
    response_model=CurrentDeviceUserResponse,
    responses={404: {"model": ErrorResponse}},
)
async def select_device_user(
    request: SelectDeviceUserRequest,
    service: InventoryService = Depends(get_inventory),
) -> CurrentDeviceUserResponse:
    """Select (or clear, with null) the current device user."""
    user = await service.select_device_user(request.user_id)
    return CurrentDeviceUserResponse(
        user=DeviceUserResponse.model_validate(user) if user else None
    )


@router.patch(
    "/{user_id}",
    response_model=DeviceUserResponse,
    responses={404: {"model": ErrorResponse}},
)
async def rename_device_user(
    user_id: str,
    request: RenameDeviceUserRequest,
    service: InventoryService = Depends(get_inventory),
) -> DeviceUserResponse:
    user = await service.rename_device_user(user_id, request.name)
    if user is None:
        raise DeviceUserNotFoundError(user_id)
    return DeviceUserResponse.model_validate(user)
