"""Admin PIN endpoint."""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_verify_admin_pin_use_case
from src.application.dto.requests import AdminPinRequest
from src.application.dto.responses import (
    AdminTokenResponse,
    ErrorResponse,
    TokenValidationResponse,
)
from src.application.use_cases.verify_admin_pin import VerifyAdminPinUseCase

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post(
    "/verify-pin",
    response_model=AdminTokenResponse | TokenValidationResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def verify_pin(
    request: AdminPinRequest,
    use_case: VerifyAdminPinUseCase = Depends(get_verify_admin_pin_use_case),
) -> AdminTokenResponse | TokenValidationResponse:
    """Exchange the admin PIN for a 24h token, or validate a token."""
    return use_case.execute(request)
