"""Verify Admin PIN Use Case: issue or validate admin session tokens."""

from src.application.dto.requests import AdminPinRequest
from src.application.dto.responses import AdminTokenResponse, TokenValidationResponse
from src.core.exceptions import ValidationError
from src.core.services import AdminTokenService


class VerifyAdminPinUseCase:
    """Exchange a PIN for a token, or check a token."""

    def __init__(self, token_service: AdminTokenService | None = None):
        self._token_service = token_service

    def _get_token_service(self) -> AdminTokenService:
        if self._token_service is None:
            from src.application.services import get_admin_token_service

            self._token_service = get_admin_token_service()
        return self._token_service

    def execute(self, request: AdminPinRequest) -> AdminTokenResponse | TokenValidationResponse:
        service = self._get_token_service()

        if request.action == "validate":
            result = service.validate(request.token)
            return TokenValidationResponse(valid=result.valid, reason=result.reason)

        if not request.pin:
            raise ValidationError("pin", "PIN is required")
        issued = service.issue(request.pin)
        return AdminTokenResponse(token=issued.token, expires_at=issued.expires_at)
