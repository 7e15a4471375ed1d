"""
Admin PIN tokens.

Tokens are ``<session id>:<expiry ms>:<hmac hex>`` where the HMAC is
keyed by the admin PIN, so changing the PIN revokes every token.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass

from src.config import get_logger
from src.core.exceptions import AdminAuthError, ConfigurationError

logger = get_logger(__name__)


@dataclass
class IssuedToken:
    token: str
    expires_at: int  # unix ms


@dataclass
class TokenValidation:
    valid: bool
    reason: str | None = None


class AdminTokenService:
    """Issue and validate admin session tokens."""

    def __init__(
        self,
        pin: str | None,
        ttl_hours: int = 24,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._pin = pin
        self.ttl_ms = ttl_hours * 60 * 60 * 1000
        self._clock = clock

    def _sign(self, data: str) -> str:
        assert self._pin is not None
        return hmac.new(self._pin.encode(), data.encode(), hashlib.sha256).hexdigest()

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def issue(self, pin: str) -> IssuedToken:
        """
        Exchange the admin PIN for a token.

        Raises:
            ConfigurationError: No admin PIN is configured.
            AdminAuthError: The PIN does not match.
        """
        if not self._pin:
            logger.error("admin_pin_missing")
            raise ConfigurationError("Server configuration error")
        if not hmac.compare_digest(pin.encode(), self._pin.encode()):
            logger.warning("admin_pin_rejected")
            raise AdminAuthError("Invalid PIN")

        expires_at = self._now_ms() + self.ttl_ms
        data = f"{secrets.token_hex(32)}:{expires_at}"
        logger.info("admin_token_issued", expires_at=expires_at)
        return IssuedToken(token=f"{data}:{self._sign(data)}", expires_at=expires_at)

    def validate(self, token: str | None) -> TokenValidation:
        if not self._pin:
            return TokenValidation(False, "Server configuration error")
        if not token:
            return TokenValidation(False, "Missing token")

        parts = token.split(":")
        if len(parts) != 3:
            return TokenValidation(False, "Invalid token format")
        session_id, expires_raw, signature = parts

        try:
            expires_at = int(expires_raw)
        except ValueError:
            return TokenValidation(False, "Invalid token format")
        if self._now_ms() > expires_at:
            return TokenValidation(False, "Token expired")

        expected = self._sign(f"{session_id}:{expires_raw}")
        if not hmac.compare_digest(expected.encode(), signature.encode("utf-8", "replace")):
            return TokenValidation(False, "Invalid signature")
        return TokenValidation(True)

    def require(self, token: str | None) -> None:
        """Raise AdminAuthError unless the token is valid."""
        result = self.validate(token)
        if not result.valid:
            raise AdminAuthError(result.reason or "Unauthorized")
