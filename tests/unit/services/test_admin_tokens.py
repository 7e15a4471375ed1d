"""Tests for AdminTokenService."""

import pytest

from src.core.exceptions import AdminAuthError, ConfigurationError
from src.core.services import AdminTokenService


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tokens(clock) -> AdminTokenService:
    return AdminTokenService("4321", ttl_hours=24, clock=clock)


class TestIssue:
    def test_issue_valid_token(self, tokens, clock):
        issued = tokens.issue("4321")

        session_id, expires_at, signature = issued.token.split(":")
        assert len(session_id) == 64
        assert int(expires_at) == issued.expires_at == int(clock.now * 1000) + 24 * 3600 * 1000
        assert len(signature) == 64
        assert tokens.validate(issued.token).valid is True

    def test_wrong_pin(self, tokens):
        with pytest.raises(AdminAuthError, match="Invalid PIN"):
            tokens.issue("0000")

    def test_no_pin_configured(self):
        with pytest.raises(ConfigurationError):
            AdminTokenService(None).issue("4321")


class TestValidate:
    def test_missing(self, tokens):
        assert tokens.validate(None).reason == "Missing token"
        assert tokens.validate("").reason == "Missing token"

    @pytest.mark.parametrize("token", ["abc", "a:b", "a:b:c:d", "a:soon:c"])
    def test_bad_format(self, tokens, token):
        assert tokens.validate(token).reason == "Invalid token format"

    def test_expired(self, tokens, clock):
        issued = tokens.issue("4321")
        clock.now += 24 * 3600 + 1

        result = tokens.validate(issued.token)
        assert result.valid is False
        assert result.reason == "Token expired"

    def test_tampered_signature(self, tokens):
        issued = tokens.issue("4321")
        session_id, expires_at, signature = issued.token.split(":")
        forged = f"{session_id}:{int(expires_at) + 1000}:{signature}"

        assert tokens.validate(forged).reason == "Invalid signature"

    def test_pin_change_revokes(self, tokens, clock):
        issued = tokens.issue("4321")
        rotated = AdminTokenService("9999", clock=clock)

        assert rotated.validate(issued.token).reason == "Invalid signature"

    def test_no_pin_configured(self):
        assert AdminTokenService("").validate("a:1:b").reason == "Server configuration error"


class TestRequire:
    def test_require_raises_with_reason(self, tokens):
        with pytest.raises(AdminAuthError) as exc_info:
            tokens.require("bogus")
        assert exc_info.value.message == "Invalid token format"

    def test_require_passes(self, tokens):
        tokens.require(tokens.issue("4321").token)
