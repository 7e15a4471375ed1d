"""Tests for structlog processors."""

from src.config.logging import REDACTED, add_app_context, redact_secrets


class TestRedactSecrets:
    def test_masks_top_level_keys(self):
        event = redact_secrets(
            None, "info", {"event": "admin_token_issued", "token": "abc", "expires_at": 1}
        )
        assert event == {"event": "admin_token_issued", "token": REDACTED, "expires_at": 1}

    def test_case_insensitive(self):
        event = redact_secrets(None, "info", {"event": "x", "Authorization": "Bearer t"})
        assert event["Authorization"] == REDACTED

    def test_masks_nested_dict(self):
        event = redact_secrets(
            None,
            "info",
            {"event": "x", "headers": {"apikey": "k", "content-type": "application/json"}},
        )
        assert event["headers"] == {"apikey": REDACTED, "content-type": "application/json"}

    def test_none_left_alone(self):
        event = redact_secrets(None, "info", {"event": "x", "secret": None})
        assert event["secret"] is None


class TestAddAppContext:
    def test_stamps_app_and_device(self, monkeypatch):
        from src.config import reset_settings

        monkeypatch.setenv("DEVICE_NAME", "tablet-3")
        reset_settings()

        event = add_app_context(None, "info", {"event": "x"})

        assert event["app"] == "Stockpad"
        assert event["device"] == "tablet-3"
        assert "version" in event
