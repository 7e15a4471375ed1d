"""Configuration: settings and structured logging."""

from src.config.logging import configure_logging, get_logger
from src.config.settings import ConditionName, Settings, get_settings, reset_settings

__all__ = [
    "ConditionName",
    "Settings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "get_logger",
]
