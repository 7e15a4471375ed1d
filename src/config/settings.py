"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables (and an optional ``.env``
file) with defaults suited to a single tablet talking to one remote store.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ConditionName = Literal["new", "good", "damaged", "broken"]


class StorageSettings(BaseSettings):
    """Local durable store configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "stockpad.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class RemoteSettings(BaseSettings):
    """Remote (PostgREST / Supabase) store configuration."""

    model_config = SettingsConfigDict(env_prefix="REMOTE_")

    url: str = "http://localhost:54321"
    api_key: str = ""
    schema_path: str = "/rest/v1"
    timeout: float = 15.0

    # Retry settings for transport failures
    max_retries: int = 3
    retry_delay: float = 0.5
    retry_multiplier: float = 2.0

    # Movement column whose FK violations are downgraded and retried
    device_user_fk_column: str = "device_user_id"


class SyncSettings(BaseSettings):
    """Synchronization engine configuration."""

    model_config = SettingsConfigDict(env_prefix="SYNC_")

    start_online: bool = True
    initial_delay_seconds: float = 1.0
    interval_seconds: float = 0.0  # 0 disables the periodic loop
    probe_interval_seconds: float = 30.0  # 0 disables connectivity probing
    max_attempts: int = 25  # 0 retries forever


class WebhookSettings(BaseSettings):
    """Stock webhook configuration."""

    model_config = SettingsConfigDict(env_prefix="WEBHOOK_")

    secret: str | None = None
    replay_window_seconds: int = 300
    default_condition: ConditionName = "good"
    uncategorized_category_id: str = "00000000-0000-0000-0000-000000000000"


class AdminSettings(BaseSettings):
    """Admin PIN gate configuration."""

    model_config = SettingsConfigDict(env_prefix="ADMIN_")

    pin: str | None = None
    token_ttl_hours: int = 24


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Stockpad"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    device_name: str | None = None

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    remote: RemoteSettings = Field(default_factory=RemoteSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)
    admin: AdminSettings = Field(default_factory=AdminSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
