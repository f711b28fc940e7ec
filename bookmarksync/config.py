"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYNC_PATH = "/bookmarks/"


class Settings(BaseSettings):
    """bookmarksync settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    debug: bool = False

    # Local persistence
    database_url: str = "sqlite+aiosqlite:///data/bookmarks.db"

    # Sync
    sync_enabled: bool = False
    webdav_url: str = ""
    webdav_username: str = ""
    webdav_password: str = ""
    sync_path: str = DEFAULT_SYNC_PATH
    auto_sync_debounce_seconds: float = Field(default=5.0, gt=0)
    tombstone_retention_days: int = Field(default=30, ge=1)
    request_timeout_seconds: float = Field(default=60.0, gt=0)

    @property
    def effective_sync_path(self) -> str:
        """Remote sync sub-path, falling back to the default when blank."""
        return self.sync_path.strip() or DEFAULT_SYNC_PATH

    @property
    def debounce_ms(self) -> int:
        return int(self.auto_sync_debounce_seconds * 1000)

    @property
    def tombstone_retention_ms(self) -> int:
        return self.tombstone_retention_days * 24 * 60 * 60 * 1000
