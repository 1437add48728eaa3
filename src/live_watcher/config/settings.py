"""Configuration via pydantic-settings with .env support."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class LiveWatcherSettings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="LIVE_WATCHER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OAuth credentials
    credentials_path: Path = Path("credentials/client_secret.json")
    token_path: Path = Path("credentials/token.json")

    # Gmail API settings
    user_id: str = "me"
    label: str = "CATEGORY_SOCIAL"
    max_results_per_page: int = 100
    num_retries: int = 3

    # Polling
    poll_interval_seconds: float = 60.0
    bootstrap_retry_delay_seconds: float = 0.0

    # Discovery
    stale_after_hours: float = 13.0
    stop_on_stale: bool = True
    live_marker: str = "ライブ配信中です"
    link_marker: str = "watch"
    redirect_param: str = "u"
    video_param: str = "v"

    # Logging
    log_level: str = "INFO"

    def ensure_directories(self) -> None:
        """Create the credentials directory if it doesn't exist."""
        self.credentials_path.parent.mkdir(parents=True, exist_ok=True)
        self.token_path.parent.mkdir(parents=True, exist_ok=True)
