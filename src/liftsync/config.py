"""Runtime settings for liftsync."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Default data directory (next to the source checkout, like the CLI expects)
DATA_DIR = Path(__file__).parent.parent.parent / "data"


class Settings(BaseSettings):
    """Settings loaded from LIFTSYNC_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="LIFTSYNC_", env_file=".env", extra="ignore")

    # Storage
    data_dir: Path = DATA_DIR
    remote_dir: Path | None = None  # JSON document store used by the CLI

    # Sync
    deletion_retention_days: int = 30
    session_window_days: int = 90

    # Progression
    progression_history_size: int = 8
    confidence_learning_rate: float = 0.25

    # HTTP API
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False

    @property
    def resolved_remote_dir(self) -> Path:
        """Remote document root, defaulting to <data_dir>/remote."""
        return self.remote_dir or self.data_dir / "remote"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
