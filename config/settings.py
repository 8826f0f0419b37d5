"""Application configuration using Pydantic Settings."""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreBackend(str, Enum):
    """Sample store implementations."""

    MEMORY = "memory"
    SQLITE = "sqlite"


class LogFormatName(str, Enum):
    """Log output formats."""

    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"
    COMPACT = "compact"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="TICKERWIN_LOG_", extra="ignore")

    level: str = Field(default="INFO", description="Root log level")
    format: LogFormatName = LogFormatName.DETAILED
    log_to_file: bool = False
    log_dir: Path = Field(default=Path("logs"))

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Accept lower-case level names."""
        level = str(v).upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class AppConfig(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TICKERWIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    store_backend: StoreBackend = StoreBackend.SQLITE
    state_dir: Path = Field(default=Path.home() / ".tickerwin")
    db_path: Optional[Path] = None

    # Retention and queries
    retention_seconds: float = Field(default=3600.0, gt=0, description="Sample lifetime")
    alignment_tolerance_seconds: float = Field(
        default=60.0, ge=0, description="Max timestamp gap for aligned pairs"
    )
    default_window_minutes: float = Field(default=60.0, ge=0, description="Default lookback")

    # Expiry sweep
    sweep_interval_seconds: float = Field(default=60.0, gt=0, description="Background sweep period")

    # Sub-configs
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("state_dir", mode="after")
    @classmethod
    def ensure_state_dir(cls, v: Path) -> Path:
        """Ensure state directory exists."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def resolved_db_path(self) -> Path:
        """SQLite file, defaulting to ``<state_dir>/samples.db``."""
        return self.db_path or self.state_dir / "samples.db"


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()


def reset_config() -> None:
    """Drop the cached configuration so the next call re-reads the environment."""
    get_config.cache_clear()
