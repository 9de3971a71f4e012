"""Application settings and logging setup.

Settings come from ``EIGO_HACK_*`` environment variables or a ``.env`` file.
"""
import sys
from functools import lru_cache
from pathlib import Path

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EIGO_HACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    db_path: str = Field(
        default=str(Path.home() / ".eigo_hack" / "progress.db"),
        description="SQLite file holding the catalog and the learner's store slots",
    )
    challenge_api_url: str = Field(
        default="",
        description="Remote challenge service endpoint; empty disables challenges",
    )
    request_timeout: float = Field(default=10.0, gt=0, description="HTTP timeout in seconds")
    session_size: int = Field(default=20, ge=1, description="Questions per randomized session")
    log_level: str = Field(default="WARNING", description="loguru level for the stderr sink")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: str | None = None) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or get_settings().log_level).upper(),
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
