"""
Runtime configuration for the fsrelay service.

Values come from FSRELAY_* environment variables; the filesystem layer and
the script relay themselves take no configuration.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings loaded from the environment"""

    model_config = SettingsConfigDict(
        env_prefix="FSRELAY_",
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )

    root: Path = Field(default_factory=Path.cwd)
    log_level: str = "INFO"
    execute_timeout: float = Field(default=10.0, gt=0)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
