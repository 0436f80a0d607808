"""Runtime configuration.

Values come from ``PODIUM_*`` environment variables (or a ``.env`` file) and
fall back to defaults suitable for local, single-user use.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Podium settings.

    - ``PODIUM_REGISTRY_DIR``: directory holding the registry snapshot and event log
    - ``PODIUM_CALLER``: default caller identity for the CLI
    - ``PODIUM_LOG_LEVEL``: loguru level for the stderr sink
    - ``PODIUM_HOST`` / ``PODIUM_PORT``: bind address for ``podium serve``
    """

    model_config = SettingsConfigDict(
        env_prefix="PODIUM_",
        env_file=".env",
        extra="ignore",
    )

    REGISTRY_DIR: str = Field(default=".podium_registry")
    CALLER: str = Field(default="")
    LOG_LEVEL: str = Field(default="WARNING")

    HOST: str = Field(default="127.0.0.1")
    PORT: int = Field(default=8000)


@lru_cache
def get_settings() -> Settings:
    return Settings()
