#migration_engine\core\config.py

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from migration_engine.core.units import DEFAULT_RACK_CAPACITY


DEFAULT_RACK_IDS = ["A1", "A2", "A3", "A4", "B1", "B2", "B3", "B4"]


class EngineSettings(BaseSettings):
    """Engine configuration from environment variables (MIGRATION_*)."""

    model_config = SettingsConfigDict(
        env_prefix="MIGRATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Rack catalog
    rack_capacity: int = Field(default=DEFAULT_RACK_CAPACITY, ge=1)
    rack_ids: List[str] = Field(default_factory=lambda: list(DEFAULT_RACK_IDS))
    rack_name_prefix: str = "Rack"

    # Logging
    log_level: str = "INFO"
