#migration_engine\infrastructure\database\config.py

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Snapshot database configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Any SQLAlchemy URL; SQLite file by default
    database_url: str = "sqlite:///rack_migration.db"

    # Number of snapshot rows kept (0 keeps everything)
    snapshot_retention: int = Field(default=200, ge=0)

    # SQLAlchemy
    echo_sql: bool = False
