"""Configuration management.

Uses pydantic-settings for type-safe configuration from environment variables.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Metadata service settings.

    All settings can be overridden via environment variables.
    Prefix: PROCSQL_SCHEMA_
    """

    model_config = SettingsConfigDict(
        env_prefix="PROCSQL_SCHEMA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Connections: name -> database URL (sqlalchemy URL syntax, e.g. hive://host/db)
    connections: dict[str, str] = Field(
        default_factory=dict,
        description="Named backend connections, used to derive each connection's dialect",
    )

    # Identifier normalization
    elided_schemas: list[str] = Field(
        default_factory=lambda: ["dbo"],
        description="Schema names dropped from qualified object identifiers",
    )

    # Introspection
    strict_metadata_faults: bool = Field(
        default=False,
        description=(
            "Signal metadata-based introspection failures as faults instead of "
            "resolving them to 'not found'"
        ),
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")  # 'json' or 'console'


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
