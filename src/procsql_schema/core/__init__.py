"""Core module - configuration, logging, and shared models."""

from procsql_schema.core.config import Settings, get_settings
from procsql_schema.core.models.base import ConnectionType, Dialect

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Models - enums
    "ConnectionType",
    "Dialect",
]
