"""Base types shared across the metadata service.

This module contains the fundamental enums that don't belong to a specific
component (identifiers, schema cache, backends).
"""

from __future__ import annotations

from enum import Enum

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError


class Dialect(str, Enum):
    """Introspection protocol a backend supports."""

    DESCRIBE_BASED = "describe"  # No prepared-statement metadata; learn schema by running queries
    METADATA_BASED = "metadata"  # Driver exposes result shape of a prepared statement


class ConnectionType(str, Enum):
    """Backend flavor of a connection."""

    HIVE = "hive"
    DB2 = "db2"
    MYSQL = "mysql"
    TERADATA = "teradata"
    POSTGRES = "postgres"
    DUCKDB = "duckdb"
    SQLITE = "sqlite"
    OTHER = "other"

    @property
    def dialect(self) -> Dialect:
        """Introspection dialect for this backend flavor."""
        if self is ConnectionType.HIVE:
            return Dialect.DESCRIBE_BASED
        return Dialect.METADATA_BASED

    @classmethod
    def from_url(cls, url: str) -> ConnectionType:
        """Derive the connection type from a database URL.

        Accepts sqlalchemy-style URLs (``hive://host:10000/default``,
        ``postgresql+psycopg://...``) and the ``jdbc:`` prefixed form
        (``jdbc:hive2://host:10000``).

        Args:
            url: Database URL

        Returns:
            Matching ConnectionType, OTHER when the backend is not recognized

        Raises:
            ValueError: If the URL cannot be parsed
        """
        if url.startswith("jdbc:"):
            url = url[len("jdbc:") :]
        try:
            backend = make_url(url).get_backend_name()
        except ArgumentError as e:
            raise ValueError(f"Invalid database URL: {url}") from e
        return _BACKEND_TYPES.get(backend.lower(), cls.OTHER)


_BACKEND_TYPES: dict[str, ConnectionType] = {
    "hive": ConnectionType.HIVE,
    "hive2": ConnectionType.HIVE,
    "db2": ConnectionType.DB2,
    "ibm_db_sa": ConnectionType.DB2,
    "mysql": ConnectionType.MYSQL,
    "mariadb": ConnectionType.MYSQL,
    "teradata": ConnectionType.TERADATA,
    "teradatasql": ConnectionType.TERADATA,
    "postgresql": ConnectionType.POSTGRES,
    "postgres": ConnectionType.POSTGRES,
    "duckdb": ConnectionType.DUCKDB,
    "sqlite": ConnectionType.SQLITE,
}
