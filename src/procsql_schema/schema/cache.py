"""Per-session schema cache.

Two tiers: connection name -> table reference -> Row. A stored ``None`` is
an explicit "not found" entry, distinct from a missing key.

Entries are written once and never evicted or invalidated; the cache lives
as long as the interpreter session that owns it. It is not synchronized:
callers sharing one cache across threads must lock around it.
"""

from __future__ import annotations

from dataclasses import dataclass

from procsql_schema.core.logging import get_logger
from procsql_schema.schema.models import Row

logger = get_logger(__name__)


@dataclass
class CacheStats:
    """Counters for cache effectiveness."""

    hits: int = 0
    misses: int = 0
    introspections: int = 0
    faults: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "introspections": self.introspections,
            "faults": self.faults,
        }


class SchemaCache:
    """Write-once cache of table schemas, keyed by connection and table reference."""

    def __init__(self) -> None:
        self._connections: dict[str, dict[str, Row | None]] = {}
        self.stats = CacheStats()

    def connection_map(self, connection: str) -> dict[str, Row | None]:
        """Get the table map of a connection, creating it on first use."""
        tables = self._connections.get(connection)
        if tables is None:
            tables = {}
            self._connections[connection] = tables
        return tables

    def contains(self, connection: str, table: str) -> bool:
        """Whether the table has an entry (a Row or "not found")."""
        return table in self._connections.get(connection, {})

    def get(self, connection: str, table: str) -> Row | None:
        """Get a cached Row.

        Returns None both for "not found" entries and for missing keys;
        use ``contains`` or ``lookup`` to tell them apart.
        """
        return self._connections.get(connection, {}).get(table)

    def lookup(self, connection: str, table: str) -> tuple[bool, Row | None]:
        """Look up a table, counting the hit or miss.

        Returns:
            (whether the table has an entry, the entry)
        """
        tables = self._connections.get(connection, {})
        if table in tables:
            self.stats.hits += 1
            return True, tables[table]
        self.stats.misses += 1
        return False, None

    def publish(self, connection: str, table: str, row: Row | None) -> Row | None:
        """Store the schema of a table unless it is already cached.

        Args:
            connection: Connection name
            table: Table reference as written by the caller
            row: Finished Row, or None to record "not found"

        Returns:
            The entry held by the cache after the call
        """
        tables = self.connection_map(connection)
        if table in tables:
            logger.debug("schema_cache_publish_ignored", connection=connection, table=table)
            return tables[table]
        tables[table] = row
        logger.debug(
            "schema_cached",
            connection=connection,
            table=table,
            columns=len(row) if row is not None else None,
        )
        return row

    def connections(self) -> list[str]:
        """Connections with a table map."""
        return list(self._connections)

    def tables(self, connection: str) -> list[str]:
        """Table references cached for a connection."""
        return list(self._connections.get(connection, {}))

    def __len__(self) -> int:
        return sum(len(tables) for tables in self._connections.values())
