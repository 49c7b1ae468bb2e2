"""Type resolution facade used by the interpreter.

Usage:
    registry = ConnectionRegistry()
    registry.register("warehouse", Dialect.DESCRIBE_BASED)
    resolver = TypeResolver(registry, executor, cache=session.schema_cache)

    resolver.get_data_type("warehouse", "sales.orders.amount")  # "decimal(10,2)"
    resolver.get_partition_keys("warehouse", "sales.orders")     # ["ORDER_DATE"]

Table schemas are fetched at most once per (connection, table reference)
and kept in the SchemaCache for the rest of the session. Table references
are cache keys exactly as written, without normalization. A table the
backend reports as missing is not cached and is looked up again on the
next call. SELECT statement schemas are fetched on every call.
"""

from __future__ import annotations

from procsql_schema.backends.base import FaultSink, QueryExecutor, RaisingFaultSink
from procsql_schema.backends.registry import ConnectionRegistry
from procsql_schema.core.config import Settings, get_settings
from procsql_schema.core.logging import get_logger
from procsql_schema.errors import SchemaIntrospectionError
from procsql_schema.identifiers import normalize_object_identifier, split_identifier_to_two_parts
from procsql_schema.schema.cache import SchemaCache
from procsql_schema.schema.introspection import IntrospectionStrategy, strategy_for
from procsql_schema.schema.models import FetchStatus, Row, SchemaFetch

logger = get_logger(__name__)


class TypeResolver:
    """Resolves column types and table/SELECT schemas for an interpreter session.

    Args:
        registry: Provides each connection's dialect
        executor: Runs the descriptive queries
        cache: Session-owned schema cache; a new one is created if omitted
        fault_sink: Receives hard faults; defaults to re-raising them
        settings: Service settings; defaults to the environment settings
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        executor: QueryExecutor,
        cache: SchemaCache | None = None,
        fault_sink: FaultSink | None = None,
        settings: Settings | None = None,
    ):
        self.registry = registry
        self.executor = executor
        self.cache = cache if cache is not None else SchemaCache()
        self.fault_sink = fault_sink if fault_sink is not None else RaisingFaultSink()
        self.settings = settings or get_settings()
        self._strategies: dict[str, IntrospectionStrategy] = {}

    @classmethod
    def from_settings(
        cls,
        executor: QueryExecutor,
        settings: Settings | None = None,
        cache: SchemaCache | None = None,
        fault_sink: FaultSink | None = None,
    ) -> TypeResolver:
        """Create a resolver for the connections configured in settings."""
        settings = settings or get_settings()
        return cls(
            ConnectionRegistry.from_settings(settings),
            executor,
            cache=cache,
            fault_sink=fault_sink,
            settings=settings,
        )

    def strategy_for_connection(self, connection: str) -> IntrospectionStrategy:
        """Get the introspection strategy of a connection, chosen on first use.

        Raises:
            UnknownConnectionError: If the connection is not registered
        """
        strategy = self._strategies.get(connection)
        if strategy is None:
            strategy = strategy_for(
                self.registry.get_dialect(connection),
                self.executor,
                strict_metadata_faults=self.settings.strict_metadata_faults,
            )
            self._strategies[connection] = strategy
        return strategy

    def get_data_type(self, connection: str, column: str) -> str | None:
        """Get the data type of a qualified column (schema.table.column or table.column).

        Returns:
            Backend type name, or None if the column is unqualified, the table
            is not found, the table has no such column, or its type is unknown
        """
        self.cache.connection_map(connection)
        parts = split_identifier_to_two_parts(column)
        if parts is None:
            logger.debug("unqualified_column", connection=connection, column=column)
            return None

        table, column_name = parts
        row = self._resolve_table(connection, table)
        if row is None:
            return None
        return row.get_type(column_name)

    def get_row_data_type(self, connection: str, table: str) -> Row | None:
        """Get the columns of a table, or None if the table is not found."""
        self.cache.connection_map(connection)
        return self._resolve_table(connection, table)

    def get_column_names(self, connection: str, table: str) -> list[str] | None:
        row = self.get_row_data_type(connection, table)
        if row is None:
            return None
        return row.column_names

    def get_partition_keys(self, connection: str, table: str) -> list[str] | None:
        row = self.get_row_data_type(connection, table)
        if row is None:
            return None
        return row.partition_keys

    def get_row_data_type_for_select(self, connection: str, select: str) -> Row | None:
        """Get the result columns of a SELECT statement.

        Always queries the backend; SELECT schemas are not cached.
        """
        fetch = self.strategy_for_connection(connection).fetch_select_schema(connection, select)
        if fetch.status is FetchStatus.FAULT:
            self._signal(connection, select, fetch)
            return None
        return fetch.row

    def normalize_object_identifier(self, name: str) -> str:
        """Normalize an object name for SQL sent to the backend."""
        return normalize_object_identifier(name, self.settings.elided_schemas)

    def _resolve_table(self, connection: str, table: str) -> Row | None:
        # Keyed by the reference as written; `[sales].[orders]` and
        # sales.orders are separate entries, each introspected once.
        cached, row = self.cache.lookup(connection, table)
        if cached:
            return row

        strategy = self.strategy_for_connection(connection)
        logger.debug(
            "schema_cache_miss",
            connection=connection,
            table=table,
            dialect=strategy.dialect.value,
        )
        self.cache.stats.introspections += 1
        fetch = strategy.fetch_table_schema(connection, table)

        if fetch.status is FetchStatus.FAULT:
            self._signal(connection, table, fetch)
            return None
        if not fetch.cacheable:
            # Not cached: the table may be created later in the session
            logger.debug(
                "table_not_found", connection=connection, table=table, reason=fetch.warnings
            )
            return None
        return self.cache.publish(connection, table, fetch.row)

    def _signal(self, connection: str, target: str, fetch: SchemaFetch) -> None:
        self.cache.stats.faults += 1
        fault = SchemaIntrospectionError(
            connection,
            target,
            fetch.error or "schema introspection failed",
            cause=fetch.cause,
        )
        fault.__cause__ = fetch.cause
        logger.warning(
            "schema_introspection_fault", connection=connection, target=target, error=fetch.error
        )
        self.fault_sink.signal(fault)
