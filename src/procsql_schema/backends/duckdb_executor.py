"""QueryExecutor over named DuckDB connections.

Queries run through DuckDB relations. A relation is bound (names and types
resolved) when it is created and only executed when rows are fetched, which
gives prepare-without-execute for free.

Usage:
    executor = DuckDBExecutor({"local": duckdb.connect(":memory:")})

    with executor.prepare("SELECT * FROM orders", "local") as stmt:
        columns = list(stmt.describe())
"""

from __future__ import annotations

from collections.abc import Generator, Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import duckdb

from procsql_schema.backends.base import ColumnDescription, QueryExecutor
from procsql_schema.core.logging import get_logger
from procsql_schema.errors import QueryError, UnknownConnectionError

logger = get_logger(__name__)


class DuckDBStatement:
    """A bound, unexecuted DuckDB relation."""

    def __init__(self, relation: duckdb.DuckDBPyRelation | None):
        self._relation = relation

    def describe(self) -> Iterator[ColumnDescription]:
        if self._relation is None:
            return
        for name, dtype in zip(self._relation.columns, self._relation.types, strict=True):
            yield ColumnDescription(name=name, type_name=str(dtype))


class DuckDBCursor(DuckDBStatement):
    """Rows of an executed DuckDB relation."""

    def __init__(self, relation: duckdb.DuckDBPyRelation | None, connection: str, sql: str):
        super().__init__(relation)
        self._connection = connection
        self._sql = sql

    def __iter__(self) -> Iterator[Sequence[Any]]:
        if self._relation is None:
            return iter(())
        try:
            rows = self._relation.fetchall()
        except duckdb.Error as e:
            raise QueryError(self._connection, self._sql, str(e)) from e
        return iter(rows)


class DuckDBExecutor(QueryExecutor):
    """Executes metadata queries on named DuckDB connections.

    Each call works on its own cursor, closed when the block exits.
    """

    def __init__(self, connections: dict[str, duckdb.DuckDBPyConnection] | None = None):
        self._connections: dict[str, duckdb.DuckDBPyConnection] = dict(connections or {})

    def register(self, name: str, conn: duckdb.DuckDBPyConnection) -> None:
        self._connections[name] = conn

    def _connection(self, name: str) -> duckdb.DuckDBPyConnection:
        try:
            return self._connections[name]
        except KeyError:
            raise UnknownConnectionError(name) from None

    @contextmanager
    def _relation(
        self, sql: str, connection: str
    ) -> Generator[duckdb.DuckDBPyRelation | None]:
        cursor = self._connection(connection).cursor()
        try:
            try:
                relation = cursor.sql(sql)
            except duckdb.Error as e:
                logger.debug("duckdb_bind_failed", connection=connection, sql=sql, error=str(e))
                raise QueryError(connection, sql, str(e)) from e
            yield relation
        finally:
            cursor.close()

    @contextmanager
    def execute(self, sql: str, connection: str) -> Generator[DuckDBCursor]:
        with self._relation(sql, connection) as relation:
            yield DuckDBCursor(relation, connection, sql)

    @contextmanager
    def prepare(self, sql: str, connection: str) -> Generator[DuckDBStatement]:
        with self._relation(sql, connection) as relation:
            yield DuckDBStatement(relation)
