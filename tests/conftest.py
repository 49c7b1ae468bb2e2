"""Shared pytest fixtures for all tests."""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import duckdb
import pytest

from procsql_schema.backends.base import ColumnDescription, QueryExecutor
from procsql_schema.backends.registry import ConnectionRegistry
from procsql_schema.core.config import Settings
from procsql_schema.core.models.base import Dialect
from procsql_schema.errors import QueryError


@dataclass
class ScriptedResult:
    """Canned answer to one query: rows, result columns, optional describe failure."""

    rows: list[tuple[Any, ...]] = field(default_factory=list)
    columns: list[tuple[str, str]] = field(default_factory=list)
    describe_error: Exception | None = None  # Raised after the listed columns

    def describe(self) -> Iterator[ColumnDescription]:
        for name, type_name in self.columns:
            yield ColumnDescription(name=name, type_name=type_name)
        if self.describe_error is not None:
            raise self.describe_error

    def __iter__(self):
        return iter(self.rows)


class ScriptedExecutor(QueryExecutor):
    """QueryExecutor answering from scripted results and recording every call."""

    def __init__(self) -> None:
        self.scripts: dict[str, ScriptedResult | str] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.released = 0

    def script(self, sql: str, result: ScriptedResult | str) -> None:
        """Script the answer to a statement; a string scripts a failure message."""
        self.scripts[sql] = result

    def calls_for(self, sql: str) -> list[tuple[str, str, str]]:
        return [call for call in self.calls if call[1] == sql]

    @contextmanager
    def _answer(self, kind: str, sql: str, connection: str) -> Iterator[ScriptedResult]:
        self.calls.append((kind, sql, connection))
        result = self.scripts.get(sql, f"no scripted result for {sql!r}")
        if isinstance(result, str):
            raise QueryError(connection, sql, result)
        try:
            yield result
        finally:
            self.released += 1

    def execute(self, sql: str, connection: str):
        return self._answer("execute", sql, connection)

    def prepare(self, sql: str, connection: str):
        return self._answer("prepare", sql, connection)


# Hive DESCRIBE output of a table partitioned by order_date
HIVE_DESCRIBE_ORDERS = [
    ("id", "int", ""),
    ("amount", "decimal(10,2)", ""),
    ("customer", "string", ""),
    ("order_date", "string", ""),
    ("", None, None),
    ("# Partition Information", None, None),
    ("# col_name            ", "data_type           ", "comment             "),
    ("", None, None),
    ("order_date", "string", ""),
]


@pytest.fixture
def scripted_executor() -> ScriptedExecutor:
    return ScriptedExecutor()


@pytest.fixture
def scripted_result() -> type[ScriptedResult]:
    """The ScriptedResult class, for building canned answers."""
    return ScriptedResult


@pytest.fixture
def hive_describe_orders() -> list[tuple[Any, ...]]:
    return list(HIVE_DESCRIBE_ORDERS)


@pytest.fixture
def registry() -> ConnectionRegistry:
    """Registry with one connection of each dialect."""
    registry = ConnectionRegistry()
    registry.register("hive", Dialect.DESCRIBE_BASED)
    registry.register("ops", Dialect.METADATA_BASED)
    return registry


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of the environment."""
    return Settings(
        connections={},
        elided_schemas=["dbo"],
        strict_metadata_faults=False,
        _env_file=None,
    )


@pytest.fixture
def duckdb_conn():
    """Create an in-memory DuckDB connection with a sample table."""
    conn = duckdb.connect(":memory:")
    conn.execute("CREATE TABLE orders (id INTEGER, amount DECIMAL(10,2), name VARCHAR)")
    conn.execute("INSERT INTO orders VALUES (1, 10.50, 'Alice')")
    conn.execute("INSERT INTO orders VALUES (2, 20.00, 'Bob')")
    yield conn
    conn.close()
