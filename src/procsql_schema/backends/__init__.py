"""Backend boundary: executors, connection registry and fault sinks."""

from procsql_schema.backends.base import (
    CollectingFaultSink,
    ColumnDescription,
    FaultSink,
    PreparedStatement,
    QueryCursor,
    QueryExecutor,
    RaisingFaultSink,
)
from procsql_schema.backends.duckdb_executor import DuckDBExecutor
from procsql_schema.backends.registry import ConnectionRegistry
from procsql_schema.backends.sqlalchemy_executor import SQLAlchemyExecutor

__all__ = [
    "ColumnDescription",
    "QueryCursor",
    "PreparedStatement",
    "QueryExecutor",
    "FaultSink",
    "RaisingFaultSink",
    "CollectingFaultSink",
    "ConnectionRegistry",
    "DuckDBExecutor",
    "SQLAlchemyExecutor",
]
