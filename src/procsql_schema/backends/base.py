"""Interfaces to the query execution layer.

The metadata service never owns backend connections. It issues a small
number of descriptive queries through a QueryExecutor and reports hard
failures through a FaultSink supplied by the interpreter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Any, Protocol

from procsql_schema.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ColumnDescription:
    """Name and backend-native type name of a result column.

    ``type_name`` is None when the driver reports no usable type.
    """

    name: str
    type_name: str | None


class QueryCursor(Protocol):
    """Rows of an executed query plus the result column metadata."""

    def describe(self) -> Iterator[ColumnDescription]:
        """Result columns in order."""
        ...

    def __iter__(self) -> Iterator[Sequence[Any]]: ...


class PreparedStatement(Protocol):
    """A statement bound by the backend but not executed."""

    def describe(self) -> Iterator[ColumnDescription]:
        """Result columns in order."""
        ...


class QueryExecutor(ABC):
    """Abstract base for query executors.

    Both methods return context managers: the cursor or statement is released
    when the block exits, whether it completes or raises.
    """

    @abstractmethod
    def execute(self, sql: str, connection: str) -> AbstractContextManager[QueryCursor]:
        """Execute a query.

        Args:
            sql: Query text
            connection: Connection name

        Returns:
            Context manager yielding the query cursor

        Raises:
            QueryError: If the query fails
        """
        pass

    @abstractmethod
    def prepare(self, sql: str, connection: str) -> AbstractContextManager[PreparedStatement]:
        """Prepare a statement without executing it.

        Args:
            sql: Statement text
            connection: Connection name

        Returns:
            Context manager yielding the prepared statement

        Raises:
            QueryError: If the statement cannot be prepared
        """
        pass

    def describe_table(
        self, table: str, connection: str
    ) -> AbstractContextManager[PreparedStatement]:
        """Describe the columns of a table without reading its rows.

        Prepares ``SELECT * FROM <table>`` unless the executor has a better
        source for declared column types.

        Raises:
            QueryError: If the table cannot be described
        """
        return self.prepare(f"SELECT * FROM {table}", connection)


class FaultSink(Protocol):
    """Channel for hard faults raised to the interpreter."""

    def signal(self, fault: Exception) -> None: ...


class RaisingFaultSink:
    """Re-raise faults so they propagate to the caller's exception handlers."""

    def signal(self, fault: Exception) -> None:
        raise fault


class CollectingFaultSink:
    """Record faults for interpreters that dispatch conditions themselves."""

    def __init__(self) -> None:
        self.faults: list[Exception] = []

    def signal(self, fault: Exception) -> None:
        logger.debug("fault_collected", fault=str(fault), fault_type=type(fault).__name__)
        self.faults.append(fault)

    def clear(self) -> list[Exception]:
        """Return and forget the recorded faults."""
        faults, self.faults = self.faults, []
        return faults
