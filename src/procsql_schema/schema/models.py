"""Schema description models.

A Row describes the result shape of a table or SELECT statement: an ordered
list of named, typed columns, some of which may be partition keys.

Rows are immutable once built. Introspection accumulates columns in a
RowBuilder and only the finished Row is handed to the cache.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator


class Column(BaseModel):
    """A column of a Row."""

    model_config = ConfigDict(frozen=True)

    name: str
    data_type: str | None  # Backend-native type name as reported; None if unknown
    is_partition_key: bool = False

    @field_validator("name")
    @classmethod
    def _upper_case_name(cls, value: str) -> str:
        return value.upper()


class Row(BaseModel):
    """Ordered column description of a table or SELECT result."""

    model_config = ConfigDict(frozen=True)

    columns: tuple[Column, ...] = ()

    def get_column(self, name: str) -> Column | None:
        """Look up a column by name (case-insensitive)."""
        key = name.upper()
        for column in self.columns:
            if column.name == key:
                return column
        return None

    def get_type(self, name: str) -> str | None:
        """Get the data type of a column.

        Returns None if the Row has no such column or its type is unknown.
        """
        column = self.get_column(name)
        return column.data_type if column else None

    @property
    def column_names(self) -> list[str]:
        """All column names in order."""
        return [c.name for c in self.columns]

    @property
    def partition_keys(self) -> list[str]:
        """Names of partition key columns in order."""
        return [c.name for c in self.columns if c.is_partition_key]

    def __len__(self) -> int:
        return len(self.columns)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get_column(name) is not None


class RowBuilder:
    """Accumulates columns while a backend result is being scanned."""

    def __init__(self) -> None:
        self._columns: list[Column] = []
        self._positions: dict[str, int] = {}

    def add_column(
        self, name: str, data_type: str | None, is_partition_key: bool = False
    ) -> None:
        column = Column(name=name, data_type=data_type, is_partition_key=is_partition_key)
        self._positions.setdefault(column.name, len(self._columns))
        self._columns.append(column)

    def mark_partition_key(self, name: str) -> bool:
        """Flag an already added column as a partition key.

        Returns:
            False if no column with this name was added
        """
        position = self._positions.get(name.upper())
        if position is None:
            return False
        column = self._columns[position]
        self._columns[position] = column.model_copy(update={"is_partition_key": True})
        return True

    def __len__(self) -> int:
        return len(self._columns)

    def build(self) -> Row:
        return Row(columns=tuple(self._columns))


class FetchStatus(str, Enum):
    """Outcome of a schema introspection call."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    FAULT = "fault"


@dataclass
class SchemaFetch:
    """Result of fetching a schema from a backend.

    FOUND carries a Row (possibly empty or partial, see ``warnings``).
    NOT_FOUND is a soft failure: nothing to report to the interpreter, and
    nothing to cache, so the next lookup asks the backend again.
    FAULT is a hard failure that must be signaled.
    """

    status: FetchStatus
    row: Row | None = None
    error: str | None = None
    cause: Exception | None = None
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def found(cls, row: Row, warnings: list[str] | None = None) -> SchemaFetch:
        """Create a successful result."""
        return cls(status=FetchStatus.FOUND, row=row, warnings=warnings or [])

    @classmethod
    def not_found(cls, reason: str) -> SchemaFetch:
        """Create a soft-failure result."""
        return cls(status=FetchStatus.NOT_FOUND, warnings=[reason])

    @classmethod
    def fault(cls, error: str, cause: Exception | None = None) -> SchemaFetch:
        """Create a hard-failure result."""
        return cls(status=FetchStatus.FAULT, error=error, cause=cause)

    @property
    def cacheable(self) -> bool:
        """Whether the outcome may be stored in the schema cache."""
        return self.status is FetchStatus.FOUND
