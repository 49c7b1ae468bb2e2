"""Dialect-specific schema introspection.

Two strategies read the schema of a table or SELECT statement:

- DescribeIntrospection: for backends whose drivers cannot describe a
  prepared statement (Hive). Tables are read with DESCRIBE, SELECT statements
  are executed with LIMIT 1 to get at the result metadata.
- MetadataIntrospection: for backends whose drivers describe a prepared
  statement without running it.

Strategies never raise for backend failures. They return a SchemaFetch and
leave signaling to the caller. The two strategies treat failures differently:
a failed DESCRIBE is a FAULT, while a failed prepare on a metadata-based
backend resolves to NOT_FOUND unless ``strict`` is set.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Sequence
from contextlib import AbstractContextManager
from typing import Any

from procsql_schema.backends.base import PreparedStatement, QueryExecutor
from procsql_schema.core.logging import get_logger
from procsql_schema.core.models.base import Dialect
from procsql_schema.schema.models import Row, RowBuilder, SchemaFetch

logger = get_logger(__name__)

# DESCRIBE output rows starting with this text open the partition section
PARTITION_SECTION_MARKER = "# Partition"

# Alias of the subquery wrapping a SELECT probed on describe-based backends
SELECT_PROBE_ALIAS = "t"


def _text_field(record: Sequence[Any], index: int) -> str:
    if len(record) <= index or record[index] is None:
        return ""
    return str(record[index]).strip()


def parse_describe_output(rows: Iterable[Sequence[Any]], table: str | None = None) -> Row:
    """Build a Row from DESCRIBE output.

    Each row is (column name, type name, ...). Hive separates sections with
    blank rows and ``# ...`` header rows, and lists partition columns a second
    time under ``# Partition Information``. Those repeated entries flag the
    column seen earlier instead of adding a new one.

    Args:
        rows: DESCRIBE result rows
        table: Table being described, for logging

    Returns:
        Row with partition keys flagged
    """
    builder = RowBuilder()
    in_partition_section = False

    for record in rows:
        name = _text_field(record, 0)
        if not name:
            continue

        if name.startswith("#"):
            if name.startswith(PARTITION_SECTION_MARKER):
                in_partition_section = True
            continue

        if in_partition_section:
            if not builder.mark_partition_key(name):
                # Partition column that never appeared as a regular column
                logger.warning("partition_key_not_found", table=table, column=name)
        else:
            builder.add_column(name, _text_field(record, 1))

    return builder.build()


class IntrospectionStrategy(ABC):
    """Abstract base for schema introspection strategies."""

    dialect: Dialect

    def __init__(self, executor: QueryExecutor):
        self.executor = executor

    @abstractmethod
    def fetch_table_schema(self, connection: str, table: str) -> SchemaFetch:
        """Read the columns of a table.

        Args:
            connection: Connection name
            table: Table reference, possibly qualified

        Returns:
            SchemaFetch with the table's Row when found
        """
        pass

    @abstractmethod
    def fetch_select_schema(self, connection: str, select: str) -> SchemaFetch:
        """Read the result columns of a SELECT statement.

        Args:
            connection: Connection name
            select: SELECT statement text

        Returns:
            SchemaFetch with the statement's result Row when found
        """
        pass


class DescribeIntrospection(IntrospectionStrategy):
    """Schema introspection by running descriptive queries."""

    dialect = Dialect.DESCRIBE_BASED

    def fetch_table_schema(self, connection: str, table: str) -> SchemaFetch:
        sql = f"DESCRIBE {table}"
        try:
            with self.executor.execute(sql, connection) as cursor:
                row = parse_describe_output(cursor, table=table)
        except Exception as e:
            logger.warning("describe_failed", connection=connection, table=table, error=str(e))
            return SchemaFetch.fault(f"DESCRIBE {table} failed: {e}", cause=e)
        return SchemaFetch.found(row)

    def fetch_select_schema(self, connection: str, select: str) -> SchemaFetch:
        sql = f"SELECT * FROM ({select}) {SELECT_PROBE_ALIAS} LIMIT 1"
        prefix = f"{SELECT_PROBE_ALIAS}."
        builder = RowBuilder()
        try:
            with self.executor.execute(sql, connection) as cursor:
                for column in cursor.describe():
                    name = column.name
                    # Some drivers report columns of the wrapping subquery as t.<name>
                    if name.startswith(prefix):
                        name = name[len(prefix) :]
                    builder.add_column(name, column.type_name)
        except Exception as e:
            logger.warning("select_probe_failed", connection=connection, error=str(e))
            return SchemaFetch.fault(f"Reading SELECT result columns failed: {e}", cause=e)
        return SchemaFetch.found(builder.build())


class MetadataIntrospection(IntrospectionStrategy):
    """Schema introspection through prepared statement metadata.

    With ``strict`` unset (the default), a table whose statement cannot be
    prepared resolves to NOT_FOUND and a failure while reading its columns
    keeps the columns read so far. With ``strict`` set, both are faults.
    """

    dialect = Dialect.METADATA_BASED

    def __init__(self, executor: QueryExecutor, strict: bool = False):
        super().__init__(executor)
        self.strict = strict

    def fetch_table_schema(self, connection: str, table: str) -> SchemaFetch:
        return self._fetch(
            connection,
            lambda: self.executor.describe_table(table, connection),
            target=table,
            describe_faults=self.strict,
        )

    def fetch_select_schema(self, connection: str, select: str) -> SchemaFetch:
        return self._fetch(
            connection,
            lambda: self.executor.prepare(select, connection),
            target=select,
            describe_faults=True,
        )

    def _fetch(
        self,
        connection: str,
        open_statement: Callable[[], AbstractContextManager[PreparedStatement]],
        target: str,
        describe_faults: bool,
    ) -> SchemaFetch:
        builder = RowBuilder()
        try:
            with open_statement() as statement:
                try:
                    for column in statement.describe():
                        builder.add_column(column.name, column.type_name)
                except Exception as e:
                    if describe_faults:
                        logger.warning(
                            "metadata_read_failed",
                            connection=connection,
                            target=target,
                            error=str(e),
                        )
                        return SchemaFetch.fault(f"Reading result columns failed: {e}", cause=e)
                    logger.info(
                        "metadata_read_incomplete",
                        connection=connection,
                        target=target,
                        columns_read=len(builder),
                        error=str(e),
                    )
                    return SchemaFetch.found(
                        builder.build(),
                        warnings=[f"Column metadata incomplete after {len(builder)} columns: {e}"],
                    )
        except Exception as e:
            if self.strict:
                logger.warning(
                    "metadata_prepare_failed", connection=connection, target=target, error=str(e)
                )
                return SchemaFetch.fault(f"Preparing statement failed: {e}", cause=e)
            logger.info(
                "metadata_prepare_failed", connection=connection, target=target, error=str(e)
            )
            return SchemaFetch.not_found(f"Preparing statement failed: {e}")
        return SchemaFetch.found(builder.build())


def strategy_for(
    dialect: Dialect, executor: QueryExecutor, strict_metadata_faults: bool = False
) -> IntrospectionStrategy:
    """Create the introspection strategy for a dialect."""
    if dialect is Dialect.DESCRIBE_BASED:
        return DescribeIntrospection(executor)
    return MetadataIntrospection(executor, strict=strict_metadata_faults)
