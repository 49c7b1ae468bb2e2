"""QueryExecutor over named SQLAlchemy engines.

Table columns are read by reflection (``sqlalchemy.inspect``), which reports
the declared type of every column through the engine's dialect.

DB-API drivers have no call that describes a statement without running it,
so ``prepare`` runs the statement inside a wrapper that can never return a
row and reads the result description from the cursor:

    SELECT * FROM (<statement>) AS _shape WHERE 1 = 0

The statement has to be valid as a derived table. A trailing ``;``, or a
top-level ``ORDER BY`` / ``LIMIT`` the backend rejects inside a subquery,
makes the prepare fail, and a metadata-based lookup then reports the
statement as not found.

Result type codes are resolved per dialect: PostgreSQL type OIDs are looked
up in ``pg_catalog.pg_type`` once per connection; string codes are kept;
drivers that report no code (e.g. sqlite3) or only numeric driver codes give
an unknown (None) type name.
"""

from __future__ import annotations

from collections.abc import Generator, Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Connection, CursorResult, Dialect, Engine
from sqlalchemy.exc import CompileError, SQLAlchemyError
from sqlalchemy.types import NullType, TypeEngine

from procsql_schema.backends.base import ColumnDescription, QueryExecutor
from procsql_schema.core.logging import get_logger
from procsql_schema.errors import QueryError, UnknownConnectionError
from procsql_schema.identifiers import split_identifier

logger = get_logger(__name__)

# Alias of the zero-row wrapper used to bind a statement's result shape
SHAPE_ALIAS = "_shape"

_QUOTE_PAIRS = {("`", "`"), ('"', '"'), ("[", "]")}


def _type_name(type_code: Any) -> str | None:
    """Render a DB-API type code as a type name, None when it names no type."""
    if isinstance(type_code, str):
        return type_code or None
    if isinstance(type_code, type):
        return type_code.__name__
    return None


def _declared_type(type_: TypeEngine[Any], dialect: Dialect) -> str | None:
    """Render a reflected column type in the backend's own spelling."""
    if isinstance(type_, NullType):
        return None
    try:
        return str(type_.compile(dialect=dialect))
    except CompileError:
        return None


def _unquote(part: str) -> str:
    if len(part) >= 2 and (part[0], part[-1]) in _QUOTE_PAIRS:
        return part[1:-1]
    return part


def _table_parts(table: str) -> tuple[str | None, str]:
    """Split a table reference into (schema, table name), quotes removed."""
    parts = split_identifier(table)
    if parts is None:
        return None, _unquote(table)
    return _unquote(parts[-2]), _unquote(parts[-1])


def _error_message(error: SQLAlchemyError) -> str:
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)


class ResultStatement:
    """Result description of a statement bound through the zero-row wrapper."""

    def __init__(self, result: CursorResult[Any], type_names: Sequence[str | None] = ()):
        self._result = result
        self._type_names = type_names

    def describe(self) -> Iterator[ColumnDescription]:
        if not self._result.returns_rows:
            return
        for index, entry in enumerate(self._result.cursor.description):
            type_name = self._type_names[index] if index < len(self._type_names) else None
            yield ColumnDescription(name=entry[0], type_name=type_name)


class ResultCursor(ResultStatement):
    """Rows and description of an executed statement."""

    def __init__(
        self,
        result: CursorResult[Any],
        type_names: Sequence[str | None],
        connection: str,
        sql: str,
    ):
        super().__init__(result, type_names)
        self._connection = connection
        self._sql = sql

    def __iter__(self) -> Iterator[Sequence[Any]]:
        if not self._result.returns_rows:
            return
        try:
            yield from self._result
        except SQLAlchemyError as e:
            raise QueryError(self._connection, self._sql, _error_message(e)) from e


class ReflectedTable:
    """Declared columns of a table, read by reflection."""

    def __init__(self, columns: list[ColumnDescription]):
        self._columns = columns

    def describe(self) -> Iterator[ColumnDescription]:
        yield from self._columns


class SQLAlchemyExecutor(QueryExecutor):
    """Executes metadata queries on named SQLAlchemy engines.

    Usage:
        executor = SQLAlchemyExecutor.from_urls({"ops": "postgresql+psycopg://ops@db/ops"})
    """

    def __init__(self, engines: dict[str, Engine] | None = None):
        self._engines: dict[str, Engine] = dict(engines or {})
        # connection -> PostgreSQL type OID -> type name
        self._pg_types: dict[str, dict[int, str]] = {}

    @classmethod
    def from_urls(cls, urls: dict[str, str]) -> SQLAlchemyExecutor:
        """Create an executor with one engine per connection URL."""
        return cls({name: create_engine(url) for name, url in urls.items()})

    def register(self, name: str, engine: Engine) -> None:
        self._engines[name] = engine
        self._pg_types.pop(name, None)

    def _engine(self, name: str) -> Engine:
        try:
            return self._engines[name]
        except KeyError:
            raise UnknownConnectionError(name) from None

    @contextmanager
    def _result(
        self, sql: str, connection: str
    ) -> Generator[tuple[CursorResult[Any], list[str | None]]]:
        with self._engine(connection).connect() as conn:
            try:
                result = conn.exec_driver_sql(sql)
                type_names = self._type_names(conn, connection, result)
            except SQLAlchemyError as e:
                logger.debug(
                    "sqlalchemy_query_failed", connection=connection, sql=sql, error=str(e)
                )
                raise QueryError(connection, sql, _error_message(e)) from e
            try:
                yield result, type_names
            finally:
                result.close()

    def _type_names(
        self, conn: Connection, connection: str, result: CursorResult[Any]
    ) -> list[str | None]:
        if not result.returns_rows:
            return []
        codes = [entry[1] for entry in result.cursor.description]
        if conn.dialect.name != "postgresql":
            return [_type_name(code) for code in codes]

        known = self._pg_types.setdefault(connection, {})
        missing = {code for code in codes if isinstance(code, int) and code not in known}
        if missing:
            oids = ", ".join(str(oid) for oid in sorted(missing))
            lookup = conn.exec_driver_sql(
                f"SELECT oid, typname FROM pg_catalog.pg_type WHERE oid IN ({oids})"
            )
            for oid, typname in lookup:
                known[int(oid)] = typname
        return [known.get(code) if isinstance(code, int) else _type_name(code) for code in codes]

    @contextmanager
    def execute(self, sql: str, connection: str) -> Generator[ResultCursor]:
        with self._result(sql, connection) as (result, type_names):
            yield ResultCursor(result, type_names, connection, sql)

    @contextmanager
    def prepare(self, sql: str, connection: str) -> Generator[ResultStatement]:
        wrapped = f"SELECT * FROM ({sql}) AS {SHAPE_ALIAS} WHERE 1 = 0"
        with self._result(wrapped, connection) as (result, type_names):
            yield ResultStatement(result, type_names)

    @contextmanager
    def describe_table(self, table: str, connection: str) -> Generator[ReflectedTable]:
        schema, name = _table_parts(table)
        with self._engine(connection).connect() as conn:
            try:
                reflected = inspect(conn).get_columns(name, schema=schema)
            except SQLAlchemyError as e:
                logger.debug(
                    "sqlalchemy_reflection_failed", connection=connection, table=table, error=str(e)
                )
                raise QueryError(connection, f"SELECT * FROM {table}", _error_message(e)) from e
            yield ReflectedTable(
                [
                    ColumnDescription(
                        name=column["name"], type_name=_declared_type(column["type"], conn.dialect)
                    )
                    for column in reflected
                ]
            )

    def dispose(self) -> None:
        """Dispose of every engine's connection pool."""
        for engine in self._engines.values():
            engine.dispose()
