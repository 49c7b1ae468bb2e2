"""Exceptions raised by the metadata service."""

from __future__ import annotations


class SchemaMetadataError(Exception):
    """Base class for metadata service errors."""


class UnknownConnectionError(SchemaMetadataError, KeyError):
    """Connection name is not registered."""

    def __init__(self, connection: str):
        self.connection = connection
        super().__init__(f"Unknown connection: {connection}")

    def __str__(self) -> str:
        return f"Unknown connection: {self.connection}"


class QueryError(SchemaMetadataError):
    """A backend query could not be executed or prepared."""

    def __init__(self, connection: str, sql: str, message: str):
        self.connection = connection
        self.sql = sql
        self.message = message
        super().__init__(f"[{connection}] {message} (SQL: {sql})")


class SchemaIntrospectionError(SchemaMetadataError):
    """Schema of a table or SELECT statement could not be read from the backend.

    This is the fault delivered to the interpreter's fault sink. ``cause``
    holds the underlying exception when there is one.
    """

    def __init__(
        self,
        connection: str,
        target: str,
        message: str,
        cause: Exception | None = None,
    ):
        self.connection = connection
        self.target = target
        self.message = message
        self.cause = cause
        super().__init__(f"[{connection}] {target}: {message}")
