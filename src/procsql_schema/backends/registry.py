"""Connection registry: which introspection dialect each connection uses."""

from __future__ import annotations

from procsql_schema.core.config import Settings
from procsql_schema.core.logging import get_logger
from procsql_schema.core.models.base import ConnectionType, Dialect
from procsql_schema.errors import UnknownConnectionError

logger = get_logger(__name__)


class ConnectionRegistry:
    """Maps connection names to their backend type and dialect.

    A connection's dialect is fixed at registration; re-registering a name
    with a different dialect is rejected.

    Usage:
        registry = ConnectionRegistry()
        registry.register("warehouse", "hive://etl@warehouse:10000/default")
        registry.register("ops", ConnectionType.POSTGRES)
        registry.get_dialect("warehouse")  # Dialect.DESCRIBE_BASED
    """

    def __init__(self) -> None:
        self._dialects: dict[str, Dialect] = {}
        self._types: dict[str, ConnectionType] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> ConnectionRegistry:
        """Create a registry holding every connection configured in settings."""
        registry = cls()
        for name, url in settings.connections.items():
            registry.register(name, url)
        return registry

    def register(self, name: str, kind: Dialect | ConnectionType | str) -> Dialect:
        """Register a connection.

        Args:
            name: Connection name
            kind: Dialect, connection type, or database URL to derive the type from

        Returns:
            Dialect of the registered connection

        Raises:
            ValueError: If the name is already registered with another dialect,
                or the URL cannot be parsed
        """
        if isinstance(kind, Dialect):
            connection_type = None
            dialect = kind
        else:
            connection_type = (
                kind if isinstance(kind, ConnectionType) else ConnectionType.from_url(kind)
            )
            dialect = connection_type.dialect

        existing = self._dialects.get(name)
        if existing is not None and existing is not dialect:
            raise ValueError(
                f"Connection '{name}' is already registered as {existing.value}, "
                f"cannot change it to {dialect.value}"
            )

        self._dialects[name] = dialect
        if connection_type is not None:
            self._types[name] = connection_type
        logger.debug(
            "connection_registered",
            connection=name,
            dialect=dialect.value,
            connection_type=connection_type.value if connection_type else None,
        )
        return dialect

    def get_dialect(self, name: str) -> Dialect:
        """Get the introspection dialect of a connection.

        Raises:
            UnknownConnectionError: If the connection is not registered
        """
        try:
            return self._dialects[name]
        except KeyError:
            raise UnknownConnectionError(name) from None

    def connection_type(self, name: str) -> ConnectionType | None:
        """Get the backend type of a connection, None if registered by dialect only.

        Raises:
            UnknownConnectionError: If the connection is not registered
        """
        if name not in self._dialects:
            raise UnknownConnectionError(name)
        return self._types.get(name)

    def names(self) -> list[str]:
        """Registered connection names in registration order."""
        return list(self._dialects)

    def __contains__(self, name: object) -> bool:
        return name in self._dialects
