"""procsql-schema.

Schema and type metadata services for a procedural SQL interpreter.
"""

__version__ = "0.1.0"

from procsql_schema.backends import (
    CollectingFaultSink,
    ConnectionRegistry,
    QueryExecutor,
    RaisingFaultSink,
)
from procsql_schema.core.models.base import ConnectionType, Dialect
from procsql_schema.errors import (
    QueryError,
    SchemaIntrospectionError,
    SchemaMetadataError,
    UnknownConnectionError,
)
from procsql_schema.identifiers import (
    normalize_identifier_part,
    normalize_object_identifier,
    split_identifier,
    split_identifier_to_two_parts,
)
from procsql_schema.schema import Column, Row, SchemaCache, TypeResolver

__all__ = [
    "Column",
    "CollectingFaultSink",
    "ConnectionRegistry",
    "ConnectionType",
    "Dialect",
    "QueryError",
    "QueryExecutor",
    "RaisingFaultSink",
    "Row",
    "SchemaCache",
    "SchemaIntrospectionError",
    "SchemaMetadataError",
    "TypeResolver",
    "UnknownConnectionError",
    "normalize_identifier_part",
    "normalize_object_identifier",
    "split_identifier",
    "split_identifier_to_two_parts",
    "__version__",
]
