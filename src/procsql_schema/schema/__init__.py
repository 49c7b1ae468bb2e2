"""Schema model, cache, introspection strategies and the type resolver."""

from procsql_schema.schema.cache import CacheStats, SchemaCache
from procsql_schema.schema.introspection import (
    DescribeIntrospection,
    IntrospectionStrategy,
    MetadataIntrospection,
    parse_describe_output,
    strategy_for,
)
from procsql_schema.schema.models import Column, FetchStatus, Row, RowBuilder, SchemaFetch
from procsql_schema.schema.resolver import TypeResolver

__all__ = [
    # Models
    "Column",
    "Row",
    "RowBuilder",
    "FetchStatus",
    "SchemaFetch",
    # Cache
    "CacheStats",
    "SchemaCache",
    # Introspection
    "IntrospectionStrategy",
    "DescribeIntrospection",
    "MetadataIntrospection",
    "parse_describe_output",
    "strategy_for",
    # Facade
    "TypeResolver",
]
