"""Core models: ONLY truly shared base types.

Component models live in their own packages:
- schema/models.py   → Column, Row, RowBuilder, SchemaFetch
- backends/base.py   → ColumnDescription, executor interfaces
"""

from procsql_schema.core.models.base import ConnectionType, Dialect

__all__ = [
    "ConnectionType",
    "Dialect",
]
