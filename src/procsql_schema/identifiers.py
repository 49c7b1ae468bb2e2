"""Qualified identifier tokenizing and normalization.

Identifiers reach the metadata service in the quoting convention of whichever
vendor dialect the procedural source was written for:

- backticks: `schema`.`table`  (Hive, MySQL)
- double quotes: "schema"."table"  (ANSI)
- brackets: [schema].[table]  (SQL Server)

Dots inside a quoted span are part of the name, not separators. Normalization
rewrites double-quote and bracket quoting to backticks and drops the SQL
Server default schema (``dbo``) from object names.
"""

from __future__ import annotations

from collections.abc import Iterable

# Opening quote character -> closing quote character
_QUOTE_CLOSERS: dict[str, str] = {"`": "`", '"': '"', "[": "]"}

# Quote pairs rewritten to backticks
_REWRITTEN_QUOTES: frozenset[tuple[str, str]] = frozenset({("[", "]"), ('"', '"')})

DEFAULT_ELIDED_SCHEMAS: tuple[str, ...] = ("dbo",)


def split_identifier(name: str) -> list[str] | None:
    """Split a qualified identifier into its parts (schema, table, column etc.).

    Quoted spans are kept intact, including their quote characters. An
    unterminated quoted span extends to the end of the string, so no
    separator after its opening quote is recognized.

    Args:
        name: Possibly qualified, possibly quoted identifier

    Returns:
        List of parts, or None if the identifier has a single part
    """
    parts: list[str] = []
    start = 0
    i = 0
    while i < len(name):
        char = name[i]
        closer = _QUOTE_CLOSERS.get(char)
        if closer is not None:
            end = name.find(closer, i + 1)
            if end == -1:
                break
            i = end + 1
            continue
        if char == ".":
            parts.append(name[start:i])
            start = i + 1
        i += 1

    if not parts:
        return None
    parts.append(name[start:])
    return parts


def split_identifier_to_two_parts(name: str) -> tuple[str, str] | None:
    """Split a qualified column into table reference and column name.

    ``schema.tab.col`` -> ``("schema.tab", "COL")``; ``tab.col`` -> ``("tab", "COL")``.

    Args:
        name: Qualified column reference

    Returns:
        (table reference, upper-cased column name), or None for an
        unqualified name (no table context to resolve against)
    """
    parts = split_identifier(name)
    if parts is None:
        return None
    return ".".join(parts[:-1]), parts[-1].upper()


def normalize_identifier_part(part: str) -> str:
    """Convert a "quoted" or [bracketed] identifier part to `backtick` quoting."""
    if len(part) >= 2 and (part[0], part[-1]) in _REWRITTEN_QUOTES:
        return f"`{part[1:-1]}`"
    return part


def target_schema_name(
    part: str, elided_schemas: Iterable[str] = DEFAULT_ELIDED_SCHEMAS
) -> str | None:
    """Get the schema name to use in the SQL sent to the backend.

    Args:
        part: Schema segment of a qualified object name
        elided_schemas: Default schema names to drop, matched case-insensitively
            either bare or in [brackets]

    Returns:
        Normalized schema part, or None if the schema is elided
    """
    lowered = part.lower()
    for schema in elided_schemas:
        schema = schema.lower()
        if lowered == schema or lowered == f"[{schema}]":
            return None
    return normalize_identifier_part(part)


def normalize_object_identifier(
    name: str, elided_schemas: Iterable[str] = DEFAULT_ELIDED_SCHEMAS
) -> str:
    """Normalize a database object identifier.

    Every part is converted to backtick quoting. The second-to-last part is
    the schema segment and is dropped when it names a default schema:

        dbo.Table1          -> Table1
        [MySchema].[Table1] -> `MySchema`.`Table1`

    Args:
        name: Possibly qualified object identifier
        elided_schemas: Schema names dropped from the result

    Returns:
        Normalized identifier
    """
    parts = split_identifier(name)
    if parts is None:
        return normalize_identifier_part(name)

    schema_index = len(parts) - 2
    normalized: list[str] = []
    for index, part in enumerate(parts):
        if index == schema_index:
            schema = target_schema_name(part, elided_schemas)
            if schema is not None:
                normalized.append(schema)
        else:
            normalized.append(normalize_identifier_part(part))
    return ".".join(normalized)
