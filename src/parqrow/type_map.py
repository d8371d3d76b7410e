"""Physical-to-logical type mapping for inspecting existing parquet files.

Floating point physical types map to decimal so no precision is lost when the
values are carried downstream. Anything unknown, including nested groups, is
treated as a byte array and read as a string.
"""

from __future__ import annotations

import pyarrow.parquet as pq

from parqrow.types import Column, Columns, ColumnType, clean_name

BYTE_ARRAY = "BYTE_ARRAY"

PHYSICAL_TO_LOGICAL: dict[str, ColumnType] = {
    "BOOLEAN": ColumnType.BOOL,
    "INT32": ColumnType.INTEGER,
    "INT64": ColumnType.BIGINT,
    "INT96": ColumnType.BIGINT,
    "FLOAT": ColumnType.DECIMAL,
    "DOUBLE": ColumnType.DECIMAL,
    BYTE_ARRAY: ColumnType.STRING,
}


def logical_type_for(physical_type: str | None) -> ColumnType:
    """Logical type for a parquet physical type name, defaulting to string."""
    return PHYSICAL_TO_LOGICAL.get(physical_type or BYTE_ARRAY, ColumnType.STRING)


def top_level_physical_types(schema: pq.ParquetSchema) -> dict[str, str | None]:
    """Physical type of each top-level field; None for nested groups."""
    names = schema.to_arrow_schema().names
    physical: dict[str, str | None] = dict.fromkeys(names)
    for i in range(len(schema)):
        column = schema.column(i)
        if "." not in column.path:
            physical[column.path] = column.physical_type
    return physical


def columns_from_schema(schema: pq.ParquetSchema) -> Columns:
    """Build a catalog describing an existing parquet schema.

    Positions follow the file's field order. Decimal columns are marked as
    derived since their type was inferred rather than read from the source.
    """
    columns = []
    for name, physical_type in top_level_physical_types(schema).items():
        col_type = logical_type_for(physical_type)
        columns.append(
            Column(
                name=clean_name(name),
                type=col_type,
                position=len(columns) + 1,
                sourced=col_type != ColumnType.DECIMAL,
            )
        )
    return Columns(columns)
