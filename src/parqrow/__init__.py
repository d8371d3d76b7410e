from .decimals import DecimalScale
from .errors import (
    FlushError,
    InternalFault,
    ParqrowError,
    RowDecodeError,
    SchemaConstructionError,
    ValueEncodingError,
)
from .reader import ParquetReader, ReadContext
from .schema import GroupNode, LeafNode, OptionalNode, RepeatedNode, build_schema
from .settings import ParquetSettings, load_settings
from .type_map import columns_from_schema
from .types import Column, Columns, ColumnType
from .values import SourceRepr, ValueKind
from .writer import ParquetWriter

__all__ = [
    # catalog
    "Column",
    "Columns",
    "ColumnType",
    "SourceRepr",
    "ValueKind",
    # schema
    "build_schema",
    "GroupNode",
    "LeafNode",
    "OptionalNode",
    "RepeatedNode",
    "columns_from_schema",
    "DecimalScale",
    # io
    "ParquetWriter",
    "ParquetReader",
    "ReadContext",
    # settings
    "ParquetSettings",
    "load_settings",
    # errors
    "ParqrowError",
    "SchemaConstructionError",
    "ValueEncodingError",
    "RowDecodeError",
    "FlushError",
    "InternalFault",
]
