"""Column catalog types.

The catalog is the database-agnostic description of a dataset: an ordered
list of columns with logical types and numeric precision/scale. It is
read-only input to the schema builder, writer and reader.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable, Iterator
from typing import overload

import pydantic as pdt

import parqrow.errors as errors
from parqrow.values import SourceRepr, ValueKind


class ColumnType(enum.Enum):
    """Logical column types."""

    BOOL = "bool"
    SMALLINT = "smallint"
    INTEGER = "integer"
    BIGINT = "bigint"
    DECIMAL = "decimal"
    FLOAT = "float"
    STRING = "string"
    TEXT = "text"
    JSON = "json"
    BINARY = "binary"
    UUID = "uuid"
    DATE = "date"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    TIMESTAMPZ = "timestampz"


_DATETIME_TYPES = frozenset(
    {ColumnType.DATE, ColumnType.DATETIME, ColumnType.TIMESTAMP, ColumnType.TIMESTAMPZ}
)

# Source representation assumed when a column doesn't declare one
_DEFAULT_REPRS: dict[ColumnType, SourceRepr] = {
    ColumnType.BOOL: SourceRepr.bool_(),
    ColumnType.SMALLINT: SourceRepr.int_(32),
    ColumnType.INTEGER: SourceRepr.int_(64),
    ColumnType.BIGINT: SourceRepr.int_(64),
    ColumnType.DECIMAL: SourceRepr.decimal(),
    ColumnType.FLOAT: SourceRepr.float64(),
    ColumnType.STRING: SourceRepr.string(),
    ColumnType.TEXT: SourceRepr.string(),
    ColumnType.JSON: SourceRepr.string(),
    ColumnType.BINARY: SourceRepr.bytes_(),
    ColumnType.UUID: SourceRepr.uuid(),
    ColumnType.DATE: SourceRepr.timestamp(),
    ColumnType.DATETIME: SourceRepr.timestamp(),
    ColumnType.TIMESTAMP: SourceRepr.timestamp(),
    ColumnType.TIMESTAMPZ: SourceRepr.timestamp(),
}

_UNCLEAN_CHARS = re.compile(r"[^\w]+")


def clean_name(name: str) -> str:
    """Normalize a physical field name into a catalog column name."""
    cleaned = _UNCLEAN_CHARS.sub("_", name.strip()).strip("_")
    return cleaned or name


class Column(pdt.BaseModel):
    """A single catalog column.

    ``db_precision`` and ``db_scale`` are only meaningful for decimal and
    datetime columns; 0 means "not declared". ``sourced`` marks values that
    come straight from the source system rather than being derived.
    """

    model_config = pdt.ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    name: str
    type: ColumnType
    position: int = pdt.Field(ge=1)
    db_precision: int = 0
    db_scale: int = 0
    sourced: bool = False
    nullable: bool = True
    repr_: SourceRepr | None = pdt.Field(default=None, alias="repr")

    @property
    def source_repr(self) -> SourceRepr:
        """Declared source representation, or the default for the logical type."""
        if self.repr_ is not None:
            return self.repr_
        return _DEFAULT_REPRS[self.type]

    def is_bool(self) -> bool:
        return self.type == ColumnType.BOOL

    def is_decimal(self) -> bool:
        return self.type == ColumnType.DECIMAL

    def is_float(self) -> bool:
        return self.type == ColumnType.FLOAT

    def is_datetime(self) -> bool:
        return self.type in _DATETIME_TYPES

    def is_uuid(self) -> bool:
        return self.source_repr.kind == ValueKind.UUID


class Columns:
    """Ordered column catalog with case-insensitive name lookup."""

    def __init__(self, columns: Iterable[Column] = ()) -> None:
        self._columns: list[Column] = list(columns)

    @classmethod
    def from_specs(cls, specs: Iterable[dict]) -> Columns:
        """Build a catalog from plain dicts, assigning positions in order.

        Example:
            Columns.from_specs([
                {"name": "id", "type": "bigint"},
                {"name": "amt", "type": "decimal", "db_precision": 10, "db_scale": 2},
            ])
        """
        columns = []
        for i, spec in enumerate(specs, start=1):
            columns.append(Column.model_validate({"position": i, **spec}))
        return cls(columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __iter__(self) -> Iterator[Column]:
        return iter(self._columns)

    @overload
    def __getitem__(self, index: int) -> Column: ...

    @overload
    def __getitem__(self, index: slice) -> list[Column]: ...

    def __getitem__(self, index):
        return self._columns[index]

    def __repr__(self) -> str:
        return f"Columns({[c.name for c in self._columns]!r})"

    def names(self) -> list[str]:
        return [c.name for c in self._columns]

    def field_map(self, lower: bool = True) -> dict[str, int]:
        """Map column names to their 0-based index in the catalog."""
        return {
            (c.name.lower() if lower else c.name): i
            for i, c in enumerate(self._columns)
        }

    def get(self, name: str) -> Column | None:
        """Look up a column by name, ignoring case."""
        index = self.field_map().get(name.lower())
        return None if index is None else self._columns[index]

    def validate_positions(self) -> None:
        """Ensure positions are exactly 1..n in catalog order.

        Raises:
            SchemaConstructionError: On duplicate, missing or out-of-order positions.
        """
        for expected, col in enumerate(self._columns, start=1):
            if col.position != expected:
                raise errors.SchemaConstructionError(
                    column=col.name,
                    cause=f"position {col.position} breaks the contiguous ordering (expected {expected})",
                )
