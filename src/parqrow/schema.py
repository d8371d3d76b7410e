"""Schema node builder.

Builds the physical schema tree for a column catalog. The root is a
``GroupNode`` holding one field per column, in catalog order; each field's
node is a ``LeafNode``, or an ``OptionalNode`` / ``RepeatedNode`` wrapping
exactly one leaf. Every leaf is bound to its column by an ordinal ``path``
into the generic row, so encoding and decoding are purely positional.

The tree converts to a ``pyarrow.Schema`` which is what the parquet
encoder actually consumes.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Union

import pyarrow as pa

import parqrow.errors as errors
from parqrow.decimals import DecimalScale
from parqrow.timeunits import TimeUnit, unit_for_precision
from parqrow.types import Column, Columns, ColumnType
from parqrow.values import SourceRepr, ValueKind

logger = logging.getLogger(__name__)

# Arrow field metadata keys written alongside each top-level field
META_POSITION = b"parqrow.position"
META_TYPE = b"parqrow.type"


class Repetition(enum.Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    REPEATED = "repeated"


class LeafEncoding(enum.Enum):
    """How the row writer must coerce values before handing them to a leaf."""

    PLAIN = "plain"
    DECIMAL = "decimal"
    TIMESTAMP = "timestamp"
    INT96 = "int96"
    UUID = "uuid"
    JSON = "json"


@dataclass(frozen=True)
class LeafNode:
    """A scalar node bound to one generic row slot."""

    arrow_type: pa.DataType
    path: tuple[int, ...]
    encoding: LeafEncoding = LeafEncoding.PLAIN
    unit: TimeUnit | None = None
    decimal: DecimalScale | None = None

    @property
    def repetition(self) -> Repetition:
        return Repetition.REQUIRED

    @property
    def optional(self) -> bool:
        return False

    def leaf(self) -> LeafNode:
        return self

    def value(self, row: list[Any]) -> Any:
        """Extract this leaf's value from a generic row."""
        return row[self.path[0]]


@dataclass(frozen=True)
class OptionalNode:
    """Nullable wrapper around a single node."""

    inner: Node

    @property
    def repetition(self) -> Repetition:
        return Repetition.OPTIONAL

    @property
    def optional(self) -> bool:
        return True

    @property
    def arrow_type(self) -> pa.DataType:
        return self.inner.arrow_type

    def leaf(self) -> LeafNode:
        return self.inner.leaf()


@dataclass(frozen=True)
class RepeatedNode:
    """List wrapper around a single element node."""

    inner: Node

    @property
    def repetition(self) -> Repetition:
        return Repetition.REPEATED

    @property
    def optional(self) -> bool:
        return False

    @property
    def arrow_type(self) -> pa.DataType:
        elem = pa.field("element", self.inner.arrow_type, nullable=self.inner.optional)
        return pa.list_(elem)

    def leaf(self) -> LeafNode:
        return self.inner.leaf()


Node = Union[LeafNode, OptionalNode, RepeatedNode]


@dataclass(frozen=True)
class SchemaField:
    """A named child of the root group."""

    name: str
    node: Node
    column: Column


@dataclass(frozen=True)
class GroupNode:
    """Root record of the schema. Required, never repeated, hosts fields only."""

    fields: list[SchemaField] = field(default_factory=list)

    @property
    def repetition(self) -> Repetition:
        return Repetition.REQUIRED

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[SchemaField]:
        return iter(self.fields)

    def leaves(self) -> list[LeafNode]:
        """One leaf per field, in field order."""
        return [f.node.leaf() for f in self.fields]

    def to_arrow(self) -> pa.Schema:
        """Arrow schema handed to the parquet encoder."""
        arrow_fields = []
        for f in self.fields:
            metadata = {
                META_POSITION: str(f.column.position).encode(),
                META_TYPE: f.column.type.value.encode(),
            }
            arrow_fields.append(
                pa.field(f.name, f.node.arrow_type, nullable=f.node.optional, metadata=metadata)
            )
        return pa.schema(arrow_fields)

    @property
    def uses_int96(self) -> bool:
        return any(leaf.encoding == LeafEncoding.INT96 for leaf in self.leaves())


_SIGNED_INTS = {8: pa.int8(), 16: pa.int16(), 32: pa.int32(), 64: pa.int64()}
_UNSIGNED_INTS = {8: pa.uint8(), 16: pa.uint16(), 32: pa.uint32(), 64: pa.uint64()}


def _timestamp_type(col: Column, unit: TimeUnit) -> pa.DataType:
    if col.type == ColumnType.TIMESTAMPZ:
        return pa.timestamp(unit.value, tz="UTC")
    return pa.timestamp(unit.value)


def node_of(col: Column, source: SourceRepr, path: tuple[int, ...]) -> Node:
    """Build the node for one column representation.

    Specialized representations win over the logical type, which wins over
    the structural kind of the representation.

    Raises:
        SchemaConstructionError: If the representation has no physical mapping.
    """
    kind = source.kind

    if kind == ValueKind.INT96:
        return LeafNode(pa.timestamp("ns"), path, LeafEncoding.INT96, unit=TimeUnit.NANOS)
    if kind == ValueKind.UUID:
        return LeafNode(pa.binary(16), path, LeafEncoding.UUID)
    if kind == ValueKind.TIMESTAMP:
        unit = unit_for_precision(col.db_precision)
        return LeafNode(_timestamp_type(col, unit), path, LeafEncoding.TIMESTAMP, unit=unit)

    if col.is_float():
        return LeafNode(pa.float64(), path)
    if col.is_decimal():
        scale = DecimalScale.for_column(col.name, col.db_precision, col.db_scale)
        arrow_type = pa.decimal128(scale.precision, scale.scale)
        return LeafNode(arrow_type, path, LeafEncoding.DECIMAL, decimal=scale)

    if kind == ValueKind.BOOL:
        return LeafNode(pa.bool_(), path)
    if kind == ValueKind.INT:
        return LeafNode(_SIGNED_INTS[source.width], path)
    if kind == ValueKind.UINT:
        return LeafNode(_UNSIGNED_INTS[source.width], path)
    if kind == ValueKind.FLOAT32:
        return LeafNode(pa.float32(), path)
    if kind == ValueKind.FLOAT64:
        return LeafNode(pa.float64(), path)
    if kind in (ValueKind.STRING, ValueKind.DECIMAL):
        return LeafNode(pa.string(), path)
    if kind == ValueKind.OPTIONAL:
        return OptionalNode(node_of(col, source.elem, path))
    if kind == ValueKind.BYTES:
        return LeafNode(pa.binary(), path)
    if kind == ValueKind.LIST:
        return RepeatedNode(node_of(col, source.elem, path))
    if kind == ValueKind.FIXED_BYTES:
        return LeafNode(pa.binary(source.length), path)
    if kind == ValueKind.MAP:
        return LeafNode(pa.string(), path, LeafEncoding.JSON)

    raise errors.SchemaConstructionError(
        column=col.name,
        cause=f"source representation '{kind.value}' has no parquet mapping",
    )


def build_schema(columns: Columns) -> GroupNode:
    """Build the root group for a catalog.

    Raises:
        SchemaConstructionError: On broken positions or unsupported columns.
    """
    columns.validate_positions()

    fields = []
    seen: set[str] = set()
    for col in columns:
        if col.name.lower() in seen:
            raise errors.SchemaConstructionError(
                column=col.name,
                cause="column names must be unique ignoring case",
            )
        seen.add(col.name.lower())
        path = (col.position - 1,)
        node = node_of(col, col.source_repr, path)
        if col.nullable and not node.optional:
            node = OptionalNode(node)
        fields.append(SchemaField(name=col.name, node=node, column=col))

    root = GroupNode(fields=fields)
    if root.uses_int96:
        # the INT96 flag applies file-wide and would override every other unit
        for f in root:
            if f.node.leaf().encoding == LeafEncoding.TIMESTAMP:
                raise errors.SchemaConstructionError(
                    column=f.name,
                    cause="INT96 timestamps cannot share a file with unit-sized timestamps",
                )
    logger.debug("Built parquet schema with %d fields: %s", len(root), columns.names())
    return root

