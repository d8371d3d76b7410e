"""Row writer.

Coerces generic rows into physical rows and hands them, batched, to
``pyarrow.parquet.ParquetWriter`` for encoding. Each physical value is
checked against its field type at ``write_row`` time so a bad value fails
the call that produced it and nothing else.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

import parqrow.errors as errors
from parqrow.decimals import DECIMAL_WIDTH, DecimalScale
from parqrow.schema import GroupNode, LeafEncoding, LeafNode, OptionalNode, RepeatedNode, build_schema
from parqrow.settings import Compression, ParquetSettings, get_settings
from parqrow.timeunits import to_epoch
from parqrow.types import Column, Columns

logger = logging.getLogger(__name__)

_TRUE_STRINGS = frozenset({"1", "t", "true", "y", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "f", "false", "n", "no", "off", ""})


def to_bool(value: Any) -> bool:
    """Coerce a loosely typed value to a boolean."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, (str, bytes)):
        text = value.decode() if isinstance(value, bytes) else value
        lowered = text.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f"cannot interpret {value!r} as a boolean")


def encode_json(value: Any) -> str:
    """Render a map-like value for a JSON leaf."""
    if isinstance(value, (str, bytes)):
        return value.decode() if isinstance(value, bytes) else value
    return json.dumps(value, default=str, sort_keys=True)


def _to_datetime(value: Any) -> datetime | date:
    if isinstance(value, (datetime, date)):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip())
    raise TypeError(f"expected a datetime, date or ISO string, got {type(value).__name__}")


def _to_uuid_bytes(value: Any) -> bytes:
    if isinstance(value, uuid.UUID):
        return value.bytes
    if isinstance(value, bytes) and len(value) == 16:
        return value
    return uuid.UUID(str(value)).bytes


def _storage_type(arrow_type: pa.DataType) -> pa.DataType:
    """Type the physical values are built as before viewing as ``arrow_type``.

    Decimals travel as raw 16-byte little-endian integers.
    """
    if pa.types.is_decimal(arrow_type):
        return pa.binary(DECIMAL_WIDTH)
    if pa.types.is_list(arrow_type):
        elem = arrow_type.value_field
        return pa.list_(elem.with_type(_storage_type(elem.type)))
    return arrow_type


class ParquetWriter:
    """Writes generic rows to a parquet stream.

    Example:
        columns = Columns.from_specs([
            {"name": "id", "type": "bigint"},
            {"name": "amt", "type": "decimal", "db_precision": 10, "db_scale": 2},
        ])
        with ParquetWriter(sink, columns, compression="zstd") as writer:
            writer.write_row([42, "123.45"])

    Not safe for concurrent use; give each thread its own writer.
    """

    def __init__(
        self,
        sink: Any,
        columns: Columns | Sequence[Column],
        compression: Compression | None = None,
        settings: ParquetSettings | None = None,
    ) -> None:
        """Build the schema and open the underlying parquet writer.

        Args:
            sink: Writable file-like object, ``pyarrow.NativeFile`` or path.
            columns: Column catalog, in position order.
            compression: Codec identifier passed through to the encoder.
                Defaults to ``settings.compression``.
            settings: Tuning knobs; defaults to environment settings.

        Raises:
            SchemaConstructionError: If the catalog cannot be mapped.
        """
        self.settings = settings or get_settings()
        self.columns = columns if isinstance(columns, Columns) else Columns(columns)
        self.schema: GroupNode = build_schema(self.columns)
        self.arrow_schema = self.schema.to_arrow()
        self.compression = compression or self.settings.compression

        # one scale per column to keep index alignment with the row
        self.decimal_scales: list[DecimalScale] = [
            leaf.decimal or DecimalScale.placeholder(col.name)
            for col, leaf in zip(self.columns, self.schema.leaves())
        ]
        self._storage_types = [_storage_type(f.type) for f in self.arrow_schema]

        self._buffer: list[list[Any]] = []
        self._closed = False
        self.rows_written = 0

        self._writer = pq.ParquetWriter(
            sink,
            self.arrow_schema,
            compression=None if self.compression == "none" else self.compression,
            use_deprecated_int96_timestamps=self.schema.uses_int96,
        )
        logger.debug(
            "Opened parquet writer: %d columns, compression=%s",
            len(self.columns),
            self.compression,
        )

    def __enter__(self) -> ParquetWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def _coerce_leaf(self, col: Column, leaf: LeafNode, value: Any) -> Any:
        if value is None:
            return None
        if leaf.encoding == LeafEncoding.DECIMAL:
            # parquet stores big-endian, arrow memory is little-endian
            return self.decimal_scales[leaf.path[0]].encode(str(value))[::-1]
        if leaf.encoding in (LeafEncoding.TIMESTAMP, LeafEncoding.INT96):
            if isinstance(value, int):
                return value
            return to_epoch(_to_datetime(value), leaf.unit)
        if leaf.encoding == LeafEncoding.UUID:
            return _to_uuid_bytes(value)
        if leaf.encoding == LeafEncoding.JSON:
            return encode_json(value)
        if col.is_bool():
            return to_bool(value)
        if col.is_float():
            return float(value)
        return value

    def _coerce(self, col: Column, node: Any, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(node, OptionalNode):
            return self._coerce(col, node.inner, value)
        if isinstance(node, RepeatedNode):
            if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
                raise TypeError(f"expected a list, got {type(value).__name__}")
            items = list(value)
            if not node.inner.optional and any(v is None for v in items):
                raise ValueError("list elements are not nullable")
            return [self._coerce(col, node.inner, v) for v in items]
        return self._coerce_leaf(col, node, value)

    def encode_row(self, row: Sequence[Any]) -> list[Any]:
        """Coerce a generic row into a physical row without buffering it.

        Raises:
            ValueEncodingError: If any value cannot be coerced for its column.
        """
        physical: list[Any] = []
        for i, (col, f) in enumerate(zip(self.columns, self.schema)):
            value = f.node.leaf().value(row) if i < len(row) else None
            if value is None and not f.node.optional:
                raise errors.ValueEncodingError(col.name, value, "column is not nullable")
            try:
                coerced = self._coerce(col, f.node, value)
                pa.scalar(coerced, type=self._storage_types[i])
            except (ValueError, TypeError, OverflowError, pa.ArrowException) as e:
                raise errors.ValueEncodingError(col.name, value, str(e)) from e
            physical.append(coerced)
        return physical

    def write_row(self, row: Sequence[Any]) -> None:
        """Coerce and buffer one generic row, in catalog order.

        A failed row leaves the writer usable for the next one.

        Raises:
            ValueEncodingError: If a value cannot be encoded for its column.
            WriterClosedError: If the writer was closed.
            FlushError: If a full buffer could not be handed to the encoder.
        """
        if self._closed:
            raise errors.WriterClosedError()

        self._buffer.append(self.encode_row(row))
        self.rows_written += 1
        if len(self._buffer) >= self.settings.row_group_size:
            self.flush()

    def write_rows(self, rows: Iterable[Sequence[Any]]) -> int:
        """Write many rows; returns how many were written."""
        count = 0
        for row in rows:
            self.write_row(row)
            count += 1
        return count

    def _build_batch(self, rows: list[list[Any]]) -> pa.RecordBatch:
        arrays = []
        for i, arrow_field in enumerate(self.arrow_schema):
            values = [row[i] for row in rows]
            array = pa.array(values, type=self._storage_types[i])
            if array.type != arrow_field.type:
                array = array.view(arrow_field.type)
            arrays.append(array)
        return pa.RecordBatch.from_arrays(arrays, schema=self.arrow_schema)

    def flush(self) -> None:
        """Hand buffered rows to the encoder as one record batch.

        Raises:
            FlushError: If the encoder rejects the batch.
        """
        if not self._buffer:
            return
        # a rejected batch is dropped so close() does not resubmit it
        rows, self._buffer = self._buffer, []
        try:
            self._writer.write_batch(self._build_batch(rows))
        except (pa.ArrowException, OSError, ValueError) as e:
            raise errors.FlushError(str(e)) from e
        logger.debug("Flushed %d rows to parquet", len(rows))

    def close(self) -> None:
        """Flush remaining rows and finalize the file.

        Safe to call more than once; only the first call does anything.

        Raises:
            FlushError: If the encoder fails to finalize the file.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self.flush()
        finally:
            try:
                self._writer.close()
            except (pa.ArrowException, OSError, ValueError) as e:
                raise errors.FlushError(str(e)) from e
        logger.debug("Closed parquet writer after %d rows", self.rows_written)
