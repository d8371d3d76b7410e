"""Row reader.

Decodes physical parquet rows into generic rows positioned by the column
catalog. Each call to ``advance`` decodes exactly one row and returns an
explicit result; failures are captured into the reader's ``ReadContext``
and end the iteration instead of propagating. Rows decoded before a failure
stay valid.

Example:
    with ParquetReader(source, columns) as reader:
        rows = reader.read_all()
    if reader.context.err:
        ...  # stream interrupted, rows holds everything before the failure
"""

from __future__ import annotations

import decimal
import enum
import logging
import uuid
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

import parqrow.errors as errors
from parqrow.decimals import DecimalScale
from parqrow.settings import ParquetSettings, get_settings
from parqrow.timeunits import TimeUnit, from_epoch
from parqrow.type_map import columns_from_schema
from parqrow.types import Column, Columns, clean_name

logger = logging.getLogger(__name__)


class ReaderState(enum.Enum):
    READY = "ready"
    EXHAUSTED = "exhausted"


@dataclass
class ReadContext:
    """Errors captured during one read session."""

    errors: list[errors.ParqrowError] = field(default_factory=list)

    def capture_err(self, err: errors.ParqrowError) -> None:
        self.errors.append(err)

    @property
    def err(self) -> errors.ParqrowError | None:
        """First captured error, or None if the stream ended cleanly."""
        return self.errors[0] if self.errors else None


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding one row: a row, end of stream, or an error."""

    row: list[Any] | None = None
    error: errors.ParqrowError | None = None

    @property
    def ok(self) -> bool:
        return self.row is not None

    @property
    def end(self) -> bool:
        return self.row is None and self.error is None


class _FileSource:
    """Physical rows from a parquet file via ``pyarrow.parquet.ParquetFile``."""

    def __init__(self, source: Any, batch_size: int) -> None:
        self.source = source
        self.file = pq.ParquetFile(source)
        self.batch_size = batch_size
        self.timestamp_units: dict[str, TimeUnit] = {}
        for arrow_field in self.file.schema_arrow:
            if pa.types.is_timestamp(arrow_field.type):
                self.timestamp_units[arrow_field.name.lower()] = TimeUnit(arrow_field.type.unit)

    @property
    def closed(self) -> bool:
        """Whether the caller closed the stream this file was opened from."""
        return bool(getattr(self.source, "closed", False))

    def columns(self) -> Columns:
        return columns_from_schema(self.file.schema)

    def _normalize(self, batch: pa.RecordBatch) -> pa.RecordBatch:
        # timestamps travel as raw counts; datetimes are rebuilt per unit
        arrays = []
        for arrow_field, array in zip(batch.schema, batch.columns):
            if pa.types.is_timestamp(arrow_field.type):
                array = array.cast(pa.int64())
            arrays.append(array)
        return pa.RecordBatch.from_arrays(arrays, names=batch.schema.names)

    def records(self) -> Iterator[dict[str, Any]]:
        for batch in self.file.iter_batches(batch_size=self.batch_size):
            yield from self._normalize(batch).to_pylist()

    def close(self) -> None:
        self.file.close()


class ParquetReader:
    """Iterates generic rows out of a parquet stream.

    States are READY and EXHAUSTED; once exhausted, whether by end of stream
    or by a captured error, ``advance`` keeps returning False.

    Not safe for concurrent use; give each thread its own reader.
    """

    def __init__(
        self,
        source: Any,
        columns: Columns | Sequence[Column] | None = None,
        settings: ParquetSettings | None = None,
    ) -> None:
        """Open a parquet source.

        Args:
            source: Readable, seekable file-like object, ``pyarrow.NativeFile``
                or path.
            columns: Catalog to position values by. Inferred from the file's
                physical types when omitted.
            settings: Tuning knobs; defaults to environment settings.
        """
        settings = settings or get_settings()
        self._source: _FileSource | None = _FileSource(source, settings.read_batch_size)
        if columns is None:
            columns = self._source.columns()
        self._init(self._source.records(), columns, self._source.timestamp_units)
        logger.debug("Opened parquet reader over %d columns", len(self.columns))

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Mapping[str, Any]],
        columns: Columns | Sequence[Column],
    ) -> ParquetReader:
        """Reader over already-materialized physical rows keyed by field name."""
        reader = cls.__new__(cls)
        reader._source = None
        reader._init(iter(rows), columns, {})
        return reader

    def _init(
        self,
        records: Iterator[Mapping[str, Any]],
        columns: Columns | Sequence[Column],
        timestamp_units: dict[str, TimeUnit],
    ) -> None:
        self.columns = columns if isinstance(columns, Columns) else Columns(columns)
        self.context = ReadContext()
        self.state = ReaderState.READY
        self.row: list[Any] | None = None
        self.rows_read = 0
        self._records = records
        self._timestamp_units = timestamp_units
        self._col_map = self.columns.field_map(lower=True)
        self._decimal_scales = {
            i: DecimalScale.for_column(col.name, col.db_precision, col.db_scale)
            for i, col in enumerate(self.columns)
            if col.is_decimal()
        }

    def __enter__(self) -> ParquetReader:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[list[Any]]:
        while self.advance():
            yield self.row

    @property
    def record(self) -> dict[str, Any] | None:
        """Last decoded row keyed by catalog column name."""
        if self.row is None:
            return None
        return dict(zip(self.columns.names(), self.row))

    def _decode_value(self, index: int, key: str, value: Any) -> Any:
        if value is None:
            return None
        unit = self._timestamp_units.get(key.lower())
        if unit is not None and isinstance(value, int):
            return from_epoch(value, unit)
        if isinstance(value, decimal.Decimal):
            return format(value, "f")
        scale = self._decimal_scales.get(index)
        if scale is not None and isinstance(value, bytes):
            return scale.decode(value)
        if isinstance(value, bytes) and len(value) == 16 and self.columns[index].is_uuid():
            return str(uuid.UUID(bytes=value))
        return value

    def _place(self, record: Mapping[str, Any]) -> list[Any]:
        row: list[Any] = [None] * len(self.columns)
        for key, value in record.items():
            index = self._col_map.get(key.lower())
            if index is None:
                # inferred catalogs carry cleaned names
                index = self._col_map.get(clean_name(key).lower())
            if index is None:
                logger.debug("Ignoring field '%s' not present in the catalog", key)
                continue
            col = self.columns[index]
            row[col.position - 1] = self._decode_value(index, key, value)
        return row

    def decode_next(self) -> DecodeResult:
        """Pull and decode one physical row; state changes are left to ``advance``."""
        row_number = self.rows_read + 1
        if self._source is not None and self._source.closed:
            # pyarrow may have pre-read the rest, so check the stream itself
            return DecodeResult(error=errors.RowDecodeError(row_number, "source stream is closed"))
        try:
            record = next(self._records)
        except StopIteration:
            return DecodeResult()
        except (pa.ArrowException, OSError, ValueError) as e:
            return DecodeResult(error=errors.RowDecodeError(row_number, str(e)))
        except Exception as e:  # row boundary: faults must not escape the iterator
            return DecodeResult(error=errors.InternalFault(row_number, repr(e)))

        try:
            return DecodeResult(row=self._place(record))
        except Exception as e:
            return DecodeResult(error=errors.InternalFault(row_number, repr(e)))

    def advance(self) -> bool:
        """Decode the next row into ``row``.

        Returns:
            True if a row was decoded; False at end of stream or after a
            captured error (see ``context``).
        """
        if self.state == ReaderState.EXHAUSTED:
            return False

        result = self.decode_next()
        if result.ok:
            self.row = result.row
            self.rows_read += 1
            return True

        if result.error is not None:
            logger.warning("Stopped reading parquet after %d rows: %s", self.rows_read, result.error.cause)
            self.context.capture_err(result.error)
        self.state = ReaderState.EXHAUSTED
        self.close()
        return False

    def read_all(self) -> list[list[Any]]:
        """Decode every remaining row; check ``context`` for interruptions."""
        return list(self)

    def close(self) -> None:
        """Release the underlying file. Safe to call more than once."""
        self.state = ReaderState.EXHAUSTED
        if self._source is not None:
            source, self._source = self._source, None
            source.close()
            logger.debug("Closed parquet reader after %d rows", self.rows_read)
