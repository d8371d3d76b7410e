"""End-to-end write-then-read tests."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pyarrow as pa
import pyarrow.parquet as pq

from parqrow.reader import ParquetReader
from parqrow.types import Columns
from parqrow.values import SourceRepr
from parqrow.writer import ParquetWriter


def _round_trip(columns: Columns, rows: list[list], settings) -> ParquetReader:
    sink = pa.BufferOutputStream()
    with ParquetWriter(sink, columns, settings=settings) as writer:
        writer.write_rows(rows)
    return ParquetReader(pa.BufferReader(sink.getvalue()), columns, settings=settings)


class TestRoundTrip:
    def test_id_and_decimal_amount(self, settings, id_amt_columns):
        """The id/amt example reads back exactly as written."""
        reader = _round_trip(id_amt_columns, [[42, "123.45"]], settings)

        assert reader.advance()
        assert reader.record == {"id": 42, "amt": "123.45"}
        assert not reader.advance()
        assert reader.context.err is None

    def test_mixed_catalog(self, settings):
        """Every column kind survives a write and read."""
        ts = datetime(2024, 5, 6, 7, 8, 9, 123456, tzinfo=timezone.utc)
        uid = uuid.UUID("12345678-1234-5678-1234-567812345678")
        columns = Columns.from_specs(
            [
                {"name": "id", "type": "bigint"},
                {"name": "active", "type": "bool"},
                {"name": "score", "type": "float"},
                {"name": "name", "type": "string"},
                {"name": "created", "type": "timestampz", "db_precision": 6},
                {"name": "ref", "type": "uuid"},
                {"name": "tags", "type": "string", "repr": SourceRepr.list_(SourceRepr.string())},
                {"name": "attrs", "type": "json", "repr": SourceRepr.map_()},
            ]
        )
        rows = [
            [1, "true", "0.5", "alice", ts, uid, ["a", "b"], {"k": "v"}],
            [2, "false", 3, None, None, None, [], None],
        ]

        with _round_trip(columns, rows, settings) as reader:
            decoded = reader.read_all()

        assert decoded == [
            [1, True, 0.5, "alice", ts, str(uid), ["a", "b"], '{"k": "v"}'],
            [2, False, 3.0, None, None, None, [], None],
        ]

    def test_decimals_keep_declared_scale(self, settings):
        """Decimals keep declared scale."""
        columns = Columns.from_specs([{"name": "amt", "type": "decimal", "db_precision": 20, "db_scale": 4}])
        rows = [["0"], ["-1.5"], ["9999999999999999.9999"]]

        with _round_trip(columns, rows, settings) as reader:
            assert reader.read_all() == [["0.0000"], ["-1.5000"], ["9999999999999999.9999"]]

    def test_int96_timestamps(self, settings):
        """INT96 timestamps are written as INT96 and read back exactly."""
        ts = datetime(2023, 3, 4, 5, 6, 7, 890123, tzinfo=timezone.utc)
        columns = Columns.from_specs([{"name": "legacy_ts", "type": "datetime", "repr": SourceRepr.int96()}])
        sink = pa.BufferOutputStream()

        with ParquetWriter(sink, columns, settings=settings) as writer:
            writer.write_row([ts])

        parquet_file = pq.ParquetFile(pa.BufferReader(sink.getvalue()))
        assert parquet_file.schema.column(0).physical_type == "INT96"

        with ParquetReader(pa.BufferReader(sink.getvalue()), columns, settings=settings) as reader:
            assert reader.read_all() == [[ts]]

    def test_many_rows_across_row_groups(self, settings, id_amt_columns):
        """Many rows across row groups."""
        rows = [[i, f"{i}.25"] for i in range(7)]

        with _round_trip(id_amt_columns, rows, settings) as reader:
            assert reader.read_all() == rows
