"""Tests for timestamp unit selection and epoch conversions."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

import parqrow.timeunits as tu

# 2024-01-02T03:04:05.678901Z
FIXED = datetime(2024, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc)


class TestUnitForPrecision:
    @pytest.mark.parametrize(
        ("precision", "unit"),
        [
            (3, tu.TimeUnit.MILLIS),
            (6, tu.TimeUnit.MICROS),
            (9, tu.TimeUnit.NANOS),
            (0, tu.TimeUnit.NANOS),
            (None, tu.TimeUnit.NANOS),
            (28, tu.TimeUnit.NANOS),
        ],
    )
    def test_unit(self, precision, unit):
        """Precision selects the timestamp unit."""
        assert tu.unit_for_precision(precision) == unit


class TestToEpoch:
    def test_millis(self):
        """Millisecond counts drop sub-millisecond digits."""
        assert tu.to_epoch(FIXED, tu.TimeUnit.MILLIS) == 1704164645678

    def test_micros(self):
        """Microsecond counts are exact."""
        assert tu.to_epoch(FIXED, tu.TimeUnit.MICROS) == 1704164645678901

    def test_nanos(self):
        """Nanosecond counts are exact."""
        assert tu.to_epoch(FIXED, tu.TimeUnit.NANOS) == 1704164645678901000

    def test_naive_is_utc(self):
        """Naive datetimes are treated as UTC."""
        naive = FIXED.replace(tzinfo=None)
        assert tu.to_epoch(naive, tu.TimeUnit.MICROS) == 1704164645678901

    def test_offset_is_respected(self):
        """Offset is respected."""
        plus_two = FIXED.astimezone(timezone(timedelta(hours=2)))
        assert tu.to_epoch(plus_two, tu.TimeUnit.MICROS) == 1704164645678901

    def test_date_is_midnight(self):
        """Date is midnight."""
        assert tu.to_epoch(date(1970, 1, 2), tu.TimeUnit.MILLIS) == 86_400_000

    def test_before_epoch_is_negative(self):
        """Instants before the epoch give negative counts."""
        before = datetime(1969, 12, 31, 23, 59, 59, 999000, tzinfo=timezone.utc)
        assert tu.to_epoch(before, tu.TimeUnit.MILLIS) == -1


class TestFromEpoch:
    @pytest.mark.parametrize("unit", list(tu.TimeUnit))
    def test_round_trip_at_microsecond_precision(self, unit):
        """Round trip at microsecond precision."""
        expected = FIXED
        if unit == tu.TimeUnit.SECONDS:
            expected = FIXED.replace(microsecond=0)
        if unit == tu.TimeUnit.MILLIS:
            expected = FIXED.replace(microsecond=678000)
        assert tu.from_epoch(tu.to_epoch(FIXED, unit), unit) == expected

    def test_result_is_utc(self):
        """Decoded datetimes are timezone-aware UTC."""
        assert tu.from_epoch(0, tu.TimeUnit.NANOS) == tu.EPOCH
        assert tu.from_epoch(0, tu.TimeUnit.NANOS).tzinfo == timezone.utc
