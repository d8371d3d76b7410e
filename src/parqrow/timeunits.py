"""Timestamp unit selection and epoch conversions."""

from __future__ import annotations

import enum
from datetime import date, datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class TimeUnit(enum.Enum):
    """Timestamp units, valued as pyarrow unit strings.

    Seconds only show up when reading files written elsewhere.
    """

    SECONDS = "s"
    MILLIS = "ms"
    MICROS = "us"
    NANOS = "ns"


def unit_for_precision(precision: int | None) -> TimeUnit:
    """Pick a timestamp unit from a column's declared fractional precision.

    3 -> milliseconds, 6 -> microseconds, anything else (9, unset) -> nanoseconds.
    """
    if precision == 3:
        return TimeUnit.MILLIS
    if precision == 6:
        return TimeUnit.MICROS
    return TimeUnit.NANOS


def _as_utc(value: datetime | date) -> datetime:
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        # Naive datetimes are taken to be UTC
        return value.replace(tzinfo=timezone.utc)
    return value


def to_epoch(value: datetime | date, unit: TimeUnit) -> int:
    """Signed count of ``unit`` since the Unix epoch.

    Integer arithmetic on the timedelta avoids float rounding at nanosecond
    resolution.
    """
    delta = _as_utc(value) - EPOCH
    micros = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
    if unit == TimeUnit.SECONDS:
        return micros // 1_000_000
    if unit == TimeUnit.MILLIS:
        return micros // 1_000
    if unit == TimeUnit.MICROS:
        return micros
    return micros * 1_000


def from_epoch(count: int, unit: TimeUnit) -> datetime:
    """Timezone-aware UTC datetime for a count since epoch.

    Sub-microsecond precision is truncated since ``datetime`` can't hold it.
    """
    if unit == TimeUnit.SECONDS:
        return EPOCH + timedelta(seconds=count)
    if unit == TimeUnit.MILLIS:
        return EPOCH + timedelta(milliseconds=count)
    if unit == TimeUnit.MICROS:
        return EPOCH + timedelta(microseconds=count)
    return EPOCH + timedelta(microseconds=count // 1_000)
