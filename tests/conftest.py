"""Global test configuration and fixtures."""

from __future__ import annotations

import pyarrow as pa
import pytest

import parqrow.settings as settings_mod
from parqrow.types import Columns


@pytest.fixture
def settings() -> settings_mod.ParquetSettings:
    """Defaults with a small row group size so flushes happen in tests."""
    return settings_mod.ParquetSettings(compression="snappy", row_group_size=2, read_batch_size=2)


@pytest.fixture
def sink() -> pa.BufferOutputStream:
    """In-memory output stream."""
    return pa.BufferOutputStream()


@pytest.fixture
def id_amt_columns() -> Columns:
    """The id/amt catalog used in end-to-end examples."""
    return Columns.from_specs(
        [
            {"name": "id", "type": "bigint"},
            {"name": "amt", "type": "decimal", "db_precision": 10, "db_scale": 2},
        ]
    )
