"""Configuration for parquet readers and writers.

Settings come from ``PARQROW_*`` environment variables, or from a YAML file
loaded with ``load_settings``. Explicit constructor arguments on the reader
and writer always win over settings.

Example parqrow.yaml:
    compression: zstd
    row_group_size: 50000
    read_batch_size: 2048
"""

from __future__ import annotations

from functools import cache
from pathlib import Path
from typing import Literal

import omegaconf as oc
import pydantic as pdt
import pydantic_settings as pdts

import parqrow.errors as errors

Compression = Literal["snappy", "gzip", "zstd", "brotli", "lz4", "none"]


class Settings(pdts.BaseSettings, strict=True, frozen=True, extra="forbid"):
    """Base settings class with strict validation."""

    pass


class ParquetSettings(Settings):
    """Reader/writer tuning knobs."""

    model_config = pdts.SettingsConfigDict(env_prefix="PARQROW_")

    compression: Compression = "snappy"
    row_group_size: int = pdt.Field(default=10_000, gt=0)  # rows buffered per flush
    read_batch_size: int = pdt.Field(default=1024, gt=0)


def load_settings(path: Path | str = Path("parqrow.yaml")) -> ParquetSettings:
    """Load and validate settings from a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Validated ParquetSettings instance.

    Raises:
        ConfigNotFoundError: If the file doesn't exist.
        ConfigValidationError: If the file fails validation.
    """
    path = Path(path)

    if not path.exists():
        raise errors.ConfigNotFoundError(str(path))

    try:
        config = oc.OmegaConf.load(path)
        config_dict = oc.OmegaConf.to_container(config, resolve=True)
        return ParquetSettings.model_validate(config_dict or {})
    except pdt.ValidationError as e:
        raise errors.ConfigValidationError(
            path=str(path),
            details=_format_validation_errors(e),
        ) from e
    except oc.errors.OmegaConfBaseException as e:
        raise errors.ConfigValidationError(
            path=str(path),
            details=str(e),
        ) from e


def _format_validation_errors(error: pdt.ValidationError) -> str:
    """Format Pydantic validation errors into readable messages."""
    messages = []
    for err in error.errors():
        loc = ".".join(str(x) for x in err["loc"])
        msg = err["msg"]
        messages.append(f"  - {loc}: {msg}")
    return "\n".join(messages)


@cache
def get_settings() -> ParquetSettings:
    """Cached settings from the environment.

    For tests or explicit files use ``ParquetSettings()`` or
    ``load_settings()`` directly.
    """
    return ParquetSettings()
