"""Structured error handling with context + cause + fix pattern.

Every parqrow error carries:
- Context: What operation was being attempted
- Cause: Why it failed
- Fix: How to resolve the issue

Schema construction and flush errors are raised immediately. Per-row read
errors are captured into a ``ReadContext`` instead (see ``parqrow.reader``).
"""

from __future__ import annotations


class ParqrowError(Exception):
    """Base error with structured messaging."""

    def __init__(self, context: str, cause: str, fix: str) -> None:
        self.context = context
        self.cause = cause
        self.fix = fix
        message = f"{context}\n\nCause: {cause}\n\nFix: {fix}"
        super().__init__(message)

    def to_dict(self) -> dict:
        """Serialize error to structured dict for JSON output."""
        return {
            "error": True,
            "code": type(self).__name__,
            "context": self.context,
            "cause": self.cause,
            "fix": self.fix,
        }


class ConfigurationError(ParqrowError):
    """Configuration file or settings related errors."""

    pass


class ConfigNotFoundError(ConfigurationError):
    """Configuration file not found."""

    def __init__(self, path: str) -> None:
        super().__init__(
            context=f"Loading configuration from '{path}'",
            cause="Configuration file not found",
            fix=f"Create a parqrow.yaml file at '{path}' or rely on PARQROW_* environment variables",
        )


class ConfigValidationError(ConfigurationError):
    """Configuration validation failed."""

    def __init__(self, path: str, details: str) -> None:
        super().__init__(
            context=f"Validating configuration from '{path}'",
            cause=details,
            fix="Check the configuration keys: compression, row_group_size, read_batch_size.",
        )


class SchemaConstructionError(ParqrowError):
    """A column cannot be represented in the physical schema."""

    def __init__(self, column: str, cause: str) -> None:
        super().__init__(
            context=f"Building parquet schema node for column '{column}'",
            cause=cause,
            fix="Declare a supported source representation for the column or change its logical type.",
        )
        self.column = column


class ValueEncodingError(ParqrowError):
    """A single value cannot be coerced to its column's physical type."""

    def __init__(self, column: str, value: object, cause: str) -> None:
        super().__init__(
            context=f"Encoding value {value!r} for column '{column}'",
            cause=cause,
            fix="Fix the source value or declare a wider precision/scale for the column.",
        )
        self.column = column
        self.value = value


class WriterClosedError(ParqrowError):
    """Write attempted on a writer that was already closed."""

    def __init__(self) -> None:
        super().__init__(
            context="Writing a row to a parquet writer",
            cause="The writer has already been closed",
            fix="Open a new writer for further rows.",
        )


class FlushError(ParqrowError):
    """The encoding primitive failed to finalize the file."""

    def __init__(self, cause: str) -> None:
        super().__init__(
            context="Flushing and finalizing parquet output",
            cause=cause,
            fix="Check that the output stream is writable and has not been closed.",
        )


class RowDecodeError(ParqrowError):
    """A physical row could not be read from the stream."""

    def __init__(self, row_number: int, cause: str) -> None:
        super().__init__(
            context=f"Reading parquet row {row_number}",
            cause=cause,
            fix="The stream is unusable past this row; rows read before it remain valid.",
        )
        self.row_number = row_number


class InternalFault(ParqrowError):
    """Unexpected low-level failure while decoding a single row."""

    def __init__(self, row_number: int, cause: str) -> None:
        super().__init__(
            context=f"Decoding parquet row {row_number}",
            cause=f"Unexpected internal fault: {cause}",
            fix="Report the file that triggered this; rows read before it remain valid.",
        )
        self.row_number = row_number
