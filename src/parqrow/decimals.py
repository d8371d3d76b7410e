"""Fixed-width decimal encoding.

Decimal columns are written as scaled integers: ``"123.45"`` at scale 2
becomes the integer 12345, stored as a big-endian two's complement number
of ``width`` bytes (16 by default, the in-memory width of a 128-bit decimal).
"""

from __future__ import annotations

import decimal
from dataclasses import dataclass, field
from fractions import Fraction

import parqrow.errors as errors

DEFAULT_PRECISION = 28
DEFAULT_SCALE = 9
MAX_PRECISION = 36
MAX_SCALE = 16
DECIMAL_WIDTH = 16

# Wide enough for MAX_PRECISION digits plus scaling without rounding surprises
_CONTEXT = decimal.Context(prec=80, rounding=decimal.ROUND_HALF_EVEN)


def clamp_precision(precision: int | None) -> int:
    """Clamp a declared precision to [1, 36]; unset (0/None) means 28."""
    if not precision:
        return DEFAULT_PRECISION
    return max(1, min(precision, MAX_PRECISION))


def clamp_scale(scale: int | None) -> int:
    """Clamp a declared scale to [0, 16]; unset (0/None) means 9."""
    if not scale:
        return DEFAULT_SCALE
    return max(0, min(scale, MAX_SCALE))


@dataclass(frozen=True)
class DecimalScale:
    """Scale factor for one decimal column.

    Built once per column when a writer is initialized and never mutated.
    """

    precision: int
    scale: int
    column: str = ""
    factor: Fraction = field(init=False)

    def __post_init__(self) -> None:
        # 10**0 == 1 keeps the inverse transform defined for scale 0
        object.__setattr__(self, "factor", Fraction(10) ** self.scale)

    @property
    def _multiplier(self) -> decimal.Decimal:
        return decimal.Decimal(self.factor.numerator)

    @classmethod
    def for_column(cls, name: str, precision: int | None, scale: int | None) -> DecimalScale:
        """Build a scale from a column's declared (unclamped) precision/scale."""
        eff_precision = clamp_precision(precision)
        eff_scale = min(clamp_scale(scale), eff_precision)
        return cls(precision=eff_precision, scale=eff_scale, column=name)

    @classmethod
    def placeholder(cls, name: str = "") -> DecimalScale:
        """Degenerate scale-of-one entry for non-decimal columns."""
        return cls(precision=MAX_PRECISION, scale=0, column=name)

    def to_unscaled(self, text: str) -> int:
        """Parse a decimal string into its scaled integer form."""
        try:
            value = decimal.Decimal(text.strip())
        except (decimal.InvalidOperation, AttributeError) as e:
            raise errors.ValueEncodingError(
                self.column, text, "not a valid decimal string"
            ) from e
        if not value.is_finite():
            raise errors.ValueEncodingError(self.column, text, "NaN and Infinity cannot be encoded")
        if value.normalize(_CONTEXT).as_tuple().exponent < -self.scale:
            raise errors.ValueEncodingError(
                self.column, text, f"more than {self.scale} fractional digits"
            )

        scaled = _CONTEXT.multiply(value, self._multiplier)
        unscaled = int(scaled.to_integral_value(context=_CONTEXT))
        if abs(unscaled) >= 10**self.precision:
            raise errors.ValueEncodingError(
                self.column,
                text,
                f"value exceeds decimal({self.precision}, {self.scale})",
            )
        return unscaled

    def encode(self, text: str, width: int = DECIMAL_WIDTH) -> bytes:
        """Encode a decimal string as a fixed-width big-endian integer.

        Raises:
            ValueEncodingError: If the string is malformed or out of range.
        """
        unscaled = self.to_unscaled(text)
        try:
            return unscaled.to_bytes(width, byteorder="big", signed=True)
        except OverflowError as e:
            raise errors.ValueEncodingError(
                self.column, text, f"value does not fit in {width} bytes"
            ) from e

    def from_unscaled(self, unscaled: int) -> str:
        """Render a scaled integer with exactly ``scale`` fractional digits."""
        value = _CONTEXT.divide(decimal.Decimal(unscaled), self._multiplier)
        value = value.quantize(decimal.Decimal(1).scaleb(-self.scale), context=_CONTEXT)
        return format(value, "f")

    def decode(self, data: bytes) -> str:
        """Inverse of ``encode``."""
        return self.from_unscaled(int.from_bytes(data, byteorder="big", signed=True))
