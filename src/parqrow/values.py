"""Source value representations.

A column's source representation is one of a closed set of kinds. The schema
builder dispatches on ``SourceRepr.kind`` instead of inspecting native Python
types, so every value crossing the row boundary has a known shape.
"""

from __future__ import annotations

import enum

import pydantic as pdt


class ValueKind(enum.Enum):
    """Closed set of source value kinds."""

    NULL = "null"
    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    BYTES = "bytes"
    FIXED_BYTES = "fixed_bytes"
    DECIMAL = "decimal"
    TIMESTAMP = "timestamp"
    INT96 = "int96"
    UUID = "uuid"
    OPTIONAL = "optional"
    LIST = "list"
    MAP = "map"


_SIZED_KINDS = (ValueKind.INT, ValueKind.UINT)
_WRAPPER_KINDS = (ValueKind.OPTIONAL, ValueKind.LIST)
_VALID_BITS = (8, 16, 32, 64)


class SourceRepr(pdt.BaseModel, frozen=True, extra="forbid"):
    """How a column's values are represented by the source system.

    Example:
        SourceRepr.int_(32)
        SourceRepr.list_(SourceRepr.string())
        SourceRepr.optional(SourceRepr.timestamp())
    """

    kind: ValueKind
    bits: int | None = None  # INT / UINT width; None means platform native (64)
    length: int | None = None  # FIXED_BYTES width
    elem: SourceRepr | None = None  # OPTIONAL / LIST element

    @pdt.model_validator(mode="after")
    def validate_shape(self) -> SourceRepr:
        """Reject shape parameters that don't belong to the kind."""
        if self.bits is not None:
            if self.kind not in _SIZED_KINDS:
                raise ValueError(f"bits only applies to int/uint, not {self.kind.value}")
            if self.bits not in _VALID_BITS:
                raise ValueError(f"bits must be one of {_VALID_BITS}, got {self.bits}")
        if self.kind == ValueKind.FIXED_BYTES and (self.length is None or self.length < 1):
            raise ValueError("fixed_bytes requires a positive length")
        if self.kind in _WRAPPER_KINDS and self.elem is None:
            raise ValueError(f"{self.kind.value} requires an element representation")
        if self.kind not in _WRAPPER_KINDS and self.elem is not None:
            raise ValueError(f"elem only applies to optional/list, not {self.kind.value}")
        return self

    @property
    def width(self) -> int:
        """Bit width of an int/uint representation."""
        return self.bits or 64

    @classmethod
    def of(cls, kind: ValueKind) -> SourceRepr:
        return cls(kind=kind)

    @classmethod
    def null(cls) -> SourceRepr:
        return cls(kind=ValueKind.NULL)

    @classmethod
    def bool_(cls) -> SourceRepr:
        return cls(kind=ValueKind.BOOL)

    @classmethod
    def int_(cls, bits: int | None = None) -> SourceRepr:
        return cls(kind=ValueKind.INT, bits=bits)

    @classmethod
    def uint(cls, bits: int | None = None) -> SourceRepr:
        return cls(kind=ValueKind.UINT, bits=bits)

    @classmethod
    def float32(cls) -> SourceRepr:
        return cls(kind=ValueKind.FLOAT32)

    @classmethod
    def float64(cls) -> SourceRepr:
        return cls(kind=ValueKind.FLOAT64)

    @classmethod
    def string(cls) -> SourceRepr:
        return cls(kind=ValueKind.STRING)

    @classmethod
    def bytes_(cls) -> SourceRepr:
        return cls(kind=ValueKind.BYTES)

    @classmethod
    def fixed_bytes(cls, length: int) -> SourceRepr:
        return cls(kind=ValueKind.FIXED_BYTES, length=length)

    @classmethod
    def decimal(cls) -> SourceRepr:
        return cls(kind=ValueKind.DECIMAL)

    @classmethod
    def timestamp(cls) -> SourceRepr:
        return cls(kind=ValueKind.TIMESTAMP)

    @classmethod
    def int96(cls) -> SourceRepr:
        return cls(kind=ValueKind.INT96)

    @classmethod
    def uuid(cls) -> SourceRepr:
        return cls(kind=ValueKind.UUID)

    @classmethod
    def optional(cls, elem: SourceRepr) -> SourceRepr:
        return cls(kind=ValueKind.OPTIONAL, elem=elem)

    @classmethod
    def list_(cls, elem: SourceRepr) -> SourceRepr:
        return cls(kind=ValueKind.LIST, elem=elem)

    @classmethod
    def map_(cls) -> SourceRepr:
        return cls(kind=ValueKind.MAP)
