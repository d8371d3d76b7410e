"""Tests for the column catalog and source representations."""

from __future__ import annotations

import pydantic as pdt
import pytest

import parqrow.errors as errors
import parqrow.types as types
from parqrow.values import SourceRepr, ValueKind


class TestColumn:
    def test_default_repr_follows_logical_type(self):
        """Default repr follows logical type."""
        col = types.Column(name="ts", type=types.ColumnType.DATETIME, position=1)
        assert col.source_repr.kind == ValueKind.TIMESTAMP

    def test_declared_repr_wins(self):
        """Declared repr wins."""
        col = types.Column(
            name="ts",
            type=types.ColumnType.DATETIME,
            position=1,
            repr=SourceRepr.string(),
        )
        assert col.source_repr == SourceRepr.string()

    def test_type_accepts_string_value(self):
        """Type accepts string value."""
        col = types.Column.model_validate({"name": "n", "type": "bigint", "position": 1})
        assert col.type == types.ColumnType.BIGINT

    def test_position_is_one_based(self):
        """Position is one based."""
        with pytest.raises(pdt.ValidationError):
            types.Column(name="n", type=types.ColumnType.BIGINT, position=0)

    def test_predicates(self):
        """Type predicates follow the logical type."""
        assert types.Column(name="a", type="bool", position=1).is_bool()
        assert types.Column(name="a", type="decimal", position=1).is_decimal()
        assert types.Column(name="a", type="float", position=1).is_float()
        assert types.Column(name="a", type="timestampz", position=1).is_datetime()
        assert types.Column(name="a", type="uuid", position=1).is_uuid()
        assert not types.Column(name="a", type="string", position=1).is_datetime()


class TestColumns:
    def test_from_specs_assigns_positions(self, id_amt_columns):
        """From specs assigns positions."""
        assert [c.position for c in id_amt_columns] == [1, 2]
        assert id_amt_columns.names() == ["id", "amt"]

    def test_field_map_is_lowercase(self):
        """Field map is lowercase."""
        cols = types.Columns.from_specs([{"name": "UserID", "type": "bigint"}])

        assert cols.field_map() == {"userid": 0}
        assert cols.field_map(lower=False) == {"UserID": 0}

    def test_get_ignores_case(self, id_amt_columns):
        """Get ignores case."""
        assert id_amt_columns.get("AMT").name == "amt"
        assert id_amt_columns.get("missing") is None

    def test_validate_positions_accepts_contiguous(self, id_amt_columns):
        """Validate positions accepts contiguous."""
        id_amt_columns.validate_positions()

    def test_validate_positions_rejects_gaps(self):
        """Validate positions rejects gaps."""
        cols = types.Columns(
            [
                types.Column(name="a", type="bigint", position=1),
                types.Column(name="b", type="bigint", position=3),
            ]
        )

        with pytest.raises(errors.SchemaConstructionError, match="expected 2"):
            cols.validate_positions()

    def test_sequence_protocol(self, id_amt_columns):
        """The catalog supports len, iteration and indexing."""
        assert len(id_amt_columns) == 2
        assert id_amt_columns[1].name == "amt"
        assert [c.name for c in id_amt_columns[:1]] == ["id"]


class TestCleanName:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("id", "id"),
            (" order id ", "order_id"),
            ("price ($)", "price"),
            ("a.b", "a_b"),
        ],
    )
    def test_clean_name(self, raw, expected):
        """Names are reduced to word characters joined by underscores."""
        assert types.clean_name(raw) == expected


class TestSourceRepr:
    def test_native_int_is_64_bits(self):
        """Native int is 64 bits."""
        assert SourceRepr.int_().width == 64
        assert SourceRepr.uint(16).width == 16

    def test_invalid_bits_rejected(self):
        """Invalid bits rejected."""
        with pytest.raises(pdt.ValidationError, match="bits must be one of"):
            SourceRepr.int_(12)

    def test_bits_only_for_integers(self):
        """A bit width is rejected on non-integer kinds."""
        with pytest.raises(pdt.ValidationError, match="bits only applies"):
            SourceRepr(kind=ValueKind.STRING, bits=8)

    def test_wrappers_require_element(self):
        """Wrappers require element."""
        with pytest.raises(pdt.ValidationError, match="requires an element"):
            SourceRepr(kind=ValueKind.LIST)

    def test_fixed_bytes_requires_length(self):
        """Fixed bytes requires length."""
        with pytest.raises(pdt.ValidationError, match="positive length"):
            SourceRepr(kind=ValueKind.FIXED_BYTES)

    def test_nested_repr(self):
        """Representations nest through optional and list."""
        repr_ = SourceRepr.optional(SourceRepr.list_(SourceRepr.int_(32)))

        assert repr_.kind == ValueKind.OPTIONAL
        assert repr_.elem.elem.bits == 32
