"""Tests for typed value resolution."""

import pytest

from axml_builder import read_chunk, string_pool
from axmldecoder.chunk import open_buffer
from axmldecoder.errors import (
    InvalidFormatError,
    StringNotFoundError,
    TruncatedInputError,
    UnsupportedFeatureError,
)
from axmldecoder.internal_types import (
    TYPE_ATTRIBUTE,
    TYPE_DIMENSION,
    TYPE_FLOAT,
    TYPE_INT_BOOLEAN,
    TYPE_INT_COLOR_ARGB8,
    TYPE_INT_DEC,
    TYPE_INT_HEX,
    TYPE_NULL,
    TYPE_REFERENCE,
    TYPE_STRING,
)
from axmldecoder.resource_value import ResourceValue
from axmldecoder.stringblock import StringBlock


@pytest.fixture
def sb() -> StringBlock:
    return read_chunk(string_pool(["zero", "one", "com.example"]), StringBlock)


def value(data_type: int, data: int) -> ResourceValue:
    return ResourceValue(8, 0, data_type, data)


class TestResolve:
    """Literal values are rendered, everything else gets a placeholder."""

    @pytest.mark.parametrize(
        "data_type, data, expected",
        [
            (TYPE_INT_BOOLEAN, 0, "false"),
            (TYPE_INT_BOOLEAN, 1, "true"),
            (TYPE_INT_BOOLEAN, 0xFFFFFFFF, "true"),
            (TYPE_INT_DEC, 42, "42"),
            (TYPE_INT_DEC, 0xFFFFFFFF, "4294967295"),
            (TYPE_INT_HEX, 255, "0x255"),
        ],
    )
    def test_literal_values(self, sb: StringBlock, data_type: int, data: int, expected: str) -> None:
        assert value(data_type, data).resolve(sb) == expected

    def test_string_value(self, sb: StringBlock) -> None:
        assert value(TYPE_STRING, 2).resolve(sb) == "com.example"

    def test_string_value_out_of_bounds(self, sb: StringBlock) -> None:
        with pytest.raises(StringNotFoundError):
            value(TYPE_STRING, 3).resolve(sb)

    def test_string_value_without_string(self, sb: StringBlock) -> None:
        with pytest.raises(InvalidFormatError):
            value(TYPE_STRING, 0xFFFFFFFF).resolve(sb)

    @pytest.mark.parametrize(
        "data_type, expected",
        [
            (TYPE_NULL, "Null/16"),
            (TYPE_REFERENCE, "Reference/16"),
            (TYPE_ATTRIBUTE, "Attribute/16"),
            (TYPE_FLOAT, "Float/16"),
            (TYPE_DIMENSION, "Dimension/16"),
            (TYPE_INT_COLOR_ARGB8, "ColorArgb8/16"),
        ],
    )
    def test_placeholder_values(self, sb: StringBlock, data_type: int, expected: str) -> None:
        assert value(data_type, 16).resolve(sb) == expected

    def test_unknown_type_unsupported(self, sb: StringBlock) -> None:
        with pytest.raises(UnsupportedFeatureError, match="0x42"):
            value(0x42, 1).resolve(sb)


class TestRead:
    """Reading the 8 byte Res_value record."""

    def test_read_fields(self) -> None:
        rv = ResourceValue.read(open_buffer(b"\x08\x00\x00\x10\x2a\x00\x00\x00"))
        assert (rv.size, rv.res0, rv.data_type, rv.data) == (8, 0, TYPE_INT_DEC, 42)
        assert rv.get_type_name() == "Dec"

    def test_short_record_is_truncated(self) -> None:
        with pytest.raises(TruncatedInputError):
            ResourceValue.read(open_buffer(b"\x08\x00\x00\x10"))
