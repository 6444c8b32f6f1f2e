"""Tests for the string pool decoder."""

from struct import pack

import pytest

from axml_builder import chunk, encode_entry, read_chunk, string_pool, string_pool_entries
from axmldecoder.errors import (
    InvalidEncodingError,
    InvalidFormatError,
    StringNotFoundError,
    TruncatedInputError,
    UnsupportedFeatureError,
)
from axmldecoder.internal_types import RES_STRING_POOL_TYPE, UTF8_FLAG
from axmldecoder.stringblock import StringBlock


def pool(strings, utf8=False) -> StringBlock:
    return read_chunk(string_pool(strings, utf8), StringBlock)


class TestEncodings:
    """UTF-8 and UTF-16 pools decode to the same strings."""

    def test_utf8_pool(self) -> None:
        sb = pool(["abc"], utf8=True)
        assert sb.m_isUTF8
        assert sb.get(0) == "abc"

    def test_utf16_pool(self) -> None:
        sb = pool(["abc"], utf8=False)
        assert not sb.m_isUTF8
        assert sb.get(0) == "abc"

    def test_non_ascii_strings(self) -> None:
        text = "été 日本"
        assert pool([text], utf8=True).get(0) == text
        assert pool([text], utf8=False).get(0) == text

    def test_surrogate_pair_in_utf16(self) -> None:
        text = "\U0001F600"
        assert pool([text]).get(0) == text

    def test_empty_string(self) -> None:
        assert pool([""]).get(0) == ""
        assert pool([""], utf8=True).get(0) == ""

    def test_utf8_char_count_is_ignored(self) -> None:
        entry = bytes([0x81, 2]) + b"hi" + b"\x00"
        block = read_chunk(string_pool_entries([entry], utf8=True), StringBlock)
        assert block.get(0) == "hi"

    def test_empty_pool(self) -> None:
        sb = pool([])
        assert len(sb) == 0
        with pytest.raises(StringNotFoundError):
            sb.get(0)


class TestLookup:
    """Index based access."""

    def test_sentinel_is_absent(self) -> None:
        sb = pool(["a", "b"])
        assert sb.get(0xFFFFFFFF) is None
        assert sb[0xFFFFFFFF] is None

    def test_out_of_bounds_raises(self) -> None:
        sb = pool(["a", "b"])
        with pytest.raises(StringNotFoundError) as exc_info:
            sb.get(2)
        assert exc_info.value.index == 2

    def test_strings_are_shared(self) -> None:
        sb = pool(["shared"])
        assert sb.get(0) is sb.get(0)

    def test_sequence_protocol(self) -> None:
        sb = pool(["a", "b", "c"])
        assert len(sb) == 3
        assert list(sb) == ["a", "b", "c"]
        assert sb[1] == "b"
        assert "#strings=3" in repr(sb)


class TestRejectedInput:
    """Pools this decoder refuses to read."""

    def test_styled_strings_unsupported(self) -> None:
        header = pack('<5L', 0, 1, 0, 32, 32)
        data = chunk(RES_STRING_POOL_TYPE, header, b"\x00" * 8)
        with pytest.raises(UnsupportedFeatureError, match="Styled strings"):
            read_chunk(data, StringBlock)

    def test_long_utf16_string_unsupported(self) -> None:
        entry = pack('<HH', 0x8001, 0x0000) + b"\x00" * 4
        with pytest.raises(UnsupportedFeatureError, match="0x7FFF"):
            read_chunk(string_pool_entries([entry]), StringBlock)

    def test_long_utf8_string_unsupported(self) -> None:
        entry = bytes([0x05, 0x81, 0x00]) + b"\x00"
        with pytest.raises(UnsupportedFeatureError):
            read_chunk(string_pool_entries([entry], utf8=True), StringBlock)

    def test_invalid_utf8(self) -> None:
        entry = bytes([2, 2]) + b"\xff\xfe" + b"\x00"
        with pytest.raises(InvalidEncodingError, match="UTF-8"):
            read_chunk(string_pool_entries([entry], utf8=True), StringBlock)

    def test_unpaired_surrogate(self) -> None:
        entry = pack('<3H', 2, 0xD800, 0x0061) + b"\x00\x00"
        with pytest.raises(InvalidEncodingError, match="UTF-16"):
            read_chunk(string_pool_entries([entry]), StringBlock)

    def test_string_past_pool_end_is_truncated(self) -> None:
        entry = pack('<H', 50) + "ab".encode('utf-16-le')
        with pytest.raises(TruncatedInputError):
            read_chunk(string_pool_entries([entry]), StringBlock)

    def test_huge_string_count_is_truncated(self) -> None:
        header = pack('<5L', 0x10000000, 0, UTF8_FLAG, 28, 0)
        data = chunk(RES_STRING_POOL_TYPE, header, b"\x00" * 4)
        with pytest.raises(TruncatedInputError, match="string offset table"):
            read_chunk(data, StringBlock)

    def test_strings_offset_outside_chunk(self) -> None:
        header = pack('<5L', 1, 0, 0, 400, 0)
        data = chunk(RES_STRING_POOL_TYPE, header, pack('<L', 0) + encode_entry("a", False))
        with pytest.raises(InvalidFormatError, match="outside of the string pool"):
            read_chunk(data, StringBlock)

    def test_short_pool_header_is_invalid(self) -> None:
        data = chunk(RES_STRING_POOL_TYPE, pack('<3L', 0, 0, 0))
        with pytest.raises(InvalidFormatError, match="String chunk header size"):
            read_chunk(data, StringBlock)
