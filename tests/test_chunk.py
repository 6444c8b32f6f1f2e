"""Tests for chunk header reading and bounds checked field access."""

from struct import pack

import pytest

from axmldecoder.chunk import ARSCHeader, XmlNodeHeader, open_buffer, read_struct, read_u32
from axmldecoder.errors import InvalidFormatError, TruncatedInputError
from axmldecoder.internal_types import (
    RES_STRING_POOL_TYPE,
    RES_XML_START_ELEMENT_TYPE,
    RES_XML_TYPE,
)


class TestReadStruct:
    """Little-endian reads that never run past the buffer."""

    def test_reads_little_endian(self) -> None:
        buff = open_buffer(b"\x01\x00\x00\x00\x02\x00")
        assert read_u32(buff) == 1
        assert read_struct(buff, '<H') == (2,)

    def test_short_read_raises_truncated(self) -> None:
        buff = open_buffer(b"\x01\x00")
        with pytest.raises(TruncatedInputError, match="only 2 bytes left"):
            read_u32(buff, "line number")


class TestARSCHeader:
    """ResChunk_header parsing and validation."""

    def test_reads_header_fields(self) -> None:
        buff = open_buffer(pack('<HHL', RES_XML_TYPE, 8, 16) + b"\x00" * 8)
        header = ARSCHeader(buff)

        assert header.get_type() == RES_XML_TYPE
        assert header.get_type_name() == "RES_XML_TYPE"
        assert header.get_header_size() == 8
        assert header.get_size() == 16
        assert header.get_data_start() == 8
        assert header.get_end() == 16

    def test_header_at_offset(self) -> None:
        buff = open_buffer(b"\xff" * 4 + pack('<HHL', RES_STRING_POOL_TYPE, 28, 28) + b"\x00" * 20)
        buff.seek(4)
        header = ARSCHeader(buff)

        assert header.start == 4
        assert header.get_end() == 32

    def test_unexpected_type_is_invalid(self) -> None:
        buff = open_buffer(pack('<HHL', 0x0002, 8, 8))
        with pytest.raises(InvalidFormatError, match="expected type"):
            ARSCHeader(buff, expected_type=RES_XML_TYPE)

    def test_header_size_below_minimum_is_invalid(self) -> None:
        buff = open_buffer(pack('<HHL', RES_XML_TYPE, 4, 8))
        with pytest.raises(InvalidFormatError, match="header size"):
            ARSCHeader(buff)

    def test_size_smaller_than_header_is_invalid(self) -> None:
        buff = open_buffer(pack('<HHL', RES_XML_TYPE, 16, 8) + b"\x00" * 8)
        with pytest.raises(InvalidFormatError, match="smaller than header size"):
            ARSCHeader(buff)

    def test_chunk_past_buffer_end_is_truncated(self) -> None:
        buff = open_buffer(pack('<HHL', RES_XML_TYPE, 8, 100))
        with pytest.raises(TruncatedInputError):
            ARSCHeader(buff)

    def test_chunk_past_given_end_is_truncated(self) -> None:
        buff = open_buffer(pack('<HHL', RES_XML_TYPE, 8, 16) + b"\x00" * 8)
        with pytest.raises(TruncatedInputError):
            ARSCHeader(buff, end=12)

    def test_partial_header_is_truncated(self) -> None:
        buff = open_buffer(b"\x03\x00\x08")
        with pytest.raises(TruncatedInputError):
            ARSCHeader(buff)


class TestXmlNodeHeader:
    """ResXMLTree_node parsing."""

    def test_reads_line_and_comment(self) -> None:
        data = pack('<HHLLL', RES_XML_START_ELEMENT_TYPE, 16, 24, 7, 0xFFFFFFFF) + b"\x00" * 8
        buff = open_buffer(data)
        node_header = XmlNodeHeader(buff, ARSCHeader(buff))

        assert node_header.line_number == 7
        assert node_header.comment_index == 0xFFFFFFFF
        assert buff.tell() == 16

    def test_skips_extended_header(self) -> None:
        data = pack('<HHLLL', RES_XML_START_ELEMENT_TYPE, 20, 24, 1, 0xFFFFFFFF) + b"\x00" * 8
        buff = open_buffer(data)
        XmlNodeHeader(buff, ARSCHeader(buff))

        assert buff.tell() == 20

    def test_short_node_header_is_invalid(self) -> None:
        data = pack('<HHL', RES_XML_START_ELEMENT_TYPE, 8, 16) + b"\x00" * 8
        buff = open_buffer(data)
        with pytest.raises(InvalidFormatError, match="needs at least 16"):
            XmlNodeHeader(buff, ARSCHeader(buff))
