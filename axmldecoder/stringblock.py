from struct import unpack
from typing import BinaryIO, Iterator, List, Optional

from loguru import logger

from .chunk import ARSCHeader, check_available, read_struct
from .errors import (
    InvalidEncodingError,
    InvalidFormatError,
    StringNotFoundError,
    TruncatedInputError,
    UnsupportedFeatureError,
)
from .internal_types import NO_ENTRY, STRING_POOL_HEADER_SIZE, UTF8_FLAG


class StringBlock:
    """
    StringBlock is a CHUNK inside an AXML File: `ResStringPool_header`
    It contains all strings, which are used by referencing to ID's

    All strings are decoded once, when the chunk is read. Every other object
    refers to the `str` instances stored here.

    See http://androidxref.com/9.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#436
    """

    def __init__(self, buff: BinaryIO, header: ARSCHeader) -> None:
        """
        :raises UnsupportedFeatureError: for styled strings and strings longer than 0x7FFF
        :raises InvalidEncodingError: if a string can not be decoded
        :raises TruncatedInputError: if counts or offsets point outside of the chunk
        :param buff: buffer positioned right after the chunk header's first 8 bytes
        :param header: a instance of `ARSCHeader`
        """
        self.header = header
        if header.get_header_size() < STRING_POOL_HEADER_SIZE:
            raise InvalidFormatError(
                "String chunk header size is {}, needs at least {}! Offset={}".format(
                    header.get_header_size(), STRING_POOL_HEADER_SIZE, header.start
                )
            )

        (
            self.stringCount,
            self.styleCount,
            self.flags,
            # Both offsets are counted from the beginning of the chunk
            self.stringsOffset,
            self.stylesOffset,
        ) = read_struct(buff, '<5L', "string pool header")
        self.m_isUTF8 = (self.flags & UTF8_FLAG) != 0

        logger.debug(f"stringCount: {self.stringCount}")
        logger.debug(f"styleCount: {self.styleCount}")
        logger.debug(f"flags: {self.flags}")
        logger.debug(f"m_isUTF8: {self.m_isUTF8}")
        logger.debug(f"stringsOffset: {self.stringsOffset}")
        logger.debug(f"stylesOffset: {self.stylesOffset}")

        if self.styleCount != 0:
            raise UnsupportedFeatureError(
                "Styled strings are not supported, found {} styles".format(self.styleCount)
            )
        # Check if they supplied a stylesOffset even if the count is 0:
        if self.stylesOffset > 0:
            logger.info(
                "Styles Offset given, but styleCount is zero. "
                "This is not a problem but could indicate packers."
            )

        # Next, there is a list of offsets (4 byte each)
        buff.seek(header.get_data_start())
        check_available(buff, self.stringCount * 4, header.get_end(), "string offset table")
        self.m_stringOffsets = list(
            unpack('<{}L'.format(self.stringCount), buff.read(self.stringCount * 4))
        )

        self.m_charbuff = b""
        if self.stringCount > 0:
            data_start = header.start + self.stringsOffset
            if data_start < buff.tell() or data_start > header.get_end():
                raise InvalidFormatError(
                    "String data offset {} is outside of the string pool chunk at {}".format(
                        self.stringsOffset, header.start
                    )
                )
            size = header.get_end() - data_start
            if (size % 4) != 0:
                logger.warning("Size of strings is not aligned by four bytes.")
            buff.seek(data_start)
            self.m_charbuff = buff.read(size)

        decode = self._decode8 if self.m_isUTF8 else self._decode16
        self._strings: List[str] = [decode(offset) for offset in self.m_stringOffsets]

    def __repr__(self):
        return "<StringPool #strings={}, #styles={}, UTF8={}>".format(
            self.stringCount, self.styleCount, self.m_isUTF8
        )

    def __getitem__(self, idx: int) -> Optional[str]:
        return self.get(idx)

    def __len__(self):
        """
        Get the number of strings stored in this table
        """
        return len(self._strings)

    def __iter__(self) -> Iterator[str]:
        return iter(self._strings)

    def get(self, idx: int) -> Optional[str]:
        """
        Return the string at the index in the string table

        :param idx: index in the string table
        :raises StringNotFoundError: if the index is out of bounds
        :return: the string, or None if `idx` is the "no string" marker 0xFFFFFFFF
        """
        if idx == NO_ENTRY:
            return None
        if idx < 0 or idx >= len(self._strings):
            raise StringNotFoundError(idx)
        return self._strings[idx]

    def _read_length(self, offset: int, sizeof_char: int) -> int:
        """
        Read the character count in front of a string.

        Only the short form is supported: a set high bit announces a second
        length unit for strings longer than 0x7FFF, which is not handled.
        For UTF-8 the first byte is the UTF-16 length and is skipped.

        :param offset: offset into the string data section of the beginning of the string
        :param sizeof_char: number of bytes per char (1 = 8bit, 2 = 16bit)
        """
        fmt = '<2B' if sizeof_char == 1 else '<H'
        highbit = 0x80 << (8 * (sizeof_char - 1))
        raw = self.m_charbuff[offset : offset + 2]
        if len(raw) != 2:
            raise TruncatedInputError(
                "String length at offset={} is outside of the string pool".format(offset)
            )
        length = unpack(fmt, raw)[-1]
        if length & highbit:
            raise UnsupportedFeatureError(
                "Strings longer than 0x7FFF are not supported! At offset={}".format(offset)
            )
        return length

    def _string_bytes(self, offset: int, encoded_bytes: int, terminator: bytes) -> bytes:
        end = offset + encoded_bytes
        if len(self.m_charbuff) < end:
            raise TruncatedInputError(
                "String size: {} is exceeding string pool size {}".format(
                    end, len(self.m_charbuff)
                )
            )
        # aapt writes a terminator, but the length prefix is authoritative
        if self.m_charbuff[end : end + len(terminator)] != terminator:
            logger.warning("String is not null terminated! At offset={}".format(offset))
        return self.m_charbuff[offset:end]

    def _decode8(self, offset: int) -> str:
        """
        Decode an UTF-8 String at the given offset

        :param offset: offset of the string inside the data
        :return: the decoded string
        """
        encoded_bytes = self._read_length(offset, 1)
        data = self._string_bytes(offset + 2, encoded_bytes, b"\x00")
        try:
            return data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise InvalidEncodingError(
                "Invalid UTF-8 string at offset={}: {}".format(offset, e)
            ) from e

    def _decode16(self, offset: int) -> str:
        """
        Decode an UTF-16 String at the given offset

        :param offset: offset of the string inside the data
        :return: the decoded string
        """
        # The len is the string len in utf-16 units
        str_len = self._read_length(offset, 2)
        data = self._string_bytes(offset + 2, str_len * 2, b"\x00\x00")
        try:
            return data.decode('utf-16-le')
        except UnicodeDecodeError as e:
            raise InvalidEncodingError(
                "Invalid UTF-16 string at offset={}: {}".format(offset, e)
            ) from e
