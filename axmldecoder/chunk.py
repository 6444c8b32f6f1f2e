import io
from struct import calcsize, unpack
from typing import BinaryIO, Tuple, Union

from loguru import logger

from .errors import InvalidFormatError, TruncatedInputError
from .internal_types import CHUNK_HEADER_SIZE, CHUNK_TYPE_NAMES, XML_NODE_HEADER_SIZE


def open_buffer(raw_buff: bytes) -> io.BufferedReader:
    """
    Wrap raw bytes into the seekable reader used by all chunk classes.
    """
    return io.BufferedReader(io.BytesIO(raw_buff))


def buffer_size(buff: BinaryIO) -> int:
    return buff.raw.getbuffer().nbytes


def remaining(buff: BinaryIO) -> int:
    return buffer_size(buff) - buff.tell()


def read_struct(buff: BinaryIO, fmt: str, what: str = "field") -> Tuple[int, ...]:
    """
    Read and unpack `fmt` at the current position.

    :raises TruncatedInputError: if fewer bytes are left than `fmt` needs
    :param buff: the buffer set to the position of the field
    :param fmt: a little-endian `struct` format
    :param what: name of the field, only used in the error message
    """
    offset = buff.tell()
    size = calcsize(fmt)
    data = buff.read(size)
    if len(data) != size:
        raise TruncatedInputError(
            "Can not read {} ({} bytes) at offset {}: only {} bytes left".format(
                what, size, offset, len(data)
            )
        )
    return unpack(fmt, data)


def read_u32(buff: BinaryIO, what: str = "u32") -> int:
    return read_struct(buff, '<L', what)[0]


def check_available(buff: BinaryIO, nbytes: int, end: int, what: str) -> None:
    """
    Make sure `nbytes` can be read before `end` without allocating anything.
    Every count taken from the file goes through here first.
    """
    if buff.tell() + nbytes > end:
        raise TruncatedInputError(
            "{} needs {} bytes at offset {}, but the chunk ends at {}".format(
                what, nbytes, buff.tell(), end
            )
        )


class ARSCHeader:
    """
    Object which contains a Resource Chunk header.
    This is an implementation of the `ResChunk_header`.

    The header is checked for internal consistency (`size >= header_size >= 8`)
    and, when `end` is given, for fitting into the enclosing chunk.

    The parameter `expected_type` can be used to immediately check the header
    for the type. This is useful if you know what type of chunk must follow.

    See http://androidxref.com/9.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#196
    """

    # This is the minimal size such a header must have. There might be other header data too!
    SIZE = CHUNK_HEADER_SIZE

    def __init__(
        self,
        buff: BinaryIO,
        expected_type: Union[int, None] = None,
        end: Union[int, None] = None,
    ) -> None:
        """
        :raises TruncatedInputError: if the header or the declared chunk does not fit
        :raises InvalidFormatError: if the header is malformed or of the wrong type
        :param buff: the buffer set to the position where the header starts.
        :param int expected_type: the type of the header which is expected.
        :param int end: offset the chunk must not extend past, defaults to the buffer size
        """
        self.start = buff.tell()
        self._type, self._header_size, self._size = read_struct(
            buff, '<HHL', "chunk header"
        )
        logger.debug(f"ARSCHeader init: {self._type}, {self._header_size} {self._size}")

        if expected_type is not None and self._type != expected_type:
            raise InvalidFormatError(
                "Header type is not equal the expected type: Got 0x{:04x}, wanted 0x{:04x}".format(
                    self._type, expected_type
                )
            )

        if self._header_size < self.SIZE:
            raise InvalidFormatError(
                "declared header size is smaller than required size of {}! Offset={}".format(
                    self.SIZE, self.start
                )
            )
        if self._size < self._header_size:
            raise InvalidFormatError(
                "declared chunk size ({}) is smaller than header size ({})! Offset={}".format(
                    self._size, self._header_size, self.start
                )
            )

        if end is None:
            end = buffer_size(buff)
        if self.get_end() > end:
            raise TruncatedInputError(
                "chunk 0x{:04x} at offset {} declares {} bytes, but only {} are available".format(
                    self._type, self.start, self._size, end - self.start
                )
            )

    def get_type(self) -> int:
        """
        Type identifier for this chunk
        """
        return self._type

    def get_type_name(self) -> str:
        return CHUNK_TYPE_NAMES.get(self._type, "0x{:04x}".format(self._type))

    def get_header_size(self) -> int:
        """
        Size of the chunk header (in bytes).  Adding this value to
        the address of the chunk allows you to find its associated data
        (if any).
        """
        return self._header_size

    def get_size(self) -> int:
        """
        Total size of this chunk (in bytes), header included.
        """
        return self._size

    def get_data_start(self) -> int:
        return self.start + self._header_size

    def get_end(self) -> int:
        """
        Get the absolute offset inside the file, where the chunk ends.
        This is equal to `ARSCHeader.start + ARSCHeader.get_size()`.
        """
        return self.start + self._size

    def __repr__(self):
        return "<ARSCHeader idx='0x{:08x}' type='{}' header_size='{}' size='{}'>".format(
            self.start, self.get_type_name(), self._header_size, self._size
        )


class XmlNodeHeader:
    """
    `ResXMLTree_node`: every XML node chunk starts with the chunk header,
    followed by the line number in the source file and a comment reference.
    """

    def __init__(self, buff: BinaryIO, header: ARSCHeader) -> None:
        if header.get_header_size() < XML_NODE_HEADER_SIZE:
            raise InvalidFormatError(
                "XML node chunk header size is {}, needs at least {}! Offset={}".format(
                    header.get_header_size(), XML_NODE_HEADER_SIZE, header.start
                )
            )
        self.chunk_header = header
        # Line Number of the source file, only used as meta information
        self.line_number, self.comment_index = read_struct(buff, '<LL', "XML node header")
        logger.debug(f"line_number: {self.line_number}, comment_index: {self.comment_index}")
        # Skip anything aapt may have appended to the node header
        buff.seek(header.get_data_start())

    def __repr__(self):
        return "<XmlNodeHeader type='{}' line={}>".format(
            self.chunk_header.get_type_name(), self.line_number
        )
