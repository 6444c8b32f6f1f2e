from typing import BinaryIO

from loguru import logger

from .chunk import read_struct
from .errors import InvalidFormatError, UnsupportedFeatureError
from .internal_types import (
    TYPE_INT_BOOLEAN,
    TYPE_INT_DEC,
    TYPE_INT_HEX,
    TYPE_STRING,
    TYPE_TABLE,
)
from .stringblock import StringBlock


class ResourceValue:
    """
    `Res_value`: a typed value of an attribute or a text node.

    Layout (8 bytes):
    uint16_t size
    uint8_t res0 -> always zero
    uint8_t dataType
    uint32_t data
    """

    SIZE = 8

    def __init__(self, size: int, res0: int, data_type: int, data: int) -> None:
        self.size = size
        self.res0 = res0
        self.data_type = data_type
        self.data = data

    @classmethod
    def read(cls, buff: BinaryIO) -> "ResourceValue":
        return cls(*read_struct(buff, '<HBBL', "Res_value"))

    def get_type_name(self) -> str:
        return TYPE_TABLE.get(self.data_type, "0x{:02X}".format(self.data_type))

    def resolve(self, string_pool: StringBlock) -> str:
        """
        Format the value as text.

        Strings are looked up in the pool, integers and booleans are written
        literally. Everything else is rendered as `"<TypeName>/<data>"` since
        resolving it needs the resource table.

        Note that hex values are written as `0x` followed by *decimal* digits.

        :raises UnsupportedFeatureError: for unknown data types
        :raises InvalidFormatError: for a string value without a string
        """
        if self.data_type not in TYPE_TABLE:
            raise UnsupportedFeatureError(
                "Unknown resource value type 0x{:02X} (data={})".format(self.data_type, self.data)
            )

        if self.data_type == TYPE_STRING:
            value = string_pool.get(self.data)
            if value is None:
                raise InvalidFormatError("String value does not reference a string")
            return value

        if self.data_type == TYPE_INT_DEC:
            return str(self.data)

        if self.data_type == TYPE_INT_HEX:
            return "0x{}".format(self.data)

        if self.data_type == TYPE_INT_BOOLEAN:
            if self.data == 0:
                return "false"
            return "true"

        logger.debug(f"Unresolved value of type {self.get_type_name()}: {self.data}")
        return "{}/{}".format(self.get_type_name(), self.data)

    def __repr__(self):
        return "<ResourceValue type='{}' data={}>".format(self.get_type_name(), self.data)
