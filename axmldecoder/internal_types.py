# Constants for AXML files
# see http://aospxref.com/android-13.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#233

RES_NULL_TYPE = 0x0000
RES_STRING_POOL_TYPE = 0x0001
RES_TABLE_TYPE = 0x0002
RES_XML_TYPE = 0x0003

RES_XML_START_NAMESPACE_TYPE = 0x0100
# Numerically RES_XML_START_NAMESPACE_TYPE + 1, kept as the platform defines it
RES_XML_END_NAMESPACE_TYPE = 0x0101
RES_XML_START_ELEMENT_TYPE = 0x0102
RES_XML_END_ELEMENT_TYPE = 0x0103
RES_XML_CDATA_TYPE = 0x0104
RES_XML_LAST_CHUNK_TYPE = 0x017F

RES_XML_RESOURCE_MAP_TYPE = 0x0180

CHUNK_TYPE_NAMES = {
    RES_NULL_TYPE: "RES_NULL_TYPE",
    RES_STRING_POOL_TYPE: "RES_STRING_POOL_TYPE",
    RES_TABLE_TYPE: "RES_TABLE_TYPE",
    RES_XML_TYPE: "RES_XML_TYPE",
    RES_XML_START_NAMESPACE_TYPE: "RES_XML_START_NAMESPACE_TYPE",
    RES_XML_END_NAMESPACE_TYPE: "RES_XML_END_NAMESPACE_TYPE",
    RES_XML_START_ELEMENT_TYPE: "RES_XML_START_ELEMENT_TYPE",
    RES_XML_END_ELEMENT_TYPE: "RES_XML_END_ELEMENT_TYPE",
    RES_XML_CDATA_TYPE: "RES_XML_CDATA_TYPE",
    RES_XML_LAST_CHUNK_TYPE: "RES_XML_LAST_CHUNK_TYPE",
    RES_XML_RESOURCE_MAP_TYPE: "RES_XML_RESOURCE_MAP_TYPE",
}

# String pool flag for UTF-8 entries
UTF8_FLAG = 1 << 8

# String pool index meaning "no string"
NO_ENTRY = 0xFFFFFFFF

# Header sizes as written by aapt/aapt2
CHUNK_HEADER_SIZE = 2 + 2 + 4
STRING_POOL_HEADER_SIZE = 0x1C
XML_NODE_HEADER_SIZE = 0x10
ATTRIBUTE_SIZE = 4 + 4 + 4 + 8

# Res_value data types
TYPE_NULL = 0x00
TYPE_REFERENCE = 0x01
TYPE_ATTRIBUTE = 0x02
TYPE_STRING = 0x03
TYPE_FLOAT = 0x04
TYPE_DIMENSION = 0x05
TYPE_FRACTION = 0x06
TYPE_DYNAMIC_REFERENCE = 0x07
TYPE_DYNAMIC_ATTRIBUTE = 0x08
TYPE_INT_DEC = 0x10
TYPE_INT_HEX = 0x11
TYPE_INT_BOOLEAN = 0x12
TYPE_INT_COLOR_ARGB8 = 0x1C
TYPE_INT_COLOR_RGB8 = 0x1D
TYPE_INT_COLOR_ARGB4 = 0x1E
TYPE_INT_COLOR_RGB4 = 0x1F

# Names used for values which are not rendered literally
TYPE_TABLE = {
    TYPE_NULL: "Null",
    TYPE_REFERENCE: "Reference",
    TYPE_ATTRIBUTE: "Attribute",
    TYPE_STRING: "String",
    TYPE_FLOAT: "Float",
    TYPE_DIMENSION: "Dimension",
    TYPE_FRACTION: "Fraction",
    TYPE_DYNAMIC_REFERENCE: "DynamicReference",
    TYPE_DYNAMIC_ATTRIBUTE: "DynamicAttribute",
    TYPE_INT_DEC: "Dec",
    TYPE_INT_HEX: "Hex",
    TYPE_INT_BOOLEAN: "Boolean",
    TYPE_INT_COLOR_ARGB8: "ColorArgb8",
    TYPE_INT_COLOR_RGB8: "ColorRgb8",
    TYPE_INT_COLOR_ARGB4: "ColorArgb4",
    TYPE_INT_COLOR_RGB4: "ColorRgb4",
}

ANDROID_NAMESPACE = "http://schemas.android.com/apk/res/android"
