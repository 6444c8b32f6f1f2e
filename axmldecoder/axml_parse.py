# Based on androguard's code https://androguard.readthedocs.io/en/latest/intro/axml.html

from dataclasses import dataclass
from struct import unpack
from typing import Dict, Iterator, List, Optional, Tuple, Union

from loguru import logger

from .chunk import (
    ARSCHeader,
    XmlNodeHeader,
    buffer_size,
    check_available,
    open_buffer,
    read_struct,
)
from .document import Document, ElementBuilder, Text
from .errors import (
    IncompleteDocumentError,
    InvalidFormatError,
    MissingRequiredChunkError,
    NamespaceNotFoundError,
    UnsupportedFeatureError,
)
from .internal_types import (
    ATTRIBUTE_SIZE,
    NO_ENTRY,
    RES_STRING_POOL_TYPE,
    RES_XML_CDATA_TYPE,
    RES_XML_END_ELEMENT_TYPE,
    RES_XML_END_NAMESPACE_TYPE,
    RES_XML_RESOURCE_MAP_TYPE,
    RES_XML_START_ELEMENT_TYPE,
    RES_XML_START_NAMESPACE_TYPE,
    RES_XML_TYPE,
    TYPE_NULL,
)
from .resource_value import ResourceValue
from .stringblock import StringBlock

# Size of ResXMLTree_attrExt, the fixed part of a START_ELEMENT chunk
ATTR_EXT_SIZE = 4 + 4 + 2 * 6


class ResourceMap:
    """
    `RES_XML_RESOURCE_MAP_TYPE`: resource ids of the attribute names, indexed
    like the string pool. Kept for reference only, attribute names are taken
    from the string pool.
    """

    def __init__(self, buff, header: ARSCHeader) -> None:
        self.header = header
        count = (header.get_size() - header.get_header_size()) // 4
        buff.seek(header.get_data_start())
        check_available(buff, count * 4, header.get_end(), "resource map")
        self.resource_ids: List[int] = list(unpack('<{}L'.format(count), buff.read(count * 4)))
        logger.debug(f"resource_ids: {len(self.resource_ids)} entries")

    def __len__(self):
        return len(self.resource_ids)

    def __repr__(self):
        return "<ResourceMap #ids={}>".format(len(self.resource_ids))


@dataclass(frozen=True)
class StartNamespace:
    prefix: int
    uri: int
    node_header: Optional[XmlNodeHeader] = None


@dataclass(frozen=True)
class EndNamespace:
    prefix: int
    uri: int
    node_header: Optional[XmlNodeHeader] = None


@dataclass(frozen=True)
class Attribute:
    """
    One attribute of a START_ELEMENT chunk. `raw_value` is the original
    string of the value, `typed_value` is what gets resolved.
    """

    ns: int
    name: int
    raw_value: int
    typed_value: ResourceValue


@dataclass(frozen=True)
class StartElement:
    ns: int
    name: int
    attributes: Tuple[Attribute, ...] = ()
    attribute_start: int = ATTR_EXT_SIZE
    attribute_size: int = ATTRIBUTE_SIZE
    id_index: int = 0
    class_index: int = 0
    style_index: int = 0
    node_header: Optional[XmlNodeHeader] = None

    @property
    def attribute_count(self) -> int:
        return len(self.attributes)


@dataclass(frozen=True)
class EndElement:
    ns: int
    name: int
    node_header: Optional[XmlNodeHeader] = None


@dataclass(frozen=True)
class CData:
    data: int
    typed_value: ResourceValue
    node_header: Optional[XmlNodeHeader] = None


XmlEvent = Union[StartNamespace, EndNamespace, StartElement, EndElement, CData]
Chunk = Union[StringBlock, ResourceMap, XmlEvent]


class AXMLParser:
    """
    `AXMLParser` reads through all chunks in the AXML file and yields them
    one by one: the string pool, the resource map and the XML node events.
    Nothing is resolved here, node events only carry string pool indices.

    An AXML file is a file which contains multiple chunks of data, defined
    by the `ResChunk_header`. The first header must be of type `RES_XML_TYPE`
    and its size bounds the document: a file will usually start with `0x03000800`.

    Chunks are read lazily, a consumer which stops iterating never causes
    the remaining bytes to be read.

    See http://androidxref.com/9.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#563
    """

    def __init__(self, raw_buff: bytes) -> None:
        """
        :raises InvalidFormatError: if the file does not start with a `RES_XML_TYPE` chunk
        :raises TruncatedInputError: if the file is shorter than its header declares
        """
        logger.debug("AXMLParser")

        self.buff = open_buffer(raw_buff)
        self.buff_size = buffer_size(self.buff)
        logger.debug(f"buff_size: {self.buff_size}")

        self.axml_header = ARSCHeader(self.buff, expected_type=RES_XML_TYPE)
        logger.debug("FIRST HEADER {}".format(self.axml_header))

        self.filesize = self.axml_header.get_size()
        if self.filesize < self.buff_size:
            # The file can still be parsed up to the point where the chunk should end.
            logger.warning(
                "Declared filesize ({}) is smaller than total file size ({}). "
                "Was something appended to the file? Ignoring the rest.".format(
                    self.filesize, self.buff_size
                )
            )

        self.string_pool: Optional[StringBlock] = None
        self.resource_ids: List[int] = []

        self._readers = {
            RES_STRING_POOL_TYPE: self._read_string_pool,
            RES_XML_RESOURCE_MAP_TYPE: self._read_resource_map,
            RES_XML_START_NAMESPACE_TYPE: self._read_start_namespace,
            RES_XML_END_NAMESPACE_TYPE: self._read_end_namespace,
            RES_XML_START_ELEMENT_TYPE: self._read_start_element,
            RES_XML_END_ELEMENT_TYPE: self._read_end_element,
            RES_XML_CDATA_TYPE: self._read_cdata,
        }

    def __iter__(self) -> Iterator[Chunk]:
        self.buff.seek(self.axml_header.get_data_start())
        # Stop at the declared filesize, running out of bytes at a chunk boundary is fine
        while self.buff.tell() < self.filesize:
            h = ARSCHeader(self.buff, end=self.filesize)
            logger.debug("NEXT HEADER {}".format(h))

            reader = self._readers.get(h.get_type())
            if reader is None:
                raise InvalidFormatError(
                    "Not a XML resource chunk type: 0x{:04x} at offset {}".format(
                        h.get_type(), h.start
                    )
                )
            chunk = reader(h)

            if self.buff.tell() > h.get_end():
                raise InvalidFormatError(
                    "Chunk {} overruns its declared size by {} bytes".format(
                        h, self.buff.tell() - h.get_end()
                    )
                )
            # aapt may pad chunks, always continue at the declared end
            self.buff.seek(h.get_end())
            yield chunk

    def _read_string_pool(self, h: ARSCHeader) -> StringBlock:
        self.string_pool = StringBlock(self.buff, h)
        logger.debug("STRING_POOL {}".format(self.string_pool))
        return self.string_pool

    def _read_resource_map(self, h: ARSCHeader) -> ResourceMap:
        logger.debug("AXML contains a RESOURCE MAP")
        # Should be aligned to 4 bytes.
        if (h.get_size() - h.get_header_size()) % 4 != 0:
            logger.warning("Size of chunk XML_RESOURCE_MAP is not aligned by four bytes.")
        resource_map = ResourceMap(self.buff, h)
        self.resource_ids = resource_map.resource_ids
        return resource_map

    def _read_start_namespace(self, h: ARSCHeader) -> StartNamespace:
        node_header = XmlNodeHeader(self.buff, h)
        prefix, uri = read_struct(self.buff, '<LL', "namespace")
        logger.debug(f"START_NAMESPACE prefix: {prefix}, uri: {uri}")
        return StartNamespace(prefix, uri, node_header)

    def _read_end_namespace(self, h: ARSCHeader) -> EndNamespace:
        node_header = XmlNodeHeader(self.buff, h)
        prefix, uri = read_struct(self.buff, '<LL', "namespace")
        logger.debug(f"END_NAMESPACE prefix: {prefix}, uri: {uri}")
        return EndNamespace(prefix, uri, node_header)

    def _read_start_element(self, h: ARSCHeader) -> StartElement:
        # The TAG consists of some fields:
        # * (chunk_size, line_number, comment_index - we read before)
        # * namespace_uri
        # * name
        # * attribute start and size
        # * attribute count
        # * id, class and style attribute index
        # After that, there is a list of attributes, 20 bytes each
        node_header = XmlNodeHeader(self.buff, h)
        payload_start = self.buff.tell()
        (
            ns,
            name,
            at_start,
            at_size,
            attribute_count,
            id_index,
            class_index,
            style_index,
        ) = read_struct(self.buff, '<LLHHHHHH', "element")
        logger.debug(
            f"START_ELEMENT ns: {ns}, name: {name}, at_start: {at_start}, "
            f"at_size: {at_size}, attribute_count: {attribute_count}"
        )

        attributes = []
        if attribute_count:
            if at_size < ATTRIBUTE_SIZE or at_start < ATTR_EXT_SIZE:
                raise InvalidFormatError(
                    "Invalid attribute layout: start={}, size={}! Offset={}".format(
                        at_start, at_size, h.start
                    )
                )
            attr_base = payload_start + at_start
            self.buff.seek(attr_base)
            check_available(self.buff, attribute_count * at_size, h.get_end(), "attributes")
            for i in range(attribute_count):
                # Each Attribute contains:
                # * Namespace URI (String ID)
                # * Name (String ID)
                # * Value (String ID)
                # * Res_value
                self.buff.seek(attr_base + i * at_size)
                attr_ns, attr_name, raw_value = read_struct(self.buff, '<3L', "attribute")
                typed_value = ResourceValue.read(self.buff)
                logger.debug(f"attribute[{i}]: ns={attr_ns} name={attr_name} {typed_value}")
                attributes.append(Attribute(attr_ns, attr_name, raw_value, typed_value))

        return StartElement(
            ns,
            name,
            tuple(attributes),
            at_start,
            at_size,
            id_index,
            class_index,
            style_index,
            node_header,
        )

    def _read_end_element(self, h: ARSCHeader) -> EndElement:
        node_header = XmlNodeHeader(self.buff, h)
        ns, name = read_struct(self.buff, '<LL', "end element")
        logger.debug(f"END_ELEMENT ns: {ns}, name: {name}")
        return EndElement(ns, name, node_header)

    def _read_cdata(self, h: ARSCHeader) -> CData:
        # The CDATA field is like an attribute.
        # It contains an index into the String pool
        # as well as a typed value.
        node_header = XmlNodeHeader(self.buff, h)
        (data,) = read_struct(self.buff, '<L', "cdata")
        typed_value = ResourceValue.read(self.buff)
        logger.debug(f"found a CDATA Chunk: index={data}, {typed_value}")
        return CData(data, typed_value, node_header)


class AXMLTreeBuilder:
    """
    Assembles a `Document` from the chunks of an `AXMLParser`.

    Elements under construction are kept on an explicit stack; when an
    element is closed it is handed to its parent. Closing the outermost
    element finishes the document.

    The namespace table (URI -> prefix) belongs to the builder, so it only
    lives as long as one decode.
    """

    SCANNING = "SCANNING"
    BUILDING = "BUILDING"
    DONE = "DONE"

    def __init__(self) -> None:
        self.state = self.SCANNING
        self.string_pool: Optional[StringBlock] = None
        self.resource_ids: Optional[List[int]] = None
        self.namespaces: Dict[str, str] = {}
        self._stack: List[ElementBuilder] = []
        self._root = None

    def feed(self, chunk: Chunk) -> bool:
        """
        Process one chunk.

        :returns: True once the root element has been closed
        """
        if self.state == self.DONE:
            raise InvalidFormatError("Document is already complete, got {!r}".format(chunk))

        if isinstance(chunk, StringBlock):
            if self.string_pool is not None:
                raise InvalidFormatError("Found more than one string pool chunk")
            self.string_pool = chunk
            return False

        if isinstance(chunk, ResourceMap):
            if self.resource_ids is not None:
                raise InvalidFormatError("Found more than one resource map chunk")
            self.resource_ids = chunk.resource_ids
            return False

        self._check_required_chunks()

        if isinstance(chunk, StartNamespace):
            self._start_namespace(chunk)
        elif isinstance(chunk, EndNamespace):
            logger.debug("End of namespace mapping {}".format(chunk))
        elif isinstance(chunk, StartElement):
            self._start_element(chunk)
        elif isinstance(chunk, EndElement):
            self._end_element(chunk)
        elif isinstance(chunk, CData):
            self._cdata(chunk)
        else:
            raise InvalidFormatError("Unknown chunk {!r}".format(chunk))

        return self.state == self.DONE

    def close(self) -> Document:
        """
        Finish the decode.

        :raises MissingRequiredChunkError: if no string pool or resource map was seen
        :raises IncompleteDocumentError: if the root element was never closed
        """
        self._check_required_chunks()
        if self.state != self.DONE:
            raise IncompleteDocumentError(
                "Input ended with {} unclosed element(s)".format(len(self._stack))
                if self._stack
                else "Input contains no element"
            )
        return Document(self._root, self.namespaces)

    def _check_required_chunks(self) -> None:
        if self.string_pool is None:
            raise MissingRequiredChunkError("StringPool")
        if self.resource_ids is None:
            raise MissingRequiredChunkError("ResourceMap")

    def _require_string(self, idx: int, what: str) -> str:
        value = self.string_pool.get(idx)
        if value is None:
            raise InvalidFormatError("{} does not reference a string".format(what))
        return value

    def _start_namespace(self, e: StartNamespace) -> None:
        s_uri = self._require_string(e.uri, "Namespace URI")
        s_prefix = self._require_string(e.prefix, "Namespace prefix")

        logger.debug(
            "Start of Namespace mapping: prefix {}: '{}' --> uri {}: '{}'".format(
                e.prefix, s_prefix, e.uri, s_uri
            )
        )
        if s_uri == '':
            logger.warning(
                "Namespace prefix '{}' resolves to empty URI. "
                "This might be a packer.".format(s_prefix)
            )
        if s_uri in self.namespaces and self.namespaces[s_uri] != s_prefix:
            logger.warning(
                "Namespace '{}' was bound to '{}', rebinding to '{}'".format(
                    s_uri, self.namespaces[s_uri], s_prefix
                )
            )
        self.namespaces[s_uri] = s_prefix

    def _start_element(self, e: StartElement) -> None:
        if self.string_pool.get(e.ns) is not None:
            raise UnsupportedFeatureError(
                "Namespaced elements are not supported: '{}'".format(self.string_pool.get(e.ns))
            )
        tag = self._require_string(e.name, "Element name")

        attributes: Dict[str, str] = {}
        for attr in e.attributes:
            uri = self.string_pool.get(attr.ns)
            name = self._require_string(attr.name, "Attribute name")
            value = attr.typed_value.resolve(self.string_pool)

            if uri is not None:
                if uri not in self.namespaces:
                    raise NamespaceNotFoundError(uri)
                name = "{}:{}".format(self.namespaces[uri], name)

            logger.debug("found an attribute: {}='{}'".format(name, value))
            if name in attributes:
                logger.warning("Duplicate attribute '{}'! Will overwrite!".format(name))
            attributes[name] = value

        logger.debug("START_TAG: {} (depth={})".format(tag, len(self._stack)))
        self._stack.append(ElementBuilder(tag, attributes))
        self.state = self.BUILDING

    def _end_element(self, e: EndElement) -> None:
        if not self._stack:
            raise InvalidFormatError("Too many END_TAG! No element is open.")

        element = self._stack.pop().build()
        logger.debug("END_TAG: {}".format(element.tag))
        if not self._stack:
            self._root = element
            self.state = self.DONE
        else:
            self._stack[-1].append(element)

    def _cdata(self, e: CData) -> None:
        if not self._stack:
            raise InvalidFormatError("Text outside of any element")

        # aapt leaves the typed value empty for text, the string is in `data` then
        if e.typed_value.data_type == TYPE_NULL and e.data != NO_ENTRY:
            text = self._require_string(e.data, "Text")
        else:
            text = e.typed_value.resolve(self.string_pool)
        logger.debug("TEXT for {}: '{}'".format(self._stack[-1].tag, text))
        self._stack[-1].append(Text(text))


def decode(raw_buff: bytes) -> Document:
    """
    Decode a binary AXML document (e.g. a compiled `AndroidManifest.xml`).

    Decoding stops as soon as the root element is closed, anything after it
    is never looked at.

    :param raw_buff: the complete file contents
    :raises ResParserError: (or one of its subclasses) if the file can not be decoded
    :returns: the decoded `Document`, its root is always present
    """
    parser = AXMLParser(raw_buff)
    builder = AXMLTreeBuilder()
    for chunk in parser:
        if builder.feed(chunk):
            break
    return builder.close()
