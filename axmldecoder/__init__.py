"""Decoder for the binary XML format used by Android.

Only what is needed to read a compiled `AndroidManifest.xml` is implemented;
resource references are not resolved, so no `resources.arsc` is required.

    from axmldecoder import decode

    with open("AndroidManifest.xml", "rb") as fp:
        document = decode(fp.read())
    package = document.get_root().attributes["package"]
"""

from loguru import logger

from .axml_parse import AXMLParser, AXMLTreeBuilder, decode
from .document import Document, Element, Node, Text
from .errors import (
    IncompleteDocumentError,
    InvalidEncodingError,
    InvalidFormatError,
    MissingRequiredChunkError,
    NamespaceNotFoundError,
    ResParserError,
    StringNotFoundError,
    TruncatedInputError,
    UnsupportedFeatureError,
)
from .printer import AXMLPrinter

__version__ = "0.1.0"

# Library code stays silent unless the application enables it
logger.disable("axmldecoder")

__all__ = [
    "AXMLParser",
    "AXMLPrinter",
    "AXMLTreeBuilder",
    "Document",
    "Element",
    "IncompleteDocumentError",
    "InvalidEncodingError",
    "InvalidFormatError",
    "MissingRequiredChunkError",
    "NamespaceNotFoundError",
    "Node",
    "ResParserError",
    "StringNotFoundError",
    "Text",
    "TruncatedInputError",
    "UnsupportedFeatureError",
    "decode",
]
