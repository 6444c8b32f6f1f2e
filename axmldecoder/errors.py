class ResParserError(Exception):
    """Base exception for everything that can go wrong while decoding AXML"""

    pass


class InvalidFormatError(ResParserError):
    """The bytes do not describe a valid AXML document"""

    pass


class TruncatedInputError(ResParserError):
    """The buffer is shorter than a field or chunk demands"""

    pass


class MissingRequiredChunkError(ResParserError):
    """No string pool or no resource map was found before the nodes"""

    def __init__(self, chunk: str) -> None:
        super().__init__("missing {} chunk".format(chunk))
        self.chunk = chunk


class StringNotFoundError(ResParserError):
    """A string pool index points past the end of the pool"""

    def __init__(self, index: int) -> None:
        super().__init__("StringPool missing index: {}".format(index))
        self.index = index


class NamespaceNotFoundError(ResParserError):
    """An attribute refers to a namespace URI which was never declared"""

    def __init__(self, uri: str) -> None:
        super().__init__("Namespace missing: {}".format(uri))
        self.uri = uri


class InvalidEncodingError(ResParserError):
    """A string pool entry is not valid UTF-8 or UTF-16"""

    pass


class UnsupportedFeatureError(ResParserError):
    """The document uses something this decoder deliberately does not handle"""

    pass


class IncompleteDocumentError(ResParserError):
    """The input ended before the root element was closed"""

    pass
