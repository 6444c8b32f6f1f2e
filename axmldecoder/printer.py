import re
from typing import Dict, Iterable, Optional

from loguru import logger
from lxml import etree

from .document import Document, Element, Text
from .internal_types import ANDROID_NAMESPACE

KNOWN_NAMESPACES = {"android": ANDROID_NAMESPACE}


class AXMLPrinter:
    """
    Converter for a decoded `Document` into a lxml ElementTree, which can
    easily be converted into XML.

    Attribute keys of the form `prefix:name` are put into the namespace of
    `prefix` when it is known (`android` always is). A root tagged `manifest`
    always declares `xmlns:android`, as `aapt dump xmltree` output does.

    A Reference Implementation can be found at http://androidxref.com/9.0.0_r3/xref/frameworks/base/tools/aapt/XMLNode.cpp
    """

    __charrange = None
    __replacement = None

    def __init__(self, document: Document, namespaces: Optional[Dict[str, str]] = None) -> None:
        """
        :param document: the decoded document
        :param namespaces: additional prefix -> URI mappings for attribute keys,
            on top of the namespaces declared in the document
        """
        logger.debug("AXMLPrinter")

        self.namespaces = dict(KNOWN_NAMESPACES)
        self.namespaces.update(document.get_nsmap())
        if namespaces:
            self.namespaces.update(namespaces)

        root = document.get_root()
        if not isinstance(root, Element):
            raise TypeError("Document root must be an Element, got {!r}".format(root))

        nsmap = {
            prefix: self.namespaces[prefix]
            for prefix in sorted(self._used_prefixes(root))
            if prefix in self.namespaces
        }
        if root.tag == "manifest":
            nsmap.setdefault("android", ANDROID_NAMESPACE)

        self.root = etree.Element(self._fix_name(root.tag), nsmap=nsmap)
        self._fill(self.root, root)

    def _used_prefixes(self, root: Element) -> Iterable[str]:
        prefixes = set()
        stack = [root]
        while stack:
            elem = stack.pop()
            for key in elem.attributes:
                if ":" in key:
                    prefixes.add(key.split(":", 1)[0])
            stack.extend(elem.iter_elements())
        return prefixes

    def _fill(self, target: etree._Element, source: Element) -> None:
        # Walk with an explicit stack, manifests can be nested deeply
        stack = [(target, source)]
        while stack:
            target, source = stack.pop()
            for key, value in source.attributes.items():
                target.set(self._attribute_name(key), self._fix_value(value))

            last = None
            for child in source.children:
                if isinstance(child, Text):
                    text = self._fix_value(child.data)
                    if last is None:
                        target.text = (target.text or "") + text
                    else:
                        last.tail = (last.tail or "") + text
                    continue
                last = etree.SubElement(target, self._fix_name(child.tag))
                stack.append((last, child))

    def _attribute_name(self, key: str) -> str:
        if ":" in key:
            prefix, name = key.split(":", 1)
            if prefix in self.namespaces:
                return "{{{}}}{}".format(self.namespaces[prefix], self._fix_name(name))
            logger.warning(
                "Attribute '{}' uses an unknown namespace prefix '{}'".format(key, prefix)
            )
        return self._fix_name(key)

    def _fix_name(self, name: str) -> str:
        """
        Try to get conform to:
        > Like element names, attribute names are case-sensitive and must start with a letter or underscore.
        > The rest of the name can contain letters, digits, hyphens, underscores, and periods.
        See: <https://msdn.microsoft.com/en-us/library/ms256152(v=vs.110).aspx>

        All unwanted characters are replaced by underscores.
        """
        if not name or (not name[0].isalpha() and name[0] != "_"):
            logger.warning(
                "Invalid start for name '{}'. "
                "XML name must start with a letter.".format(name)
            )
            name = "_{}".format(name)
        if not re.match(r"^[a-zA-Z0-9._-]*$", name):
            logger.warning("Name '{}' contains invalid characters!".format(name))
            name = re.sub(r"[^a-zA-Z0-9._-]", "_", name)
        return name

    def _fix_value(self, value: str) -> str:
        """
        Return a cleaned version of a value
        according to the XML 1.0 character range:
        > Char	   ::=   	#x9 | #xA | #xD | [#x20-#xD7FF] | [#xE000-#xFFFD] | [#x10000-#x10FFFF]

        See <https://www.w3.org/TR/xml/#charsets>
        """
        if not self.__charrange or not self.__replacement:
            self.__charrange = re.compile(
                '^[\u0020-\uD7FF\u0009\u000A\u000D\uE000-\uFFFD\U00010000-\U0010FFFF]*$'
            )
            self.__replacement = re.compile(
                '[^\u0020-\uD7FF\u0009\u000A\u000D\uE000-\uFFFD\U00010000-\U0010FFFF]'
            )

        # Reading string until \x00. This is the same as aapt does.
        if "\x00" in value:
            logger.warning(
                "Null byte found in value at position {}".format(value.find("\x00"))
            )
            value = value[: value.find("\x00")]

        if not self.__charrange.match(value):
            logger.warning("Invalid character in value found. Replacing with '_'.")
            value = self.__replacement.sub('_', value)
        return value

    def get_buff(self) -> bytes:
        """
        Returns the raw XML file without prettification applied.

        :returns: bytes, encoded as UTF-8
        """
        return self.get_xml(pretty=False)

    def get_xml(self, pretty: bool = True, xml_declaration: bool = False) -> bytes:
        """
        Get the XML as an UTF-8 string

        :returns: bytes encoded as UTF-8
        """
        return etree.tostring(
            self.root,
            encoding="utf-8",
            pretty_print=pretty,
            xml_declaration=xml_declaration,
        )

    def get_xml_obj(self) -> etree._Element:
        """
        Get the XML as an ElementTree object

        :returns: `lxml.etree.Element` object
        """
        return self.root
