"""Decoded AXML tree.

All classes are frozen: a `Document` is assembled once by the tree builder
and never changes afterwards.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union


@dataclass(frozen=True)
class Text:
    """Text content of an element."""

    data: str


@dataclass(frozen=True)
class Element:
    """An element with its attributes and child nodes in document order.

    Attribute keys are `"prefix:name"` for namespaced attributes and the
    plain name otherwise.
    """

    tag: str
    attributes: Mapping[str, str] = field(default_factory=dict)
    children: Tuple["Node", ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))
        object.__setattr__(self, "children", tuple(self.children))

    def get_tag(self) -> str:
        return self.tag

    def get_attributes(self) -> Mapping[str, str]:
        return self.attributes

    def get_children(self) -> Tuple["Node", ...]:
        return self.children

    def iter_elements(self) -> Iterator["Element"]:
        """Iterate over child elements, skipping text nodes."""
        for child in self.children:
            if isinstance(child, Element):
                yield child


Node = Union[Element, Text]


@dataclass(frozen=True)
class Document:
    """A decoded AXML document.

    `namespaces` maps every namespace URI declared in the file to its prefix,
    the prefixes used in attribute keys.
    """

    root: Optional[Node] = None
    namespaces: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "namespaces", MappingProxyType(dict(self.namespaces)))

    def get_root(self) -> Optional[Node]:
        """Return the root node, if any."""
        return self.root

    def get_nsmap(self) -> Dict[str, str]:
        """Return the declared namespaces as prefix -> URI."""
        return {prefix: uri for uri, prefix in self.namespaces.items() if prefix}


class ElementBuilder:
    """Mutable element under construction, lives on the tree builder's stack."""

    def __init__(self, tag: str, attributes: Dict[str, str]) -> None:
        self.tag = tag
        self.attributes = attributes
        self.children: List[Node] = []

    def append(self, node: Node) -> None:
        self.children.append(node)

    def build(self) -> Element:
        return Element(self.tag, self.attributes, tuple(self.children))

    def __repr__(self):
        return "<ElementBuilder tag='{}' children={}>".format(self.tag, len(self.children))
