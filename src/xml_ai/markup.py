"""Generic markup tree consumed by the script compiler.

The tree is deliberately dumb: elements, text and fragments. ``parse_markup``
builds one from source text with BeautifulSoup's ``html.parser`` backend; it
does not validate well-formedness (unclosed tags are closed at end of input
and stray end tags are ignored).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Union

from bs4 import BeautifulSoup
from bs4.element import CData, NavigableString, PageElement, PreformattedString, Tag


class MarkupTextError(ValueError):
    """Raised when strict text extraction meets a non-text node."""


@dataclass(frozen=True)
class Text:
    """A run of character data."""

    value: str


@dataclass(frozen=True)
class Element:
    """A tagged node with attributes and ordered children."""

    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: "Fragment" = field(default_factory=lambda: Fragment())

    def matches(self, tag: str) -> bool:
        return self.tag.lower() == tag.lower()

    def child_elements(self) -> List["Element"]:
        return self.children.extract_elements()


@dataclass(frozen=True)
class Fragment:
    """An ordered, possibly nested, sequence of nodes."""

    nodes: Tuple["Node", ...] = ()

    @classmethod
    def from_nodes(cls, nodes: Iterable["Node"]) -> "Fragment":
        return cls(tuple(nodes))

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes)

    def flatten(self) -> List["Node"]:
        """Resolve nested fragments into one flat list of elements and text."""
        flat: List[Node] = []
        for node in self.nodes:
            flat.extend(flatten(node))
        return flat

    def extract_elements(self) -> List[Element]:
        return [node for node in self.flatten() if isinstance(node, Element)]

    def extract_text_strict(self) -> List[str]:
        """Return the text runs of this fragment, failing on any element."""
        texts: List[str] = []
        for node in self.flatten():
            if not isinstance(node, Text):
                raise MarkupTextError(f"expected text only, found <{node.tag}>")
            texts.append(node.value)
        return texts


Node = Union[Element, Text, Fragment]


def flatten(node: Node) -> List[Node]:
    if isinstance(node, Fragment):
        return node.flatten()
    return [node]


def text_content(node: Node) -> str:
    """Concatenate every text descendant of ``node`` in document order."""
    if isinstance(node, Text):
        return node.value
    if isinstance(node, Element):
        return "".join(text_content(child) for child in node.children)
    return "".join(text_content(child) for child in node.nodes)


def _convert(node: PageElement) -> Optional[Node]:
    if isinstance(node, Tag):
        children = (_convert(child) for child in node.contents)
        attributes = {str(key): str(value) for key, value in node.attrs.items()}
        return Element(node.name, attributes, Fragment.from_nodes(child for child in children if child is not None))
    if isinstance(node, CData):
        return Text(str(node))
    if isinstance(node, PreformattedString):
        # comments, doctypes and processing instructions
        return None
    if isinstance(node, NavigableString):
        return Text(str(node))
    return None


def parse_markup(source: str) -> Fragment:
    """Parse markup source text into a :class:`Fragment`.

    Tag and attribute names come back lower-cased and HTML void elements
    (``<br>``, ``<img>`` ...) never take children.
    """
    soup = BeautifulSoup(source, "html.parser", multi_valued_attributes=None)
    nodes = (_convert(child) for child in soup.contents)
    return Fragment.from_nodes(node for node in nodes if node is not None)


__all__ = [
    "Element",
    "Fragment",
    "MarkupTextError",
    "Node",
    "Text",
    "flatten",
    "parse_markup",
    "text_content",
]
