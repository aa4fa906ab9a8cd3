"""DOM helpers shared by the HTML transformation stages."""

from __future__ import annotations

from enum import Enum
from typing import Iterator

from bs4 import BeautifulSoup, Comment, NavigableString, PageElement, Tag

PARSER = "html.parser"

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


class NodeKind(str, Enum):
    """The node kinds the transformation stages distinguish."""

    DOCUMENT = "document"
    ELEMENT = "element"
    TEXT = "text"
    COMMENT = "comment"
    OTHER = "other"  # doctype, CDATA, processing instructions


def node_kind(node: PageElement) -> NodeKind:
    """Classify a parsed node."""
    if isinstance(node, BeautifulSoup):
        return NodeKind.DOCUMENT
    if isinstance(node, Tag):
        return NodeKind.ELEMENT
    if isinstance(node, Comment):
        return NodeKind.COMMENT
    if type(node) is NavigableString:
        return NodeKind.TEXT
    return NodeKind.OTHER


def load(html: str) -> BeautifulSoup:
    """Parse an HTML string into a fresh tree owned by the caller."""
    return BeautifulSoup(html, PARSER)


def serialize(soup: BeautifulSoup) -> str:
    return str(soup)


def iter_elements(root: Tag) -> Iterator[Tag]:
    """
    Yield elements in document order, skipping ones already removed.

    Safe to use while the caller decomposes elements along the way.
    """
    for element in list(root.find_all(True)):
        if element.decomposed or not _attached(element, root):
            continue
        yield element


def iter_comments(root: Tag) -> Iterator[Comment]:
    for node in list(root.descendants):
        if node_kind(node) is NodeKind.COMMENT:
            yield node  # type: ignore[misc]


def element_children(tag: Tag) -> list[Tag]:
    return [child for child in tag.children if node_kind(child) is NodeKind.ELEMENT]  # type: ignore[misc]


def direct_text(tag: Tag) -> str:
    """Concatenated text of the element's own text-node children."""
    return "".join(str(child) for child in tag.children if node_kind(child) is NodeKind.TEXT)


def heading_level(tag: Tag) -> int:
    return int(tag.name[1])


def _attached(element: Tag, root: Tag) -> bool:
    parent = element.parent
    while parent is not None:
        if parent is root:
            return True
        parent = parent.parent
    return False
