"""Structural repairs that make HTML convert to well-formed markdown."""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Tag

from . import dom

logger = logging.getLogger(__name__)

# Wrappers eliminated when they hold a single element of the same kind
REDUNDANT_WRAPPERS = ("div", "span")

# A paragraph holding exactly one of these is replaced by it
BLOCK_IN_PARAGRAPH = frozenset({"div", "blockquote", "pre", "ul", "ol", "table"})

PSEUDO_HEADING_CLASS = re.compile(r"title|heading", re.IGNORECASE)
BOLD_STYLE = re.compile(r"font-weight\s*:\s*(bold|bolder|[6-9]00)\b", re.IGNORECASE)
PSEUDO_HEADING_MAX_TEXT = 100
PSEUDO_HEADING_LEVEL = 3

# Set by the cleaner on candidates, since class and style do not survive it
PSEUDO_HEADING_HINT = "getmd-pseudo-heading"


def enhance_structure(html: str) -> str:
    """
    Improve HTML structure for markdown conversion.

    - Unwrap redundant div/span nesting and block content inside <p>
    - Promote short, styled div/span elements to <h3>
    - Clamp heading levels so they never skip past the previous one

    Heading repair runs last so promoted headings are part of it.
    """
    soup = dom.load(html)
    unwrap_redundant_elements(soup)
    promote_pseudo_headings(soup)
    normalize_headings(soup)
    return dom.serialize(soup)


def normalize_headings(soup: BeautifulSoup) -> None:
    """
    Clamp each heading to at most one level below the previous heading.

    A heading at or above the previous level passes through unchanged.
    """
    last_level = 0
    for heading in soup.find_all(dom.HEADING_TAGS):
        level = dom.heading_level(heading)
        if level > last_level + 1:
            level = last_level + 1
            heading.name = f"h{level}"
        last_level = level


def unwrap_redundant_elements(soup: BeautifulSoup) -> None:
    """Collapse div>div / span>span chains and paragraphs holding one block."""
    # Unwrapping a paragraph can expose a new div>div pair, so both repeat
    changed = True
    while changed:
        changed = False
        for element in dom.iter_elements(soup):
            only_child = _sole_child(element)
            if only_child is None:
                continue
            if element.name in REDUNDANT_WRAPPERS and only_child.name == element.name:
                only_child.unwrap()
                changed = True
            elif element.name == "p" and only_child.name in BLOCK_IN_PARAGRAPH:
                element.unwrap()
                changed = True


def _sole_child(element: Tag) -> Tag | None:
    """The single child element, provided no text sits beside it."""
    children = dom.element_children(element)
    if len(children) != 1 or dom.direct_text(element).strip():
        return None
    return children[0]


def is_styled_as_heading(element: Tag) -> bool:
    """Title/heading class, bold inline style, or the cleaner's hint."""
    if element.get("title") == PSEUDO_HEADING_HINT:
        return True
    class_name = " ".join(element.get("class", []))
    return bool(PSEUDO_HEADING_CLASS.search(class_name) or BOLD_STYLE.search(element.get("style", "")))


def promote_pseudo_headings(soup: BeautifulSoup) -> None:
    """Turn short title-classed or bold div/span leaves into headings."""
    promoted = 0
    for element in soup.find_all(REDUNDANT_WRAPPERS):
        if dom.element_children(element):
            continue

        text = element.get_text().strip()
        if not 0 < len(text) < PSEUDO_HEADING_MAX_TEXT:
            continue

        if is_styled_as_heading(element):
            heading = soup.new_tag(f"h{PSEUDO_HEADING_LEVEL}")
            heading.string = text
            element.replace_with(heading)
            promoted += 1

    for element in soup.find_all(title=PSEUDO_HEADING_HINT):
        del element["title"]

    if promoted:
        logger.debug(f"Promoted {promoted} pseudo-headings")
