"""Built-in element rules for the deterministic markdown renderer."""

from __future__ import annotations

import re
from typing import Optional, Sequence

from bs4 import Tag

from ..models.rules import MarkdownRule
from . import dom
from .code_blocks import CODE_LANGUAGE_PATTERN

TEXT_ALIGN = re.compile(r"text-align\s*:\s*(\w+)", re.IGNORECASE)

ALIGNMENT_MARKERS = {
    "center": ":---:",
    "right": "---:",
}

EMPTY_NODE_TAGS = frozenset({"p", "div", "span"})

# Children of a blockquote quoted as separate paragraphs
QUOTE_BLOCK_TAGS = frozenset(
    {"p", "div", "pre", "ul", "ol", "li", "table", "blockquote", "h1", "h2", "h3", "h4", "h5", "h6"}
)


def _cell_text(cell: Tag) -> str:
    return " ".join(cell.get_text().split()).replace("|", "\\|")


def _cell_alignment(cell: Tag) -> str:
    align = cell.get("align")
    if align:
        return align.lower()
    match = TEXT_ALIGN.search(cell.get("style", ""))
    return match.group(1).lower() if match else "left"


def _own(table: Tag, elements: Sequence[Tag]) -> list[Tag]:
    """Elements that belong to this table rather than a nested one."""
    return [element for element in elements if element.find_parent("table") is table]


def _cells(row: Tag) -> list[Tag]:
    return row.find_all(["th", "td"], recursive=False)


def table_to_markdown(content: str, table: Tag) -> str:
    """
    Render a table as a pipe table.

    The header comes from the thead row or, failing that, the first row.
    Every data row is padded or cut to the header's column count.
    """
    rows = _own(table, table.find_all("tr"))
    if not rows:
        return ""

    thead = next(iter(_own(table, table.find_all("thead"))), None)
    header_row = rows[0]
    if thead is not None:
        header_row = next((row for row in rows if row.find_parent("thead") is thead), rows[0])

    header_cells = _cells(header_row)
    if not header_cells:
        return ""

    headers = [_cell_text(cell) for cell in header_cells]
    separators = [ALIGNMENT_MARKERS.get(_cell_alignment(cell), "---") for cell in header_cells]

    if thead is not None:
        body_rows = [row for row in rows if row.find_parent("thead") is not thead]
    else:
        body_rows = rows[1:]

    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(separators) + " |",
    ]
    for row in body_rows:
        cells = [_cell_text(cell) for cell in _cells(row)]
        if not cells:
            continue
        cells += [""] * (len(headers) - len(cells))
        lines.append("| " + " | ".join(cells[: len(headers)]) + " |")

    return "\n" + "\n".join(lines) + "\n\n"


def is_code_block(node: Tag) -> bool:
    return node.name == "pre" and node.find("code") is not None


def code_language(code: Tag) -> str:
    """Language from a language-xxx / lang-xxx class, or the cleaner's title hint."""
    hints = " ".join(code.get("class", [])) + " " + code.get("title", "")
    match = CODE_LANGUAGE_PATTERN.search(hints)
    if not match:
        return ""
    return match.group(1) or match.group(2)


def code_block_to_markdown(content: str, pre: Tag) -> str:
    code = pre.find("code")
    if code is None:
        return ""
    return f"\n```{code_language(code)}\n{code.get_text()}\n```\n"


def image_to_markdown(content: str, img: Tag) -> str:
    alt = img.get("alt") or "Image"
    src = img.get("src") or img.get("data-src") or ""
    title = img.get("title") or ""
    if not src:
        return ""
    if title:
        return f'![{alt}]({src} "{title}")'
    return f"![{alt}]({src})"


def _quote_paragraphs(blockquote: Tag) -> list[str]:
    """Block children become their own paragraph; loose inline content is grouped."""
    paragraphs: list[str] = []
    inline: list[str] = []
    for child in blockquote.children:
        kind = dom.node_kind(child)
        if kind is dom.NodeKind.ELEMENT and child.name in QUOTE_BLOCK_TAGS:
            paragraphs.append("".join(inline))
            inline = []
            paragraphs.append(child.get_text())
        elif kind is dom.NodeKind.ELEMENT:
            inline.append(child.get_text())
        elif kind is dom.NodeKind.TEXT:
            inline.append(str(child))
    paragraphs.append("".join(inline))
    return [paragraph.strip() for paragraph in paragraphs if paragraph.strip()]


def blockquote_to_markdown(content: str, blockquote: Tag) -> str:
    lines: list[str] = []
    for paragraph in _quote_paragraphs(blockquote):
        if lines:
            lines.append("")
        lines.extend(paragraph.split("\n"))
    return "\n" + "\n".join(f"> {line}".rstrip() for line in lines) + "\n"


def is_empty_node(node: Tag) -> bool:
    if node.name not in EMPTY_NODE_TAGS:
        return False
    # An image-only wrapper still has something to render
    return not node.get_text().strip() and node.find("img") is None


BUILTIN_RULES: tuple[MarkdownRule, ...] = (
    MarkdownRule(name="tables", filter="table", replacement=table_to_markdown),
    MarkdownRule(name="code_blocks", filter=is_code_block, replacement=code_block_to_markdown),
    MarkdownRule(name="images", filter="img", replacement=image_to_markdown),
    MarkdownRule(name="blockquotes", filter="blockquote", replacement=blockquote_to_markdown),
    MarkdownRule(name="remove_empty", filter=is_empty_node, replacement=lambda content, node: ""),
)


def combine_rules(custom_rules: Optional[Sequence[MarkdownRule]] = None) -> list[MarkdownRule]:
    """
    Custom rules first, then built-ins.

    A custom rule sharing a built-in's name replaces that built-in.
    """
    custom = list(custom_rules or [])
    overridden = {rule.name for rule in custom}
    return custom + [rule for rule in BUILTIN_RULES if rule.name not in overridden]
