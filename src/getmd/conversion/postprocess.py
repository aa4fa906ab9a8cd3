"""Final markdown assembly: frontmatter, statistics, spacing and truncation."""

from __future__ import annotations

import math
import re
from typing import Any, Mapping

FENCE_LINE = re.compile(r"^\s*(```|~~~)")
HEADING = re.compile(r"^#{1,6}\s")
LIST_ITEM = re.compile(r"^\s*(-|\d+\.)\s+")
RULE_LINE = "---"

TRUNCATION_MARKER = "\n\n[Content truncated]"
WORDS_PER_MINUTE = 250

# Stripped before counting words, in this order
FENCED_CODE = re.compile(r"```[\s\S]*?```")
INLINE_CODE = re.compile(r"`[^`]+`")
IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
LINK = re.compile(r"\[([^\]]+)\]\([^)]*\)")
BARE_URL = re.compile(r"https?://[^\s)]+")

YAML_NEEDS_QUOTES = re.compile(r"[:\n\r]")


class FrontmatterBuilder:
    """
    Builds the frontmatter block prefixed to the markdown.

    Example:
        builder = FrontmatterBuilder()
        frontmatter = builder.build({"title": "Getting Started", "word_count": 420})
    """

    def _format_value(self, value: Any) -> str:
        if isinstance(value, str) and YAML_NEEDS_QUOTES.search(value):
            escaped = value.replace('"', '\\"').replace("\r", "\\r").replace("\n", "\\n")
            return f'"{escaped}"'
        return str(value)

    def build(self, fields: Mapping[str, Any]) -> str:
        """
        Build the frontmatter string.

        Args:
            fields: Frontmatter keys and values; None values are skipped

        Returns:
            Frontmatter string (with --- delimiters and a trailing blank line)
        """
        lines = [RULE_LINE]
        for key, value in fields.items():
            if value is not None:
                lines.append(f"{key}: {self._format_value(value)}")
        lines.append(RULE_LINE)
        return "\n".join(lines) + "\n\n"


def calculate_markdown_stats(markdown: str, has_frontmatter: bool = True) -> tuple[int, int]:
    """
    Count prose words and estimate reading time.

    Code, URLs and link/image syntax are removed first so they do not
    inflate the count. A leading frontmatter block is ignored unless
    has_frontmatter is False, when a leading --- is an ordinary rule.

    Returns:
        (word_count, reading_time_minutes)
    """
    content = markdown
    if has_frontmatter and content.startswith(RULE_LINE):
        end = content.find(RULE_LINE, len(RULE_LINE))
        if end != -1:
            content = content[end + len(RULE_LINE) :]

    content = FENCED_CODE.sub("", content)
    content = INLINE_CODE.sub("", content)
    content = IMAGE.sub("", content)
    content = LINK.sub(r"\1", content)
    content = BARE_URL.sub("", content)

    word_count = len(content.split())
    return word_count, math.ceil(word_count / WORDS_PER_MINUTE)


def _frontmatter_end(lines: list[str]) -> int:
    """Index of the first line after a leading frontmatter block (0 if none)."""
    if not lines or lines[0].strip() != RULE_LINE:
        return 0
    for index in range(1, len(lines)):
        if lines[index].strip() == RULE_LINE:
            return index + 1
    return 0


def _ensure_blank(result: list[str]) -> None:
    if result and result[-1] != "":
        result.append("")


def post_process(markdown: str, has_frontmatter: bool = True) -> str:
    """
    Repair spacing in the final markdown.

    - At most one blank line in a row, and none between list items
    - Blank lines around fenced code and horizontal rules
    - A blank line before every heading
    - No trailing whitespace, exactly one trailing newline

    Fenced code and the frontmatter block are left as they are. Without
    frontmatter, horizontal rules at the very start are dropped so the
    output never opens with a --- line.
    """
    lines = [line.rstrip() for line in markdown.split("\n")]
    if has_frontmatter:
        body_start = _frontmatter_end(lines)
    else:
        body_start = 0
        while lines and (not lines[0].strip() or lines[0].strip() == RULE_LINE):
            lines.pop(0)

    result = lines[:body_start]
    in_fence = False
    blank_after = False

    for line in lines[body_start:]:
        if in_fence:
            result.append(line)
            if FENCE_LINE.match(line):
                in_fence = False
                blank_after = True
            continue

        if not line.strip():
            if result and result[-1] != "":
                result.append("")
            continue

        if blank_after:
            _ensure_blank(result)
            blank_after = False

        if FENCE_LINE.match(line):
            _ensure_blank(result)
            in_fence = True
        elif HEADING.match(line):
            _ensure_blank(result)
        elif line.strip() == RULE_LINE:
            _ensure_blank(result)
            blank_after = True
        elif LIST_ITEM.match(line) and len(result) >= 2:
            if result[-1] == "" and LIST_ITEM.match(result[-2]):
                result.pop()

        result.append(line)

    return "\n".join(result).strip() + "\n"


def truncate_markdown(markdown: str, max_length: int) -> str:
    """Cut at max_length characters and append the truncation marker."""
    if len(markdown) > max_length:
        return markdown[:max_length] + TRUNCATION_MARKER
    return markdown
