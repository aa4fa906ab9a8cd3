"""Markdown-level normalization for LLM consumption."""

from __future__ import annotations

import re
from typing import Callable

FENCE_LINE = re.compile(r"^\s*(```|~~~)")
HEADING = re.compile(r"^(#{1,6})\s+(.+)$")
HORIZONTAL_RULE = re.compile(r"^\s*([*_-])(\s*\1){2,}\s*$")
BULLET = re.compile(r"^([ \t]*)[-*+]\s+")

# "text```python" -> fence opener glued to the end of a prose line
TRAILING_FENCE_OPENER = re.compile(r"^(.*\S)\s*(```[\w+#.-]*)\s*$")
# "print(1)```" -> fence closer glued to the end of a code line
TRAILING_FENCE_CLOSER = re.compile(r"^(.*\S)```\s*$")

TRIPLE_EMPHASIS = re.compile(r"\*{3,}(.+?)\*{3,}")
PADDED_EMPHASIS = re.compile(r"(?<![*\\])(\*{1,2})[ \t]*([^*\n]+?)[ \t]*\1(?!\*)")
INLINE_CODE = re.compile(r"(`+)(.+?)\1")

REFERENCE_DEFINITION = re.compile(r"^\s*\[([^\]]+)\]:\s*(\S.*)$")
REFERENCE_LINK = re.compile(r"\[([^\]]+)\]\[([^\]]*)\]")

LIST_INDENT = 2


def format_for_llm(markdown: str) -> str:
    """
    Normalize markdown for LLM consumption.

    - Clamp heading levels so none skips past the previous heading
    - Use "-" for bullets with two-space indentation per nesting level
    - Collapse ***x*** to **x** and trim spaces inside emphasis
    - Put code fences glued to text onto their own lines
    - Inline reference-style links

    Fenced code is never modified.
    """
    lines = _separate_fences(markdown.split("\n"))
    lines = _inline_reference_links(lines)

    result = []
    last_level = 0
    for line, in_code in _scan(lines):
        if in_code:
            result.append(line)
            continue

        heading = HEADING.match(line)
        if heading:
            level = min(len(heading.group(1)), last_level + 1)
            last_level = level
            line = f"{'#' * level} {heading.group(2)}"
        elif not HORIZONTAL_RULE.match(line):
            line = _normalize_bullet(line)

        result.append(_outside_inline_code(line, _clean_emphasis))

    return "\n".join(result)


def _scan(lines: list[str]):
    """Yield (line, in_code) with fence lines themselves reported as code."""
    in_fence = False
    for line in lines:
        if FENCE_LINE.match(line):
            in_fence = not in_fence
            yield line, True
            continue
        yield line, in_fence


def _separate_fences(lines: list[str]) -> list[str]:
    """Split fence markers that share a line with other text."""
    result: list[str] = []
    in_fence = False
    for line in lines:
        if FENCE_LINE.match(line):
            in_fence = not in_fence
            result.append(line)
            continue

        if in_fence:
            closer = TRAILING_FENCE_CLOSER.match(line)
            if closer:
                result.extend([closer.group(1), "```"])
                in_fence = False
                continue
        else:
            opener = TRAILING_FENCE_OPENER.match(line)
            # An even count means the backticks are inline code, not an opener
            if opener and opener.group(1).count("`") % 2 == 0:
                result.extend([opener.group(1), "", opener.group(2)])
                in_fence = True
                continue

        result.append(line)
    return result


def _normalize_bullet(line: str) -> str:
    match = BULLET.match(line)
    if not match:
        return line
    depth = len(match.group(1).expandtabs(LIST_INDENT)) // LIST_INDENT
    return " " * (LIST_INDENT * depth) + "- " + line[match.end() :]


def _clean_emphasis(text: str) -> str:
    text = TRIPLE_EMPHASIS.sub(r"**\1**", text)
    return PADDED_EMPHASIS.sub(r"\1\2\1", text)


def _outside_inline_code(line: str, transform: Callable[[str], str]) -> str:
    """Apply transform to the parts of a line that are not inline code."""
    parts = []
    position = 0
    for match in INLINE_CODE.finditer(line):
        parts.append(transform(line[position : match.start()]))
        parts.append(match.group(0))
        position = match.end()
    parts.append(transform(line[position:]))
    return "".join(parts)


def _inline_reference_links(lines: list[str]) -> list[str]:
    """Replace [text][ref] with [text](url) and drop the definitions used."""
    definitions: dict[str, str] = {}
    prose: list[str] = []
    for line, in_code in _scan(lines):
        definition = None if in_code else REFERENCE_DEFINITION.match(line)
        if definition:
            definitions[definition.group(1).lower()] = definition.group(2).strip()
            continue
        prose.append(line)

    if not definitions:
        return lines

    def replace(match: re.Match[str]) -> str:
        text, ref = match.group(1), match.group(2)
        url = definitions.get((ref or text).lower())
        return f"[{text}]({url})" if url else match.group(0)

    return [line if in_code else REFERENCE_LINK.sub(replace, line) for line, in_code in _scan(prose)]
