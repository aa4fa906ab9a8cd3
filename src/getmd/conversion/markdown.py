"""Deterministic HTML to Markdown rendering."""

from __future__ import annotations

import logging
import re
import uuid
from typing import Optional, Sequence

import html2text
from bs4 import BeautifulSoup, Tag

from ..models.rules import MarkdownRule
from . import dom
from .rules import combine_rules

logger = logging.getLogger(__name__)

# Elements rendered as their own paragraph when a rule replaces them
BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "details", "dl", "div", "fieldset",
        "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr",
        "main", "nav", "ol", "p", "pre", "section", "table", "ul",
    }
)

TOKEN_PREFIX = "GETMDRULE"

# html2text renders <hr> as "* * *"
HTML2TEXT_RULE = re.compile(r"^\* \* \*$", re.MULTILINE)

# html2text indents list items two spaces per level, the first level included
LIST_ITEM_INDENT = re.compile(r"^  ( *)([-*+]|\d+\.) ", re.MULTILINE)


class DeterministicRenderer:
    """
    Rule-driven HTML to Markdown renderer.

    html2text handles the generic element mapping. Elements matched by a
    MarkdownRule (tables, code blocks, images, blockquotes, empty nodes and
    any caller rules) are swapped for placeholder tokens before html2text
    runs, and the tokens are replaced with the rule output afterwards.

    Rules are checked outermost element first; the first matching rule
    wins and the element's descendants are not visited again.

    Example:
        renderer = DeterministicRenderer(base_url="https://docs.example.com/")
        markdown = renderer.render("<h1>Hello</h1><p>World</p>")
    """

    def __init__(
        self,
        custom_rules: Optional[Sequence[MarkdownRule]] = None,
        base_url: Optional[str] = None,
    ):
        """
        Initialize the renderer.

        Args:
            custom_rules: Extra rules, checked before the built-ins
            base_url: Base URL html2text uses for relative links
        """
        self._rules = combine_rules(custom_rules)
        self._base_url = base_url or ""

    @property
    def rule_names(self) -> list[str]:
        return [rule.name for rule in self._rules]

    def _new_converter(self) -> html2text.HTML2Text:
        # HTML2Text keeps parser state, so each render gets its own instance
        converter = html2text.HTML2Text(baseurl=self._base_url)

        # Line width (0 = no wrapping)
        converter.body_width = 0

        # Link handling
        converter.inline_links = True
        converter.wrap_links = False
        converter.protect_links = False

        # Content handling
        converter.unicode_snob = True
        converter.escape_snob = False
        converter.mark_code = False
        converter.single_line_break = False

        # Markers
        converter.emphasis_mark = "*"
        converter.strong_mark = "**"
        converter.ul_item_mark = "-"

        return converter

    def _match(self, element: Tag) -> Optional[MarkdownRule]:
        for rule in self._rules:
            if rule.matches(element):
                return rule
        return None

    def _token_prefix(self, html: str) -> str:
        """A placeholder prefix that does not occur anywhere in the input."""
        while True:
            prefix = f"{TOKEN_PREFIX}{uuid.uuid4().hex[:12]}N"
            if prefix not in html:
                return prefix

    def _substitute_rules(self, soup: BeautifulSoup, prefix: str) -> dict[str, str]:
        """Replace rule-matched elements with tokens; return token -> markdown."""
        replacements: dict[str, str] = {}

        for element in dom.iter_elements(soup):
            rule = self._match(element)
            if rule is None:
                continue

            content = self.render(element.decode_contents()).strip()
            markdown = rule.replacement(content, element)

            if not markdown or not markdown.strip():
                element.decompose()
                continue

            token = f"{prefix}{len(replacements)}X"
            if element.name in BLOCK_TAGS:
                replacements[token] = markdown.strip("\n")
                placeholder = soup.new_tag("p")
                placeholder.string = token
                element.replace_with(placeholder)
            else:
                replacements[token] = markdown
                element.replace_with(token)

        return replacements

    def render(self, html: str) -> str:
        """
        Convert HTML to Markdown.

        Args:
            html: HTML content string

        Returns:
            Markdown string (not yet normalized)
        """
        soup = dom.load(html)
        prefix = self._token_prefix(dom.serialize(soup))
        replacements = self._substitute_rules(soup, prefix)

        markdown = self._new_converter().handle(dom.serialize(soup))
        markdown = HTML2TEXT_RULE.sub("---", markdown)
        markdown = LIST_ITEM_INDENT.sub(r"\1\2 ", markdown)

        if replacements:
            markdown = re.sub(
                re.escape(prefix) + r"\d+X",
                lambda match: replacements.get(match.group(0), match.group(0)),
                markdown,
            )

        return markdown
