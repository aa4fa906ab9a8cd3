"""Rule type for the deterministic markdown renderer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence, Union

from bs4 import Tag

RuleFilter = Union[str, Sequence[str], Callable[[Tag], bool]]
RuleReplacement = Callable[[str, Tag], str]


@dataclass(frozen=True)
class MarkdownRule:
    """
    A named element-to-markdown rule.

    The filter is a tag name, a sequence of tag names, or a predicate over
    the element. The replacement receives the element's rendered inner
    content and the element itself, and returns the markdown to emit.

    Example:
        strike = MarkdownRule(
            name="strikethrough",
            filter=["del", "s", "strike"],
            replacement=lambda content, node: f"~~{content}~~",
        )
    """

    name: str
    filter: RuleFilter
    replacement: RuleReplacement

    def matches(self, node: Tag) -> bool:
        """Check whether this rule applies to an element."""
        if isinstance(self.filter, str):
            return node.name == self.filter.lower()
        if callable(self.filter):
            return bool(self.filter(node))
        return node.name in {name.lower() for name in self.filter}
