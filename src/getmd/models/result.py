"""Result types returned by a conversion."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Optional


@dataclass(frozen=True)
class ContentMetadata:
    """
    Flat metadata record for a converted document.

    Every field is optional. Extractor-supplied values take priority and
    meta-tag scraping fills the gaps (see merge()). Word count and reading
    time are computed later from the rendered markdown.
    """

    title: Optional[str] = None
    author: Optional[str] = None
    excerpt: Optional[str] = None
    site_name: Optional[str] = None
    published_time: Optional[str] = None
    language: Optional[str] = None
    canonical_url: Optional[str] = None
    word_count: Optional[int] = None
    reading_time: Optional[int] = None

    def merge(self, fallback: ContentMetadata) -> ContentMetadata:
        """Return a copy where fields missing here are taken from fallback."""
        updates = {
            f.name: getattr(fallback, f.name)
            for f in fields(self)
            if getattr(self, f.name) in (None, "") and getattr(fallback, f.name) not in (None, "")
        }
        return replace(self, **updates)

    def with_stats(self, word_count: int, reading_time: int) -> ContentMetadata:
        return replace(self, word_count=word_count, reading_time=reading_time)

    def to_dict(self) -> dict[str, Any]:
        """Defined fields only, in declaration order."""
        return {key: value for key, value in asdict(self).items() if value is not None}

    def is_empty(self) -> bool:
        return not self.to_dict()


@dataclass(frozen=True)
class ConversionStats:
    """Statistics collected for a single conversion."""

    input_length: int = 0
    output_length: int = 0
    processing_time_ms: int = 0
    extraction_succeeded: bool = False
    image_count: int = 0
    link_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert stats to dictionary for serialization."""
        return asdict(self)


@dataclass(frozen=True)
class ConversionResult:
    """
    Final artifact of a conversion: markdown plus metadata and stats.

    Example:
        result = await convert_to_markdown("<h1>Hello</h1><p>World</p>")
        print(result.markdown)
        print(result.metadata.word_count, result.stats.processing_time_ms)
    """

    markdown: str
    metadata: ContentMetadata
    stats: ConversionStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "markdown": self.markdown,
            "metadata": self.metadata.to_dict(),
            "stats": self.stats.to_dict(),
        }
