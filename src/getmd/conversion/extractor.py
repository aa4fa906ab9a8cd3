"""Main content extraction with readability."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from readability import Document

from ..models.result import ContentMetadata
from . import dom

logger = logging.getLogger(__name__)

# Below this much article text the extraction most likely grabbed a
# sidebar or a nav block, and the whole document is the better input
MIN_CONTENT_CHARS = 500


@dataclass(frozen=True)
class ExtractedContent:
    """Main-content subtree plus the metadata the extractor found."""

    content_html: str
    title: Optional[str] = None
    author: Optional[str] = None
    excerpt: Optional[str] = None
    site_name: Optional[str] = None

    @property
    def metadata(self) -> ContentMetadata:
        return ContentMetadata(
            title=self.title,
            author=self.author,
            excerpt=self.excerpt,
            site_name=self.site_name,
        )


class ReadabilityExtractor:
    """
    Isolates the primary article of a page using readability-lxml.

    Example:
        extractor = ReadabilityExtractor()
        extracted = extractor.extract(html, "https://blog.example.com/post")
        if extracted is not None:
            html = extracted.content_html
    """

    def __init__(self, min_content_chars: int = MIN_CONTENT_CHARS):
        self._min_content_chars = min_content_chars

    def extract(self, html: str, base_url: Optional[str] = None) -> Optional[ExtractedContent]:
        """
        Extract the main content of an HTML document.

        Args:
            html: Full HTML document
            base_url: Page URL, used by readability to absolutize links

        Returns:
            ExtractedContent, or None when no substantial article was found

        Raises:
            readability.readability.Unparseable: If the document cannot be parsed
        """
        document = Document(html, url=base_url)
        content_html = document.summary(html_partial=True)

        text_length = len(dom.load(content_html).get_text().strip())
        if text_length < self._min_content_chars:
            logger.debug(f"Extracted content too short ({text_length} chars), ignoring")
            return None

        title = document.short_title() or None
        return ExtractedContent(content_html=content_html, title=title)
