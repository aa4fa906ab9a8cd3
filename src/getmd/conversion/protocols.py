"""Protocol definitions for content conversion."""

from typing import Optional, Protocol

from .extractor import ExtractedContent


class ContentExtractor(Protocol):
    """
    Protocol for extracting main content from HTML.

    Implementations should isolate the main article content and drop
    navigation, headers, footers, ads, etc.
    """

    def extract(self, html: str, base_url: Optional[str] = None) -> Optional[ExtractedContent]:
        """
        Extract main content from HTML.

        Args:
            html: Full HTML document
            base_url: Source URL (for relative link resolution)

        Returns:
            Extracted content and metadata, or None if nothing was found
        """
        ...


class HtmlRenderer(Protocol):
    """
    Protocol for rendering cleaned HTML to Markdown.

    Implementations receive HTML that has already been cleaned and
    filtered.
    """

    def render(self, html: str) -> str:
        """
        Convert HTML to Markdown.

        Args:
            html: HTML content string

        Returns:
            Markdown string
        """
        ...
