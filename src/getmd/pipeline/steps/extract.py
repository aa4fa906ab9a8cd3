"""Pipeline steps isolating the main content and collecting metadata."""

import asyncio
import logging
from typing import Optional

from ...conversion.extractor import ReadabilityExtractor
from ...conversion.metadata import extract_metadata
from ...conversion.protocols import ContentExtractor
from ..base import ConversionContext, EventEmitter

logger = logging.getLogger(__name__)


class ExtractStep:
    """
    Pipeline step that narrows the document to its main content.

    Extraction is best-effort: when it is disabled, finds nothing
    substantial, or fails, the pipeline continues with the whole document.

    Example:
        step = ExtractStep()
        ctx = await step.execute(ctx)
        # ctx.html is now the article subtree when one was found
    """

    name = "extract"

    def __init__(self, extractor: Optional[ContentExtractor] = None):
        self._extractor = extractor or ReadabilityExtractor()

    async def execute(
        self,
        ctx: ConversionContext,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        if not ctx.options.extract_content or not ctx.html.strip():
            return ctx

        try:
            extracted = await asyncio.to_thread(self._extractor.extract, ctx.html, ctx.options.base_url)
        except Exception as e:
            logger.warning(f"Main content extraction failed, using raw HTML: {e}")
            return ctx

        if extracted is None:
            logger.debug("No main content found, using raw HTML")
            return ctx

        ctx.html = extracted.content_html
        ctx.metadata = extracted.metadata
        ctx.extraction_succeeded = True
        logger.debug(f"Extracted {len(ctx.html)} chars of main content")
        return ctx


class MetadataStep:
    """
    Pipeline step that scrapes metadata from the original document.

    Values the extractor already supplied win; scraping fills the gaps.
    """

    name = "metadata"

    async def execute(
        self,
        ctx: ConversionContext,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        scraped = extract_metadata(ctx.source_html, ctx.options.base_url)
        ctx.metadata = ctx.metadata.merge(scraped)
        return ctx
