"""Main conversion entry points for getmd."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional, Union

from ..conversion.protocols import ContentExtractor
from ..http.client import fetch_url, is_valid_url
from ..models.config import ConversionOptions, FetchOptions, resolve_options
from ..models.result import ConversionResult
from ..pipeline.base import ConversionPipeline
from ..pipeline.steps import (
    CleanStep,
    CodeBlockStep,
    EnhanceStep,
    ExtractStep,
    FilterStep,
    FormatStep,
    MetadataStep,
    PostProcessStep,
    RenderStep,
)

logger = logging.getLogger(__name__)

OptionsInput = Union[ConversionOptions, Mapping[str, Any], None]


def build_pipeline(
    extractor: Optional[ContentExtractor] = None,
    render_step: Optional[RenderStep] = None,
) -> ConversionPipeline:
    """
    Build the standard conversion pipeline.

    Args:
        extractor: Main-content extractor (readability if None)
        render_step: Render step (default renderers if None)

    Returns:
        ConversionPipeline with all steps in order
    """
    return ConversionPipeline(
        steps=[
            ExtractStep(extractor),
            MetadataStep(),
            CleanStep(),
            EnhanceStep(),
            CodeBlockStep(),
            FilterStep(),
            render_step or RenderStep(),
            FormatStep(),
            PostProcessStep(),
        ]
    )


class Converter:
    """
    HTML to Markdown converter.

    Holds one pipeline and runs documents through it. Each call resolves
    its own options; nothing is shared between conversions.

    Example:
        converter = Converter()
        result = await converter.convert("<h1>Hello</h1><p>World</p>", include_meta=False)
        print(result.markdown)
    """

    def __init__(self, pipeline: Optional[ConversionPipeline] = None):
        self._pipeline = pipeline or build_pipeline()

    async def convert(
        self,
        html: str,
        options: OptionsInput = None,
        **overrides: Any,
    ) -> ConversionResult:
        """
        Convert an HTML document.

        Args:
            html: HTML string
            options: ConversionOptions or a mapping of option values
            **overrides: Individual option values (None means "not given")

        Returns:
            ConversionResult with markdown, metadata and stats

        Raises:
            ModelError: If the model fails and llm_fallback is disabled
        """
        resolved = resolve_options(options, **overrides)
        ctx = await self._pipeline.execute(html, resolved, emit=resolved.on_event)
        if ctx.result is None:
            raise RuntimeError("Conversion pipeline finished without a result")
        return ctx.result


async def fetch_and_convert(
    url: str,
    options: OptionsInput = None,
    fetch_options: Optional[FetchOptions] = None,
    **overrides: Any,
) -> ConversionResult:
    """
    Fetch a URL and convert the page to markdown.

    The URL is used as base_url unless one is given.

    Example:
        result = await fetch_and_convert("https://example.com", fetch_options=FetchOptions(timeout=10))
    """
    resolved = resolve_options(options, **overrides)
    if resolved.base_url is None:
        resolved = resolve_options(resolved, base_url=url)

    logger.info(f"Fetching {url}")
    html = await fetch_url(url, fetch_options)
    return await Converter().convert(html, resolved)


async def convert_to_markdown(
    html: str,
    options: OptionsInput = None,
    **overrides: Any,
) -> ConversionResult:
    """
    Convert HTML (or an http(s) URL, which is fetched first) to markdown.

    Example:
        result = await convert_to_markdown("<h1>Hello</h1><p>World</p>")
        print(result.markdown)
    """
    if is_valid_url(html.strip()):
        return await fetch_and_convert(html.strip(), options, **overrides)
    return await Converter().convert(html, options, **overrides)


def convert_blocking(
    html: str,
    options: OptionsInput = None,
    **overrides: Any,
) -> ConversionResult:
    """
    Blocking conversion for sync code that can't use async/await.

    WARNING: Do not call from within an existing event loop (e.g., Jupyter,
    asyncio-based frameworks). Use convert_to_markdown() instead.

    Example:
        result = convert_blocking("<h1>Hello</h1>", include_meta=False)
    """
    # Detect if we're already in an async context
    try:
        asyncio.get_running_loop()
        raise RuntimeError("convert_blocking() called from async context. Use 'await convert_to_markdown()' instead.")
    except RuntimeError as e:
        if "no running event loop" not in str(e).lower():
            raise

    return asyncio.run(convert_to_markdown(html, options, **overrides))
