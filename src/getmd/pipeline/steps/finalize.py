"""Pipeline steps shaping the rendered markdown into the final result."""

import logging
from typing import Optional

from ...conversion import dom
from ...conversion.formatter import format_for_llm
from ...conversion.postprocess import (
    FrontmatterBuilder,
    calculate_markdown_stats,
    post_process,
    truncate_markdown,
)
from ...models.result import ConversionResult, ConversionStats
from ..base import ConversionContext, EventEmitter

logger = logging.getLogger(__name__)


class FormatStep:
    """Markdown normalization for LLM consumption (skipped unless llm_optimized)."""

    name = "format"

    async def execute(
        self,
        ctx: ConversionContext,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        if ctx.options.llm_optimized and ctx.markdown:
            ctx.markdown = format_for_llm(ctx.markdown)
        return ctx


class PostProcessStep:
    """
    Pipeline step that produces the ConversionResult.

    Word count and reading time come from the rendered markdown before the
    frontmatter is added; truncation is applied last.
    """

    name = "postprocess"

    def __init__(self, frontmatter_builder: Optional[FrontmatterBuilder] = None):
        self._frontmatter_builder = frontmatter_builder or FrontmatterBuilder()

    def _count(self, ctx: ConversionContext, tag_name: str, included: bool) -> int:
        if not included:
            return 0
        return len(dom.load(ctx.html).find_all(tag_name))

    async def execute(
        self,
        ctx: ConversionContext,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        options = ctx.options
        markdown = ctx.markdown or ""

        word_count, reading_time = calculate_markdown_stats(markdown, has_frontmatter=False)
        metadata = ctx.metadata.with_stats(word_count, reading_time)

        has_frontmatter = options.include_meta and not metadata.is_empty()
        if has_frontmatter:
            markdown = self._frontmatter_builder.build(metadata.to_dict()) + markdown

        markdown = post_process(markdown, has_frontmatter=has_frontmatter)
        markdown = truncate_markdown(markdown, options.max_length)

        stats = ConversionStats(
            input_length=len(ctx.source_html),
            output_length=len(markdown),
            processing_time_ms=ctx.elapsed_ms,
            extraction_succeeded=ctx.extraction_succeeded,
            image_count=self._count(ctx, "img", options.include_images),
            link_count=self._count(ctx, "a", options.include_links),
        )

        ctx.markdown = markdown
        ctx.result = ConversionResult(markdown=markdown, metadata=metadata, stats=stats)
        logger.debug(f"Converted {stats.input_length} chars of HTML to {stats.output_length} chars of markdown")
        return ctx
