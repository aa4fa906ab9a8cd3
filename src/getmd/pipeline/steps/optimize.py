"""Pipeline steps rewriting HTML ahead of rendering."""

import logging
from typing import Optional

from ...conversion.cleaner import clean_html
from ...conversion.code_blocks import normalize_code_blocks
from ...conversion.enhancer import enhance_structure
from ...conversion.filters import filter_content
from ..base import ConversionContext, EventEmitter

logger = logging.getLogger(__name__)


class CleanStep:
    """Removes noise, prunes attributes and resolves relative URLs."""

    name = "clean"

    async def execute(
        self,
        ctx: ConversionContext,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        before = len(ctx.html)
        ctx.html = clean_html(
            ctx.html,
            aggressive=ctx.options.aggressive_cleanup,
            base_url=ctx.options.base_url,
        )
        logger.debug(f"Cleaned HTML: {before} -> {len(ctx.html)} chars")
        return ctx


class EnhanceStep:
    """Repairs heading levels and unwraps redundant nesting."""

    name = "enhance"

    async def execute(
        self,
        ctx: ConversionContext,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        ctx.html = enhance_structure(ctx.html)
        return ctx


class CodeBlockStep:
    name = "code_blocks"

    async def execute(
        self,
        ctx: ConversionContext,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        ctx.html = normalize_code_blocks(ctx.html)
        return ctx


class FilterStep:
    """Drops images, links or tables the caller opted out of."""

    name = "filter"

    async def execute(
        self,
        ctx: ConversionContext,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        options = ctx.options
        ctx.html = filter_content(
            ctx.html,
            include_images=options.include_images,
            include_links=options.include_links,
            include_tables=options.include_tables,
        )
        return ctx
