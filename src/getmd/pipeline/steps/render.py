"""Pipeline step choosing between the deterministic and model renderers."""

import logging
from typing import Awaitable, Callable, Optional

from ...conversion.markdown import DeterministicRenderer
from ...conversion.protocols import HtmlRenderer
from ...llm.renderer import ModelRenderResult, RenderStatus, render_with_model
from ...models.config import ConversionOptions
from ...models.events import EventType, RenderEvent
from ..base import ConversionContext, EventEmitter, RenderMode

logger = logging.getLogger(__name__)

RendererFactory = Callable[[ConversionOptions], HtmlRenderer]
ModelRunner = Callable[[str, ConversionOptions], Awaitable[ModelRenderResult]]


def default_renderer(options: ConversionOptions) -> HtmlRenderer:
    return DeterministicRenderer(custom_rules=options.custom_rules, base_url=options.base_url)


class RenderStep:
    """
    Pipeline step that renders the cleaned HTML to markdown.

    Without use_llm the deterministic renderer runs directly. With it the
    model is tried first; a failed attempt either falls back to the
    deterministic renderer on the same HTML (emitting fallback-start) or,
    when fallback is disabled, raises the model error.

    Example:
        step = RenderStep()
        ctx = await step.execute(ctx, emit=callback)
        print(ctx.render_mode, ctx.markdown)
    """

    name = "render"

    def __init__(
        self,
        renderer_factory: RendererFactory = default_renderer,
        model_runner: ModelRunner = render_with_model,
    ):
        """
        Initialize the render step.

        Args:
            renderer_factory: Builds the deterministic renderer for the options
            model_runner: Runs the model for one document
        """
        self._renderer_factory = renderer_factory
        self._model_runner = model_runner

    def _render_deterministic(self, ctx: ConversionContext) -> str:
        return self._renderer_factory(ctx.options).render(ctx.html)

    async def execute(
        self,
        ctx: ConversionContext,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        if not ctx.options.use_llm:
            ctx.render_mode = RenderMode.DETERMINISTIC
            ctx.markdown = self._render_deterministic(ctx)
            return ctx

        ctx.render_mode = RenderMode.MODEL_ATTEMPT
        result = await self._model_runner(ctx.html, ctx.options)

        if result.status is RenderStatus.SUCCESS:
            ctx.render_mode = RenderMode.MODEL
            ctx.markdown = result.markdown or ""
            return ctx

        if result.status is RenderStatus.NEEDS_FALLBACK:
            logger.warning(f"Model rendering failed, falling back to deterministic renderer: {result.error}")
            if emit:
                emit(RenderEvent(type=EventType.FALLBACK_START, reason=str(result.error)))
            ctx.render_mode = RenderMode.FALLBACK_TO_DETERMINISTIC
            ctx.markdown = self._render_deterministic(ctx)
            return ctx

        ctx.render_mode = RenderMode.FAILED
        if result.error is not None:
            raise result.error
        raise RuntimeError("Model rendering failed")
