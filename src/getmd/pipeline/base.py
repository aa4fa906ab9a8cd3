"""Base classes for the conversion pipeline architecture."""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Protocol, runtime_checkable

from ..models.config import ConversionOptions
from ..models.events import RenderEvent
from ..models.result import ContentMetadata, ConversionResult

logger = logging.getLogger(__name__)

# Type alias for event emitter function
EventEmitter = Callable[[RenderEvent], None]


class RenderMode(str, Enum):
    """
    States of the render-mode state machine.

    DETERMINISTIC, MODEL and FALLBACK_TO_DETERMINISTIC are successful end
    states; FAILED is the error end state. MODEL_ATTEMPT is only ever
    observed while the model is running.
    """

    DETERMINISTIC = "deterministic"
    MODEL_ATTEMPT = "model-attempt"
    MODEL = "model"
    FALLBACK_TO_DETERMINISTIC = "fallback-to-deterministic"
    FAILED = "failed"


@dataclass
class ConversionContext:
    """
    Context object passed through pipeline steps.

    Steps hand work to each other as strings only; no step keeps a parsed
    tree that a later step could see.

    Attributes:
        source_html: The original document, never modified
        options: Resolved options for this conversion
        html: Working HTML, rewritten by each HTML stage
        markdown: Rendered markdown, rewritten by each markdown stage
        metadata: Metadata accumulated by the extract and metadata steps
        extraction_succeeded: Whether main-content extraction was used
        render_mode: Final state of the render-mode state machine
        result: The finished ConversionResult (set by the last step)
    """

    source_html: str
    options: ConversionOptions
    html: str = ""
    markdown: Optional[str] = None
    metadata: ContentMetadata = field(default_factory=ContentMetadata)
    extraction_succeeded: bool = False
    render_mode: Optional[RenderMode] = None
    result: Optional[ConversionResult] = None
    started_at: float = field(default_factory=time.monotonic)

    def __post_init__(self) -> None:
        if not self.html:
            self.html = self.source_html

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)


@runtime_checkable
class ConversionStep(Protocol):
    """
    Protocol for pipeline steps.

    Each step receives a ConversionContext, processes it, and returns
    the (possibly modified) context.

    Error Handling Contract:
    - Recoverable problems (e.g. extraction failure) are handled inside
      the step and logged
    - Anything else is raised; the pipeline logs it and re-raises

    Example implementation:
        class UppercaseStep:
            name = "uppercase"

            async def execute(
                self,
                ctx: ConversionContext,
                emit: Optional[EventEmitter] = None
            ) -> ConversionContext:
                ctx.markdown = ctx.markdown.upper()
                return ctx
    """

    name: str

    async def execute(
        self,
        ctx: ConversionContext,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        """
        Execute this pipeline step.

        Args:
            ctx: The conversion context with accumulated state
            emit: Optional callback to emit events

        Returns:
            The (possibly modified) conversion context
        """
        ...


@dataclass
class ConversionPipeline:
    """
    Pipeline taking one document through the conversion steps.

    Steps are executed in order. If a step raises an exception, it is
    logged with the step name and propagated unchanged.

    Example:
        pipeline = ConversionPipeline(steps=[
            ExtractStep(),
            MetadataStep(),
            CleanStep(),
            RenderStep(),
            PostProcessStep(),
        ])

        ctx = await pipeline.execute(html, options, emit=log_event)
        print(ctx.result.markdown)
    """

    steps: list[ConversionStep]

    async def execute(
        self,
        html: str,
        options: ConversionOptions,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        """
        Execute the pipeline for a document.

        Args:
            html: The HTML document
            options: Resolved conversion options
            emit: Optional callback for emitting events

        Returns:
            ConversionContext with final state
        """
        ctx = ConversionContext(source_html=html, options=options)

        for step in self.steps:
            try:
                ctx = await step.execute(ctx, emit)
            except Exception as e:
                logger.error(f"Conversion step '{step.name}' failed: {e}")
                raise

        return ctx

    def add_step(self, step: ConversionStep) -> "ConversionPipeline":
        """
        Add a step to the pipeline (fluent API).

        Args:
            step: The step to add

        Returns:
            Self for chaining
        """
        self.steps.append(step)
        return self
