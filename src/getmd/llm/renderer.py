"""HTML to Markdown rendering with a local ReaderLM-v2 model (llama.cpp)."""

from __future__ import annotations

import asyncio
import importlib
import logging
import re
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, AsyncIterator, Optional, Union

from ..models.config import DEFAULT_LLM_MAX_TOKENS, DEFAULT_LLM_TEMPERATURE, ConversionOptions
from ..models.events import EventCallback, EventType, RenderEvent
from .errors import (
    ModelError,
    ModelInferenceError,
    ModelLoadError,
    ModelNotLoadedError,
    ModelUnavailableError,
)
from .manager import ModelManager

logger = logging.getLogger(__name__)

ENGINE_MODULE = "llama_cpp"
MODEL_DISPLAY_NAME = "ReaderLM-v2"

# Context window cap; bounds memory while covering long documents
MAX_CONTEXT_SIZE = 8192

# Emit a progress event every this many streamed chunks
PROGRESS_INTERVAL = 100

PROMPT_TEMPLATE = "Extract the main content from the given HTML and convert it to Markdown format.\n```html\n{html}\n```"

# The model sometimes wraps its whole answer in a markdown fence
WRAPPING_FENCE = re.compile(r"^```(?:markdown|md)?\s*\n([\s\S]*?)\n```\s*$")


def build_prompt(html: str) -> str:
    return PROMPT_TEMPLATE.format(html=html)


def clean_model_output(output: str) -> str:
    """Strip surrounding whitespace and a fence wrapping the whole answer."""
    cleaned = output.strip()
    match = WRAPPING_FENCE.match(cleaned)
    if match:
        cleaned = match.group(1)
    return cleaned.strip()


class ModelRenderer:
    """
    Converts HTML to Markdown with a local GGUF model.

    The model is a native allocation the garbage collector will not free
    promptly, so callers release it explicitly with unload() or scope it
    with loaded().

    Example:
        renderer = ModelRenderer("~/.getmd/models/ReaderLM-v2-Q4_K_M.gguf")
        async with renderer.loaded():
            markdown = await renderer.convert("<h1>Hello</h1>")
    """

    def __init__(
        self,
        model_path: Union[str, Path],
        on_event: Optional[EventCallback] = None,
        temperature: float = DEFAULT_LLM_TEMPERATURE,
        max_tokens: int = DEFAULT_LLM_MAX_TOKENS,
    ):
        """
        Initialize the renderer.

        Args:
            model_path: Path of the GGUF model file
            on_event: Callback receiving RenderEvent notifications
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
        """
        self._model_path = Path(model_path).expanduser()
        self._on_event = on_event
        self._temperature = temperature
        self._max_tokens = max_tokens

        self._engine: Any = None
        self._model: Any = None

    @property
    def context_size(self) -> int:
        return min(self._max_tokens, MAX_CONTEXT_SIZE)

    def _emit(self, event: RenderEvent) -> None:
        if self._on_event is not None:
            self._on_event(event)

    def is_loaded(self) -> bool:
        return self._model is not None

    async def load(self) -> None:
        """
        Load the model into memory.

        Raises:
            ModelLoadError: If the engine is missing or the model cannot be loaded
        """
        if self.is_loaded():
            return

        start = time.monotonic()
        self._emit(RenderEvent(type=EventType.MODEL_LOADING, model_name=MODEL_DISPLAY_NAME))

        try:
            self._emit(RenderEvent(type=EventType.LLAMA_INIT_START))
            self._engine = importlib.import_module(ENGINE_MODULE)
            self._emit(RenderEvent(type=EventType.LLAMA_INIT_COMPLETE))

            self._emit(RenderEvent(type=EventType.MODEL_FILE_LOADING, path=str(self._model_path)))
            self._model = await asyncio.to_thread(
                self._engine.Llama,
                model_path=str(self._model_path),
                n_ctx=self.context_size,
                verbose=False,
            )
        except Exception as e:
            self.unload()
            raise ModelLoadError(str(e)) from e

        load_time_ms = int((time.monotonic() - start) * 1000)
        logger.debug(f"Loaded {self._model_path} in {load_time_ms}ms")
        self._emit(RenderEvent(type=EventType.MODEL_LOADED, load_time_ms=load_time_ms))

    def unload(self) -> None:
        """Release the model and the engine. Safe to call repeatedly."""
        model, self._model = self._model, None
        if model is not None:
            # close() frees the llama context before the model weights
            close = getattr(model, "close", None)
            if close is not None:
                close()
            logger.debug(f"Unloaded {self._model_path}")
        self._engine = None

    @asynccontextmanager
    async def loaded(self) -> AsyncIterator[ModelRenderer]:
        """Load for the duration of the block, unloading on every exit path."""
        await self.load()
        try:
            yield self
        finally:
            self.unload()

    def _generate(self, prompt: str, loop: asyncio.AbstractEventLoop) -> str:
        """Run streaming generation; executed in a worker thread."""
        stream = self._model.create_chat_completion(
            messages=[{"role": "user", "content": prompt}],
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            stream=True,
        )

        parts = []
        chunks = 0
        for chunk in stream:
            content = chunk["choices"][0]["delta"].get("content")
            if content:
                parts.append(content)
            chunks += 1
            if chunks % PROGRESS_INTERVAL == 0:
                event = RenderEvent(type=EventType.CONVERSION_PROGRESS, tokens_processed=chunks)
                loop.call_soon_threadsafe(self._emit, event)

        return "".join(parts)

    async def convert(self, html: str) -> str:
        """
        Convert HTML to Markdown.

        Args:
            html: Cleaned HTML

        Returns:
            Markdown produced by the model

        Raises:
            ModelNotLoadedError: If load() has not been called
            ModelInferenceError: If generation fails
        """
        if not self.is_loaded():
            raise ModelNotLoadedError()

        start = time.monotonic()
        self._emit(RenderEvent(type=EventType.CONVERSION_START, input_size=len(html)))

        try:
            raw = await asyncio.to_thread(self._generate, build_prompt(html), asyncio.get_running_loop())
        except Exception as e:
            self._emit(RenderEvent(type=EventType.CONVERSION_ERROR, error=str(e)))
            raise ModelInferenceError(f"Model inference failed: {e}") from e

        markdown = clean_model_output(raw)
        self._emit(
            RenderEvent(
                type=EventType.CONVERSION_COMPLETE,
                output_size=len(markdown),
                duration_ms=int((time.monotonic() - start) * 1000),
            )
        )
        return markdown


class RenderStatus(str, Enum):
    """Outcome of a model rendering attempt."""

    SUCCESS = "success"
    NEEDS_FALLBACK = "needs-fallback"
    FATAL = "fatal"


@dataclass(frozen=True)
class ModelRenderResult:
    """Markdown on success, otherwise the error and whether to fall back."""

    status: RenderStatus
    markdown: Optional[str] = None
    error: Optional[ModelError] = None


async def render_with_model(html: str, options: ConversionOptions) -> ModelRenderResult:
    """
    Check, load, run and release the model for one document.

    Model failures are returned rather than raised: NEEDS_FALLBACK when
    options.llm_fallback is set, FATAL otherwise.
    """
    model_path = options.model_path
    try:
        status = await ModelManager(model_path, options.on_event).check_model()
        if not status.available:
            raise ModelUnavailableError(str(model_path))

        renderer = ModelRenderer(
            model_path,
            on_event=options.on_event,
            temperature=options.llm_temperature,
            max_tokens=options.llm_max_tokens,
        )
        async with renderer.loaded():
            markdown = await renderer.convert(html)
    except ModelError as e:
        failed = RenderStatus.NEEDS_FALLBACK if options.llm_fallback else RenderStatus.FATAL
        return ModelRenderResult(status=failed, error=e)

    return ModelRenderResult(status=RenderStatus.SUCCESS, markdown=markdown)
