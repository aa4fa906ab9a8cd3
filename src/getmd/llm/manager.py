"""Local model file management: availability, download and removal."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Union

import aiohttp

from ..models.config import DEFAULT_USER_AGENT, MODEL_FILE_NAME, default_model_path
from ..models.events import EventCallback, EventType, ModelCheckStatus, RenderEvent

logger = logging.getLogger(__name__)

MODEL_NAME = "ReaderLM-v2-Q4_K_M"
MODEL_REPO = "jinaai/ReaderLM-v2-GGUF"
MODEL_URL = f"https://huggingface.co/{MODEL_REPO}/resolve/main/{MODEL_FILE_NAME}"
MODEL_SIZE = 986 * 1024 * 1024
MODEL_VERSION = "2.0"

DOWNLOAD_CHUNK_SIZE = 1024 * 1024
DOWNLOAD_READ_TIMEOUT = 60.0

PathLike = Union[str, Path]
ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class ModelVariant:
    """A published quantization of the model."""

    name: str
    size: int
    quantization: str
    ram_required: str


MODEL_VARIANTS = (
    ModelVariant("ReaderLM-v2-Q2_K", 500 * 1024 * 1024, "Q2_K", "1-2GB"),
    ModelVariant("ReaderLM-v2-Q4_K_M", 986 * 1024 * 1024, "Q4_K_M", "2-4GB"),
    ModelVariant("ReaderLM-v2-Q8_0", 1600 * 1024 * 1024, "Q8_0", "3-5GB"),
)


@dataclass(frozen=True)
class ModelStatus:
    """Result of a model availability check."""

    available: bool
    path: Path
    size: Optional[int] = None
    version: Optional[str] = None

    @property
    def size_formatted(self) -> Optional[str]:
        return format_bytes(self.size) if self.size is not None else None


@dataclass(frozen=True)
class ModelInfo:
    """Static information about the supported models."""

    default_path: Path
    recommended_model: str
    available_models: tuple[ModelVariant, ...] = field(default=MODEL_VARIANTS)


def format_bytes(size: int) -> str:
    """Format a byte count for humans (e.g. 986MB, 1.56GB)."""
    if size < 1024:
        return f"{size}B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f}KB"
    if size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.0f}MB"
    return f"{size / (1024 * 1024 * 1024):.2f}GB"


def model_file_size(path: Path) -> Optional[int]:
    """Size of a usable model file, or None when missing or empty."""
    try:
        stat = path.stat()
    except OSError:
        return None
    if not path.is_file() or stat.st_size == 0:
        return None
    return stat.st_size


class ModelManager:
    """
    Checks, downloads and removes the local model file.

    Example:
        manager = ModelManager(on_event=print)
        status = await manager.check_model()
        if not status.available:
            await manager.download_model()
    """

    def __init__(
        self,
        model_path: Optional[PathLike] = None,
        on_event: Optional[EventCallback] = None,
    ):
        self._model_path = Path(model_path) if model_path else default_model_path()
        self._on_event = on_event

    @property
    def model_path(self) -> Path:
        return self._model_path

    def _emit(self, event: RenderEvent) -> None:
        if self._on_event is not None:
            self._on_event(event)

    async def check_model(self) -> ModelStatus:
        """Check whether a non-empty model file exists."""
        self._emit(RenderEvent(type=EventType.MODEL_CHECK, status=ModelCheckStatus.CHECKING))

        size = model_file_size(self._model_path)
        if size is None:
            self._emit(RenderEvent(type=EventType.MODEL_CHECK, status=ModelCheckStatus.NOT_FOUND))
            return ModelStatus(available=False, path=self._model_path)

        self._emit(
            RenderEvent(
                type=EventType.MODEL_CHECK,
                status=ModelCheckStatus.FOUND,
                path=str(self._model_path),
            )
        )
        return ModelStatus(available=True, path=self._model_path, size=size, version=MODEL_VERSION)

    async def download_model(
        self,
        model_path: Optional[PathLike] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Path:
        """
        Download the model from Hugging Face.

        The file is written next to the target with a .part suffix and only
        renamed into place once complete.

        Args:
            model_path: Target path (defaults to this manager's path)
            on_progress: Called with (downloaded_bytes, total_bytes)

        Returns:
            Path of the downloaded model

        Raises:
            aiohttp.ClientError: On network errors or non-2xx status
        """
        target = Path(model_path) if model_path else self._model_path
        target.parent.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(target.name + ".part")

        self._emit(RenderEvent(type=EventType.DOWNLOAD_START, model_name=MODEL_NAME, total=MODEL_SIZE))
        logger.info(f"Downloading {MODEL_NAME} to {target}")

        try:
            timeout = aiohttp.ClientTimeout(total=None, sock_read=DOWNLOAD_READ_TIMEOUT)
            async with aiohttp.ClientSession(headers={"User-Agent": DEFAULT_USER_AGENT}) as session:
                async with session.get(MODEL_URL, timeout=timeout) as response:
                    response.raise_for_status()
                    total = response.content_length or MODEL_SIZE
                    downloaded = 0

                    with partial.open("wb") as f:
                        async for chunk in response.content.iter_chunked(DOWNLOAD_CHUNK_SIZE):
                            f.write(chunk)
                            downloaded += len(chunk)
                            self._emit(
                                RenderEvent(
                                    type=EventType.DOWNLOAD_PROGRESS,
                                    downloaded=downloaded,
                                    total=total,
                                )
                            )
                            if on_progress is not None:
                                on_progress(downloaded, total)

            partial.replace(target)
        except Exception as e:
            partial.unlink(missing_ok=True)
            logger.error(f"Model download failed: {e}")
            self._emit(RenderEvent(type=EventType.DOWNLOAD_ERROR, error=str(e)))
            raise

        size = target.stat().st_size
        self._emit(RenderEvent(type=EventType.DOWNLOAD_COMPLETE, path=str(target), size=size))
        logger.info(f"Model saved to {target} ({format_bytes(size)})")
        return target

    async def remove_model(self) -> None:
        """Delete the model file; a missing file is not an error."""
        try:
            self._model_path.unlink()
            logger.info(f"Removed model {self._model_path}")
        except FileNotFoundError:
            logger.debug(f"No model to remove at {self._model_path}")

    @staticmethod
    def get_model_info() -> ModelInfo:
        return ModelInfo(default_path=default_model_path(), recommended_model=MODEL_NAME)


async def check_model(
    model_path: Optional[PathLike] = None,
    on_event: Optional[EventCallback] = None,
) -> ModelStatus:
    """
    Check if the model is available locally.

    Example:
        status = await check_model()
        print(status.available, status.path)
    """
    return await ModelManager(model_path, on_event).check_model()


async def download_model(
    model_path: Optional[PathLike] = None,
    on_progress: Optional[ProgressCallback] = None,
    on_event: Optional[EventCallback] = None,
) -> Path:
    """Download the model (see ModelManager.download_model)."""
    return await ModelManager(model_path, on_event).download_model(on_progress=on_progress)


async def remove_model(model_path: Optional[PathLike] = None) -> None:
    await ModelManager(model_path).remove_model()


def get_model_info() -> ModelInfo:
    return ModelManager.get_model_info()
