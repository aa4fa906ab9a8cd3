"""Event types for render-progress notifications."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional


class EventType(str, Enum):
    """Types of events emitted while converting a document."""

    # Model availability
    MODEL_CHECK = "model-check"

    # Model lifecycle
    MODEL_LOADING = "model-loading"
    LLAMA_INIT_START = "llama-init-start"
    LLAMA_INIT_COMPLETE = "llama-init-complete"
    MODEL_FILE_LOADING = "model-file-loading"
    MODEL_LOADED = "model-loaded"

    # Model inference
    CONVERSION_START = "conversion-start"
    CONVERSION_PROGRESS = "conversion-progress"
    CONVERSION_COMPLETE = "conversion-complete"
    CONVERSION_ERROR = "conversion-error"

    # Model download
    DOWNLOAD_START = "download-start"
    DOWNLOAD_PROGRESS = "download-progress"
    DOWNLOAD_COMPLETE = "download-complete"
    DOWNLOAD_ERROR = "download-error"

    # Render-mode orchestration
    FALLBACK_START = "fallback-start"


class ModelCheckStatus(str, Enum):
    """Progress of a model availability check."""

    CHECKING = "checking"
    FOUND = "found"
    NOT_FOUND = "not-found"


@dataclass(frozen=True)
class RenderEvent:
    """
    Notification emitted while a document moves through the pipeline.

    Events are read-only and never carry pipeline state; observers may
    ignore them freely.

    Example:
        def on_event(event: RenderEvent) -> None:
            if event.type == EventType.CONVERSION_PROGRESS:
                print(f"{event.tokens_processed} tokens")
            elif event.type == EventType.FALLBACK_START:
                print(f"Falling back: {event.reason}")
    """

    type: EventType

    # Timestamp (always UTC)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Common fields
    message: Optional[str] = None
    error: Optional[str] = None

    # Model check / load
    status: Optional[ModelCheckStatus] = None
    path: Optional[str] = None
    model_name: Optional[str] = None
    load_time_ms: Optional[int] = None

    # Inference
    input_size: Optional[int] = None
    output_size: Optional[int] = None
    tokens_processed: Optional[int] = None
    duration_ms: Optional[int] = None

    # Download
    downloaded: Optional[int] = None
    total: Optional[int] = None
    size: Optional[int] = None

    # Fallback
    reason: Optional[str] = None

    @property
    def percentage(self) -> Optional[float]:
        """Download progress percentage if downloaded and total are set."""
        if self.downloaded is not None and self.total and self.total > 0:
            return (self.downloaded / self.total) * 100
        return None

    @property
    def is_error(self) -> bool:
        """Check if this is an error event."""
        return self.type in (EventType.CONVERSION_ERROR, EventType.DOWNLOAD_ERROR)


# Type alias for event callbacks
EventCallback = Callable[[RenderEvent], None]
