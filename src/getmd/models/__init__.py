"""getmd configuration, event and result models."""

from .config import (
    DEFAULT_USER_AGENT,
    ConversionOptions,
    FetchOptions,
    GetMdConfig,
    default_model_path,
    resolve_options,
)
from .events import EventCallback, EventType, ModelCheckStatus, RenderEvent
from .result import ContentMetadata, ConversionResult, ConversionStats
from .rules import MarkdownRule

__all__ = [
    # Config
    "DEFAULT_USER_AGENT",
    "ConversionOptions",
    "FetchOptions",
    "GetMdConfig",
    "default_model_path",
    "resolve_options",
    # Events
    "EventCallback",
    "EventType",
    "ModelCheckStatus",
    "RenderEvent",
    # Results
    "ContentMetadata",
    "ConversionResult",
    "ConversionStats",
    # Rules
    "MarkdownRule",
]
