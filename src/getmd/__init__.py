"""
getmd - Convert HTML into clean, LLM-ready Markdown.

Usage:
    from getmd import convert_to_markdown, ConversionOptions

    result = await convert_to_markdown(
        "<h1>Hello</h1><p>World</p>",
        ConversionOptions(include_meta=False),
    )
    print(result.markdown)
"""

__version__ = "1.0.0"

from .conversion.metadata import extract_metadata
from .core.converter import Converter, convert_blocking, convert_to_markdown, fetch_and_convert
from .llm import (
    ModelError,
    ModelManager,
    ModelRenderer,
    check_model,
    download_model,
    get_model_info,
    remove_model,
)
from .models.config import ConversionOptions, FetchOptions, GetMdConfig
from .models.events import EventType, RenderEvent
from .models.result import ContentMetadata, ConversionResult, ConversionStats
from .models.rules import MarkdownRule
from .pipeline.base import RenderMode
from .validators import has_content

__all__ = [
    "__version__",
    # Core
    "Converter",
    "convert_to_markdown",
    "fetch_and_convert",
    "convert_blocking",
    "has_content",
    "extract_metadata",
    # Config
    "ConversionOptions",
    "FetchOptions",
    "GetMdConfig",
    "MarkdownRule",
    # Results
    "ConversionResult",
    "ContentMetadata",
    "ConversionStats",
    "RenderMode",
    # Events
    "EventType",
    "RenderEvent",
    # Local model
    "ModelError",
    "ModelManager",
    "ModelRenderer",
    "check_model",
    "download_model",
    "remove_model",
    "get_model_info",
]
