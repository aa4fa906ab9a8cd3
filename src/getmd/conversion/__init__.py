"""HTML transformation stages for getmd (cleaning through post-processing)."""

from .cleaner import clean_html
from .code_blocks import normalize_code_blocks
from .dom import NodeKind, node_kind
from .enhancer import enhance_structure
from .extractor import ExtractedContent, ReadabilityExtractor
from .filters import filter_content
from .formatter import format_for_llm
from .markdown import DeterministicRenderer
from .metadata import extract_metadata
from .postprocess import FrontmatterBuilder, calculate_markdown_stats, post_process, truncate_markdown
from .protocols import ContentExtractor, HtmlRenderer
from .rules import BUILTIN_RULES

__all__ = [
    # Protocols
    "ContentExtractor",
    "HtmlRenderer",
    # Implementations
    "ReadabilityExtractor",
    "ExtractedContent",
    "DeterministicRenderer",
    "FrontmatterBuilder",
    "BUILTIN_RULES",
    # Stages
    "extract_metadata",
    "clean_html",
    "enhance_structure",
    "normalize_code_blocks",
    "filter_content",
    "format_for_llm",
    "post_process",
    "calculate_markdown_stats",
    "truncate_markdown",
    # DOM
    "NodeKind",
    "node_kind",
]
