"""Pydantic configuration models for getmd."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .events import RenderEvent
from .rules import MarkdownRule

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; getmd/1.0; +https://github.com/getmd/getmd)"
DEFAULT_FETCH_TIMEOUT = 15.0
DEFAULT_MAX_LENGTH = 1_000_000
DEFAULT_LLM_TEMPERATURE = 0.0
DEFAULT_LLM_MAX_TOKENS = 4096

MODEL_FILE_NAME = "ReaderLM-v2-Q4_K_M.gguf"


def default_model_dir() -> Path:
    """Models live in ~/.getmd/models/."""
    return Path(os.path.expanduser("~")) / ".getmd" / "models"


def default_model_path() -> Path:
    return default_model_dir() / MODEL_FILE_NAME


class ConversionOptions(BaseModel):
    """
    Fully-populated configuration snapshot for one conversion.

    Every field has a default, so pipeline stages never branch on a
    missing value. Build one with resolve_options() at the entry point.

    Example:
        options = ConversionOptions(include_images=False, max_length=5000)
        result = await convert_to_markdown(html, options)
    """

    # Extraction and cleanup
    extract_content: bool = Field(True, description="Isolate the main content before converting")
    aggressive_cleanup: bool = Field(True, description="Remove navigation, ads, banners and similar noise")
    base_url: Optional[str] = Field(None, description="Base URL for resolving relative links")

    # Content filtering
    include_images: bool = Field(True, description="Keep images in the output")
    include_links: bool = Field(True, description="Keep links in the output (text is kept either way)")
    include_tables: bool = Field(True, description="Keep tables in the output")

    # Output shaping
    include_meta: bool = Field(True, description="Prefix the markdown with a frontmatter block")
    llm_optimized: bool = Field(True, description="Apply markdown-level normalization after rendering")
    max_length: int = Field(DEFAULT_MAX_LENGTH, ge=0, description="Maximum output length in characters")
    custom_rules: list[Any] = Field(
        default_factory=list,
        description="Extra MarkdownRule objects; a rule named like a built-in replaces it",
    )

    # Model rendering
    use_llm: bool = Field(False, description="Render with the local language model")
    llm_model_path: Optional[Path] = Field(None, description="Model file path (default: ~/.getmd/models)")
    llm_temperature: float = Field(DEFAULT_LLM_TEMPERATURE, ge=0, le=2, description="Sampling temperature")
    llm_max_tokens: int = Field(DEFAULT_LLM_MAX_TOKENS, ge=1, description="Maximum tokens to generate")
    llm_fallback: bool = Field(True, description="Fall back to the deterministic renderer on model failure")

    # Observability
    on_event: Optional[Callable[[RenderEvent], None]] = Field(
        None,
        description="Callback receiving RenderEvent notifications",
    )

    model_config = {"extra": "forbid", "frozen": True}

    @field_validator("custom_rules")
    @classmethod
    def _check_rules(cls, rules: list[Any]) -> list[Any]:
        for rule in rules:
            if not isinstance(rule, MarkdownRule):
                raise ValueError(f"custom_rules entries must be MarkdownRule, got {type(rule).__name__}")
        return rules

    @property
    def model_path(self) -> Path:
        """Model file path with the default applied."""
        return self.llm_model_path or default_model_path()


def resolve_options(
    options: Union[ConversionOptions, Mapping[str, Any], None] = None,
    **overrides: Any,
) -> ConversionOptions:
    """
    Resolve caller options into one immutable ConversionOptions.

    Overrides set to None are treated as "not given" and do not replace
    the value from options or the defaults.

    Args:
        options: Base options (model instance or mapping)
        **overrides: Individual option values

    Returns:
        A validated ConversionOptions
    """
    if isinstance(options, ConversionOptions):
        values: dict[str, Any] = dict(options)
    elif options is None:
        values = {}
    else:
        values = {key: value for key, value in options.items() if value is not None}

    values.update({key: value for key, value in overrides.items() if value is not None})
    return ConversionOptions(**values)


class FetchOptions(BaseModel):
    """Options for fetching HTML from a URL."""

    timeout: float = Field(DEFAULT_FETCH_TIMEOUT, gt=0, description="Request timeout in seconds")
    follow_redirects: bool = Field(True, description="Follow HTTP redirects")
    max_redirects: int = Field(5, ge=0, description="Maximum redirects to follow")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra request headers")
    user_agent: str = Field(DEFAULT_USER_AGENT, description="User-Agent header")

    model_config = {"extra": "forbid"}


class GetMdConfig(BaseModel):
    """
    Schema for getmd config files (.getmdrc, getmd.config.json, getmd.config.yaml).

    Only keys present in the file are set; everything else stays None so
    that merging never overrides an option the file did not mention.

    YAML format:
        use_llm: true
        llm_temperature: 0.2
        include_images: false
        max_length: 50000
    """

    use_llm: Optional[bool] = Field(None, strict=True, description="Render with the local language model")
    llm_model_path: Optional[str] = Field(None, strict=True, description="Custom model file path")
    llm_temperature: Optional[float] = Field(None, ge=0, le=2, strict=True, description="Sampling temperature")
    llm_fallback: Optional[bool] = Field(None, strict=True, description="Fall back on model failure")
    extract_content: Optional[bool] = Field(None, strict=True, description="Isolate the main content")
    include_meta: Optional[bool] = Field(None, strict=True, description="Include frontmatter")
    include_images: Optional[bool] = Field(None, strict=True, description="Keep images")
    include_links: Optional[bool] = Field(None, strict=True, description="Keep links")
    include_tables: Optional[bool] = Field(None, strict=True, description="Keep tables")
    aggressive_cleanup: Optional[bool] = Field(None, strict=True, description="Aggressive noise removal")
    max_length: Optional[int] = Field(None, ge=0, strict=True, description="Maximum output length")

    model_config = {"extra": "forbid"}

    def to_options(self) -> dict[str, Any]:
        """Keys explicitly set in the config file."""
        return self.model_dump(exclude_none=True)

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> GetMdConfig:
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str)
        return cls.model_validate(data if data is not None else {})
