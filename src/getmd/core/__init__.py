"""Conversion entry points."""

from .converter import Converter, build_pipeline, convert_blocking, convert_to_markdown, fetch_and_convert

__all__ = ["Converter", "build_pipeline", "convert_blocking", "convert_to_markdown", "fetch_and_convert"]
