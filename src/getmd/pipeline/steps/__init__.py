"""Pipeline steps for document conversion."""

from .extract import ExtractStep, MetadataStep
from .finalize import FormatStep, PostProcessStep
from .optimize import CleanStep, CodeBlockStep, EnhanceStep, FilterStep
from .render import RenderStep

__all__ = [
    "CleanStep",
    "CodeBlockStep",
    "EnhanceStep",
    "ExtractStep",
    "FilterStep",
    "FormatStep",
    "MetadataStep",
    "PostProcessStep",
    "RenderStep",
]
