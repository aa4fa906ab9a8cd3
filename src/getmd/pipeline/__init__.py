"""Pipeline architecture for document conversion."""

from .base import ConversionContext, ConversionPipeline, ConversionStep, EventEmitter, RenderMode

__all__ = ["ConversionContext", "ConversionPipeline", "ConversionStep", "EventEmitter", "RenderMode"]
