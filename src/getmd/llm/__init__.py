"""Local language model support: model file management and rendering."""

from .errors import (
    ModelError,
    ModelInferenceError,
    ModelLoadError,
    ModelNotLoadedError,
    ModelUnavailableError,
)
from .manager import (
    MODEL_VARIANTS,
    ModelInfo,
    ModelManager,
    ModelStatus,
    ModelVariant,
    check_model,
    download_model,
    format_bytes,
    get_model_info,
    remove_model,
)
from .renderer import ModelRenderer, ModelRenderResult, RenderStatus, render_with_model

__all__ = [
    # Errors
    "ModelError",
    "ModelUnavailableError",
    "ModelLoadError",
    "ModelNotLoadedError",
    "ModelInferenceError",
    # Manager
    "ModelManager",
    "ModelStatus",
    "ModelInfo",
    "ModelVariant",
    "MODEL_VARIANTS",
    "check_model",
    "download_model",
    "remove_model",
    "get_model_info",
    "format_bytes",
    # Renderer
    "ModelRenderer",
    "ModelRenderResult",
    "RenderStatus",
    "render_with_model",
]
