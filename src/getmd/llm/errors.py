"""Errors raised by the local model renderer."""


class ModelError(RuntimeError):
    """Base class for local model failures."""


class ModelUnavailableError(ModelError):
    """The model file is missing or empty."""

    def __init__(self, path: str):
        super().__init__(f"LLM model not found at {path}. Download it with: getmd --download-model")
        self.path = path


class ModelLoadError(ModelError):
    """The inference engine could not load the model file."""

    def __init__(self, reason: str):
        super().__init__(f"Failed to load LLM model: {reason}")


class ModelNotLoadedError(ModelError):
    """convert() was called before load()."""

    def __init__(self) -> None:
        super().__init__("Model not loaded. Call load() first.")


class ModelInferenceError(ModelError):
    """Generation failed after the model was loaded."""
