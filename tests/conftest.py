"""Shared fixtures for getmd tests."""

import sys
from types import SimpleNamespace
from unittest.mock import patch

import pytest


class FakeLlama:
    """Stand-in for llama_cpp.Llama that streams canned chunks."""

    pieces: list = ["# Converted\n\n", "Body text"]
    fail_on_load = False
    fail_on_generate = False

    def __init__(self, model_path, n_ctx, verbose):
        if self.fail_on_load:
            raise ValueError("corrupt model file")
        self.model_path = model_path
        self.n_ctx = n_ctx
        self.close_calls = 0
        self.requests = []

    def create_chat_completion(self, messages, temperature, max_tokens, stream):
        self.requests.append(
            {"messages": messages, "temperature": temperature, "max_tokens": max_tokens, "stream": stream}
        )
        if self.fail_on_generate:
            raise RuntimeError("out of memory")
        for piece in self.pieces:
            yield {"choices": [{"delta": {"content": piece}}]}

    def close(self):
        self.close_calls += 1


@pytest.fixture
def fake_llama():
    """Install a fake llama_cpp module; yields the Llama class for configuring."""
    llama_class = type("Llama", (FakeLlama,), {})
    module = SimpleNamespace(Llama=llama_class)
    with patch.dict(sys.modules, {"llama_cpp": module}):
        yield llama_class


@pytest.fixture
def model_file(tmp_path):
    """A non-empty file standing in for the GGUF model."""
    path = tmp_path / "models" / "ReaderLM-v2-Q4_K_M.gguf"
    path.parent.mkdir()
    path.write_bytes(b"GGUF" + b"\0" * 64)
    return path


@pytest.fixture
def events():
    """List collecting RenderEvents; pass events.append as on_event."""
    return []
