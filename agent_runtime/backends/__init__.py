"""
Hosted model backends.

``create_backend`` picks the implementation named by the configured
provider.
"""

from typing import Optional

from ..config import BackendConfig, config
from .base import STOP_END_TURN, STOP_MAX_TOKENS, STOP_TOOL_USE, ModelBackend, ModelResponse
from .anthropic_backend import AnthropicBackend
from .openai_backend import OpenAICompatibleBackend

_PROVIDERS = {
    "anthropic": AnthropicBackend,
    "openai_compatible": OpenAICompatibleBackend,
    "openai": OpenAICompatibleBackend,
    "ollama": OpenAICompatibleBackend,
}


def create_backend(backend_config: Optional[BackendConfig] = None) -> ModelBackend:
    """Build the model backend for the given (or global) configuration."""
    backend_config = backend_config or config.backend
    try:
        backend_cls = _PROVIDERS[backend_config.provider]
    except KeyError:
        raise ValueError(f"Unknown model provider: {backend_config.provider}")
    return backend_cls(backend_config)


__all__ = [
    "STOP_END_TURN",
    "STOP_MAX_TOKENS",
    "STOP_TOOL_USE",
    "ModelBackend",
    "ModelResponse",
    "AnthropicBackend",
    "OpenAICompatibleBackend",
    "create_backend",
]
