"""
Anthropic Messages API backend.

The Messages API already speaks the runtime's block format, so content
blocks are passed through as plain dictionaries.
"""

import logging
from typing import Any, Optional

import anthropic

from ..config import BackendConfig
from ..errors import BackendError
from .base import ModelBackend, ModelResponse

logger = logging.getLogger(__name__)


class AnthropicBackend(ModelBackend):
    """Backend using ``anthropic.AsyncAnthropic``."""

    def __init__(self, backend_config: BackendConfig, client: Optional[Any] = None):
        self.model = backend_config.model
        self.temperature = backend_config.temperature
        if client is None:
            client_kwargs: dict[str, Any] = {"timeout": backend_config.timeout}
            if backend_config.api_key:
                client_kwargs["api_key"] = backend_config.api_key
            if backend_config.base_url:
                client_kwargs["base_url"] = backend_config.base_url
            client = anthropic.AsyncAnthropic(**client_kwargs)
        self._client = client

    async def complete(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        *,
        max_tokens: int,
        tools: Optional[list[dict[str, Any]]] = None,
    ) -> ModelResponse:
        create_kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "system": system_prompt,
            "messages": messages,
            "temperature": self.temperature,
        }
        if tools:
            create_kwargs["tools"] = tools

        try:
            response = await self._client.messages.create(**create_kwargs)
        except anthropic.APIError as e:
            logger.error("Anthropic request failed: %s", e)
            raise BackendError(f"Model backend request failed: {e}") from e

        content = getattr(response, "content", None)
        if content is None:
            raise BackendError("Model backend returned no content")

        blocks = []
        for block in content:
            if hasattr(block, "model_dump"):
                blocks.append(block.model_dump(exclude_none=True))
            elif isinstance(block, dict):
                blocks.append(block)
            else:
                raise BackendError(f"Unexpected content block: {block!r}")

        usage = {}
        if getattr(response, "usage", None) is not None:
            usage = {
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            }

        return ModelResponse(
            content=blocks,
            stop_reason=response.stop_reason or "end_turn",
            usage=usage,
        )

    async def close(self) -> None:
        try:
            await self._client.close()
        except Exception as e:
            logger.debug("Error closing Anthropic client: %s", e)
