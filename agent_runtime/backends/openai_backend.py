"""
OpenAI-compatible chat completions backend (OpenAI, vLLM, Ollama).

Translates the runtime's block-based conversation into function-calling
messages and back:

- assistant ``tool_use`` blocks become ``tool_calls`` entries
- a user turn of ``tool_result`` blocks becomes one ``tool`` message per
  result, in block order
- ``finish_reason == "tool_calls"`` maps to ``stop_reason == "tool_use"``
"""

import json
import logging
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from ..config import BackendConfig
from ..errors import BackendError
from .base import STOP_END_TURN, STOP_MAX_TOKENS, STOP_TOOL_USE, ModelBackend, ModelResponse

logger = logging.getLogger(__name__)

_FINISH_REASONS = {
    "tool_calls": STOP_TOOL_USE,
    "function_call": STOP_TOOL_USE,
    "length": STOP_MAX_TOKENS,
}


def _text_of(blocks: list[dict[str, Any]]) -> str:
    return "".join(b.get("text", "") for b in blocks if b.get("type") == "text")


def to_openai_messages(system_prompt: str, messages: list[dict[str, Any]]) -> list[dict]:
    """Convert block-format messages into chat completion messages."""
    converted: list[dict] = [{"role": "system", "content": system_prompt}]

    for message in messages:
        role, content = message["role"], message["content"]
        if isinstance(content, str):
            converted.append({"role": role, "content": content})
            continue

        if role == "assistant":
            entry: dict[str, Any] = {"role": "assistant", "content": _text_of(content) or None}
            tool_calls = [
                {
                    "id": block["id"],
                    "type": "function",
                    "function": {
                        "name": block["name"],
                        "arguments": json.dumps(block.get("input") or {}),
                    },
                }
                for block in content
                if block.get("type") == "tool_use"
            ]
            if tool_calls:
                entry["tool_calls"] = tool_calls
            converted.append(entry)
            continue

        for block in content:
            if block.get("type") == "tool_result":
                converted.append(
                    {
                        "role": "tool",
                        "tool_call_id": block["tool_use_id"],
                        "content": block.get("content", ""),
                    }
                )
        text = _text_of(content)
        if text:
            converted.append({"role": role, "content": text})

    return converted


def to_openai_tools(tools: list[dict[str, Any]]) -> list[dict]:
    """Convert catalog entries into function tool definitions."""
    return [
        {
            "type": "function",
            "function": {
                "name": tool["name"],
                "description": tool.get("description", ""),
                "parameters": tool.get("input_schema") or {"type": "object", "properties": {}},
            },
        }
        for tool in tools
    ]


def _parse_arguments(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw or "{}")
    except (json.JSONDecodeError, TypeError):
        logger.warning("Failed to parse tool call arguments: %s", str(raw)[:200])
        return {}
    return parsed if isinstance(parsed, dict) else {}


class OpenAICompatibleBackend(ModelBackend):
    """Backend using ``openai.AsyncOpenAI`` against any compatible endpoint."""

    def __init__(self, backend_config: BackendConfig, client: Optional[Any] = None):
        self.model = backend_config.model
        self.temperature = backend_config.temperature
        if client is None:
            client = AsyncOpenAI(
                base_url=backend_config.base_url or None,
                api_key=backend_config.api_key or "not-needed",  # vLLM does not require auth
                timeout=backend_config.timeout,
            )
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
            "messages": to_openai_messages(system_prompt, messages),
            "temperature": self.temperature,
            "max_tokens": max_tokens,
        }
        if tools:
            create_kwargs["tools"] = to_openai_tools(tools)

        try:
            response = await self._client.chat.completions.create(**create_kwargs)
        except openai.OpenAIError as e:
            logger.error("OpenAI-compatible request failed: %s", e)
            raise BackendError(f"Model backend request failed: {e}") from e

        if not getattr(response, "choices", None):
            raise BackendError("Model backend returned no choices")

        choice = response.choices[0]
        message = choice.message
        blocks: list[dict[str, Any]] = []
        if message.content:
            blocks.append({"type": "text", "text": message.content})
        for call in message.tool_calls or []:
            blocks.append(
                {
                    "type": "tool_use",
                    "id": call.id,
                    "name": call.function.name,
                    "input": _parse_arguments(call.function.arguments),
                }
            )

        stop_reason = _FINISH_REASONS.get(choice.finish_reason or "", STOP_END_TURN)
        if stop_reason == STOP_TOOL_USE and not message.tool_calls:
            stop_reason = STOP_END_TURN

        usage = {}
        if getattr(response, "usage", None) is not None:
            usage = {
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            }

        return ModelResponse(content=blocks, stop_reason=stop_reason, usage=usage)

    async def close(self) -> None:
        try:
            await self._client.close()
        except Exception as e:
            logger.debug("Error closing OpenAI client: %s", e)
