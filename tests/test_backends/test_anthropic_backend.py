"""Tests for the Anthropic Messages backend."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from agent_runtime.backends import AnthropicBackend
from agent_runtime.config import BackendConfig
from agent_runtime.errors import BackendError


def _block(**fields):
    block = MagicMock()
    block.model_dump.return_value = fields
    return block


def _client(response=None, error=None):
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=response, side_effect=error)
    client.close = AsyncMock()
    return client


@pytest.fixture
def backend_config():
    return BackendConfig(provider="anthropic", model="claude-test", temperature=0.2)


class TestAnthropicBackend:
    """Tests for AnthropicBackend.complete."""

    @pytest.mark.asyncio
    async def test_passes_request_through(self, backend_config):
        response = SimpleNamespace(
            content=[_block(type="text", text="Hello")],
            stop_reason="end_turn",
            usage=SimpleNamespace(input_tokens=12, output_tokens=3),
        )
        client = _client(response)
        backend = AnthropicBackend(backend_config, client=client)
        tools = [{"name": "fs__read_file", "description": "", "input_schema": {"type": "object"}}]

        result = await backend.complete(
            "You are Scout.", [{"role": "user", "content": "hi"}], max_tokens=512, tools=tools
        )

        client.messages.create.assert_awaited_once_with(
            model="claude-test",
            max_tokens=512,
            system="You are Scout.",
            messages=[{"role": "user", "content": "hi"}],
            temperature=0.2,
            tools=tools,
        )
        assert result.text == "Hello"
        assert result.wants_tool_use is False
        assert result.usage == {"input_tokens": 12, "output_tokens": 3}

    @pytest.mark.asyncio
    async def test_omits_empty_tools(self, backend_config):
        client = _client(SimpleNamespace(content=[], stop_reason="end_turn", usage=None))
        backend = AnthropicBackend(backend_config, client=client)

        await backend.complete("s", [{"role": "user", "content": "hi"}], max_tokens=10, tools=[])

        assert "tools" not in client.messages.create.call_args.kwargs

    @pytest.mark.asyncio
    async def test_tool_use_blocks(self, backend_config):
        response = SimpleNamespace(
            content=[
                _block(type="text", text="Let me look."),
                _block(type="tool_use", id="toolu_a", name="fs__read_file", input={"path": "/a"}),
            ],
            stop_reason="tool_use",
            usage=None,
        )
        backend = AnthropicBackend(backend_config, client=_client(response))

        result = await backend.complete("s", [], max_tokens=10)

        assert result.wants_tool_use is True
        assert result.tool_uses == [
            {"type": "tool_use", "id": "toolu_a", "name": "fs__read_file", "input": {"path": "/a"}}
        ]

    @pytest.mark.asyncio
    async def test_api_error_becomes_backend_error(self, backend_config):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        error = anthropic.APIConnectionError(request=request)
        backend = AnthropicBackend(backend_config, client=_client(error=error))

        with pytest.raises(BackendError):
            await backend.complete("s", [], max_tokens=10)

    @pytest.mark.asyncio
    async def test_missing_content_is_backend_error(self, backend_config):
        backend = AnthropicBackend(
            backend_config, client=_client(SimpleNamespace(content=None, stop_reason=None))
        )
        with pytest.raises(BackendError, match="no content"):
            await backend.complete("s", [], max_tokens=10)

    @pytest.mark.asyncio
    async def test_close(self, backend_config):
        client = _client()
        await AnthropicBackend(backend_config, client=client).close()
        client.close.assert_awaited_once()
