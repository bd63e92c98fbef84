"""
Pytest configuration and fixtures for agent runtime tests.
"""

from typing import Any, Optional

import pytest

from agent_runtime.backends import ModelBackend, ModelResponse
from agent_runtime.errors import ToolServerConnectionError
from agent_runtime.models import ToolServerDefinition, TransportKind
from agent_runtime.tools import InvocationResult, ToolSpec, ToolServerRegistry


class FakeConnection:
    """In-memory stand-in for a transport connection."""

    def __init__(
        self,
        definition: ToolServerDefinition,
        tools: Optional[list[ToolSpec]] = None,
        results: Optional[dict[str, InvocationResult]] = None,
        fail_connect: bool = False,
    ):
        self.definition = definition
        self.tools = tools or []
        self.results = results or {}
        self.fail_connect = fail_connect
        self.connected = False
        self.connect_calls = 0
        self.disconnect_calls = 0
        self.invocations: list[tuple[str, dict]] = []

    @property
    def name(self) -> str:
        return self.definition.name

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.fail_connect:
            raise ToolServerConnectionError(self.name, "connection refused")
        self.connected = True

    async def list_tools(self) -> list[ToolSpec]:
        return list(self.tools)

    async def invoke(self, tool_name: str, arguments: dict, timeout: Optional[float] = None):
        self.invocations.append((tool_name, arguments))
        if tool_name in self.results:
            return self.results[tool_name]
        return InvocationResult(output=f"{tool_name} ok", is_error=False)

    async def disconnect(self) -> None:
        if self.connected:
            self.disconnect_calls += 1
        self.connected = False


class ScriptedBackend(ModelBackend):
    """Model backend that replays a fixed list of responses and records requests."""

    model = "scripted-model"

    def __init__(self, responses: list[ModelResponse]):
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def complete(self, system_prompt, messages, *, max_tokens, tools=None):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                # Snapshot: the loop keeps appending to the same list
                "messages": [dict(m) for m in messages],
                "max_tokens": max_tokens,
                "tools": tools,
            }
        )
        if not self.responses:
            raise AssertionError("ScriptedBackend ran out of responses")
        return self.responses.pop(0)

    async def close(self) -> None:
        self.closed = True


def text_response(text: str) -> ModelResponse:
    return ModelResponse(content=[{"type": "text", "text": text}], stop_reason="end_turn")


def tool_use_response(*calls: tuple[str, str, dict], text: str = "") -> ModelResponse:
    """Build a tool_use response from (id, prefixed_name, input) triples."""
    content: list[dict] = [{"type": "text", "text": text}] if text else []
    content += [
        {"type": "tool_use", "id": call_id, "name": name, "input": tool_input}
        for call_id, name, tool_input in calls
    ]
    return ModelResponse(content=content, stop_reason="tool_use")


def make_definition(name: str, **kwargs) -> ToolServerDefinition:
    kwargs.setdefault("transport", TransportKind.STDIO)
    kwargs.setdefault("command", "fake-server")
    return ToolServerDefinition(name=name, **kwargs)


@pytest.fixture
def filesystem_tools():
    return [
        ToolSpec(
            name="read_file",
            description="Read a file",
            input_schema={
                "type": "object",
                "properties": {"path": {"type": "string"}},
                "required": ["path"],
            },
        ),
        ToolSpec(name="write_file", description="Write a file", input_schema={}),
    ]


@pytest.fixture
def fake_connections():
    """Registry of FakeConnections keyed by server name, filled by the factory."""
    return {}


@pytest.fixture
def connection_factory(fake_connections, filesystem_tools):
    """
    Factory building FakeConnections. Servers named ``broken*`` fail to
    connect; everything else advertises the filesystem tools.
    """

    def factory(definition: ToolServerDefinition) -> FakeConnection:
        connection = FakeConnection(
            definition,
            tools=filesystem_tools,
            fail_connect=definition.name.startswith("broken"),
        )
        fake_connections[definition.name] = connection
        return connection

    return factory


@pytest.fixture
def registry_factory(connection_factory):
    return lambda: ToolServerRegistry(connection_factory=connection_factory)
