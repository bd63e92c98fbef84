"""
Tool Server Registry - one namespaced tool catalog over many servers.

A registry is created for a single orchestration run and owns every
connection opened during it. Use it as an async context manager so the
connections are released on every exit path::

    async with ToolServerRegistry() as registry:
        await registry.connect_all(definitions)
        catalog = await registry.to_tool_catalog()
        record = await registry.execute(call)
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..errors import ToolServerConnectionError
from ..models import ToolServerDefinition
from ..types import ToolCall, ToolUseRecord
from .connection import DEFAULT_CONNECT_TIMEOUT, TransportConnection, create_connection

logger = logging.getLogger(__name__)

# Separator between server name and tool name in catalog entries
NAMESPACE_SEPARATOR = "__"

ConnectionFactory = Callable[[ToolServerDefinition], TransportConnection]


@dataclass(frozen=True)
class ExecutableTool:
    """A permitted tool on a connected server."""

    name: str
    description: str
    input_schema: dict[str, Any]
    server_name: str

    @property
    def prefixed_name(self) -> str:
        return f"{self.server_name}{NAMESPACE_SEPARATOR}{self.name}"


def matches_glob(pattern: str, name: str) -> bool:
    """Match ``name`` against a pattern where ``*`` is any character run."""
    regex = "^" + ".*".join(re.escape(part) for part in pattern.split("*")) + "$"
    return re.match(regex, name) is not None


def is_tool_permitted(tool_name: str, definition: ToolServerDefinition) -> bool:
    """Apply a server's allowed/blocked glob lists to one tool name."""
    if definition.allowed_tools and not any(
        matches_glob(pattern, tool_name) for pattern in definition.allowed_tools
    ):
        return False
    if definition.blocked_tools and any(
        matches_glob(pattern, tool_name) for pattern in definition.blocked_tools
    ):
        return False
    return True


def parse_tool_name(prefixed_name: str) -> tuple[str, str]:
    """
    Split ``server__tool`` at the first separator.

    A name without a separator is treated as both server and tool name.
    """
    server_name, sep, tool_name = prefixed_name.partition(NAMESPACE_SEPARATOR)
    if not sep:
        return prefixed_name, prefixed_name
    return server_name, tool_name


def make_tool_call(call_id: str, prefixed_name: str, tool_input: Optional[dict]) -> ToolCall:
    """Build a ToolCall from a model tool-use request."""
    server_name, tool_name = parse_tool_name(prefixed_name)
    return ToolCall(
        id=call_id,
        prefixed_name=prefixed_name,
        input=dict(tool_input or {}),
        server_name=server_name,
        tool_name=tool_name,
    )


@dataclass
class _ConnectedServer:
    connection: TransportConnection
    definition: ToolServerDefinition


class ToolServerRegistry:
    """
    Owns the tool server connections for one orchestration run.

    Connection failures are non-fatal: the failing server is recorded in
    ``failures`` and its tools are simply absent from the catalog.
    """

    def __init__(
        self,
        connection_factory: Optional[ConnectionFactory] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ):
        self._connection_factory = connection_factory or (
            lambda definition: create_connection(definition, connect_timeout=connect_timeout)
        )
        self._servers: dict[str, _ConnectedServer] = {}
        self._tool_cache: Optional[list[ExecutableTool]] = None
        self.failures: dict[str, str] = {}

    async def __aenter__(self) -> "ToolServerRegistry":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.disconnect_all()

    @property
    def connected_count(self) -> int:
        return len(self._servers)

    def is_connected(self, server_name: str) -> bool:
        return server_name in self._servers

    async def connect_all(self, definitions: list[ToolServerDefinition]) -> None:
        """
        Connect every active definition.

        Servers are connected one after another in the calling task, since
        each transport's scope must be closed by the task that opened it.
        """
        for definition in definitions:
            if not definition.is_active:
                logger.debug("Skipping inactive tool server '%s'", definition.name)
                continue
            if definition.name in self._servers:
                logger.warning("Duplicate tool server '%s' ignored", definition.name)
                continue
            if NAMESPACE_SEPARATOR in definition.name:
                # Prefixed names are split at the first separator
                error = f'Server "{definition.name}": name must not contain "{NAMESPACE_SEPARATOR}"'
                logger.warning("Rejected tool server: %s", error)
                self.failures[definition.name] = error
                continue

            connection = self._connection_factory(definition)
            try:
                await connection.connect()
            except ToolServerConnectionError as e:
                logger.warning("Failed to connect to tool server '%s': %s", definition.name, e)
                self.failures[definition.name] = str(e)
                await connection.disconnect()
                continue

            self._servers[definition.name] = _ConnectedServer(connection, definition)

        self._tool_cache = None
        logger.info(
            "Connected %d/%d tool servers",
            len(self._servers),
            len([d for d in definitions if d.is_active]),
        )

    async def list_tools(self) -> list[ExecutableTool]:
        """Enumerate permitted tools across all connected servers."""
        if self._tool_cache is not None:
            return self._tool_cache

        tools: list[ExecutableTool] = []
        for server_name, server in self._servers.items():
            try:
                advertised = await server.connection.list_tools()
            except Exception as e:
                logger.warning("Failed to list tools for server '%s': %s", server_name, e)
                continue

            for tool in advertised:
                if not is_tool_permitted(tool.name, server.definition):
                    continue
                tools.append(
                    ExecutableTool(
                        name=tool.name,
                        description=tool.description,
                        input_schema=tool.input_schema,
                        server_name=server_name,
                    )
                )

        self._tool_cache = tools
        return tools

    async def to_tool_catalog(self) -> list[dict[str, Any]]:
        """Return all tools in the model backend's tool format, namespaced."""
        catalog = []
        for tool in await self.list_tools():
            catalog.append(
                {
                    "name": tool.prefixed_name,
                    "description": tool.description,
                    "input_schema": {
                        "type": "object",
                        "properties": tool.input_schema.get("properties") or {},
                        "required": tool.input_schema.get("required") or [],
                    },
                }
            )
        return catalog

    async def execute(self, call: ToolCall) -> ToolUseRecord:
        """Route a tool call to its server and record the outcome."""
        start = time.monotonic()

        server = self._servers.get(call.server_name)
        if server is None:
            output, is_error = f'Error: server "{call.server_name}" is not connected.', True
        elif not is_tool_permitted(call.tool_name, server.definition):
            logger.warning(
                "Refused call to filtered tool '%s' on server '%s'", call.tool_name, call.server_name
            )
            output = f'Error: tool "{call.tool_name}" is not permitted on server "{call.server_name}".'
            is_error = True
        else:
            result = await server.connection.invoke(call.tool_name, call.input)
            output, is_error = result.output, result.is_error

        return ToolUseRecord(
            tool_call_id=call.id,
            tool_name=call.tool_name,
            server_name=call.server_name,
            input=call.input,
            output=output,
            is_error=is_error,
            duration_ms=int((time.monotonic() - start) * 1000),
        )

    async def disconnect_all(self) -> None:
        """Close every connection, newest first. A second call does nothing."""
        servers = list(self._servers.items())
        self._servers.clear()
        self._tool_cache = None

        for server_name, server in reversed(servers):
            try:
                await server.connection.disconnect()
            except Exception as e:
                logger.warning("Error closing tool server '%s': %s", server_name, e)
