"""
Managed connections to external tool servers.

Each connection wraps one MCP ``ClientSession`` over one of three
transports, chosen when the connection is constructed:

- ``StdioConnection``: spawns the server as a subprocess and talks over
  its standard streams.
- ``EventStreamConnection``: persistent server-sent-events HTTP stream.
- ``HttpConnection``: streamable request/response HTTP.

A connection's transport scopes are entered and exited by the task that
owns the orchestration run; connections are not shared between runs.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import get_default_environment, stdio_client
from mcp.client.streamable_http import streamablehttp_client

from ..errors import InvocationError, ToolServerConnectionError
from ..models import ToolServerDefinition, TransportKind

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 30.0


@dataclass(frozen=True)
class ToolSpec:
    """A tool as advertised by its server."""

    name: str
    description: str = ""
    input_schema: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class InvocationResult:
    output: str
    is_error: bool = False


def truncate_output(output: str, max_size: int) -> str:
    """Cap tool output at ``max_size`` characters with a visible marker."""
    if len(output) <= max_size:
        return output
    return output[:max_size] + f"\n... [truncated, exceeded {max_size} byte limit]"


def _extract_text(result: Any) -> str:
    """Join the text content blocks of a CallToolResult."""
    parts = []
    for item in getattr(result, "content", None) or []:
        if getattr(item, "type", None) == "text" and getattr(item, "text", None):
            parts.append(item.text)
    return "\n".join(parts)


class TransportConnection(ABC):
    """
    One live connection to one tool server.

    Subclasses only open the transport streams; session handshake, tool
    listing, invocation and teardown are shared.
    """

    transport: TransportKind

    def __init__(
        self,
        definition: ToolServerDefinition,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ):
        self.definition = definition
        self.connect_timeout = connect_timeout
        self._stack: Optional[AsyncExitStack] = None
        self._session: Optional[ClientSession] = None

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def is_connected(self) -> bool:
        return self._session is not None

    @abstractmethod
    async def _open_streams(self, stack: AsyncExitStack) -> tuple[Any, Any]:
        """Enter the transport on ``stack`` and return (read, write) streams."""

    async def connect(self) -> None:
        """
        Establish the transport and perform the MCP handshake.

        Raises:
            ToolServerConnectionError: If the transport or handshake fails.
                Anything opened before the failure is released first.
        """
        if self._session is not None:
            return

        stack = AsyncExitStack()
        try:
            read_stream, write_stream = await self._open_streams(stack)
            session = await stack.enter_async_context(
                ClientSession(
                    read_stream,
                    write_stream,
                    read_timeout_seconds=timedelta(seconds=self.connect_timeout),
                )
            )
            await session.initialize()
        except BaseException as exc:
            await self._close_stack(stack)
            if isinstance(exc, ToolServerConnectionError):
                raise
            if isinstance(exc, Exception):
                raise ToolServerConnectionError(self.name, str(exc) or type(exc).__name__) from exc
            raise

        self._stack = stack
        self._session = session
        logger.debug("Connected to tool server '%s' over %s", self.name, self.transport.value)

    async def list_tools(self) -> list[ToolSpec]:
        """Query the server for its advertised tools."""
        if self._session is None:
            raise ToolServerConnectionError(self.name, "not connected")

        response = await self._session.list_tools()
        tools = []
        for tool in getattr(response, "tools", None) or []:
            schema = getattr(tool, "inputSchema", None) or {}
            tools.append(
                ToolSpec(
                    name=tool.name,
                    description=getattr(tool, "description", None) or "",
                    input_schema=schema if isinstance(schema, dict) else {},
                )
            )
        return tools

    async def invoke(
        self,
        tool_name: str,
        arguments: dict[str, Any],
        timeout: Optional[float] = None,
    ) -> InvocationResult:
        """
        Call one tool and wait for its result.

        Never raises for server or transport failures: both come back as
        ``is_error=True`` results so the model can react to them.

        Args:
            tool_name: Unprefixed tool name as the server knows it.
            arguments: JSON arguments.
            timeout: Seconds to wait; defaults to the server's sandbox limit.
        """
        sandbox = self.definition.sandbox
        timeout = sandbox.timeout_seconds if timeout is None else timeout

        try:
            result = await self._call(tool_name, arguments, timeout)
        except Exception as e:
            logger.warning(
                "Tool '%s' on server '%s' failed: %s", tool_name, self.name, e
            )
            message = str(e) or f"{type(e).__name__} during tool execution"
            return InvocationResult(output=f"Error: {message}", is_error=True)

        output = truncate_output(_extract_text(result), sandbox.max_output_size)
        return InvocationResult(output=output, is_error=bool(getattr(result, "isError", False)))

    async def _call(self, tool_name: str, arguments: dict[str, Any], timeout: float) -> Any:
        if self._session is None:
            raise InvocationError(tool_name, f'server "{self.name}" is not connected.')
        return await self._session.call_tool(
            tool_name,
            arguments or {},
            read_timeout_seconds=timedelta(seconds=timeout),
        )

    async def disconnect(self) -> None:
        """Release the transport. Safe to call repeatedly."""
        stack, self._stack = self._stack, None
        self._session = None
        if stack is None:
            return
        await self._close_stack(stack)
        logger.debug("Disconnected from tool server '%s'", self.name)

    async def _close_stack(self, stack: AsyncExitStack) -> None:
        try:
            await stack.aclose()
        except Exception as e:
            logger.warning("Error closing tool server '%s': %s", self.name, e)


class StdioConnection(TransportConnection):
    transport = TransportKind.STDIO

    async def _open_streams(self, stack: AsyncExitStack) -> tuple[Any, Any]:
        if not self.definition.command:
            raise ToolServerConnectionError(
                self.name, 'stdio transport requires a "command" field'
            )
        env = get_default_environment()
        env.update(self.definition.env)
        params = StdioServerParameters(
            command=self.definition.command,
            args=list(self.definition.args),
            env=env,
        )
        return await stack.enter_async_context(stdio_client(params))


class EventStreamConnection(TransportConnection):
    transport = TransportKind.SSE

    async def _open_streams(self, stack: AsyncExitStack) -> tuple[Any, Any]:
        if not self.definition.url:
            raise ToolServerConnectionError(self.name, 'sse transport requires a "url" field')
        return await stack.enter_async_context(
            sse_client(
                self.definition.url,
                headers=self.definition.headers or None,
                timeout=self.connect_timeout,
            )
        )


class HttpConnection(TransportConnection):
    transport = TransportKind.HTTP

    async def _open_streams(self, stack: AsyncExitStack) -> tuple[Any, Any]:
        if not self.definition.url:
            raise ToolServerConnectionError(self.name, 'http transport requires a "url" field')
        read_stream, write_stream, _get_session_id = await stack.enter_async_context(
            streamablehttp_client(
                self.definition.url,
                headers=self.definition.headers or None,
            )
        )
        return read_stream, write_stream


_CONNECTION_TYPES: dict[TransportKind, type[TransportConnection]] = {
    TransportKind.STDIO: StdioConnection,
    TransportKind.SSE: EventStreamConnection,
    TransportKind.HTTP: HttpConnection,
}


def create_connection(
    definition: ToolServerDefinition,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
) -> TransportConnection:
    """Build the connection variant matching the definition's transport."""
    return _CONNECTION_TYPES[definition.transport](definition, connect_timeout=connect_timeout)
