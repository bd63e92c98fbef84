"""
Exception hierarchy for the agent runtime.

Only backend failures escape an orchestration run. Connection and
invocation failures are caught at the registry boundary and turned into
data (a missing server, an error-flagged tool result).
"""


class AgentRuntimeError(Exception):
    """Base class for runtime errors."""


class ToolServerConnectionError(AgentRuntimeError, ConnectionError):
    """A tool server could not be reached or failed its handshake."""

    def __init__(self, server_name: str, message: str):
        self.server_name = server_name
        super().__init__(f'Server "{server_name}": {message}')


class InvocationError(AgentRuntimeError):
    """A tool call failed at the server or transport level."""

    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        super().__init__(message)


class BackendError(AgentRuntimeError):
    """The model backend is unreachable or returned a malformed response."""
