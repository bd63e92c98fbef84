"""
Data models for tool server definitions.

A tool server definition is read-only input owned by deployment
configuration. It names the server, the transport used to reach it and the
transport-specific connection parameters.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

DEFAULT_MAX_EXECUTION_MS = 30_000
DEFAULT_MAX_OUTPUT_SIZE = 102_400


class TransportKind(Enum):
    """Supported tool server transports."""

    STDIO = "stdio"  # subprocess over standard streams
    SSE = "sse"  # persistent event-stream HTTP
    HTTP = "http"  # request/response (streamable) HTTP


class ServerStatus(Enum):
    """Whether a configured server takes part in orchestration runs."""

    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass
class SandboxConfig:
    """Execution limits applied to every call against one server."""

    max_execution_ms: int = DEFAULT_MAX_EXECUTION_MS
    allow_network: bool = False
    allowed_paths: list[str] = field(default_factory=list)
    max_output_size: int = DEFAULT_MAX_OUTPUT_SIZE

    @property
    def timeout_seconds(self) -> float:
        return self.max_execution_ms / 1000


@dataclass
class ToolServerDefinition:
    """Static descriptor for one external tool server."""

    name: str
    transport: TransportKind
    command: Optional[str] = None  # stdio
    args: list[str] = field(default_factory=list)  # stdio
    url: Optional[str] = None  # sse / http
    env: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    allowed_tools: list[str] = field(default_factory=list)  # glob patterns
    blocked_tools: list[str] = field(default_factory=list)  # glob patterns
    sandbox: SandboxConfig = field(default_factory=SandboxConfig)
    status: ServerStatus = ServerStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status is ServerStatus.ACTIVE

    def copy(self) -> "ToolServerDefinition":
        """Return an independent deep copy."""
        return copy.deepcopy(self)
