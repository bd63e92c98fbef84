"""
Message, tool-call and session types shared by the orchestration engine.

Tool arguments are kept as opaque JSON objects; the runtime never looks
inside them.
"""

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

JSONObject = dict[str, Any]

_BASE36 = string.digits + string.ascii_lowercase


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_message_id() -> str:
    """Build a message id of the form ``msg_<millis36>_<random6>``."""
    suffix = "".join(random.choices(_BASE36, k=6))
    return f"msg_{_base36(int(time.time() * 1000))}_{suffix}"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class SessionStatus(str, Enum):
    ACTIVE = "active"
    ENDED = "ended"
    ESCALATED = "escalated"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.ACTIVE


@dataclass(frozen=True)
class ToolCall:
    """One tool-use request from the model, resolved to its server."""

    id: str
    prefixed_name: str
    input: JSONObject
    server_name: str
    tool_name: str


@dataclass(frozen=True)
class ToolUseRecord:
    """A completed tool invocation. Append-only per run."""

    tool_call_id: str
    tool_name: str
    server_name: str
    input: JSONObject
    output: str
    is_error: bool
    duration_ms: int

    def to_dict(self) -> dict:
        return {
            "tool_call_id": self.tool_call_id,
            "tool_name": self.tool_name,
            "server_name": self.server_name,
            "input": self.input,
            "output": self.output,
            "is_error": self.is_error,
            "duration_ms": self.duration_ms,
        }


@dataclass(frozen=True)
class RuntimeMessage:
    """A conversation turn as stored by the caller."""

    role: str  # user | assistant
    content: str
    id: str = field(default_factory=generate_message_id)
    timestamp: str = field(default_factory=utc_timestamp)
    metadata: Optional[dict] = None
    tool_uses: Optional[tuple[ToolUseRecord, ...]] = None

    @classmethod
    def from_dict(cls, data: dict) -> "RuntimeMessage":
        return cls(
            role=data["role"],
            content=data.get("content", ""),
            id=data.get("id") or generate_message_id(),
            timestamp=data.get("timestamp") or utc_timestamp(),
            metadata=data.get("metadata"),
        )


@dataclass(frozen=True)
class SessionUpdates:
    """Session counters the caller persists after each turn."""

    turn_count: int
    failed_attempts: int
    status: SessionStatus


@dataclass
class ProcessMessageResult:
    """Everything a caller gets back for one user message."""

    response: RuntimeMessage
    session_updates: SessionUpdates
    guardrail_notice: Optional[str] = None
    tool_executions: Optional[list[ToolUseRecord]] = None
