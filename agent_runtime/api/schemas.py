"""
Pydantic schemas for the runtime HTTP API.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from ..config import config
from ..config_loader import parse_tool_server
from ..models import ToolServerDefinition
from ..types import ProcessMessageResult, RuntimeMessage, ToolUseRecord


class HealthResponse(BaseModel):
    """Response body for /health endpoint."""

    status: Literal["healthy", "unhealthy"]
    version: str
    model: str


class MessageSchema(BaseModel):
    """A stored conversation turn."""

    id: Optional[str] = Field(default=None, description="Message id (generated when absent)")
    role: Literal["user", "assistant"] = Field(..., description="The role of the message author")
    content: str = Field(..., description="Message text")
    timestamp: Optional[str] = Field(default=None, description="ISO-8601 creation time")
    metadata: Optional[dict[str, Any]] = None

    def to_runtime(self) -> RuntimeMessage:
        return RuntimeMessage.from_dict(self.model_dump())


class SandboxSchema(BaseModel):
    max_execution_ms: int = Field(default=30_000, gt=0)
    allow_network: bool = False
    allowed_paths: list[str] = Field(default_factory=list)
    max_output_size: int = Field(default=102_400, gt=0)


class ToolServerSchema(BaseModel):
    """Tool server definition as accepted over the API."""

    name: str = Field(..., min_length=1, description="Server name, used as the tool prefix")
    transport: Literal["stdio", "sse", "http"] = "stdio"
    command: Optional[str] = Field(default=None, description="Executable (stdio)")
    args: list[str] = Field(default_factory=list)
    url: Optional[str] = Field(default=None, description="Endpoint URL (sse / http)")
    env: dict[str, str] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    allowed_tools: list[str] = Field(default_factory=list, description="Glob allow-list")
    blocked_tools: list[str] = Field(default_factory=list, description="Glob block-list")
    sandbox: SandboxSchema = Field(default_factory=SandboxSchema)
    status: Literal["active", "inactive"] = "active"

    def to_definition(self) -> ToolServerDefinition:
        return parse_tool_server(self.model_dump())

    @classmethod
    def from_definition(cls, definition: ToolServerDefinition) -> "ToolServerSchema":
        return cls(
            name=definition.name,
            transport=definition.transport.value,
            command=definition.command,
            args=definition.args,
            url=definition.url,
            env=definition.env,
            headers=definition.headers,
            allowed_tools=definition.allowed_tools,
            blocked_tools=definition.blocked_tools,
            sandbox=SandboxSchema(**vars(definition.sandbox)),
            status=definition.status.value,
        )


class ProcessMessageRequest(BaseModel):
    """Request body for /v1/runtime/messages."""

    message: str = Field(
        ...,
        min_length=1,
        max_length=config.runtime.max_message_length,
        description="The new user message",
    )
    system_prompt: Optional[str] = Field(
        default=None,
        description="System prompt; rendered from agent_config when omitted",
    )
    agent_config: dict[str, Any] = Field(
        default_factory=dict, description="Deployed agent configuration JSON"
    )
    session_status: Literal["active", "ended", "escalated"] = "active"
    turn_count: int = Field(default=0, ge=0)
    failed_attempts: int = Field(default=0, ge=0)
    history: list[MessageSchema] = Field(default_factory=list)
    tool_servers: Optional[list[ToolServerSchema]] = Field(
        default=None,
        description="Tool servers for this turn; the configured servers are used when omitted",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "message": "What's in /tmp/agent-workspace/notes.txt?",
                "agent_config": {"identity": {"name": "Scout"}},
                "turn_count": 3,
                "tool_servers": [
                    {
                        "name": "filesystem",
                        "transport": "stdio",
                        "command": "npx",
                        "args": ["-y", "@modelcontextprotocol/server-filesystem", "/tmp"],
                    }
                ],
            }
        }
    }


class ToolUseSchema(BaseModel):
    tool_call_id: str
    tool_name: str
    server_name: str
    input: dict[str, Any]
    output: str
    is_error: bool
    duration_ms: int

    @classmethod
    def from_record(cls, record: ToolUseRecord) -> "ToolUseSchema":
        return cls(**record.to_dict())


class ResponseMessageSchema(BaseModel):
    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: str
    metadata: Optional[dict[str, Any]] = None
    tool_uses: Optional[list[ToolUseSchema]] = None


class SessionUpdatesSchema(BaseModel):
    turn_count: int
    failed_attempts: int
    status: Literal["active", "ended", "escalated"]


class ProcessMessageResponse(BaseModel):
    """Response body for /v1/runtime/messages."""

    message: ResponseMessageSchema
    session_updates: SessionUpdatesSchema
    guardrail_notice: Optional[str] = None
    tool_executions: Optional[list[ToolUseSchema]] = None

    @classmethod
    def from_result(cls, result: ProcessMessageResult) -> "ProcessMessageResponse":
        response = result.response
        tool_executions = (
            [ToolUseSchema.from_record(r) for r in result.tool_executions]
            if result.tool_executions
            else None
        )
        return cls(
            message=ResponseMessageSchema(
                id=response.id,
                role=response.role,
                content=response.content,
                timestamp=response.timestamp,
                metadata=response.metadata,
                tool_uses=tool_executions,
            ),
            session_updates=SessionUpdatesSchema(
                turn_count=result.session_updates.turn_count,
                failed_attempts=result.session_updates.failed_attempts,
                status=result.session_updates.status.value,
            ),
            guardrail_notice=result.guardrail_notice,
            tool_executions=tool_executions,
        )


class ToolInfo(BaseModel):
    name: str
    description: str
    server_name: str


class ToolServerTestResponse(BaseModel):
    """Response body for /v1/tool-servers/test."""

    connected: bool
    tools: list[ToolInfo] = Field(default_factory=list)
    error: Optional[str] = None


class PresetSummary(BaseModel):
    key: str
    name: str
    description: str


class PresetListResponse(BaseModel):
    presets: list[PresetSummary]


class PresetResponse(BaseModel):
    key: str
    name: str
    description: str
    definition: ToolServerSchema


class ErrorResponse(BaseModel):
    error: str
