"""
Data models for the agent runtime.
"""

from .tool_server import (
    TransportKind,
    ServerStatus,
    SandboxConfig,
    ToolServerDefinition,
)
from .agent import (
    ResourceLimits,
    GuardrailsConfig,
    IdentityConfig,
    MissionConfig,
    Capability,
    AgentConfig,
    parse_agent_config,
    parse_guardrails,
)

__all__ = [
    # Tool server models
    "TransportKind",
    "ServerStatus",
    "SandboxConfig",
    "ToolServerDefinition",
    # Agent config models
    "ResourceLimits",
    "GuardrailsConfig",
    "IdentityConfig",
    "MissionConfig",
    "Capability",
    "AgentConfig",
    "parse_agent_config",
    "parse_guardrails",
]
