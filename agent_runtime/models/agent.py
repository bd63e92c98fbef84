"""
Data models for deployed agent configuration.

The surrounding builder stores agent configuration as JSON. The runtime
only reads it: identity, mission and capabilities shape the system prompt,
guardrails shape session limits.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

DEFAULT_MAX_TURNS_PER_SESSION = 50
DEFAULT_ESCALATION_THRESHOLD = 3


@dataclass
class ResourceLimits:
    """Numeric session limits. Unset values fall back to runtime defaults."""

    max_turns_per_session: Optional[int] = None
    escalation_threshold: Optional[int] = None
    max_response_length: Optional[int] = None


@dataclass
class GuardrailsConfig:
    """Guardrail policy for one deployed agent."""

    behavioral: list[str] = field(default_factory=list)
    prompt_injection_defense: Optional[str] = None  # strict | moderate | none
    resource_limits: ResourceLimits = field(default_factory=ResourceLimits)

    @property
    def max_turns(self) -> int:
        value = self.resource_limits.max_turns_per_session
        return DEFAULT_MAX_TURNS_PER_SESSION if value is None else value

    @property
    def escalation_threshold(self) -> int:
        value = self.resource_limits.escalation_threshold
        return DEFAULT_ESCALATION_THRESHOLD if value is None else value


@dataclass
class IdentityConfig:
    name: Optional[str] = None
    emoji: Optional[str] = None
    vibe: Optional[str] = None
    tone: Optional[str] = None
    greeting: Optional[str] = None


@dataclass
class MissionConfig:
    description: Optional[str] = None
    tasks: list[str] = field(default_factory=list)
    exclusions: list[str] = field(default_factory=list)


@dataclass
class Capability:
    name: str
    access: str = "read-only"  # read-only | write | full
    description: str = ""


@dataclass
class AgentConfig:
    """Aggregated agent configuration as deployed."""

    identity: IdentityConfig = field(default_factory=IdentityConfig)
    mission: MissionConfig = field(default_factory=MissionConfig)
    tools: list[Capability] = field(default_factory=list)
    guardrails: Optional[GuardrailsConfig] = None
    # Memory and trigger sections are owned by other subsystems.
    memory: dict[str, Any] = field(default_factory=dict)
    triggers: dict[str, Any] = field(default_factory=dict)


def _parse_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def parse_guardrails(data: Optional[dict]) -> Optional[GuardrailsConfig]:
    """Parse a guardrails section; None when the section is absent."""
    if not data:
        return None
    limits = data.get("resource_limits") or {}
    return GuardrailsConfig(
        behavioral=list(data.get("behavioral") or []),
        prompt_injection_defense=data.get("prompt_injection_defense"),
        resource_limits=ResourceLimits(
            max_turns_per_session=_parse_int(limits.get("max_turns_per_session")),
            escalation_threshold=_parse_int(limits.get("escalation_threshold")),
            max_response_length=_parse_int(limits.get("max_response_length")),
        ),
    )


def parse_agent_config(data: Optional[dict]) -> AgentConfig:
    """
    Parse the builder's JSON agent configuration.

    Unknown keys are ignored. Missing sections get empty defaults.
    """
    data = data or {}
    identity = data.get("identity") or {}
    mission = data.get("mission") or {}
    capabilities = data.get("capabilities") or {}

    return AgentConfig(
        identity=IdentityConfig(
            name=identity.get("name"),
            emoji=identity.get("emoji"),
            vibe=identity.get("vibe"),
            tone=identity.get("tone"),
            greeting=identity.get("greeting"),
        ),
        mission=MissionConfig(
            description=mission.get("description"),
            tasks=list(mission.get("tasks") or []),
            exclusions=list(mission.get("exclusions") or []),
        ),
        tools=[
            Capability(
                name=tool.get("name", ""),
                access=tool.get("access", "read-only"),
                description=tool.get("description", ""),
            )
            for tool in capabilities.get("tools") or []
            if isinstance(tool, dict)
        ],
        guardrails=parse_guardrails(data.get("guardrails")),
        memory=dict(data.get("memory") or {}),
        triggers=dict(data.get("triggers") or {}),
    )
