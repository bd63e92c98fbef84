"""Tests for agent configuration and tool server models."""

from agent_runtime.models import (
    ToolServerDefinition,
    TransportKind,
    parse_agent_config,
    parse_guardrails,
)


class TestParseAgentConfig:
    """Tests for parse_agent_config."""

    def test_empty(self):
        config = parse_agent_config(None)
        assert config.identity.name is None
        assert config.tools == []
        assert config.guardrails is None

    def test_full(self):
        config = parse_agent_config(
            {
                "identity": {"name": "Scout", "tone": "calm"},
                "mission": {"description": "Find files", "tasks": ["search"], "exclusions": []},
                "capabilities": {
                    "tools": [{"name": "Files", "access": "read-only", "description": "Read"}]
                },
                "guardrails": {
                    "behavioral": ["Be kind"],
                    "prompt_injection_defense": "strict",
                    "resource_limits": {"max_turns_per_session": 10, "max_response_length": 800},
                },
                "unknown": {"ignored": True},
            }
        )
        assert config.identity.name == "Scout"
        assert config.mission.tasks == ["search"]
        assert config.tools[0].name == "Files"
        assert config.guardrails.max_turns == 10
        assert config.guardrails.resource_limits.max_response_length == 800
        assert config.guardrails.escalation_threshold == 3


def test_parse_guardrails_absent():
    assert parse_guardrails({}) is None
    assert parse_guardrails(None) is None


def test_definition_copy_is_independent():
    definition = ToolServerDefinition(name="fs", transport=TransportKind.STDIO, args=["a"])
    clone = definition.copy()
    clone.args.append("b")
    clone.sandbox.max_execution_ms = 1
    assert definition.args == ["a"]
    assert definition.sandbox.max_execution_ms == 30_000
