"""
Pre-configured tool server definitions for common integrations.

Each preset pairs a definition with display metadata for the builder.
Callers always receive copies, so editing a returned definition never
changes the preset.
"""

from dataclasses import dataclass
from typing import Optional

from ..models import SandboxConfig, ToolServerDefinition, TransportKind


@dataclass(frozen=True)
class PresetMeta:
    label: str
    description: str
    definition: ToolServerDefinition


_PRESETS: dict[str, PresetMeta] = {
    "filesystem": PresetMeta(
        label="Filesystem",
        description=(
            "Local filesystem access within /tmp/agent-workspace directory with 10s timeout"
        ),
        definition=ToolServerDefinition(
            name="filesystem",
            transport=TransportKind.STDIO,
            command="npx",
            args=["-y", "@modelcontextprotocol/server-filesystem", "/tmp/agent-workspace"],
            sandbox=SandboxConfig(max_execution_ms=10_000, allow_network=False),
        ),
    ),
    "jiraCloud": PresetMeta(
        label="Jira Cloud",
        description=(
            "Jira Cloud integration for issue tracking, project management, and workflow "
            "automation (requires JIRA_URL, JIRA_EMAIL, JIRA_API_TOKEN)"
        ),
        definition=ToolServerDefinition(
            name="jira-cloud",
            transport=TransportKind.STDIO,
            command="npx",
            args=["-y", "@anthropic/mcp-server-jira"],
            env={"JIRA_URL": "", "JIRA_EMAIL": "", "JIRA_API_TOKEN": ""},
            sandbox=SandboxConfig(max_execution_ms=15_000, allow_network=True),
        ),
    ),
    "browser": PresetMeta(
        label="Browser (Puppeteer)",
        description=(
            "Headless browser automation via Puppeteer for web scraping and interaction "
            "with 30s timeout"
        ),
        definition=ToolServerDefinition(
            name="browser",
            transport=TransportKind.STDIO,
            command="npx",
            args=["-y", "@anthropic/mcp-server-puppeteer"],
            sandbox=SandboxConfig(max_execution_ms=30_000, allow_network=True),
        ),
    ),
    "git": PresetMeta(
        label="Git",
        description=(
            "Git repository operations including clone, commit, push, and diff with 15s timeout"
        ),
        definition=ToolServerDefinition(
            name="git",
            transport=TransportKind.STDIO,
            command="npx",
            args=["-y", "@anthropic/mcp-server-git"],
            sandbox=SandboxConfig(max_execution_ms=15_000, allow_network=False),
        ),
    ),
    "vercel": PresetMeta(
        label="Vercel",
        description=(
            "Vercel platform integration for deployments, domains, and project management "
            "(requires VERCEL_TOKEN)"
        ),
        definition=ToolServerDefinition(
            name="vercel",
            transport=TransportKind.STDIO,
            command="npx",
            args=["-y", "@vercel/mcp-adapter"],
            env={"VERCEL_TOKEN": ""},
            sandbox=SandboxConfig(max_execution_ms=30_000, allow_network=True),
        ),
    ),
}


def get_preset(key: str) -> Optional[ToolServerDefinition]:
    """Return a copy of the preset definition, or None for an unknown key."""
    preset = _PRESETS.get(key)
    if preset is None:
        return None
    return preset.definition.copy()


def list_presets() -> list[dict[str, str]]:
    """List preset keys with their display name and description."""
    return [
        {"key": key, "name": meta.label, "description": meta.description}
        for key, meta in _PRESETS.items()
    ]
