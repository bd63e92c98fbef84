"""
Configuration loader for tool server definitions.

Loads tool server definitions from YAML files with support for
environment variable interpolation.

Example file::

    version: "1.0"
    tool_servers:
      filesystem:
        transport: stdio
        command: npx
        args: ["-y", "@modelcontextprotocol/server-filesystem", "/tmp/agent-workspace"]
        sandbox:
          max_execution_ms: 10000
      search:
        transport: http
        url: ${SEARCH_MCP_URL:-http://localhost:9000/mcp}
        headers:
          Authorization: Bearer ${SEARCH_MCP_TOKEN}
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from .models import (
    SandboxConfig,
    ServerStatus,
    ToolServerDefinition,
    TransportKind,
)
from .models.tool_server import DEFAULT_MAX_EXECUTION_MS, DEFAULT_MAX_OUTPUT_SIZE

logger = logging.getLogger(__name__)

# Regex for environment variable interpolation: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def resolve_env_vars(value: str) -> str:
    """
    Resolve environment variable references in a string.

    Supports ${VAR} and ${VAR:-default} syntax.

    Args:
        value: String potentially containing env var references

    Returns:
        String with env vars resolved
    """

    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, value)


def _substitute_env_vars_recursive(data: Any) -> Any:
    """Recursively substitute environment variables in a data structure."""
    if isinstance(data, dict):
        return {k: _substitute_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return resolve_env_vars(data)
    return data


def _parse_sandbox(data: Optional[dict]) -> SandboxConfig:
    """Parse sandbox limits from dict."""
    data = data or {}
    allow_network = data.get("allow_network", False)
    if isinstance(allow_network, str):
        allow_network = allow_network.lower() == "true"

    return SandboxConfig(
        max_execution_ms=int(data.get("max_execution_ms", DEFAULT_MAX_EXECUTION_MS)),
        allow_network=allow_network,
        allowed_paths=list(data.get("allowed_paths") or []),
        max_output_size=int(data.get("max_output_size", DEFAULT_MAX_OUTPUT_SIZE)),
    )


def parse_tool_server(data: dict, name: Optional[str] = None) -> ToolServerDefinition:
    """
    Parse a single tool server definition from dict.

    Args:
        data: Raw definition. ``name`` may be omitted when given separately.
        name: Server name (the mapping key in YAML files).

    Raises:
        ValueError: If the name or transport is missing or unknown.
    """
    server_name = name or data.get("name")
    if not server_name:
        raise ValueError("Tool server definition is missing a name")

    transport_str = data.get("transport", "stdio")
    try:
        transport = TransportKind(transport_str)
    except ValueError:
        raise ValueError(f"Unknown transport type: {transport_str}")

    status_str = data.get("status", "active")
    try:
        status = ServerStatus(status_str)
    except ValueError:
        raise ValueError(f"Unknown server status: {status_str}")

    return ToolServerDefinition(
        name=server_name,
        transport=transport,
        command=data.get("command") or None,
        args=[str(arg) for arg in data.get("args") or []],
        url=data.get("url") or None,
        env={str(k): str(v) for k, v in (data.get("env") or {}).items()},
        headers={str(k): str(v) for k, v in (data.get("headers") or {}).items()},
        allowed_tools=list(data.get("allowed_tools") or []),
        blocked_tools=list(data.get("blocked_tools") or []),
        sandbox=_parse_sandbox(data.get("sandbox")),
        status=status,
    )


def validate_tool_servers(definitions: list[ToolServerDefinition]) -> list[str]:
    """
    Validate tool server definitions.

    Args:
        definitions: Definitions to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    seen: set[str] = set()

    for definition in definitions:
        name = definition.name
        if name in seen:
            errors.append(f"Tool server '{name}': duplicate name")
        seen.add(name)
        if "__" in name:
            errors.append(f"Tool server '{name}': name must not contain '__'")
        if definition.transport is TransportKind.STDIO and not definition.command:
            errors.append(f"Tool server '{name}': stdio transport requires a command")
        if definition.transport in (TransportKind.SSE, TransportKind.HTTP) and not definition.url:
            errors.append(
                f"Tool server '{name}': {definition.transport.value} transport requires a url"
            )
        if definition.sandbox.max_execution_ms <= 0:
            errors.append(f"Tool server '{name}': max_execution_ms must be positive")
        if definition.sandbox.max_output_size <= 0:
            errors.append(f"Tool server '{name}': max_output_size must be positive")

    return errors


def load_tool_servers(path: Optional[str] = None) -> list[ToolServerDefinition]:
    """
    Load tool server definitions from a YAML file.

    Args:
        path: Path to the YAML file. If None, uses the
              TOOL_SERVERS_CONFIG_PATH env var.

    Returns:
        Parsed definitions (empty when no file is configured or found)

    Raises:
        ValueError: If a definition is invalid
    """
    if path is None:
        path = os.environ.get("TOOL_SERVERS_CONFIG_PATH", "")
    if not path:
        return []

    config_path = Path(path)
    if not config_path.exists():
        logger.warning("Tool servers config not found at %s, using none", config_path)
        return []

    logger.debug("Loading tool servers config from %s", config_path)

    with open(config_path, "r") as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        return []

    raw_config = _substitute_env_vars_recursive(raw_config)
    servers_data = raw_config.get("tool_servers") or {}

    definitions = []
    for name, server_data in servers_data.items():
        try:
            definitions.append(parse_tool_server(server_data or {}, name=name))
        except Exception as e:
            logger.error("Failed to parse tool server '%s': %s", name, e)
            raise ValueError(f"Invalid tool server configuration for '{name}': {e}") from e

    for error in validate_tool_servers(definitions):
        logger.warning("Config validation warning: %s", error)

    logger.debug("Loaded tool servers: %s", [d.name for d in definitions])
    return definitions
