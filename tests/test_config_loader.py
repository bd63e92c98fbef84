"""Tests for YAML tool server configuration loading."""

import pytest

from agent_runtime.config_loader import (
    load_tool_servers,
    parse_tool_server,
    resolve_env_vars,
    validate_tool_servers,
)
from agent_runtime.models import ServerStatus, TransportKind


class TestResolveEnvVars:
    """Tests for ${VAR} interpolation."""

    def test_plain_string_unchanged(self):
        assert resolve_env_vars("http://localhost:9000") == "http://localhost:9000"

    def test_variable(self, monkeypatch):
        monkeypatch.setenv("MCP_HOST", "tools.internal")
        assert resolve_env_vars("http://${MCP_HOST}/mcp") == "http://tools.internal/mcp"

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("MCP_PORT", raising=False)
        assert resolve_env_vars("${MCP_PORT:-9000}") == "9000"

    def test_missing_without_default_is_empty(self, monkeypatch):
        monkeypatch.delenv("MCP_TOKEN", raising=False)
        assert resolve_env_vars("Bearer ${MCP_TOKEN}") == "Bearer "


class TestParseToolServer:
    """Tests for parse_tool_server."""

    def test_minimal_stdio(self):
        definition = parse_tool_server({"command": "npx", "args": ["-y", "srv"]}, name="fs")
        assert definition.name == "fs"
        assert definition.transport is TransportKind.STDIO
        assert definition.args == ["-y", "srv"]
        assert definition.status is ServerStatus.ACTIVE
        assert definition.sandbox.max_execution_ms == 30_000
        assert definition.sandbox.max_output_size == 102_400

    def test_http_with_filters_and_sandbox(self):
        definition = parse_tool_server(
            {
                "name": "search",
                "transport": "http",
                "url": "http://localhost:9000/mcp",
                "headers": {"Authorization": "Bearer x"},
                "allowed_tools": ["search_*"],
                "blocked_tools": ["search_admin"],
                "sandbox": {"max_execution_ms": 5000, "allow_network": "true"},
                "status": "inactive",
            }
        )
        assert definition.transport is TransportKind.HTTP
        assert definition.headers == {"Authorization": "Bearer x"}
        assert definition.allowed_tools == ["search_*"]
        assert definition.sandbox.max_execution_ms == 5000
        assert definition.sandbox.allow_network is True
        assert definition.is_active is False

    def test_missing_name(self):
        with pytest.raises(ValueError, match="missing a name"):
            parse_tool_server({"command": "x"})

    def test_unknown_transport(self):
        with pytest.raises(ValueError, match="Unknown transport"):
            parse_tool_server({"name": "x", "transport": "carrier-pigeon"})


class TestValidateToolServers:
    def test_valid(self):
        definitions = [
            parse_tool_server({"command": "npx"}, name="fs"),
            parse_tool_server({"transport": "sse", "url": "http://h/sse"}, name="events"),
        ]
        assert validate_tool_servers(definitions) == []

    def test_reports_problems(self):
        definitions = [
            parse_tool_server({}, name="fs"),
            parse_tool_server({"command": "npx"}, name="fs"),
            parse_tool_server({"transport": "http"}, name="my__server"),
        ]
        errors = validate_tool_servers(definitions)
        assert any("requires a command" in e for e in errors)
        assert any("duplicate" in e for e in errors)
        assert any("'__'" in e for e in errors)
        assert any("requires a url" in e for e in errors)


class TestLoadToolServers:
    """Tests for load_tool_servers."""

    def test_no_path_returns_empty(self, monkeypatch):
        monkeypatch.delenv("TOOL_SERVERS_CONFIG_PATH", raising=False)
        assert load_tool_servers() == []

    def test_missing_file_returns_empty(self, tmp_path):
        assert load_tool_servers(str(tmp_path / "nope.yaml")) == []

    def test_loads_with_interpolation(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SEARCH_TOKEN", "secret")
        config_file = tmp_path / "tool_servers.yaml"
        config_file.write_text(
            """
version: "1.0"
tool_servers:
  filesystem:
    transport: stdio
    command: npx
    args: ["-y", "@modelcontextprotocol/server-filesystem", "/tmp"]
  search:
    transport: http
    url: ${SEARCH_URL:-http://localhost:9000/mcp}
    headers:
      Authorization: Bearer ${SEARCH_TOKEN}
"""
        )
        definitions = load_tool_servers(str(config_file))

        assert [d.name for d in definitions] == ["filesystem", "search"]
        assert definitions[1].url == "http://localhost:9000/mcp"
        assert definitions[1].headers["Authorization"] == "Bearer secret"

    def test_invalid_definition_raises(self, tmp_path):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("tool_servers:\n  x:\n    transport: smoke-signals\n")
        with pytest.raises(ValueError, match="Invalid tool server configuration for 'x'"):
            load_tool_servers(str(config_file))

    def test_empty_file(self, tmp_path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert load_tool_servers(str(config_file)) == []
