"""Tests for the tool server utility endpoints."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from conftest import FakeConnection
from agent_runtime.api.main import app
from agent_runtime.tools import ToolServerRegistry, ToolSpec

client = TestClient(app)


def _registry_with(connection_cls=FakeConnection, **connection_kwargs):
    def make_registry(**kwargs):
        return ToolServerRegistry(
            connection_factory=lambda d: connection_cls(d, **connection_kwargs)
        )

    return patch("agent_runtime.api.routes.tool_servers.ToolServerRegistry", make_registry)


class TestToolServerTest:
    """Tests for POST /v1/tool-servers/test."""

    def test_connected(self):
        tools = [ToolSpec("read_file", "Read a file"), ToolSpec("delete_file", "Delete")]
        with _registry_with(tools=tools):
            response = client.post(
                "/v1/tool-servers/test",
                json={"name": "fs", "command": "npx", "blocked_tools": ["delete_*"]},
            )

        assert response.status_code == 200
        assert response.json() == {
            "connected": True,
            "tools": [{"name": "read_file", "description": "Read a file", "server_name": "fs"}],
        }

    def test_connection_failure(self):
        with _registry_with(fail_connect=True):
            response = client.post("/v1/tool-servers/test", json={"name": "fs", "command": "npx"})

        data = response.json()
        assert response.status_code == 200
        assert data["connected"] is False
        assert data["tools"] == []
        assert "connection refused" in data["error"]

    def test_listing_failure(self):
        class BrokenListing(FakeConnection):
            async def connect(self):
                raise RuntimeError("unexpected")

        with _registry_with(BrokenListing):
            response = client.post("/v1/tool-servers/test", json={"name": "fs", "command": "npx"})

        assert response.json() == {"connected": False, "tools": [], "error": "Connection test failed"}

    def test_name_with_separator_not_connected(self):
        with _registry_with(tools=[ToolSpec("read_file")]):
            response = client.post("/v1/tool-servers/test", json={"name": "my__fs", "command": "npx"})

        data = response.json()
        assert data["connected"] is False
        assert "must not contain" in data["error"]

    def test_invalid_definition(self):
        response = client.post("/v1/tool-servers/test", json={"name": "", "transport": "stdio"})
        assert response.status_code == 400


class TestPresets:
    def test_list(self):
        data = client.get("/v1/tool-servers/presets").json()
        assert [p["key"] for p in data["presets"]] == [
            "filesystem",
            "jiraCloud",
            "browser",
            "git",
            "vercel",
        ]

    def test_get(self):
        data = client.get("/v1/tool-servers/presets/git").json()
        assert data["name"] == "Git"
        assert data["definition"]["name"] == "git"
        assert data["definition"]["transport"] == "stdio"
        assert data["definition"]["sandbox"]["max_execution_ms"] == 15000

    def test_unknown(self):
        assert client.get("/v1/tool-servers/presets/nope").status_code == 404
