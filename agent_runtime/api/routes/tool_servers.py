"""
Tool server utilities: connection testing and presets.
"""

import logging

from fastapi import APIRouter, HTTPException

from ...config import config
from ...tools import ToolServerRegistry, get_preset, list_presets
from ..schemas import (
    PresetListResponse,
    PresetResponse,
    PresetSummary,
    ToolInfo,
    ToolServerSchema,
    ToolServerTestResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/v1/tool-servers/test",
    response_model=ToolServerTestResponse,
    response_model_exclude_none=True,
    summary="Test a tool server",
    description="Connect to one tool server, list its permitted tools and disconnect.",
)
async def check_tool_server(server: ToolServerSchema) -> ToolServerTestResponse:
    """Connection check for a single definition. Failures are reported, not raised."""
    definition = server.to_definition()

    try:
        async with ToolServerRegistry(connect_timeout=config.runtime.connect_timeout) as registry:
            await registry.connect_all([definition])
            if not registry.is_connected(definition.name):
                return ToolServerTestResponse(
                    connected=False,
                    error=registry.failures.get(
                        definition.name, "Server did not connect successfully"
                    ),
                )
            tools = await registry.list_tools()
    except Exception as e:
        logger.warning("Tool server test for '%s' failed: %s", definition.name, e)
        return ToolServerTestResponse(connected=False, error="Connection test failed")

    return ToolServerTestResponse(
        connected=True,
        tools=[
            ToolInfo(name=t.name, description=t.description, server_name=t.server_name)
            for t in tools
        ],
    )


@router.get(
    "/v1/tool-servers/presets",
    response_model=PresetListResponse,
    summary="List presets",
)
def get_presets() -> PresetListResponse:
    return PresetListResponse(presets=[PresetSummary(**p) for p in list_presets()])


@router.get(
    "/v1/tool-servers/presets/{key}",
    response_model=PresetResponse,
    summary="Get preset",
    description="Get a ready-made tool server definition.",
)
def get_preset_definition(key: str) -> PresetResponse:
    definition = get_preset(key)
    if definition is None:
        raise HTTPException(status_code=404, detail=f"Preset '{key}' not found")

    summary = next(p for p in list_presets() if p["key"] == key)
    return PresetResponse(
        key=key,
        name=summary["name"],
        description=summary["description"],
        definition=ToolServerSchema.from_definition(definition),
    )
