"""
Runtime message endpoint.

Callers own session storage: they send the stored history and counters
with each message and persist the returned session updates.
"""

import logging

from fastapi import APIRouter, HTTPException, Request

from ...errors import BackendError
from ...models import parse_agent_config
from ...orchestration import build_runtime_system_prompt, process_message
from ...tracing import get_tracing_client
from ..schemas import ErrorResponse, ProcessMessageRequest, ProcessMessageResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/v1/runtime/messages",
    response_model=ProcessMessageResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Process a message",
    description=(
        "Run one user turn against a deployed agent: guardrail check, tool-use "
        "orchestration and the next session state."
    ),
)
async def process_runtime_message(
    body: ProcessMessageRequest, request: Request
) -> ProcessMessageResponse:
    """Process one user message and return the reply with session updates."""
    agent_config = parse_agent_config(body.agent_config)
    system_prompt = body.system_prompt or build_runtime_system_prompt(agent_config)

    if body.tool_servers is None:
        tool_servers = list(getattr(request.app.state, "tool_servers", []) or [])
    else:
        tool_servers = [server.to_definition() for server in body.tool_servers]

    logger.debug(
        "Processing message (turn %d, %d history, %d tool servers)",
        body.turn_count,
        len(body.history),
        len(tool_servers),
    )

    try:
        result = await process_message(
            system_prompt,
            agent_config,
            body.session_status,
            body.turn_count,
            body.failed_attempts,
            [message.to_runtime() for message in body.history],
            body.message,
            tool_servers,
        )
    except BackendError as e:
        logger.error("Model backend failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to process message")
    except Exception as e:
        logger.exception("Runtime message processing failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to process message")
    finally:
        client = get_tracing_client()
        if client:
            client.flush()

    return ProcessMessageResponse.from_result(result)
