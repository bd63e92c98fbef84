"""
Entry point for processing one user message against a deployed agent.

``process_message`` is the whole surface the surrounding application
uses: guardrail pre-check, orchestration loop, session transition.
"""

import logging
import uuid
from typing import Optional, Sequence, Union

from ..backends import ModelBackend, create_backend
from ..config import config
from ..models import AgentConfig, ToolServerDefinition, parse_agent_config
from ..tracing import TracingContext
from ..types import ProcessMessageResult, RuntimeMessage, SessionStatus
from .guardrails import check_pre_message
from .loop import OrchestrationLoop
from .session import advance_session, blocked_session

logger = logging.getLogger(__name__)

BLOCKED_FALLBACK_MESSAGE = "This session is no longer active."


def response_token_budget(agent_config: AgentConfig) -> Optional[int]:
    """Token budget derived from max_response_length, capped by configuration."""
    guardrails = agent_config.guardrails
    if guardrails is None or not guardrails.resource_limits.max_response_length:
        return None
    return min(guardrails.resource_limits.max_response_length, config.runtime.max_response_tokens)


def _coerce_history(history: Sequence[Union[RuntimeMessage, dict]]) -> list[RuntimeMessage]:
    return [m if isinstance(m, RuntimeMessage) else RuntimeMessage.from_dict(m) for m in history]


async def process_message(
    system_prompt: str,
    agent_config: Union[AgentConfig, dict, None],
    session_status: Union[SessionStatus, str],
    turn_count: int,
    failed_attempts: int,
    history: Sequence[Union[RuntimeMessage, dict]],
    user_message: str,
    tool_servers: Optional[list[ToolServerDefinition]] = None,
    *,
    backend: Optional[ModelBackend] = None,
    tracing_context: Optional[TracingContext] = None,
) -> ProcessMessageResult:
    """
    Process a user message and compute the next session state.

    Args:
        system_prompt: Instruction string for the model.
        agent_config: Deployed agent configuration (parsed or raw JSON).
        session_status: Status before this turn.
        turn_count: Completed turns before this one.
        failed_attempts: Carried through unchanged.
        history: Prior conversation, oldest first.
        user_message: The new message.
        tool_servers: Tool server definitions; None or empty skips tool use.
        backend: Model backend. Created from configuration when omitted
            and closed again before returning.
        tracing_context: Tracing for this run; a disabled one is used
            when omitted.

    Returns:
        ProcessMessageResult. A blocked turn returns a synthetic assistant
        message and never reaches the backend.

    Raises:
        BackendError: If the model backend fails.
    """
    if not isinstance(agent_config, AgentConfig):
        agent_config = parse_agent_config(agent_config)
    guardrails = agent_config.guardrails

    check = check_pre_message(guardrails, turn_count, session_status)
    if not check.allowed:
        logger.info("Message blocked by guardrails: %s", check.reason)
        return ProcessMessageResult(
            response=RuntimeMessage(
                role="assistant",
                content=check.reason or BLOCKED_FALLBACK_MESSAGE,
                metadata={"blocked": True, "action": check.action},
            ),
            session_updates=blocked_session(check, session_status, turn_count, failed_attempts),
            guardrail_notice=check.reason,
        )

    tracing = tracing_context or TracingContext(f"run-{uuid.uuid4().hex[:8]}")
    run_id = tracing.run_id
    owns_backend = backend is None
    if backend is None:
        backend = create_backend()

    tracing.start_trace(
        name="process_message",
        user_message=user_message,
        metadata={"turn_count": turn_count, "tool_servers": len(tool_servers or [])},
    )
    try:
        loop = OrchestrationLoop(backend, run_id=run_id, tracing_context=tracing)
        result = await loop.run(
            system_prompt,
            _coerce_history(history),
            user_message,
            tool_servers=tool_servers,
            max_tokens=response_token_budget(agent_config),
        )
    except BaseException:
        tracing.end_trace(status="error")
        raise
    finally:
        if owns_backend:
            await backend.close()

    tracing.end_trace(output=result.response_text)

    tool_executions = result.tool_executions or None
    response = RuntimeMessage(
        role="assistant",
        content=result.response_text,
        tool_uses=tuple(tool_executions) if tool_executions else None,
    )
    session_updates, notice = advance_session(guardrails, turn_count, failed_attempts)

    return ProcessMessageResult(
        response=response,
        session_updates=session_updates,
        guardrail_notice=notice,
        tool_executions=tool_executions,
    )


__all__ = ["process_message", "response_token_budget"]
