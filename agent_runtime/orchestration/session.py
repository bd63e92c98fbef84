"""
Session state transitions.

The only two places a session's status moves: a blocked turn (after the
pre-message check) and a completed turn.
"""

from typing import Optional, Union

from ..models import GuardrailsConfig
from ..types import SessionStatus, SessionUpdates
from .guardrails import ACTION_END_SESSION, GuardrailCheckResult, max_turns_for


def advance_session(
    guardrails: Optional[GuardrailsConfig],
    turn_count: int,
    failed_attempts: int,
) -> tuple[SessionUpdates, Optional[str]]:
    """
    Compute the session state after a turn that produced a response.

    Returns:
        (updates, notice). The notice is set only when this turn ended
        the session.
    """
    new_turn_count = turn_count + 1
    max_turns = max_turns_for(guardrails)

    if new_turn_count >= max_turns:
        updates = SessionUpdates(
            turn_count=new_turn_count,
            failed_attempts=failed_attempts,
            status=SessionStatus.ENDED,
        )
        return updates, f"Session ended: maximum {max_turns} turns reached."

    updates = SessionUpdates(
        turn_count=new_turn_count,
        failed_attempts=failed_attempts,
        status=SessionStatus.ACTIVE,
    )
    return updates, None


def blocked_session(
    check: GuardrailCheckResult,
    session_status: Union[SessionStatus, str],
    turn_count: int,
    failed_attempts: int,
) -> SessionUpdates:
    """Compute the session state for a turn the pre-check refused."""
    status = SessionStatus(session_status)
    if check.action == ACTION_END_SESSION:
        status = SessionStatus.ENDED
    return SessionUpdates(
        turn_count=turn_count,
        failed_attempts=failed_attempts,
        status=status,
    )
