"""
Guardrail checks run around each user turn.

Both checks are pure: they read configuration and counters and report a
decision. Session status itself only changes in ``session.py``.
"""

from dataclasses import dataclass
from typing import Optional, Union

from ..models import GuardrailsConfig
from ..models.agent import DEFAULT_ESCALATION_THRESHOLD, DEFAULT_MAX_TURNS_PER_SESSION
from ..types import SessionStatus

ACTION_END_SESSION = "end_session"
ACTION_ESCALATE = "escalate"


@dataclass(frozen=True)
class GuardrailCheckResult:
    """Outcome of the pre-message check."""

    allowed: bool
    reason: Optional[str] = None
    action: Optional[str] = None  # end_session | escalate


@dataclass(frozen=True)
class PostMessageCheckResult:
    failed_attempts: int
    should_escalate: bool


def max_turns_for(guardrails: Optional[GuardrailsConfig]) -> int:
    """Turn limit for a session; 50 when guardrails are absent."""
    if guardrails is None:
        return DEFAULT_MAX_TURNS_PER_SESSION
    return guardrails.max_turns


def check_pre_message(
    guardrails: Optional[GuardrailsConfig],
    turn_count: int,
    session_status: Union[SessionStatus, str],
) -> GuardrailCheckResult:
    """
    Decide whether an incoming message may be processed.

    Args:
        guardrails: Guardrail policy, or None for an unrestricted agent.
        turn_count: Completed turns before this one.
        session_status: Current session status.

    Returns:
        GuardrailCheckResult. Terminal sessions are blocked without an
        action; exhausted sessions are blocked with ``end_session``.
    """
    status = SessionStatus(session_status)

    if status is SessionStatus.ENDED:
        return GuardrailCheckResult(allowed=False, reason="Session has ended")

    if status is SessionStatus.ESCALATED:
        return GuardrailCheckResult(
            allowed=False, reason="Session has been escalated to a human"
        )

    max_turns = max_turns_for(guardrails)
    if turn_count >= max_turns:
        return GuardrailCheckResult(
            allowed=False,
            reason=f"Maximum turns reached ({max_turns})",
            action=ACTION_END_SESSION,
        )

    return GuardrailCheckResult(allowed=True)


def check_post_message(
    guardrails: Optional[GuardrailsConfig],
    failed_attempts: int,
) -> PostMessageCheckResult:
    """Report whether repeated failures have crossed the escalation threshold."""
    threshold = (
        guardrails.escalation_threshold
        if guardrails is not None
        else DEFAULT_ESCALATION_THRESHOLD
    )
    return PostMessageCheckResult(
        failed_attempts=failed_attempts,
        should_escalate=failed_attempts >= threshold,
    )
