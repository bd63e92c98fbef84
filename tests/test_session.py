"""Tests for session state transitions."""

from agent_runtime.models import GuardrailsConfig, ResourceLimits
from agent_runtime.orchestration.guardrails import GuardrailCheckResult, check_pre_message
from agent_runtime.orchestration.session import advance_session, blocked_session
from agent_runtime.types import SessionStatus


def _guardrails(max_turns: int) -> GuardrailsConfig:
    return GuardrailsConfig(resource_limits=ResourceLimits(max_turns_per_session=max_turns))


class TestAdvanceSession:
    """Tests for advance_session."""

    def test_increments_turn_count(self):
        updates, notice = advance_session(None, 4, 1)
        assert updates.turn_count == 5
        assert updates.failed_attempts == 1
        assert updates.status is SessionStatus.ACTIVE
        assert notice is None

    def test_reaching_limit_ends_session(self):
        """turn 49 of 50 is the last one."""
        updates, notice = advance_session(_guardrails(50), 49, 0)
        assert updates.turn_count == 50
        assert updates.status is SessionStatus.ENDED
        assert notice == "Session ended: maximum 50 turns reached."

    def test_default_limit(self):
        updates, notice = advance_session(None, 49, 0)
        assert updates.status is SessionStatus.ENDED
        assert "50" in notice


class TestBlockedSession:
    """Tests for blocked_session."""

    def test_end_session_action_ends(self):
        check = check_pre_message(_guardrails(5), 5, "active")
        updates = blocked_session(check, "active", 5, 2)
        assert updates.status is SessionStatus.ENDED
        assert updates.turn_count == 5
        assert updates.failed_attempts == 2

    def test_escalated_status_kept(self):
        check = check_pre_message(None, 1, "escalated")
        updates = blocked_session(check, "escalated", 1, 0)
        assert updates.status is SessionStatus.ESCALATED
        assert updates.turn_count == 1

    def test_no_action_keeps_status(self):
        check = GuardrailCheckResult(allowed=False, reason="Session has ended")
        assert blocked_session(check, "ended", 7, 0).status is SessionStatus.ENDED
