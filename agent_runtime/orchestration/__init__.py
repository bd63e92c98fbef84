"""
Orchestration engine: guardrails, the tool-use loop and session state.
"""

from .guardrails import (
    ACTION_END_SESSION,
    ACTION_ESCALATE,
    GuardrailCheckResult,
    PostMessageCheckResult,
    check_post_message,
    check_pre_message,
)
from .session import advance_session, blocked_session
from .loop import LoopResult, OrchestrationLoop, build_messages
from .prompt import build_runtime_system_prompt
from .engine import process_message

__all__ = [
    "ACTION_END_SESSION",
    "ACTION_ESCALATE",
    "GuardrailCheckResult",
    "PostMessageCheckResult",
    "check_post_message",
    "check_pre_message",
    "advance_session",
    "blocked_session",
    "LoopResult",
    "OrchestrationLoop",
    "build_messages",
    "build_runtime_system_prompt",
    "process_message",
]
