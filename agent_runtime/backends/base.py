"""
Model backend contract.

Conversations are exchanged in the Anthropic Messages shape: each message
is ``{"role": ..., "content": str | list[block]}`` where blocks are
``text``, ``tool_use`` or ``tool_result`` dictionaries. Backends for other
APIs translate to and from this shape.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

STOP_TOOL_USE = "tool_use"
STOP_END_TURN = "end_turn"
STOP_MAX_TOKENS = "max_tokens"


@dataclass
class ModelResponse:
    """One model reply: content blocks plus the reason generation stopped."""

    content: list[dict[str, Any]]
    stop_reason: str = STOP_END_TURN
    usage: dict[str, int] = field(default_factory=dict)

    @property
    def wants_tool_use(self) -> bool:
        return self.stop_reason == STOP_TOOL_USE

    @property
    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "".join(
            block["text"]
            for block in self.content
            if block.get("type") == "text" and isinstance(block.get("text"), str)
        )

    @property
    def tool_uses(self) -> list[dict[str, Any]]:
        return [block for block in self.content if block.get("type") == "tool_use"]


class ModelBackend(ABC):
    """A hosted language model reachable by request/response calls."""

    model: str

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        *,
        max_tokens: int,
        tools: Optional[list[dict[str, Any]]] = None,
    ) -> ModelResponse:
        """
        Send one exchange to the model.

        Raises:
            BackendError: If the backend is unreachable or the reply is malformed.
        """

    async def close(self) -> None:
        """Release the underlying client."""
