"""
Bounded tool-use orchestration loop.

Each run owns one ``ToolServerRegistry``. The model is offered the
namespaced tool catalog; whenever it stops to use tools, its request is
appended verbatim, the calls are executed and their results are fed back
as a single user turn. The loop ends when the model answers in text, or,
after ``max_rounds`` tool rounds, with one last exchange that offers no
tools.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from ..backends import ModelBackend, ModelResponse
from ..config import config
from ..models import ToolServerDefinition
from ..tools.registry import ToolServerRegistry, make_tool_call
from ..tracing import TracingContext
from ..types import RuntimeMessage, ToolCall, ToolUseRecord

logger = logging.getLogger(__name__)

RegistryFactory = Callable[[], ToolServerRegistry]


@dataclass
class LoopResult:
    """Final text of a run plus every tool invocation made during it."""

    response_text: str
    tool_executions: list[ToolUseRecord] = field(default_factory=list)
    rounds: int = 0
    backend_calls: int = 0


def build_messages(
    history: Sequence[RuntimeMessage], user_message: str, max_history: int
) -> list[dict[str, Any]]:
    """Trailing window of prior turns plus the new user message."""
    window = list(history)[-max_history:] if max_history > 0 else []
    messages = [{"role": m.role, "content": m.content} for m in window]
    messages.append({"role": "user", "content": user_message})
    return messages


def tool_result_block(record: ToolUseRecord) -> dict[str, Any]:
    block: dict[str, Any] = {
        "type": "tool_result",
        "tool_use_id": record.tool_call_id,
        "content": record.output,
    }
    if record.is_error:
        block["is_error"] = True
    return block


class OrchestrationLoop:
    """
    Tool-use loop for a single user turn.

    Not re-entrant: create one per run. Connections never outlive ``run``.
    """

    def __init__(
        self,
        backend: ModelBackend,
        max_rounds: Optional[int] = None,
        max_history_messages: Optional[int] = None,
        parallel_tool_execution: Optional[bool] = None,
        registry_factory: Optional[RegistryFactory] = None,
        run_id: Optional[str] = None,
        tracing_context: Optional[TracingContext] = None,
        default_max_tokens: Optional[int] = None,
    ):
        runtime = config.runtime
        self.backend = backend
        self.max_rounds = runtime.max_tool_rounds if max_rounds is None else max_rounds
        self.max_history_messages = (
            runtime.max_history_messages if max_history_messages is None else max_history_messages
        )
        self.parallel_tool_execution = (
            runtime.parallel_tool_execution
            if parallel_tool_execution is None
            else parallel_tool_execution
        )
        self.default_max_tokens = default_max_tokens or config.backend.max_tokens
        self.registry_factory = registry_factory or (
            lambda: ToolServerRegistry(connect_timeout=runtime.connect_timeout)
        )
        self.run_id = run_id or f"run-{uuid.uuid4().hex[:8]}"
        self.tracing_context = tracing_context
        self._backend_calls = 0

    @property
    def _prefix(self) -> str:
        return f"[{self.run_id}] "

    async def run(
        self,
        system_prompt: str,
        history: Sequence[RuntimeMessage],
        user_message: str,
        tool_servers: Optional[list[ToolServerDefinition]] = None,
        max_tokens: Optional[int] = None,
    ) -> LoopResult:
        """
        Run the loop for one user message.

        Raises:
            BackendError: If the model backend fails; open connections are
                still closed before it propagates.
        """
        self._backend_calls = 0
        max_tokens = max_tokens or self.default_max_tokens
        messages = build_messages(history, user_message, self.max_history_messages)
        start = time.monotonic()

        if not tool_servers:
            logger.debug("%sNo tool servers, direct exchange", self._prefix)
            response = await self._complete(system_prompt, messages, max_tokens, None, "direct")
            result = LoopResult(response_text=response.text, backend_calls=self._backend_calls)
        else:
            async with self.registry_factory() as registry:
                result = await self._run_with_tools(
                    registry, system_prompt, messages, tool_servers, max_tokens
                )

        self._log_summary(result, time.monotonic() - start)
        return result

    async def _run_with_tools(
        self,
        registry: ToolServerRegistry,
        system_prompt: str,
        messages: list[dict[str, Any]],
        tool_servers: list[ToolServerDefinition],
        max_tokens: int,
    ) -> LoopResult:
        await registry.connect_all(tool_servers)
        catalog = await registry.to_tool_catalog()
        logger.debug(
            "%s%d servers connected, %d tools in catalog",
            self._prefix,
            registry.connected_count,
            len(catalog),
        )

        executions: list[ToolUseRecord] = []
        for round_number in range(1, self.max_rounds + 1):
            response = await self._complete(
                system_prompt, messages, max_tokens, catalog, f"round_{round_number}"
            )
            if not response.wants_tool_use:
                return LoopResult(
                    response_text=response.text,
                    tool_executions=executions,
                    rounds=round_number,
                    backend_calls=self._backend_calls,
                )

            messages.append({"role": "assistant", "content": response.content})

            calls = [
                make_tool_call(block["id"], block["name"], block.get("input"))
                for block in response.tool_uses
            ]
            logger.debug(
                "%sRound %d: %s",
                self._prefix,
                round_number,
                ", ".join(call.prefixed_name for call in calls),
            )
            records = await self._execute_calls(registry, calls)
            executions.extend(records)

            messages.append({"role": "user", "content": [tool_result_block(r) for r in records]})

        logger.info(
            "%sTool round limit (%d) reached, requesting final answer", self._prefix, self.max_rounds
        )
        response = await self._complete(system_prompt, messages, max_tokens, None, "final")
        return LoopResult(
            response_text=response.text,
            tool_executions=executions,
            rounds=self.max_rounds,
            backend_calls=self._backend_calls,
        )

    async def _execute_calls(
        self, registry: ToolServerRegistry, calls: list[ToolCall]
    ) -> list[ToolUseRecord]:
        """Execute one round of calls; results come back in request order."""
        if self.parallel_tool_execution and len(calls) > 1:
            return list(await asyncio.gather(*(self._execute(registry, c) for c in calls)))
        return [await self._execute(registry, call) for call in calls]

    async def _execute(self, registry: ToolServerRegistry, call: ToolCall) -> ToolUseRecord:
        if self.tracing_context is None:
            return await registry.execute(call)

        with self.tracing_context.span(
            name=f"tool:{call.prefixed_name}",
            input={"tool_call_id": call.id, "arguments": call.input},
        ) as span:
            record = await registry.execute(call)
            span.set_output({"output": record.output[:500], "duration_ms": record.duration_ms})
            if record.is_error:
                span.set_status("error")
            return record

    async def _complete(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        max_tokens: int,
        tools: Optional[list[dict[str, Any]]],
        label: str,
    ) -> ModelResponse:
        self._backend_calls += 1
        if self.tracing_context is None:
            return await self.backend.complete(
                system_prompt, messages, max_tokens=max_tokens, tools=tools
            )

        with self.tracing_context.generation(
            name=f"model:{label}",
            model=self.backend.model,
            input=messages[-1:],
            model_parameters={"max_tokens": max_tokens, "tools": len(tools or [])},
        ) as gen:
            response = await self.backend.complete(
                system_prompt, messages, max_tokens=max_tokens, tools=tools
            )
            gen.set_output(response.text or f"[{response.stop_reason}]")
            gen.set_usage(
                input_tokens=response.usage.get("input_tokens"),
                output_tokens=response.usage.get("output_tokens"),
            )
            return response

    def _log_summary(self, result: LoopResult, elapsed: float) -> None:
        failed = sum(1 for r in result.tool_executions if r.is_error)
        logger.info(
            "%sRun complete: %d backend calls, %d tool calls (%d failed), %.2fs",
            self._prefix,
            result.backend_calls,
            len(result.tool_executions),
            failed,
            elapsed,
        )
