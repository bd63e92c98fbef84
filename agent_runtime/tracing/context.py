"""
Run-scoped tracing context.

One ``TracingContext`` wraps one ``process_message`` call. It opens a root
span and hands out child observations (spans for tool calls, generations
for model exchanges) linked to it through an explicit Langfuse
``TraceContext``. With tracing disabled every handle is inert.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Generator, Optional

from .client import get_tracing_client

logger = logging.getLogger(__name__)


def _langfuse():
    client = get_tracing_client()
    if client is None or not client.enabled:
        return None
    return client.client


class Observation:
    """A span or generation; safe to use when tracing is disabled."""

    def __init__(self, as_type: str, name: str, trace_context: Optional[dict], **attrs: Any):
        self.as_type = as_type
        self.name = name
        self._trace_context = trace_context
        self._attrs = {k: v for k, v in attrs.items() if v is not None}
        self._manager: Any = None
        self._observation: Any = None
        self._start_time = 0.0
        self._output: Any = None
        self._usage: Optional[dict] = None
        self._status = "success"

    @property
    def active(self) -> bool:
        return self._observation is not None

    def start(self) -> None:
        langfuse = _langfuse()
        if langfuse is None:
            return
        try:
            self._start_time = time.time()
            self._manager = langfuse.start_as_current_observation(
                trace_context=self._trace_context,
                as_type=self.as_type,
                name=self.name,
                **self._attrs,
            )
            self._observation = self._manager.__enter__()
        except Exception as e:
            logger.warning(f"Failed to start {self.as_type} '{self.name}': {e}")
            self._observation = None

    def end(self) -> None:
        if not self.active:
            return
        try:
            update: dict[str, Any] = {
                "metadata": {
                    "status": self._status,
                    "duration_ms": round((time.time() - self._start_time) * 1000, 2),
                }
            }
            if self._output is not None:
                update["output"] = self._output
            if self._usage:
                update["usage_details"] = self._usage
            self._observation.update(**update)
            self._manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning(f"Failed to end {self.as_type} '{self.name}': {e}")
        finally:
            self._observation = None

    def set_output(self, output: Any) -> None:
        self._output = output

    def set_status(self, status: str) -> None:
        self._status = status

    def set_usage(self, input_tokens: Optional[int] = None, output_tokens: Optional[int] = None) -> None:
        self._usage = {}
        if input_tokens is not None:
            self._usage["input"] = input_tokens
        if output_tokens is not None:
            self._usage["output"] = output_tokens


class TracingContext:
    """
    Tracing for a single orchestration run.

    Usage::

        tracing = TracingContext(run_id)
        tracing.start_trace(name="process_message", user_message=text)
        with tracing.generation("model_call", model=backend.model) as gen:
            ...
        tracing.end_trace(output=reply)
    """

    def __init__(self, run_id: str, session_id: Optional[str] = None):
        self.run_id = run_id
        self.session_id = session_id
        self._root: Optional[Observation] = None

    @property
    def enabled(self) -> bool:
        return _langfuse() is not None

    def start_trace(
        self,
        name: str = "process_message",
        user_message: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        if not self.enabled:
            logger.debug(f"[{self.run_id}] start_trace skipped: tracing disabled")
            return

        trace_metadata = {"run_id": self.run_id, **(metadata or {})}
        self._root = Observation(
            "span",
            name,
            None,
            input={"user_message": user_message} if user_message else None,
            metadata=trace_metadata,
        )
        self._root.start()
        if self._root.active and self.session_id:
            try:
                self._root._observation.update_trace(session_id=self.session_id)
            except Exception as e:
                logger.debug(f"[{self.run_id}] Failed to set trace session: {e}")

    def end_trace(self, output: Optional[str] = None, status: str = "success") -> None:
        if self._root is None:
            return
        self._root.set_output(output)
        self._root.set_status(status)
        self._root.end()
        self._root = None

    def _child_trace_context(self) -> Optional[dict]:
        if self._root is None or not self._root.active:
            return None
        root = self._root._observation
        trace_id = getattr(root, "trace_id", None)
        span_id = getattr(root, "id", None)
        if not trace_id or not span_id:
            return None
        from langfuse.types import TraceContext

        return TraceContext(trace_id=trace_id, parent_span_id=span_id)

    @contextmanager
    def _observe(self, as_type: str, name: str, **attrs: Any) -> Generator[Observation, None, None]:
        observation = Observation(as_type, name, self._child_trace_context(), **attrs)
        observation.start()
        try:
            yield observation
        except BaseException:
            observation.set_status("error")
            raise
        finally:
            observation.end()

    def span(
        self, name: str, input: Optional[dict] = None, metadata: Optional[dict] = None
    ):
        """Context manager for a non-model step such as a tool call."""
        return self._observe("span", name, input=input, metadata=metadata)

    def generation(
        self,
        name: str,
        model: str,
        input: Optional[Any] = None,
        model_parameters: Optional[dict] = None,
        metadata: Optional[dict] = None,
    ):
        """Context manager for one model exchange."""
        return self._observe(
            "generation",
            name,
            model=model,
            input=input,
            model_parameters=model_parameters,
            metadata=metadata,
        )
