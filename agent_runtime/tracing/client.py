"""
Process-wide Langfuse client.

The client is connected once at startup from ``LangfuseConfig``. If the
package is missing, the keys are unset or the auth check fails, the
holder keeps the reason in ``error`` and tracing stays off.
"""

import logging
from typing import Any, Optional

from ..config import LangfuseConfig, config

logger = logging.getLogger(__name__)

try:
    from langfuse import Langfuse

    _langfuse_available = True
    _langfuse_error: Optional[str] = None
except ImportError as e:
    Langfuse = None  # type: ignore
    _langfuse_available = False
    _langfuse_error = f"langfuse package not installed: {e}"


class TracingClient:
    """A connected Langfuse client, or the reason tracing is off."""

    def __init__(self, client: Optional["Langfuse"] = None, error: Optional[str] = None):
        self.client = client
        self.error = error

    @property
    def enabled(self) -> bool:
        return self.client is not None

    @classmethod
    def connect(cls, settings: LangfuseConfig) -> "TracingClient":
        """Build the Langfuse client and verify the credentials against the host."""
        if not _langfuse_available:
            return cls.disabled(_langfuse_error)
        if not settings.enabled:
            return cls.disabled("Langfuse credentials not configured")

        if settings.host and not settings.host.startswith(("http://", "https://")):
            logger.warning(
                "LANGFUSE_HOST '%s' has no scheme; expected http://host:port or https://host:port",
                settings.host,
            )

        options: dict[str, Any] = {
            "public_key": settings.public_key,
            "secret_key": settings.secret_key,
            "debug": settings.debug,
        }
        if settings.host:
            options["host"] = settings.host

        try:
            client = Langfuse(**options)
        except Exception as e:
            return cls.disabled(f"Failed to initialize Langfuse client: {e}", warn=True)

        try:
            authenticated = client.auth_check()
        except Exception as e:
            return cls.disabled(f"Langfuse connectivity check failed: {e}", warn=True)
        if not authenticated:
            return cls.disabled(
                "Langfuse auth_check() failed; check LANGFUSE_HOST and keys", warn=True
            )

        logger.info("Langfuse tracing enabled (host: %s)", settings.host or "default")
        return cls(client=client)

    @classmethod
    def disabled(cls, reason: Optional[str], warn: bool = False) -> "TracingClient":
        (logger.warning if warn else logger.debug)("Tracing disabled: %s", reason)
        return cls(error=reason)

    def flush(self) -> None:
        if self.client is None:
            return
        try:
            self.client.flush()
        except Exception as e:
            logger.warning("Failed to flush tracing events: %s", e)

    def shutdown(self) -> None:
        """Flush pending events and stop the exporter."""
        if self.client is None:
            return
        try:
            self.client.shutdown()
        except Exception as e:
            logger.warning("Error during tracing client shutdown: %s", e)


_tracing_client: Optional[TracingClient] = None


def init_tracing_client(settings: Optional[LangfuseConfig] = None) -> TracingClient:
    """Connect the global tracing client, by default from ``config.langfuse``."""
    global _tracing_client
    _tracing_client = TracingClient.connect(settings or config.langfuse)
    return _tracing_client


def get_tracing_client() -> Optional[TracingClient]:
    return _tracing_client


def shutdown_tracing() -> None:
    global _tracing_client
    client, _tracing_client = _tracing_client, None
    if client is not None:
        client.shutdown()
