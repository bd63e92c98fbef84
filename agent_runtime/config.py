"""
Configuration management for the agent runtime.

Loads all configuration from environment variables with sensible defaults
for local development.
"""

import os
from dataclasses import dataclass, field

# Load .env file if python-dotenv is available
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class BackendConfig:
    """Configuration for the hosted model backend."""
    provider: str = os.getenv("MODEL_PROVIDER", "anthropic")  # anthropic | openai_compatible
    base_url: str = os.getenv("MODEL_BASE_URL", "")
    model: str = os.getenv("MODEL_NAME", "claude-sonnet-4-5-20250929")
    api_key: str = os.getenv("MODEL_API_KEY", os.getenv("ANTHROPIC_API_KEY", ""))
    temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.7"))
    max_tokens: int = int(os.getenv("MODEL_MAX_TOKENS", "4096"))
    timeout: float = float(os.getenv("MODEL_TIMEOUT", "120"))


@dataclass
class RuntimeConfig:
    """Limits for the tool-use orchestration loop."""
    max_tool_rounds: int = int(os.getenv("MAX_TOOL_ROUNDS", "10"))
    max_history_messages: int = int(os.getenv("MAX_HISTORY_MESSAGES", "40"))
    parallel_tool_execution: bool = _env_bool("PARALLEL_TOOL_EXECUTION", "true")
    # Upper bound on max_response_length when deriving the token budget
    max_response_tokens: int = int(os.getenv("MAX_RESPONSE_TOKENS", "4096"))
    connect_timeout: float = float(os.getenv("TOOL_CONNECT_TIMEOUT", "30"))
    max_message_length: int = int(os.getenv("MAX_MESSAGE_LENGTH", "10000"))


@dataclass
class ServerConfig:
    """Configuration for the FastAPI server."""
    host: str = os.getenv("SERVER_HOST", "0.0.0.0")
    port: int = int(os.getenv("SERVER_PORT", "8000"))
    workers: int = int(os.getenv("SERVER_WORKERS", "1"))
    reload: bool = _env_bool("SERVER_RELOAD", "false")


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse observability.

    Tracing auto-enables when both public_key and secret_key are provided.
    """
    public_key: str = os.getenv("LANGFUSE_PUBLIC_KEY", "")
    secret_key: str = os.getenv("LANGFUSE_SECRET_KEY", "")
    host: str = os.getenv("LANGFUSE_HOST", "")
    debug: bool = _env_bool("LANGFUSE_DEBUG", "false")

    @property
    def enabled(self) -> bool:
        """Auto-enable when both keys are configured."""
        return bool(self.public_key and self.secret_key)


@dataclass
class Config:
    """Main configuration container."""
    backend: BackendConfig = field(default_factory=BackendConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    langfuse: LangfuseConfig = field(default_factory=LangfuseConfig)
    tool_servers_path: str = os.getenv("TOOL_SERVERS_CONFIG_PATH", "")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def get_config() -> Config:
    """Get the application configuration."""
    return Config()


# Global config instance
config = get_config()
