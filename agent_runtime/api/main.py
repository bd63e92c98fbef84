"""
FastAPI application for the agent runtime.

Usage:
    # Development server with auto-reload
    uvicorn agent_runtime.api.main:app --reload --host 0.0.0.0 --port 8000

    # Debug mode (verbose logging)
    LOG_LEVEL=DEBUG uvicorn agent_runtime.api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import config
from ..config_loader import load_tool_servers
from ..tracing import init_tracing_client, shutdown_tracing
from .routes import health, runtime, tool_servers


def configure_logging():
    """Configure logging based on LOG_LEVEL environment variable."""
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("agent_runtime").setLevel(log_level)


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting agent runtime API server")

    logger.info("=" * 60)
    logger.info("MODEL BACKEND")
    logger.info(f"  Provider: {config.backend.provider}")
    logger.info(f"  Model: {config.backend.model}")
    if config.backend.base_url:
        logger.info(f"  Base URL: {config.backend.base_url}")
    logger.info(f"  Temperature: {config.backend.temperature}")

    logger.info("-" * 60)
    logger.info("ORCHESTRATION LIMITS")
    logger.info(f"  Max tool rounds: {config.runtime.max_tool_rounds}")
    logger.info(f"  History window: {config.runtime.max_history_messages} messages")
    logger.info(f"  Parallel tool calls: {config.runtime.parallel_tool_execution}")

    logger.info("-" * 60)
    logger.info("TOOL SERVERS")
    app.state.tool_servers = load_tool_servers(config.tool_servers_path)
    if not app.state.tool_servers:
        logger.info("  (none configured)")
    for definition in app.state.tool_servers:
        target = definition.url or " ".join([definition.command or "", *definition.args])
        logger.info(f"  [{definition.name}] {definition.transport.value}: {target.strip()}")

    logger.info("-" * 60)
    logger.info("LANGFUSE OBSERVABILITY")
    tracing_client = init_tracing_client(config.langfuse)
    if tracing_client.enabled:
        logger.info("  Status: ENABLED")
        logger.info(f"  Host: {config.langfuse.host or 'https://cloud.langfuse.com'}")
    else:
        logger.info("  Status: DISABLED")
        if tracing_client.error:
            logger.info(f"  Reason: {tracing_client.error}")

    logger.info("=" * 60)

    yield

    logger.info("Shutting down agent runtime API server")
    shutdown_tracing()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="Agent Runtime API",
        description=(
            "Processes user messages for deployed agents, orchestrating calls to "
            "MCP tool servers between model exchanges."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.tool_servers = []

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(runtime.router, tags=["Runtime"])
    app.include_router(tool_servers.router, tags=["Tool Servers"])

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Log validation errors before returning 400 response."""
        logger.warning(
            f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
        )
        body = await request.body()
        logger.debug(f"Request body: {body.decode('utf-8', errors='replace')[:1000]}")
        return JSONResponse(
            status_code=400,
            content={"detail": jsonable_errors(exc)},
        )

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors with non-JSON context values stringified."""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return errors


app = create_app()


def run_server():
    """
    Run the server using uvicorn.

    This is the entry point for running the server programmatically.
    """
    import uvicorn

    uvicorn.run(
        "agent_runtime.api.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
        workers=1 if config.server.reload else config.server.workers,
    )


if __name__ == "__main__":
    run_server()
