"""FastAPI application entry point.

This module defines the main FastAPI application with CORS middleware,
lifespan management, and API routing configuration.

Logging:
    Initializes structured logging on application startup.
    All application events are logged with appropriate context.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from toolsmith import __version__
from toolsmith.api import router as api_router
from toolsmith.core.config import settings
from toolsmith.core.logging import get_logger, setup_logging
from toolsmith.db.session import async_session, init_db
from toolsmith.services.execution_service import ExecutionCoordinator
from toolsmith.services.mcp import ProtocolAdapter, ServerState
from toolsmith.services.server_config_service import ServerConfigService
from toolsmith.utils.crypto import build_secret_cipher

# Initialize logging system
setup_logging(
    log_level=settings.LOG_LEVEL,
    log_file=settings.LOG_FILE,
    service_name=settings.PROJECT_NAME,
    enable_json=settings.LOG_JSON_FORMAT,
)

# Get application logger
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan context manager.

    Creates the schema, the secret cipher, the execution coordinator and
    the MCP adapter on startup, and starts the MCP server when the stored
    configuration asks for it. Stops the server and releases executor
    resources on shutdown.
    """
    # Startup
    logger.info(
        f"Starting {settings.PROJECT_NAME}",
        extra={
            "context": {
                "action": "application_startup",
                "version": __version__,
                "debug": settings.DEBUG,
                "log_level": settings.LOG_LEVEL,
            }
        },
    )

    await init_db()

    cipher = build_secret_cipher(settings)
    coordinator = ExecutionCoordinator(async_session, cipher)
    adapter = ProtocolAdapter(async_session, coordinator, ServerState())

    app.state.cipher = cipher
    app.state.coordinator = coordinator
    app.state.adapter = adapter

    async with async_session() as session:
        server_config = await ServerConfigService(session).get()
        await session.commit()
        auto_start = server_config.auto_start

    if auto_start:
        await adapter.start()

    logger.info(
        "Application startup completed",
        extra={
            "context": {
                "action": "application_startup",
                "status": "success",
                "encryption": cipher.scheme.value,
                "mcp_auto_start": auto_start,
            }
        },
    )

    yield

    # Shutdown
    logger.info(
        f"Shutting down {settings.PROJECT_NAME}",
        extra={"context": {"action": "application_shutdown"}},
    )

    await adapter.stop()
    await coordinator.aclose()

    logger.info(
        "Application shutdown completed",
        extra={"context": {"action": "application_shutdown", "status": "success"}},
    )


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Define HTTP and command-line tools and expose them to MCP clients",
    version=__version__,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint.

    Returns a simple status indicating the service is running.
    """
    return {"status": "healthy"}


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint.

    Returns basic API information.
    """
    return {
        "name": settings.PROJECT_NAME,
        "version": __version__,
        "docs": "/docs",
    }
