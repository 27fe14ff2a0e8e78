"""Command-line entry point.

Commands:
    serve     Run the HTTP API (and the MCP server when auto-start is set).
    mcp       Run the MCP server over stdio, for launch by an MCP client.
    init-db   Create the database schema.
"""

import asyncio

import click

from toolsmith import __version__
from toolsmith.core.config import settings
from toolsmith.core.logging import LogContext, get_logger, setup_logging

logger = get_logger(__name__)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, prog_name="toolsmith")
def main() -> None:
    """Define HTTP and command-line tools and expose them to MCP clients."""


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address.")
@click.option("--port", default=8000, show_default=True, type=int, help="Bind port.")
@click.option("--reload", is_flag=True, help="Reload on code changes (development).")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run(
        "toolsmith.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.LOG_LEVEL.lower(),
    )


@main.command()
def mcp() -> None:
    """Run the MCP server over stdio until the client disconnects.

    Standard output carries the protocol; all logging goes to stderr.
    """
    setup_logging(
        log_level=settings.LOG_LEVEL,
        log_file=settings.LOG_FILE,
        service_name=settings.PROJECT_NAME,
        enable_json=settings.LOG_JSON_FORMAT,
    )
    with LogContext(logger, transport="stdio"):
        asyncio.run(run_stdio_server())


@main.command("init-db")
def init_db_command() -> None:
    """Create the database schema."""
    from toolsmith.db.session import init_db

    asyncio.run(init_db())
    click.echo(f"Database initialized: {settings.DATABASE_URL}", err=True)


async def run_stdio_server() -> None:
    """Serve the enabled tools over stdio until the session ends."""
    from toolsmith.db.session import async_session, init_db
    from toolsmith.services.execution_service import ExecutionCoordinator
    from toolsmith.services.mcp import ProtocolAdapter, ServerState
    from toolsmith.utils.crypto import build_secret_cipher

    await init_db()
    coordinator = ExecutionCoordinator(async_session, build_secret_cipher(settings))
    adapter = ProtocolAdapter(async_session, coordinator, ServerState())
    try:
        await adapter.start()
        await adapter.wait_closed()
    finally:
        await adapter.stop()
        await coordinator.aclose()


if __name__ == "__main__":
    main()
