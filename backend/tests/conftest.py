"""pytest configuration and fixtures.

Provides an in-memory SQLite database shared by every session of a test,
the long-lived runtime objects the API uses (cipher, coordinator, MCP
adapter), descriptor factories, and an HTTP client bound to the app.
"""

import asyncio
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime
from typing import Any, cast
from uuid import uuid4

import pytest
import pytest_asyncio
from cryptography.fernet import Fernet
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from starlette.types import ASGIApp

from toolsmith.db.session import get_db, init_db
from toolsmith.main import app
from toolsmith.models import Base
from toolsmith.schemas.tool import ToolCreate, ToolDescriptor
from toolsmith.services.execution_service import ExecutionCoordinator
from toolsmith.services.mcp import ProtocolAdapter, ServerState
from toolsmith.services.tool_service import ToolService
from toolsmith.utils.crypto import SecretCipher

# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


# =============================================================================
# DATABASE FIXTURES (SQLite In-Memory)
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an async SQLite in-memory engine for testing.

    StaticPool keeps a single connection so that every session of the
    test sees the same database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)

    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def async_session_maker(
    async_engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the test engine."""
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(
    async_session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Provide a database session for service-level tests."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()


# =============================================================================
# RUNTIME FIXTURES
# =============================================================================


@pytest.fixture
def cipher() -> SecretCipher:
    """Fernet cipher with a fresh key."""
    return SecretCipher(Fernet.generate_key())


@pytest.fixture
def weak_cipher() -> SecretCipher:
    """Cipher without a key, falling back to base64."""
    return SecretCipher(None)


@pytest_asyncio.fixture(scope="function")
async def coordinator(
    async_session_maker: async_sessionmaker[AsyncSession],
    cipher: SecretCipher,
) -> AsyncGenerator[ExecutionCoordinator]:
    """Execution coordinator bound to the test database."""
    coordinator = ExecutionCoordinator(async_session_maker, cipher)
    try:
        yield coordinator
    finally:
        await coordinator.aclose()


async def serve_until_cancelled(server: Any) -> None:
    """Session transport that idles until the adapter stops it."""
    await asyncio.Event().wait()


@pytest_asyncio.fixture(scope="function")
async def adapter(
    async_session_maker: async_sessionmaker[AsyncSession],
    coordinator: ExecutionCoordinator,
) -> AsyncGenerator[ProtocolAdapter]:
    """MCP adapter with an idle transport."""
    adapter = ProtocolAdapter(
        async_session_maker,
        coordinator,
        ServerState(),
        serve=serve_until_cancelled,
    )
    try:
        yield adapter
    finally:
        await adapter.stop()


# =============================================================================
# DESCRIPTOR FACTORIES
# =============================================================================


@pytest.fixture
def http_tool_data() -> Callable[..., dict[str, Any]]:
    """Factory for HTTP tool payloads."""

    def _make(**overrides: Any) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": "get_weather",
            "description": "Current temperature for a city",
            "executor_type": "http",
            "executor_config": {
                "method": "GET",
                "url": "https://api.example.com/weather?city={city}",
                "response_path": "$.data.temp",
            },
            "parameters": [
                {"name": "city", "type": "string", "required": True, "location": "query"},
            ],
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def cli_tool_data() -> Callable[..., dict[str, Any]]:
    """Factory for CLI tool payloads."""

    def _make(**overrides: Any) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": "echo",
            "description": "Echo a message",
            "executor_type": "cli",
            "executor_config": {"command": "echo {msg}"},
            "parameters": [
                {"name": "msg", "type": "string", "required": True},
            ],
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def make_descriptor() -> Callable[[dict[str, Any]], ToolDescriptor]:
    """Build an in-memory descriptor from a tool payload."""

    def _make(data: dict[str, Any]) -> ToolDescriptor:
        now = datetime.now(UTC)
        return ToolDescriptor.model_validate(
            {**data, "id": uuid4(), "created_at": now, "updated_at": now}
        )

    return _make


@pytest_asyncio.fixture(scope="function")
async def create_tool(
    async_session_maker: async_sessionmaker[AsyncSession],
) -> Callable[..., Any]:
    """Persist a tool definition in its own committed transaction."""

    async def _create(data: dict[str, Any]):
        async with async_session_maker() as session:
            tool = await ToolService(session).create(ToolCreate.model_validate(data))
            await session.commit()
            return tool

    return _create


# =============================================================================
# HTTP CLIENT FIXTURES
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def async_client(
    async_session_maker: async_sessionmaker[AsyncSession],
    cipher: SecretCipher,
    coordinator: ExecutionCoordinator,
    adapter: ProtocolAdapter,
) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client for testing API endpoints.

    ASGITransport does not run the lifespan, so the runtime objects are
    placed on app.state here and get_db is bound to the test database.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        async with async_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.state.cipher = cipher
    app.state.coordinator = coordinator
    app.state.adapter = adapter

    try:
        transport = ASGITransport(app=cast("ASGIApp", app))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
