"""API dependencies.

Common dependencies for API routes: database sessions, pagination and the
long-lived runtime objects created at application startup.
"""

from typing import Annotated

from fastapi import Depends, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from toolsmith.db.session import get_db
from toolsmith.services.execution_service import ExecutionCoordinator
from toolsmith.services.mcp.server import ProtocolAdapter
from toolsmith.utils.crypto import SecretCipher

# =============================================================================
# Database Session Dependency
# =============================================================================

DBSession = Annotated[AsyncSession, Depends(get_db)]
"""Type alias for database session dependency injection.

Usage:
    @router.get("/tools")
    async def list_tools(db: DBSession):
        result = await db.execute(select(Tool))
        return result.scalars().all()
"""


# =============================================================================
# Pagination Dependencies
# =============================================================================


class PaginationParams(BaseModel):
    """Pagination parameters for list endpoints.

    Attributes:
        skip: Number of records to skip (offset).
        limit: Maximum number of records to return.
    """

    skip: int = Field(default=0, ge=0, description="Number of records to skip")
    limit: int = Field(
        default=20, ge=1, le=100, description="Maximum number of records to return"
    )

    @property
    def page(self) -> int:
        """1-indexed page number for the current offset."""
        return (self.skip // self.limit) + 1


def get_pagination_params(
    skip: Annotated[int, Query(ge=0, description="Number of records to skip")] = 0,
    limit: Annotated[
        int, Query(ge=1, le=100, description="Maximum number of records to return")
    ] = 20,
) -> PaginationParams:
    """Get pagination parameters from query string.

    Args:
        skip: Number of records to skip (default: 0).
        limit: Maximum number of records to return (default: 20, max: 100).

    Returns:
        PaginationParams: Pagination configuration.
    """
    return PaginationParams(skip=skip, limit=limit)


Pagination = Annotated[PaginationParams, Depends(get_pagination_params)]
"""Type alias for pagination dependency injection."""


# =============================================================================
# Runtime Dependencies
# =============================================================================


def get_cipher(request: Request) -> SecretCipher:
    """Secret cipher built at startup."""
    return request.app.state.cipher


def get_coordinator(request: Request) -> ExecutionCoordinator:
    """Execution coordinator built at startup."""
    return request.app.state.coordinator


def get_adapter(request: Request) -> ProtocolAdapter:
    """MCP protocol adapter built at startup."""
    return request.app.state.adapter


Cipher = Annotated[SecretCipher, Depends(get_cipher)]
Coordinator = Annotated[ExecutionCoordinator, Depends(get_coordinator)]
Adapter = Annotated[ProtocolAdapter, Depends(get_adapter)]


__all__ = [
    "Adapter",
    "Cipher",
    "Coordinator",
    "DBSession",
    "Pagination",
    "PaginationParams",
    "get_adapter",
    "get_cipher",
    "get_coordinator",
    "get_db",
    "get_pagination_params",
]
