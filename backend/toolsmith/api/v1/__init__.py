"""API v1 routing configuration.

This module defines all v1 API routes.
"""

from fastapi import APIRouter

from toolsmith.api.v1 import executions, secrets, server, tools

router = APIRouter()

# Domain routers
router.include_router(tools.router, prefix="/tools", tags=["Tools"])
router.include_router(secrets.router, prefix="/secrets", tags=["Secrets"])
router.include_router(executions.router, prefix="/executions", tags=["Executions"])
router.include_router(server.router, prefix="/server", tags=["Server"])


@router.get("/status", tags=["Status"])
async def api_status() -> dict[str, str]:
    """API v1 status check."""
    return {"status": "ok", "version": "v1"}
