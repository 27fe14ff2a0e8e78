"""Secret API Router.

Endpoints for managing named secrets. Values are write-only: the API
lists keys and the encryption status, it never returns plaintext.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Path, status

from toolsmith.api.deps import (  # noqa: TC001 - Required at runtime for FastAPI
    Cipher,
    DBSession,
)
from toolsmith.schemas.base import MessageResponse
from toolsmith.schemas.secret import SecretListResponse, SecretStoreRequest
from toolsmith.services.secret_service import SecretStore

router = APIRouter()

SecretKeyPath = Annotated[
    str,
    Path(min_length=1, max_length=255, description="Secret key"),
]


@router.get(
    "/",
    response_model=SecretListResponse,
    summary="List secrets",
    description="List stored secret keys together with the encryption status.",
)
async def list_secrets(db: DBSession, cipher: Cipher) -> SecretListResponse:
    """List secret keys and the encryption status."""
    store = SecretStore(db, cipher)
    return SecretListResponse(
        keys=await store.list_keys(),
        status=await store.status(),
    )


@router.put(
    "/{key}",
    response_model=MessageResponse,
    summary="Store secret",
    description="Create or replace the secret stored under a key.",
)
async def store_secret(
    db: DBSession,
    cipher: Cipher,
    key: SecretKeyPath,
    secret_in: SecretStoreRequest,
) -> MessageResponse:
    """Store a secret value."""
    await SecretStore(db, cipher).store(key, secret_in.value)
    return MessageResponse(message=f"Secret '{key}' stored")


@router.delete(
    "/{key}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete secret",
    description="Delete a secret. Deleting an absent key succeeds.",
)
async def delete_secret(
    db: DBSession,
    cipher: Cipher,
    key: SecretKeyPath,
) -> None:
    """Delete a secret."""
    await SecretStore(db, cipher).delete(key)


__all__ = [
    "router",
]
