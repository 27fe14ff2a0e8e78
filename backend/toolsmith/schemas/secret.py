"""Secret schemas.

Plaintext only ever flows inward: there is no response schema carrying a
secret value.
"""

from __future__ import annotations

from pydantic import ConfigDict, Field

from toolsmith.schemas.base import BaseSchema


class SecretStoreRequest(BaseSchema):
    """Schema for storing a secret value."""

    model_config = ConfigDict(str_strip_whitespace=False)

    value: str = Field(..., min_length=1, description="Plaintext secret value")


class SecretStatus(BaseSchema):
    """Encryption status of the secret store."""

    encryption_available: bool = Field(
        ...,
        description="Whether new values are stored with reversible encryption",
    )
    scheme: str = Field(..., description="Scheme used for new values", examples=["fernet"])
    weak_keys: list[str] = Field(
        default_factory=list,
        description="Keys stored with base64 obfuscation only",
    )


class SecretListResponse(BaseSchema):
    """Stored secret keys plus store status."""

    keys: list[str] = Field(default_factory=list, description="Sorted secret keys")
    status: SecretStatus


__all__ = [
    "SecretListResponse",
    "SecretStatus",
    "SecretStoreRequest",
]
