"""Secret storage and resolution.

SecretStore is the async, database-backed side used by the API.
SecretResolver is an immutable in-memory snapshot taken once per tool run,
so resolution inside an executor is synchronous and sees one consistent
set of secrets.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, select

from toolsmith.core.exceptions import SecretDecryptionError
from toolsmith.core.logging import get_logger
from toolsmith.models.secret import Secret
from toolsmith.schemas.secret import SecretStatus
from toolsmith.utils.crypto import CipherScheme

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.ext.asyncio import AsyncSession

    from toolsmith.utils.crypto import SecretCipher

logger = get_logger(__name__)


class SecretResolver:
    """Resolves secret references against a snapshot of stored records.

    A reference is any string; it resolves when a secret with that key
    exists. A miss is not an error, callers use the literal instead.

    Example:
        >>> resolver = SecretResolver({"API_TOKEN": ("base64", "YWJj")}, cipher)
        >>> resolver.resolve("API_TOKEN")
        'abc'
        >>> resolver.resolve("not-a-secret") is None
        True
    """

    def __init__(
        self,
        records: Mapping[str, tuple[str, str]],
        cipher: SecretCipher,
    ) -> None:
        self._records = dict(records)
        self._cipher = cipher
        self._resolved: dict[str, str | None] = {}

    @classmethod
    def empty(cls, cipher: SecretCipher) -> SecretResolver:
        """Resolver that resolves nothing."""
        return cls({}, cipher)

    def resolve(self, reference: str) -> str | None:
        """Return the plaintext for ``reference``, or None when it names no secret.

        A record that cannot be decrypted counts as a miss; only its key
        is logged.
        """
        if reference in self._resolved:
            return self._resolved[reference]

        record = self._records.get(reference)
        if record is None:
            return None

        scheme, token = record
        try:
            value: str | None = self._cipher.decrypt(scheme, token)
        except SecretDecryptionError as e:
            logger.warning(f"Secret '{reference}' could not be decrypted: {e}")
            value = None

        self._resolved[reference] = value
        return value

    def __len__(self) -> int:
        return len(self._records)


class SecretStore:
    """Database-backed secret store.

    Values are encrypted with the configured cipher before they are
    written; the scheme used is stored with each record.
    """

    def __init__(self, db: AsyncSession, cipher: SecretCipher) -> None:
        """Initialize secret store."""
        self.db = db
        self.cipher = cipher

    async def store(self, key: str, plaintext: str) -> None:
        """Create or replace the secret stored under ``key``."""
        scheme, token = self.cipher.encrypt(plaintext)

        secret = await self.db.get(Secret, key)
        if secret is None:
            self.db.add(Secret(key=key, value=token, scheme=scheme))
        else:
            secret.value = token
            secret.scheme = scheme

        await self.db.flush()
        logger.info(f"Stored secret '{key}' ({scheme})")

    async def retrieve(self, key: str) -> str | None:
        """Return the plaintext stored under ``key``, or None."""
        secret = await self.db.get(Secret, key)
        if secret is None:
            return None
        try:
            return self.cipher.decrypt(secret.scheme, secret.value)
        except SecretDecryptionError as e:
            logger.warning(f"Secret '{key}' could not be decrypted: {e}")
            return None

    async def delete(self, key: str) -> bool:
        """Delete the secret under ``key``.

        Deleting an absent key succeeds.

        Returns:
            Whether a record was removed.
        """
        result = await self.db.execute(delete(Secret).where(Secret.key == key))
        await self.db.flush()
        removed = bool(result.rowcount)
        if removed:
            logger.info(f"Deleted secret '{key}'")
        return removed

    async def list_keys(self) -> list[str]:
        """Return all stored keys, sorted."""
        result = await self.db.execute(select(Secret.key).order_by(Secret.key))
        return list(result.scalars().all())

    async def status(self) -> SecretStatus:
        """Report the active scheme and any weakly stored keys."""
        result = await self.db.execute(
            select(Secret.key)
            .where(Secret.scheme == CipherScheme.BASE64.value)
            .order_by(Secret.key)
        )
        return SecretStatus(
            encryption_available=self.cipher.encryption_available,
            scheme=self.cipher.scheme.value,
            weak_keys=list(result.scalars().all()),
        )

    async def snapshot(self) -> SecretResolver:
        """Load every record into an immutable resolver."""
        result = await self.db.execute(select(Secret.key, Secret.scheme, Secret.value))
        records = {key: (scheme, value) for key, scheme, value in result.all()}
        return SecretResolver(records, self.cipher)


__all__ = [
    "SecretResolver",
    "SecretStore",
]
