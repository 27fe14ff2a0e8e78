"""Encryption utility for stored secrets.

This module provides reversible encryption for secret values using Fernet
symmetric encryption (AES-128-CBC with HMAC).

Features:
- Fernet key loading from the environment or a local key file
- Degraded base64 obfuscation when no key can be obtained
- Per-record scheme tags so weakly stored records stay identifiable
- Text redaction helper for request and environment snapshots
"""

from __future__ import annotations

import base64
import binascii
import os
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from cryptography.fernet import Fernet, InvalidToken

from toolsmith.core.exceptions import SecretDecryptionError
from toolsmith.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from toolsmith.core.config import Settings

logger = get_logger(__name__)

REDACTED = "[SECRET]"


class CipherScheme(str, Enum):
    """How a secret value was stored."""

    FERNET = "fernet"
    BASE64 = "base64"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


def generate_fernet_key() -> bytes:
    """Generate a new Fernet encryption key.

    Returns:
        A URL-safe base64-encoded 32-byte key (44 bytes encoded).

    Example:
        >>> key = generate_fernet_key()
        >>> len(key)
        44
    """
    return Fernet.generate_key()


def load_or_create_key_file(path: Path) -> bytes:
    """Read a Fernet key from ``path``, creating it on first use.

    The file is created with owner-only permissions.

    Raises:
        OSError: If the file cannot be read or created.
        ValueError: If the file holds an invalid key.
    """
    if path.exists():
        key = path.read_bytes().strip()
        Fernet(key)
        return key

    key = generate_fernet_key()
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "wb") as handle:
        handle.write(key)
    logger.info(f"Created secret encryption key file at {path}")
    return key


class SecretCipher:
    """Encrypts and decrypts secret values.

    With a Fernet key the cipher is reversible encryption. Without one it
    falls back to base64, which is obfuscation only; records written in
    that mode are tagged ``base64`` so operators can find and re-store them
    once a key is configured.

    Example:
        >>> cipher = SecretCipher(generate_fernet_key())
        >>> scheme, token = cipher.encrypt("s3cret")
        >>> cipher.decrypt(scheme, token)
        's3cret'
    """

    def __init__(self, key: bytes | None = None) -> None:
        self._fernet = Fernet(key) if key is not None else None

    @property
    def encryption_available(self) -> bool:
        """Whether values are stored with reversible encryption."""
        return self._fernet is not None

    @property
    def scheme(self) -> CipherScheme:
        """Scheme used for newly stored values."""
        return CipherScheme.FERNET if self._fernet is not None else CipherScheme.BASE64

    def encrypt(self, plaintext: str) -> tuple[str, str]:
        """Encrypt a value, returning ``(scheme, token)``."""
        data = plaintext.encode("utf-8")
        if self._fernet is not None:
            return CipherScheme.FERNET.value, self._fernet.encrypt(data).decode("ascii")
        return CipherScheme.BASE64.value, base64.b64encode(data).decode("ascii")

    def decrypt(self, scheme: str, token: str) -> str:
        """Decrypt a stored token according to its scheme.

        Raises:
            SecretDecryptionError: If the scheme is unknown, no key is
                available for a Fernet record, or the token is corrupt.
        """
        if scheme == CipherScheme.BASE64.value:
            try:
                return base64.b64decode(token.encode("ascii"), validate=True).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError) as e:
                raise SecretDecryptionError("Corrupt base64 secret record") from e

        if scheme == CipherScheme.FERNET.value:
            if self._fernet is None:
                raise SecretDecryptionError("No encryption key available for fernet record")
            try:
                return self._fernet.decrypt(token.encode("ascii")).decode("utf-8")
            except InvalidToken as e:
                raise SecretDecryptionError("Encryption key does not match record") from e

        raise SecretDecryptionError(f"Unknown secret scheme: {scheme}")


def build_secret_cipher(settings: Settings) -> SecretCipher:
    """Create the cipher described by the application settings.

    Key lookup order: ``ENCRYPTION_KEY``, then ``ENCRYPTION_KEY_FILE``
    (created if missing). When encryption is disabled or no key can be
    obtained, the base64 fallback is returned and a warning is logged.

    Raises:
        ValueError: If ENCRYPTION_KEY is set but invalid.
    """
    if not settings.SECRETS_ENCRYPTION_ENABLED:
        logger.warning(
            "Secret encryption disabled by configuration; "
            "secrets are stored with base64 obfuscation only"
        )
        return SecretCipher(None)

    if settings.ENCRYPTION_KEY:
        key = settings.ENCRYPTION_KEY.encode("utf-8")
        try:
            Fernet(key)
        except ValueError as e:
            raise ValueError(
                f"Invalid ENCRYPTION_KEY in environment: {e}. "
                "Generate a valid key using: cryptography.fernet.Fernet.generate_key()"
            ) from e
        return SecretCipher(key)

    try:
        key = load_or_create_key_file(Path(settings.ENCRYPTION_KEY_FILE).expanduser())
    except (OSError, ValueError) as e:
        logger.warning(
            f"Secret encryption unavailable ({type(e).__name__}: {e}); "
            "secrets are stored with base64 obfuscation only"
        )
        return SecretCipher(None)

    return SecretCipher(key)


def redact(text: str, secrets: Iterable[str]) -> str:
    """Replace every occurrence of each secret value in ``text``.

    Longer values are replaced first so a secret that contains another
    secret is masked as a whole.

    Example:
        >>> redact("Bearer abc123", ["abc123"])
        'Bearer [SECRET]'
    """
    for value in sorted({s for s in secrets if s}, key=len, reverse=True):
        text = text.replace(value, REDACTED)
    return text


__all__ = [
    "REDACTED",
    "CipherScheme",
    "SecretCipher",
    "build_secret_cipher",
    "generate_fernet_key",
    "load_or_create_key_file",
    "redact",
]
