"""Utility functions and helpers."""

from toolsmith.utils.crypto import SecretCipher, build_secret_cipher, redact

__all__ = [
    "SecretCipher",
    "build_secret_cipher",
    "redact",
]
