"""Tests for the secret cipher and redaction helpers."""

import stat

import pytest
from cryptography.fernet import Fernet

from toolsmith.core.config import Settings
from toolsmith.core.exceptions import SecretDecryptionError
from toolsmith.utils.crypto import (
    REDACTED,
    CipherScheme,
    SecretCipher,
    build_secret_cipher,
    generate_fernet_key,
    load_or_create_key_file,
    redact,
)


class TestFernetKeyGeneration:
    """Test Fernet key generation functionality."""

    def test_generate_fernet_key_returns_bytes(self):
        """Test that generate_fernet_key returns a usable key."""
        key = generate_fernet_key()
        assert isinstance(key, bytes)
        assert len(key) == 44
        Fernet(key)

    def test_generate_fernet_key_is_unique(self):
        """Test that generate_fernet_key produces unique keys."""
        assert generate_fernet_key() != generate_fernet_key()


class TestSecretCipher:
    """Test encryption with and without a key."""

    def test_fernet_round_trip(self):
        """A keyed cipher stores fernet tokens."""
        cipher = SecretCipher(generate_fernet_key())
        scheme, token = cipher.encrypt("s3cret")

        assert cipher.encryption_available is True
        assert cipher.scheme is CipherScheme.FERNET
        assert scheme == "fernet"
        assert "s3cret" not in token
        assert cipher.decrypt(scheme, token) == "s3cret"

    def test_base64_fallback(self):
        """Without a key values are only base64 encoded and tagged as such."""
        cipher = SecretCipher(None)
        scheme, token = cipher.encrypt("s3cret")

        assert cipher.encryption_available is False
        assert scheme == "base64"
        assert token == "czNjcmV0"
        assert cipher.decrypt(scheme, token) == "s3cret"

    def test_keyed_cipher_reads_base64_records(self):
        """Records written before a key existed stay readable."""
        weak_scheme, weak_token = SecretCipher(None).encrypt("old")
        assert SecretCipher(generate_fernet_key()).decrypt(weak_scheme, weak_token) == "old"

    def test_wrong_key_raises(self):
        """A token from another key cannot be decrypted."""
        scheme, token = SecretCipher(generate_fernet_key()).encrypt("x")
        with pytest.raises(SecretDecryptionError):
            SecretCipher(generate_fernet_key()).decrypt(scheme, token)

    def test_fernet_record_without_key_raises(self):
        """A fernet record needs a key."""
        scheme, token = SecretCipher(generate_fernet_key()).encrypt("x")
        with pytest.raises(SecretDecryptionError):
            SecretCipher(None).decrypt(scheme, token)

    def test_unknown_scheme_raises(self):
        """Unknown schemes are rejected."""
        with pytest.raises(SecretDecryptionError, match="Unknown secret scheme"):
            SecretCipher(None).decrypt("rot13", "abc")


class TestKeyFile:
    """Test key file handling."""

    def test_creates_key_file_with_owner_only_permissions(self, tmp_path):
        """The first call creates the file; later calls read it back."""
        path = tmp_path / "keys" / "secret.key"

        key = load_or_create_key_file(path)

        assert path.read_bytes() == key
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert load_or_create_key_file(path) == key

    def test_invalid_key_file_raises(self, tmp_path):
        """A file that holds no Fernet key is rejected."""
        path = tmp_path / "secret.key"
        path.write_bytes(b"not-a-key")
        with pytest.raises(ValueError):
            load_or_create_key_file(path)


class TestBuildSecretCipher:
    """Test cipher selection from settings."""

    def test_environment_key(self):
        """ENCRYPTION_KEY wins over the key file."""
        key = generate_fernet_key().decode()
        cipher = build_secret_cipher(Settings(ENCRYPTION_KEY=key))
        assert cipher.scheme is CipherScheme.FERNET

    def test_invalid_environment_key(self):
        """An invalid ENCRYPTION_KEY is a configuration error."""
        with pytest.raises(ValueError, match="Invalid ENCRYPTION_KEY"):
            build_secret_cipher(Settings(ENCRYPTION_KEY="short"))

    def test_key_file(self, tmp_path):
        """Without an environment key the key file is created and used."""
        path = tmp_path / "toolsmith.key"
        cipher = build_secret_cipher(Settings(ENCRYPTION_KEY=None, ENCRYPTION_KEY_FILE=str(path)))
        assert cipher.encryption_available is True
        assert path.exists()

    def test_disabled(self):
        """Encryption can be switched off."""
        cipher = build_secret_cipher(Settings(SECRETS_ENCRYPTION_ENABLED=False))
        assert cipher.scheme is CipherScheme.BASE64

    def test_unusable_key_file_falls_back(self, tmp_path):
        """An unreadable key file degrades to base64."""
        path = tmp_path / "bad.key"
        path.write_bytes(b"garbage")
        cipher = build_secret_cipher(Settings(ENCRYPTION_KEY=None, ENCRYPTION_KEY_FILE=str(path)))
        assert cipher.scheme is CipherScheme.BASE64


class TestRedact:
    """Test secret masking in text."""

    def test_replaces_every_occurrence(self):
        """All occurrences are masked."""
        assert redact("a=abc&b=abc", ["abc"]) == f"a={REDACTED}&b={REDACTED}"

    def test_longest_value_first(self):
        """A secret containing another secret is masked as a whole."""
        assert redact("token=abc123", ["abc", "abc123"]) == f"token={REDACTED}"

    def test_empty_values_are_ignored(self):
        """Empty secrets do not mask anything."""
        assert redact("plain", ["", None]) == "plain"
