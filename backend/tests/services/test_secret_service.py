"""Tests for SecretStore and SecretResolver."""

import pytest

from toolsmith.models.secret import Secret
from toolsmith.services.secret_service import SecretResolver, SecretStore
from toolsmith.utils.crypto import SecretCipher, generate_fernet_key


class TestSecretStore:
    """Test the database-backed store."""

    @pytest.mark.asyncio
    async def test_store_and_retrieve(self, db_session, cipher):
        """Stored values are encrypted at rest and decrypted on read."""
        store = SecretStore(db_session, cipher)

        await store.store("API_TOKEN", "abc123")

        record = await db_session.get(Secret, "API_TOKEN")
        assert record.scheme == "fernet"
        assert "abc123" not in record.value
        assert await store.retrieve("API_TOKEN") == "abc123"

    @pytest.mark.asyncio
    async def test_store_replaces_value(self, db_session, cipher):
        """Storing an existing key overwrites it."""
        store = SecretStore(db_session, cipher)
        await store.store("API_TOKEN", "old")
        await store.store("API_TOKEN", "new")

        assert await store.retrieve("API_TOKEN") == "new"
        assert await store.list_keys() == ["API_TOKEN"]

    @pytest.mark.asyncio
    async def test_retrieve_missing_key(self, db_session, cipher):
        """An absent key reads as None."""
        assert await SecretStore(db_session, cipher).retrieve("nope") is None

    @pytest.mark.asyncio
    async def test_retrieve_with_wrong_key_is_a_miss(self, db_session, cipher):
        """A record the current key cannot decrypt reads as None."""
        await SecretStore(db_session, cipher).store("API_TOKEN", "abc")
        other = SecretStore(db_session, SecretCipher(generate_fernet_key()))

        assert await other.retrieve("API_TOKEN") is None

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, db_session, cipher):
        """Deleting twice succeeds and reports whether a row was removed."""
        store = SecretStore(db_session, cipher)
        await store.store("API_TOKEN", "abc")

        assert await store.delete("API_TOKEN") is True
        assert await store.delete("API_TOKEN") is False
        assert await store.retrieve("API_TOKEN") is None

    @pytest.mark.asyncio
    async def test_list_keys_sorted(self, db_session, cipher):
        """Keys are listed in sorted order."""
        store = SecretStore(db_session, cipher)
        for key in ("b", "c", "a"):
            await store.store(key, "v")

        assert await store.list_keys() == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_status_reports_weak_keys(self, db_session, cipher, weak_cipher):
        """Records stored without a key are listed as weak."""
        await SecretStore(db_session, weak_cipher).store("legacy", "v")
        store = SecretStore(db_session, cipher)
        await store.store("strong", "v")

        status = await store.status()

        assert status.encryption_available is True
        assert status.scheme == "fernet"
        assert status.weak_keys == ["legacy"]


class TestSecretResolver:
    """Test snapshot resolution."""

    @pytest.mark.asyncio
    async def test_snapshot_resolves_stored_keys(self, db_session, cipher):
        """A snapshot resolves stored keys and misses everything else."""
        store = SecretStore(db_session, cipher)
        await store.store("API_TOKEN", "abc123")

        resolver = await store.snapshot()

        assert len(resolver) == 1
        assert resolver.resolve("API_TOKEN") == "abc123"
        assert resolver.resolve("literal value") is None

    @pytest.mark.asyncio
    async def test_snapshot_is_immutable(self, db_session, cipher):
        """Later writes do not change an existing snapshot."""
        store = SecretStore(db_session, cipher)
        await store.store("API_TOKEN", "v1")
        resolver = await store.snapshot()

        await store.store("API_TOKEN", "v2")
        await store.store("NEW", "x")

        assert resolver.resolve("API_TOKEN") == "v1"
        assert resolver.resolve("NEW") is None

    def test_undecryptable_record_is_a_miss(self, cipher):
        """A corrupt record resolves to None."""
        resolver = SecretResolver({"BROKEN": ("fernet", "not-a-token")}, cipher)
        assert resolver.resolve("BROKEN") is None

    def test_empty(self, cipher):
        """The empty resolver resolves nothing."""
        assert SecretResolver.empty(cipher).resolve("anything") is None
