"""Tests for store-level secure value helpers."""
import pytest

from secconf.backend import MemoryStore
from secconf.codec import CachedPassphrase, PubkeyFilter, StaticPassphrase
from secconf.exceptions import EncryptError, KeyNotFoundError, NoMatchingKeyError
from secconf.secure import (
    get_encrypted,
    get_plain,
    list_encrypted,
    list_plain,
    set_encrypted,
    set_plain,
)

from .conftest import PASSPHRASE, ScriptedPassphrase


class TestEncryptedValues:
    """Encrypted set/get/list against a memory store."""

    async def test_set_then_get(self, keyring_files):
        """Test a stored value is ciphertext and decodes back."""
        pubring, secring = keyring_files
        store = MemoryStore()
        await set_encrypted(store, "team-a/db", pubring, b"s3cret", PubkeyFilter(["team-a"]))
        assert store.data["team-a/db"] != b"s3cret"
        assert await get_encrypted(store, "team-a/db", secring) == b"s3cret"

    async def test_all_keys_without_selector(self, keyring_files):
        """Test no selector encrypts for the whole keyring."""
        pubring, secring = keyring_files
        store = MemoryStore()
        await set_encrypted(store, "k", pubring, b"for everyone")
        value = await get_encrypted(store, "k", secring, passphrase=StaticPassphrase(PASSPHRASE))
        assert value == b"for everyone"

    async def test_no_recipient(self, keyring_files):
        """Test nothing is stored when no recipient matches."""
        pubring, _ = keyring_files
        store = MemoryStore()
        with pytest.raises(EncryptError):
            await set_encrypted(store, "k", pubring, b"v", PubkeyFilter(["nobody"]))
        assert store.data == {}

    async def test_not_a_recipient(self, keyring_files):
        """Test a value for another identity cannot be read."""
        pubring, secring = keyring_files
        store = MemoryStore()
        await set_encrypted(store, "k", pubring, b"v", PubkeyFilter(["bob"]))
        with pytest.raises(NoMatchingKeyError):
            await get_encrypted(store, "k", secring)

    async def test_missing_key(self, keyring_files):
        """Test a missing store key raises KeyNotFoundError."""
        _, secring = keyring_files
        with pytest.raises(KeyNotFoundError):
            await get_encrypted(MemoryStore(), "missing", secring)

    async def test_missing_keyring_file(self, tmp_path):
        """Test a missing keyring file raises the OS error."""
        with pytest.raises(FileNotFoundError):
            await get_encrypted(MemoryStore({"k": b"v"}), "k", str(tmp_path / "none.asc"))

    async def test_list(self, keyring_files):
        """Test every value under a prefix is decoded."""
        pubring, secring = keyring_files
        store = MemoryStore()
        for name in ("app/one", "app/two"):
            await set_encrypted(store, name, pubring, name.encode(), PubkeyFilter(["ops"]))
        pairs = await list_encrypted(store, "app/", secring, passphrase=StaticPassphrase(PASSPHRASE))
        assert [(kv.key, kv.value) for kv in pairs] == [
            ("app/one", b"app/one"), ("app/two", b"app/two"),
        ]

    async def test_list_prompts_once_per_key(self, keyring_files):
        """Test a cached resolver asks once for a key shared by many values."""
        pubring, secring = keyring_files
        store = MemoryStore()
        names = ("app/a", "app/b", "app/c")
        for name in names:
            await set_encrypted(store, name, pubring, name.encode(), PubkeyFilter(["dave"]))
        scripted = ScriptedPassphrase(PASSPHRASE)
        pairs = await list_encrypted(
            store, "app/", secring, passphrase=CachedPassphrase(scripted),
        )
        assert [kv.value for kv in pairs] == [n.encode() for n in names]
        assert len(scripted.prompts) == 1


class TestPlainValues:
    """Unencrypted helpers pass bytes through."""

    async def test_roundtrip(self):
        """Test plain set, get and list."""
        store = MemoryStore()
        await set_plain(store, "k", b"clear")
        assert await get_plain(store, "k") == b"clear"
        assert [kv.value for kv in await list_plain(store, "")] == [b"clear"]
