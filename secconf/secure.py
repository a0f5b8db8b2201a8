"""
Secure values — read and write codec-encoded values in a store.

Keyring files are opened for the duration of one call and closed on every
exit path.

Security Note:
    Never log plaintext or ciphertext values. Only log key names.
"""
import logging
from typing import Optional

from .backend import KVPair, Store
from .codec import decode, encode
from .codec.encoding import DEFAULT_PASSPHRASE_ATTEMPTS
from .codec.passphrase import PassphraseResolver
from .codec.recipients import EntityFilter

logger = logging.getLogger("secconf.secure")


async def get_plain(store: Store, key: str) -> bytes:
    """Return the raw value stored at ``key``."""
    return await store.get(key)


async def get_encrypted(
    store: Store,
    key: str,
    secret_keyring: str,
    passphrase: Optional[PassphraseResolver] = None,
    attempts: int = DEFAULT_PASSPHRASE_ATTEMPTS,
) -> bytes:
    """Fetch ``key`` and decode it with the secret keyring at ``secret_keyring``."""
    with open(secret_keyring, "rb") as kr:
        data = await store.get(key)
        value = decode(data, kr, passphrase=passphrase, attempts=attempts)
    logger.debug("Decoded secure value at %s", key)
    return value


async def list_plain(store: Store, key: str) -> list[KVPair]:
    """Return every raw pair under ``key``."""
    return await store.list(key)


async def list_encrypted(
    store: Store,
    key: str,
    secret_keyring: str,
    passphrase: Optional[PassphraseResolver] = None,
    attempts: int = DEFAULT_PASSPHRASE_ATTEMPTS,
) -> list[KVPair]:
    """Fetch every pair under ``key`` and decode each value.

    The keyring file is read once and decoded per value; any value that fails
    to decode aborts the whole listing.
    """
    with open(secret_keyring, "rb") as kr:
        keyring = kr.read()
    pairs = await store.list(key)
    for kv in pairs:
        kv.value = decode(kv.value, keyring, passphrase=passphrase, attempts=attempts)
    logger.debug("Decoded %d secure value(s) under %s", len(pairs), key)
    return pairs


async def set_plain(store: Store, key: str, value: bytes) -> None:
    """Store ``value`` unencrypted at ``key``."""
    await store.set(key, value)


async def set_encrypted(
    store: Store,
    key: str,
    keyring: str,
    value: bytes,
    selector: Optional[EntityFilter] = None,
) -> None:
    """Encode ``value`` for the recipients ``selector`` picks and store it."""
    with open(keyring, "rb") as kr:
        secure_value = encode(value, kr, selector)
    await store.set(key, secure_value)
    logger.debug("Stored secure value at %s", key)
