"""
Keyring loading — parse armored or binary OpenPGP keyrings into entities.

An entity is a primary :class:`pgpy.PGPKey`; its subkeys stay attached to it.
Entities are returned in the order they appear in the source.
"""
import itertools
import logging
import re
import warnings
from typing import Union, IO

from pgpy import PGPKey
from pgpy.errors import PGPDecryptionError, PGPEncryptionError, PGPError

from ..exceptions import KeyringError

logger = logging.getLogger("secconf.codec")

KeyringSource = Union[bytes, bytearray, str, IO]

_ARMOR_BLOCK = re.compile(
    r"-----BEGIN PGP (?P<kind>PUBLIC|PRIVATE) KEY BLOCK-----"
    r".*?"
    r"-----END PGP (?P=kind) KEY BLOCK-----",
    re.DOTALL,
)


def _read_source(source: KeyringSource) -> Union[bytes, str]:
    if hasattr(source, "read"):
        # OSError from the reader propagates unchanged
        source = source.read()
    if isinstance(source, bytearray):
        source = bytes(source)
    if not isinstance(source, (bytes, str)):
        raise KeyringError(
            f"unsupported keyring source type {type(source).__name__}"
        )
    return source


def _armor_blocks(blob: Union[bytes, str]) -> list:
    """Split ``blob`` into armor blocks; binary keyrings yield one chunk."""
    if isinstance(blob, bytes):
        try:
            text = blob.decode("ascii")
        except UnicodeDecodeError:
            return [blob]
    else:
        text = blob
    blocks = [m.group(0) for m in _ARMOR_BLOCK.finditer(text)]
    return blocks or [blob]


def _parse_block(block) -> list:
    with warnings.catch_warnings():
        # orphaned packet / self-signature warnings are not fatal for a keyring
        warnings.simplefilter("ignore")
        try:
            loaded = PGPKey.from_blob(block)
        except (
            PGPError, PGPDecryptionError, PGPEncryptionError,
            ValueError, TypeError, IndexError, KeyError, NotImplementedError,
        ) as err:
            raise KeyringError(f"unable to parse keyring: {err}") from err
    if isinstance(loaded, tuple):
        first, others = loaded
        candidates = itertools.chain([first], others.values())
    else:
        candidates = [loaded]
    return [k for k in candidates if k.fingerprint is not None and k.is_primary]


def read_keyring(source: KeyringSource) -> list:
    """Read every primary key from an armored or binary keyring.

    Args:
        source: Keyring bytes/text, or a readable file object.

    Returns:
        List of primary :class:`pgpy.PGPKey` in source order, deduplicated.

    Raises:
        KeyringError: If the source is not a keyring or contains no keys.
        OSError: If reading the source fails.
    """
    blob = _read_source(source)
    entities = []
    seen = set()
    for block in _armor_blocks(blob):
        for key in _parse_block(block):
            ident = (str(key.fingerprint), key.is_public)
            if ident in seen:
                continue
            seen.add(ident)
            entities.append(key)
    if not entities:
        raise KeyringError("keyring contains no keys")
    logger.debug("Read keyring with %d key(s)", len(entities))
    return entities


def identities(key: PGPKey) -> list:
    """Return the identity strings of an entity.

    Each User ID is rendered the way OpenPGP stores it:
    ``Name (Comment) <email>``.
    """
    names = []
    for uid in key.userids:
        name = uid.name
        if uid.comment:
            name = f"{name} ({uid.comment})"
        if uid.email:
            name = f"{name} <{uid.email}>"
        names.append(name)
    return names


def key_ids(key: PGPKey) -> list:
    """Key ids of an entity: the primary first, then its subkeys."""
    ids = [key.fingerprint.keyid]
    ids.extend(key.subkeys.keys())
    return ids


def short_id(key: PGPKey) -> str:
    """The 8 hex digit key id used in prompts."""
    return key.fingerprint.keyid[-8:]
