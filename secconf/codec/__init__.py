"""Secure Codec — OpenPGP value encoding for key-value stores.

Values are stored as ``base64(openpgp(gzip(data)))``: writers encrypt for a
set of recipients selected from a public keyring, readers decrypt with a
secret keyring. The store never sees plaintext.

Security Note (Threat Model):
    Decrypted values and unlocked private key material exist in process
    memory during a decode call. Unlocked key material is cleared when the
    call returns; plaintext is owned by the caller.
"""

from .encoding import encode, encrypt_for, decode, parse_message, UnlockSession
from .keyring import read_keyring, identities
from .passphrase import (
    PassphraseResolver,
    TerminalPassphrase,
    StaticPassphrase,
    CachedPassphrase,
    default_resolver,
)
from .recipients import (
    EntityFilter,
    PubkeyFilter,
    select_recipients,
    pattern_from_path,
)

__all__ = [
    "encode",
    "encrypt_for",
    "decode",
    "parse_message",
    "UnlockSession",
    "read_keyring",
    "identities",
    "PassphraseResolver",
    "TerminalPassphrase",
    "StaticPassphrase",
    "CachedPassphrase",
    "default_resolver",
    "EntityFilter",
    "PubkeyFilter",
    "select_recipients",
    "pattern_from_path",
]
