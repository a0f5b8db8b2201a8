"""secconf — OpenPGP-encrypted configuration secrets in Consul or etcd."""

from .version import __version__
from .codec import encode, decode, select_recipients, pattern_from_path, PubkeyFilter
from .exceptions import (
    SecconfError,
    KeyringError,
    EncryptError,
    NoMatchingKeyError,
    CorruptDataError,
    NoTerminalError,
    StoreError,
    KeyNotFoundError,
)

__all__ = [
    "__version__",
    "encode",
    "decode",
    "select_recipients",
    "pattern_from_path",
    "PubkeyFilter",
    "SecconfError",
    "KeyringError",
    "EncryptError",
    "NoMatchingKeyError",
    "CorruptDataError",
    "NoTerminalError",
    "StoreError",
    "KeyNotFoundError",
]
