"""
Error taxonomy shared by the codec, the store backends and the CLI.

Stream failures are not wrapped: they propagate as the builtin ``OSError``.
"""


class SecconfError(Exception):
    """Base class for every error raised by secconf."""


class KeyringError(SecconfError):
    """The keyring source is malformed, empty or unreadable as OpenPGP."""


class EncryptError(SecconfError):
    """No usable recipient, or the OpenPGP layer refused the recipient set."""


class NoMatchingKeyError(SecconfError):
    """Every candidate private key was tried and none decrypted the message."""


class CorruptDataError(SecconfError):
    """A layer rejected its input (envelope, OpenPGP packets or gzip stream)."""


class NoTerminalError(SecconfError):
    """A passphrase is required but no interactive terminal is available."""


class StoreError(SecconfError):
    """The key-value backend failed or returned an unexpected response."""


class KeyNotFoundError(StoreError, KeyError):
    """The requested key does not exist in the backend."""

    def __str__(self) -> str:
        return Exception.__str__(self)
