"""
Passphrase resolution — obtain secrets for unlocking private keys.

The codec never talks to the terminal itself; it asks a resolver. Resolvers
are plain objects with a ``resolve(prompt)`` method, so services and tests can
inject fixed or scripted sources.

Security Note:
    Never log the returned secret. Prompts carry the short key id only.
"""
import getpass
import logging
import sys
import warnings
from typing import Optional, Protocol, TextIO

from ..exceptions import NoTerminalError

logger = logging.getLogger("secconf.codec")


class PassphraseResolver(Protocol):
    """Source of passphrases for locked keys and symmetric messages."""

    def resolve(self, prompt: str) -> str:
        ...


class TerminalPassphrase:
    """Read a passphrase from the controlling terminal without echo.

    Args:
        stream: Stream that must be attached to a TTY (default ``sys.stdin``).
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    def _is_interactive(self) -> bool:
        stream = self._stream if self._stream is not None else sys.stdin
        if stream is None:
            return False
        try:
            return stream.isatty()
        except (AttributeError, ValueError):
            return False

    def resolve(self, prompt: str) -> str:
        """Prompt for and return the trimmed passphrase.

        Raises:
            NoTerminalError: If there is no terminal, or it closed before a
                line was read.
        """
        if not self._is_interactive():
            raise NoTerminalError(
                "a passphrase is required but no terminal is available"
            )
        with warnings.catch_warnings():
            # getpass falls back to echoing input when it cannot control the tty
            warnings.simplefilter("error", getpass.GetPassWarning)
            try:
                secret = getpass.getpass(prompt)
            except getpass.GetPassWarning as err:
                raise NoTerminalError(
                    "terminal echo cannot be disabled"
                ) from err
            except EOFError as err:
                raise NoTerminalError(
                    "terminal closed before a passphrase was read"
                ) from err
        return secret.strip()


class StaticPassphrase:
    """Return the same passphrase for every prompt."""

    def __init__(self, passphrase: str):
        self._passphrase = passphrase

    def resolve(self, prompt: str) -> str:
        return self._passphrase.strip()


class CachedPassphrase:
    """Remember passphrases per prompt for the lifetime of this object.

    Prompts name the key being unlocked, so a cached answer is reused only for
    that key. Wrong answers are dropped via :meth:`forget`.
    """

    def __init__(self, resolver: PassphraseResolver):
        self._resolver = resolver
        self._cache: dict[str, str] = {}

    def resolve(self, prompt: str) -> str:
        if prompt not in self._cache:
            self._cache[prompt] = self._resolver.resolve(prompt)
        else:
            logger.debug("Reusing cached passphrase for prompt %r", prompt)
        return self._cache[prompt]

    def forget(self, prompt: str) -> None:
        self._cache.pop(prompt, None)


def default_resolver(passphrase: Optional[str] = None) -> PassphraseResolver:
    """Pick the static resolver when a passphrase is configured, else the terminal."""
    if passphrase is not None:
        return StaticPassphrase(passphrase)
    return TerminalPassphrase()
