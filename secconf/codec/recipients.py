"""
Recipient selection — decide which public keys a write is encrypted for.

Selection is a pure function of (keyring, patterns): an entity is a recipient
when any of its identity strings contains any pattern as a case-sensitive
substring. The result keeps keyring order, never pattern order.
"""
from collections.abc import Iterable, Sequence
from typing import Protocol

from pgpy import PGPKey

from .keyring import identities

PATH_SEPARATOR = "/"


class EntityFilter(Protocol):
    """Anything that narrows a keyring down to a recipient list."""

    def entities(self, keys: Sequence[PGPKey]) -> list:
        ...


def select_recipients(keyring: Iterable[PGPKey], patterns: Iterable[str]) -> list:
    """Select the entities whose identities contain any of ``patterns``.

    Args:
        keyring: Entities in keyring order.
        patterns: Substrings to look for in identity strings.

    Returns:
        The matching entities, in keyring order. May be empty.
    """
    patterns = list(patterns)
    selected = []
    for key in keyring:
        if any(p in name for name in identities(key) for p in patterns):
            selected.append(key)
    return selected


def pattern_from_path(key: str) -> str:
    """Derive the default recipient pattern from a storage key.

    The pattern is the top-level segment of the key, so that
    ``team-a/db/password`` is encrypted for identities containing ``team-a``.
    Separators at either end are ignored; a key with a single segment is used
    whole.

    >>> pattern_from_path("team-a/db/password")
    'team-a'
    >>> pattern_from_path("token")
    'token'
    """
    segments = [s for s in key.strip(PATH_SEPARATOR).split(PATH_SEPARATOR) if s]
    if not segments:
        return key
    return segments[0]


class PubkeyFilter:
    """Recipient selector backed by a list of substring patterns."""

    def __init__(self, patterns: Iterable[str]):
        if isinstance(patterns, str):
            patterns = [patterns]
        self.patterns = tuple(patterns)

    @classmethod
    def from_path(cls, key: str) -> "PubkeyFilter":
        """Build the default selector for a storage key."""
        return cls([pattern_from_path(key)])

    def entities(self, keys: Sequence[PGPKey]) -> list:
        return select_recipients(keys, self.patterns)

    def __repr__(self) -> str:
        return f"<PubkeyFilter patterns={list(self.patterns)!r}>"
