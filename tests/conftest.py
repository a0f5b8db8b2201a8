"""
Shared fixtures: OpenPGP test identities generated once per session.

- alice    ``alice@ops``          unprotected, encryption on the primary key
- bob      ``bob@dev``            unprotected
- carol    ``carol (team-a-ops)`` unprotected, encryption on a subkey
- dave     ``dave@ops``           passphrase protected
"""
import base64

import pytest
from pgpy import PGPKey, PGPUID
from pgpy.constants import (
    CompressionAlgorithm,
    HashAlgorithm,
    KeyFlags,
    PubKeyAlgorithm,
    SymmetricKeyAlgorithm,
)

PASSPHRASE = "correct horse battery staple"

_PREFS = dict(
    hashes=[HashAlgorithm.SHA256],
    ciphers=[SymmetricKeyAlgorithm.AES256],
    compression=[CompressionAlgorithm.Uncompressed],
)


def make_key(name: str, comment: str = "", email: str = "", passphrase: str = None,
             subkey: bool = False) -> PGPKey:
    key = PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, 2048)
    uid = PGPUID.new(name, comment=comment, email=email)
    if subkey:
        key.add_uid(uid, usage={KeyFlags.Sign, KeyFlags.Certify}, **_PREFS)
        sub = PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, 2048)
        key.add_subkey(sub, usage={KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage})
    else:
        key.add_uid(
            uid,
            usage={KeyFlags.Sign, KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage},
            **_PREFS,
        )
    if passphrase:
        key.protect(passphrase, SymmetricKeyAlgorithm.AES256, HashAlgorithm.SHA256)
    return key


def armored(*keys: PGPKey) -> str:
    """Concatenate armored keys into one keyring text."""
    return "\n".join(str(k) for k in keys)


def public_keyring(*keys: PGPKey) -> str:
    """Armored public halves of ``keys``."""
    return armored(*(k.pubkey for k in keys))


class ScriptedPassphrase:
    """Answer prompts from a fixed script and remember what was asked."""

    def __init__(self, *answers: str):
        self.answers = list(answers)
        self.prompts = []

    def resolve(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.answers.pop(0)


@pytest.fixture(scope="session")
def alice():
    return make_key("alice@ops")


@pytest.fixture(scope="session")
def bob():
    return make_key("bob@dev")


@pytest.fixture(scope="session")
def carol():
    return make_key("carol", comment="team-a-ops", subkey=True)


@pytest.fixture(scope="session")
def dave():
    return make_key("dave@ops", passphrase=PASSPHRASE)


@pytest.fixture(scope="session")
def pubring(alice, bob, carol, dave):
    """Public keyring holding every test identity, in a fixed order."""
    return public_keyring(alice, bob, carol, dave)


@pytest.fixture
def keyring_files(tmp_path, alice, bob, carol, dave):
    """Write public and secret keyrings to disk; returns (pubring, secring) paths."""
    pub = tmp_path / "pubring.asc"
    sec = tmp_path / "secring.asc"
    pub.write_text(public_keyring(alice, bob, carol, dave))
    sec.write_text(armored(alice, carol, dave))
    return str(pub), str(sec)


def tamper(blob: bytes, offset: int) -> bytes:
    """Flip one bit of the ciphertext inside a base64 secure blob."""
    raw = bytearray(base64.b64decode(blob))
    raw[offset] ^= 0x01
    return base64.b64encode(bytes(raw))
