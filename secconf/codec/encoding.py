"""
Secure Codec — compose gzip, OpenPGP and base64 into one value format.

    blob = base64(openpgp(gzip(data)))

``encode`` encrypts to every recipient selected from a public keyring with a
single shared session key. ``decode`` walks the secret keyring in order and
tries each private key the message names as a recipient, asking a passphrase
resolver to unlock protected keys.

Security Note:
    Never log plaintext, ciphertext or passphrases. Only log key ids and counts.
"""
import logging
import warnings
from collections.abc import Iterable, Iterator, Sequence
from typing import Optional, Union

from pgpy import PGPKey, PGPMessage
from pgpy.constants import CompressionAlgorithm, SymmetricKeyAlgorithm
from pgpy.errors import PGPDecryptionError, PGPEncryptionError, PGPError

from ..exceptions import CorruptDataError, EncryptError, NoMatchingKeyError
from .keyring import KeyringSource, key_ids, read_keyring, short_id
from .layers import compress, decompress, envelope_decode, envelope_encode
from .passphrase import CachedPassphrase, PassphraseResolver, TerminalPassphrase
from .recipients import EntityFilter, PubkeyFilter

logger = logging.getLogger("secconf.codec")

SESSION_CIPHER = SymmetricKeyAlgorithm.AES256
DEFAULT_PASSPHRASE_ATTEMPTS = 3

KEY_PROMPT = "Enter the passphrase for {}: "
SYMMETRIC_PROMPT = "Enter the passphrase for this message: "

# what PGPy raises for malformed packets or refused operations
_PGP_ERRORS = (
    PGPError, PGPDecryptionError, PGPEncryptionError,
    ValueError, TypeError, IndexError, KeyError, NotImplementedError,
)


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------

def encrypt_for(data: bytes, recipients: Sequence[PGPKey]) -> bytes:
    """Encode ``data`` for an explicit list of recipient entities.

    Raises:
        EncryptError: If ``recipients`` is empty or a key cannot encrypt.
    """
    if not recipients:
        raise EncryptError("no recipients selected for encryption")

    message = PGPMessage.new(
        compress(data),
        sensitive=True,
        format="b",
        compression=CompressionAlgorithm.Uncompressed,
    )
    sessionkey = SESSION_CIPHER.gen_key()
    encrypted = message
    for key in recipients:
        pubkey = key if key.is_public else key.pubkey
        try:
            encrypted = pubkey.encrypt(
                encrypted, cipher=SESSION_CIPHER, sessionkey=sessionkey,
            )
        except _PGP_ERRORS as err:
            raise EncryptError(
                f"key {short_id(key)} cannot be used as a recipient: {err}"
            ) from err
    del sessionkey

    logger.debug(
        "Encrypted value for %d recipient(s): %s",
        len(recipients), ", ".join(short_id(k) for k in recipients),
    )
    return envelope_encode(bytes(encrypted))


def encode(
    data: bytes,
    keyring: KeyringSource,
    selector: Union[EntityFilter, Iterable[str], None] = None,
) -> bytes:
    """Encode ``data`` for recipients taken from a public keyring.

    Args:
        data: Plaintext bytes.
        keyring: Armored/binary public keyring, or a readable file object.
        selector: An :class:`EntityFilter`, a list of identity substrings, or
            ``None`` to encrypt for every key in the keyring.

    Returns:
        The base64 secure blob.

    Raises:
        KeyringError: If the keyring cannot be parsed.
        EncryptError: If no recipient is selected or a key refuses to encrypt.
    """
    entities = read_keyring(keyring)
    if selector is None:
        recipients = entities
    else:
        if not hasattr(selector, "entities"):
            selector = PubkeyFilter(selector)
        recipients = selector.entities(entities)
    if not recipients:
        raise EncryptError(
            f"no key in the keyring matches {selector!r}"
        )
    return encrypt_for(data, recipients)


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------

def _literal_bytes(message: PGPMessage) -> bytes:
    body = message.message
    if isinstance(body, str):
        # text literals are handed back decoded by PGPy
        try:
            return body.encode("latin-1")
        except UnicodeEncodeError:
            return body.encode("utf-8")
    return bytes(body)


def parse_message(ciphertext: bytes) -> PGPMessage:
    """Parse binary OpenPGP packets into an encrypted message.

    Raises:
        CorruptDataError: If the packets are malformed or not encrypted.
    """
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            message = PGPMessage.from_blob(ciphertext)
        except _PGP_ERRORS as err:
            raise CorruptDataError(f"malformed OpenPGP message: {err}") from err
    if not message.is_encrypted:
        raise CorruptDataError("payload is not an encrypted OpenPGP message")
    return message


class UnlockSession:
    """Per-decode state: the candidate being tried and the keys tried so far.

    Candidates are the private keys of the keyring, in keyring order, whose
    primary or subkey id appears among the message's encrypters. Each
    candidate is tried once; a protected key is prompted for at most
    ``attempts`` times and is not prompted for again once unlocked.
    """

    def __init__(
        self,
        keyring: Sequence[PGPKey],
        message: PGPMessage,
        resolver: PassphraseResolver,
        attempts: int = DEFAULT_PASSPHRASE_ATTEMPTS,
    ):
        self.keyring = keyring
        self.message = message
        self.resolver = resolver
        self.attempts = max(1, attempts)
        self.index = 0
        self.tried: list[str] = []

    def candidates(self) -> Iterator[PGPKey]:
        encrypters = self.message.encrypters
        for key in self.keyring:
            if key.is_public:
                continue
            if encrypters.isdisjoint(key_ids(key)):
                continue
            yield key

    def _reject(self, prompt: str) -> None:
        if isinstance(self.resolver, CachedPassphrase):
            self.resolver.forget(prompt)

    def _decrypt_with(self, key: PGPKey) -> Optional[bytes]:
        try:
            decrypted = key.decrypt(self.message)
        except _PGP_ERRORS as err:
            logger.debug("Key %s did not decrypt the message: %s", short_id(key), err)
            return None
        return _literal_bytes(decrypted)

    def _try_key(self, key: PGPKey) -> Optional[bytes]:
        keyid = short_id(key)
        self.tried.append(keyid)
        if not key.is_protected or key.is_unlocked:
            return self._decrypt_with(key)

        prompt = KEY_PROMPT.format(keyid)
        for attempt in range(1, self.attempts + 1):
            secret = self.resolver.resolve(prompt)
            try:
                with key.unlock(secret):
                    return self._decrypt_with(key)
            except PGPDecryptionError:
                self._reject(prompt)
                logger.warning(
                    "Wrong passphrase for key %s (attempt %d of %d)",
                    keyid, attempt, self.attempts,
                )
            finally:
                del secret
        return None

    def _decrypt_symmetric(self) -> bytes:
        for attempt in range(1, self.attempts + 1):
            secret = self.resolver.resolve(SYMMETRIC_PROMPT)
            try:
                decrypted = self.message.decrypt(secret)
            except PGPDecryptionError:
                self._reject(SYMMETRIC_PROMPT)
                logger.warning(
                    "Wrong passphrase for message (attempt %d of %d)",
                    attempt, self.attempts,
                )
                continue
            finally:
                del secret
            return _literal_bytes(decrypted)
        raise NoMatchingKeyError("no passphrase decrypted the message")

    def decrypt(self) -> bytes:
        """Return the decrypted literal data.

        Raises:
            NoMatchingKeyError: If every candidate was tried without success.
            NoTerminalError: If a passphrase is needed and none can be read.
        """
        if not self.message.encrypters:
            return self._decrypt_symmetric()

        for key in self.candidates():
            self.index += 1
            body = self._try_key(key)
            if body is not None:
                logger.debug(
                    "Decrypted with key %s (candidate %d)", short_id(key), self.index,
                )
                return body
        raise NoMatchingKeyError(
            "no private key decrypted the message "
            f"(recipients: {', '.join(sorted(self.message.encrypters))}; "
            f"tried: {', '.join(self.tried) or 'none'})"
        )


def decode(
    data: Union[bytes, str],
    secret_keyring: KeyringSource,
    passphrase: Optional[PassphraseResolver] = None,
    attempts: int = DEFAULT_PASSPHRASE_ATTEMPTS,
) -> bytes:
    """Decode a secure blob with a secret keyring.

    Args:
        data: The base64 secure blob.
        secret_keyring: Armored/binary secret keyring, or a readable file object.
        passphrase: Resolver for protected keys (default: the terminal).
        attempts: Passphrase tries per protected key.

    Returns:
        The plaintext bytes.

    Raises:
        CorruptDataError: If the envelope, packets or gzip stream are invalid.
        KeyringError: If the keyring cannot be parsed.
        NoMatchingKeyError: If no private key decrypts the message.
        NoTerminalError: If a passphrase is required and no terminal exists.
    """
    ciphertext = envelope_decode(data)
    entities = read_keyring(secret_keyring)
    message = parse_message(ciphertext)
    resolver = passphrase if passphrase is not None else TerminalPassphrase()
    session = UnlockSession(entities, message, resolver, attempts=attempts)
    return decompress(session.decrypt())
