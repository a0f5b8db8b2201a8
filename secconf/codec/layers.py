"""
Codec Layers — gzip compression and base64 text envelope.

Both layers are stateless and deterministic:
- Compression: gzip with a zeroed mtime, so equal input compresses equally.
- Envelope: standard base64 alphabet with padding, no line wrapping.

Decoding fails loudly: truncated or non-alphabet input raises
:class:`~secconf.exceptions.CorruptDataError` instead of yielding partial data.
"""
import base64
import binascii
import gzip
import zlib
from typing import Union

from ..exceptions import CorruptDataError


def compress(data: bytes) -> bytes:
    """Gzip ``data``."""
    return gzip.compress(data, mtime=0)


def decompress(data: bytes) -> bytes:
    """Gunzip ``data``.

    Raises:
        CorruptDataError: If the stream is not gzip, is truncated, or fails
            its CRC check.
    """
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as err:
        raise CorruptDataError(f"gzip stream rejected: {err}") from err


def envelope_encode(data: bytes) -> bytes:
    """Encode ``data`` as standard base64."""
    return base64.b64encode(data)


def envelope_decode(data: Union[bytes, str]) -> bytes:
    """Decode a standard base64 envelope.

    CR and LF bytes are ignored; any other byte outside the alphabet, or
    incorrect padding, is rejected.

    Raises:
        CorruptDataError: If the envelope is malformed.
    """
    if isinstance(data, str):
        try:
            data = data.encode("ascii")
        except UnicodeEncodeError as err:
            raise CorruptDataError("envelope contains non-ASCII text") from err
    data = bytes(data).translate(None, b"\r\n")
    if not data:
        raise CorruptDataError("envelope is empty")
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as err:
        raise CorruptDataError(f"envelope rejected: {err}") from err
