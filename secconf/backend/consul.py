"""Consul KV backend (HTTP API v1)."""
import base64
import binascii
import logging
from urllib.parse import quote

from ..exceptions import KeyNotFoundError, StoreError
from .base import HTTPStore, KVPair

logger = logging.getLogger("secconf.backend")


def _kv_path(key: str) -> str:
    return "/v1/kv/" + quote(key.lstrip("/"), safe="/")


class ConsulStore(HTTPStore):
    """Values live under ``/v1/kv/<key>``; Consul returns them base64-encoded."""

    name = "consul"

    def _pairs(self, body: bytes) -> list[KVPair]:
        entries = self._loads(body)
        if not isinstance(entries, list):
            raise StoreError(f"consul: unexpected response {type(entries).__name__}")
        pairs = []
        for entry in entries:
            raw = entry.get("Value")
            try:
                value = base64.b64decode(raw) if raw else b""
            except binascii.Error as err:
                raise StoreError(f"consul: undecodable value at {entry.get('Key')}") from err
            pairs.append(KVPair(key=entry["Key"], value=value))
        return sorted(pairs, key=lambda kv: kv.key)

    async def get(self, key: str) -> bytes:
        body = await self._request("GET", _kv_path(key))
        if body is None:
            raise KeyNotFoundError(f"key not found: {key}")
        pairs = self._pairs(body)
        if not pairs:
            raise KeyNotFoundError(f"key not found: {key}")
        logger.debug("consul get %s", key)
        return pairs[0].value

    async def set(self, key: str, value: bytes) -> None:
        body = await self._request("PUT", _kv_path(key), data=value)
        if body is not None and body.strip() == b"false":
            raise StoreError(f"consul refused to store {key}")
        logger.debug("consul set %s", key)

    async def list(self, key: str) -> list[KVPair]:
        body = await self._request("GET", _kv_path(key), params={"recurse": "true"})
        if body is None:
            return []
        return self._pairs(body)
