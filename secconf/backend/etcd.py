"""etcd backend (v2 keys API)."""
import logging
from urllib.parse import quote

from ..exceptions import KeyNotFoundError, StoreError
from .base import HTTPStore, KVPair

logger = logging.getLogger("secconf.backend")


def _keys_path(key: str) -> str:
    return "/v2/keys/" + quote(key.lstrip("/"), safe="/")


def _leaves(node: dict):
    """Yield every value node below ``node``, depth first."""
    if node.get("dir"):
        for child in node.get("nodes", []):
            yield from _leaves(child)
    elif "value" in node:
        yield node


class EtcdStore(HTTPStore):
    """etcd keeps text values; stored bytes must be UTF-8."""

    name = "etcd"

    async def _node(self, key: str, **params) -> dict:
        body = await self._request("GET", _keys_path(key), params=params or None)
        if body is None:
            raise KeyNotFoundError(f"key not found: {key}")
        payload = self._loads(body)
        try:
            return payload["node"]
        except (KeyError, TypeError) as err:
            raise StoreError("etcd: response carries no node") from err

    async def get(self, key: str) -> bytes:
        node = await self._node(key)
        if node.get("dir"):
            raise KeyNotFoundError(f"key is a directory: {key}")
        logger.debug("etcd get %s", key)
        return node.get("value", "").encode("utf-8")

    async def set(self, key: str, value: bytes) -> None:
        try:
            text = value.decode("utf-8")
        except UnicodeDecodeError as err:
            raise StoreError(f"etcd stores text values; {key} is not UTF-8") from err
        await self._request("PUT", _keys_path(key), data={"value": text})
        logger.debug("etcd set %s", key)

    async def list(self, key: str) -> list[KVPair]:
        try:
            node = await self._node(key, recursive="true")
        except KeyNotFoundError:
            return []
        pairs = [
            KVPair(key=leaf["key"], value=leaf["value"].encode("utf-8"))
            for leaf in _leaves(node)
        ]
        return sorted(pairs, key=lambda kv: kv.key)
