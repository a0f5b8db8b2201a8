"""In-process store, for tests and dry runs."""
from typing import Optional

from ..exceptions import KeyNotFoundError
from .base import KVPair, Store


class MemoryStore(Store):
    name = "memory"

    def __init__(self, data: Optional[dict] = None):
        self.data: dict[str, bytes] = dict(data or {})

    async def get(self, key: str) -> bytes:
        try:
            return self.data[key]
        except KeyError:
            raise KeyNotFoundError(f"key not found: {key}") from None

    async def set(self, key: str, value: bytes) -> None:
        self.data[key] = bytes(value)

    async def list(self, key: str) -> list[KVPair]:
        return [
            KVPair(key=k, value=v)
            for k, v in sorted(self.data.items())
            if k.startswith(key)
        ]
