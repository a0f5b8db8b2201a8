"""
Store abstractions — byte values addressed by string keys.

Security Note:
    Stores only ever handle opaque byte blobs. Never log values, only keys.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp
import orjson

from ..exceptions import StoreError

logger = logging.getLogger("secconf.backend")

DEFAULT_TIMEOUT = 10.0


@dataclass
class KVPair:
    """One key and its stored value."""
    key: str
    value: bytes


class Store(ABC):
    """Asynchronous key-value store.

    Stores are async context managers; leaving the block releases any
    connection held by the store.
    """

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """Return the value stored at ``key``.

        Raises:
            KeyNotFoundError: If ``key`` does not exist.
            StoreError: On backend failures.
        """

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """Store ``value`` at ``key``, replacing any previous value."""

    @abstractmethod
    async def list(self, key: str) -> list[KVPair]:
        """Return every pair stored under the prefix ``key``, ordered by key."""

    async def close(self) -> None:
        return None

    async def __aenter__(self) -> "Store":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def normalize_endpoint(endpoint: str) -> str:
    """Add a scheme to bare ``host:port`` endpoints and drop trailing slashes."""
    endpoint = endpoint.strip()
    if "://" not in endpoint:
        endpoint = f"http://{endpoint}"
    return endpoint.rstrip("/")


class HTTPStore(Store):
    """Store spoken to over HTTP, with fail-over across ``machines``."""

    name = "http"

    def __init__(self, machines: list[str], timeout: float = DEFAULT_TIMEOUT):
        if isinstance(machines, str):
            machines = [machines]
        if not machines:
            raise ValueError(f"{self.name} store needs at least one endpoint")
        self.machines = [normalize_endpoint(m) for m in machines]
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(self, method: str, path: str, **kwargs) -> Optional[bytes]:
        """Send a request to the first reachable machine.

        Returns:
            The response body, or ``None`` on HTTP 404.

        Raises:
            StoreError: On HTTP errors, or when no machine is reachable.
        """
        session = self._get_session()
        last_err: Optional[BaseException] = None
        for machine in self.machines:
            url = f"{machine}{path}"
            try:
                async with session.request(method, url, **kwargs) as resp:
                    if resp.status == 404:
                        return None
                    body = await resp.read()
                    if resp.status >= 400:
                        raise StoreError(
                            f"{self.name}: {method} {path} failed with HTTP "
                            f"{resp.status}: {body.decode('utf-8', 'replace').strip()}"
                        )
                    return body
            except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as err:
                logger.warning("%s endpoint %s unreachable: %s", self.name, machine, err)
                last_err = err
            except aiohttp.ClientError as err:
                raise StoreError(f"{self.name}: {method} {path} failed: {err}") from err
        raise StoreError(
            f"{self.name}: no endpoint reachable ({', '.join(self.machines)})"
        ) from last_err

    def _loads(self, body: bytes) -> Any:
        try:
            return orjson.loads(body)
        except orjson.JSONDecodeError as err:
            raise StoreError(f"{self.name}: malformed JSON response: {err}") from err
