"""Key-value backends for secure values."""
from typing import Optional

from ..conf import default_endpoint
from .base import Store, HTTPStore, KVPair
from .consul import ConsulStore
from .etcd import EtcdStore
from .memory import MemoryStore

BACKENDS = {
    "consul": ConsulStore,
    "etcd": EtcdStore,
}


def get_backend_store(provider: str, endpoint: Optional[str] = None) -> Store:
    """Build the store for ``provider``.

    Args:
        provider: ``consul`` or ``etcd``.
        endpoint: Comma separated endpoints; the backend default when empty.

    Raises:
        ValueError: If the provider is unknown.
    """
    try:
        store_cls = BACKENDS[provider]
    except KeyError:
        raise ValueError(f"invalid backend {provider}") from None
    if not endpoint:
        endpoint = default_endpoint(provider)
    machines = [m.strip() for m in endpoint.split(",") if m.strip()]
    return store_cls(machines)


__all__ = [
    "Store",
    "HTTPStore",
    "KVPair",
    "ConsulStore",
    "EtcdStore",
    "MemoryStore",
    "get_backend_store",
]
