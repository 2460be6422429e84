"""
Cache store implementations and connection scoping.

open_store() is the only place a guardian run acquires and releases a
store connection.
"""

from contextlib import contextmanager
from typing import Iterator

from ..interfaces.store import ICacheStore
from .memory_store import InMemoryCacheStore
from .redis_store import RedisCacheStore


def create_store(settings) -> RedisCacheStore:
    """Build a Redis store from Settings (not yet connected)"""
    return RedisCacheStore(url=settings.redis_url, socket_timeout=settings.socket_timeout)


@contextmanager
def open_store(store: ICacheStore) -> Iterator[ICacheStore]:
    """
    Context manager for a store connection.

    Yields:
        The connected store; it is disconnected on every exit path
    """
    store.connect()
    try:
        yield store
    finally:
        store.disconnect()


__all__ = [
    "InMemoryCacheStore",
    "RedisCacheStore",
    "create_store",
    "open_store",
]
