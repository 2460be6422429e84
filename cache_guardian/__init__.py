"""
Cache Guardian - memory-pressure-triggered eviction for a shared cache.

Keeps the key-value cache behind the notes application under its memory
ceiling by sweeping the evictable namespace (cache:* by default) whenever
usage passes a threshold. Other namespaces sharing the store, such as
sessions and auth tokens, are never touched.

Main components:
- CacheGuardian: assess memory usage and run the cursor-based sweep
- ICacheStore: capability contract a store must provide
- RedisCacheStore / InMemoryCacheStore: store implementations
- open_store: scoped connect/disconnect around a run
"""

from .exceptions import EvictionError, GuardianError, StoreError, StoreUnavailable
from .interfaces import ICacheStore, SCAN_START
from .models import EvictionOutcome, GuardianConfig, MemoryReport
from .services import CacheGuardian, assess_and_evict
from .stores import InMemoryCacheStore, RedisCacheStore, create_store, open_store

__version__ = "0.1.0"

__all__ = [
    # Models
    "MemoryReport",
    "EvictionOutcome",
    "GuardianConfig",
    # Errors
    "GuardianError",
    "StoreError",
    "EvictionError",
    "StoreUnavailable",
    # Stores
    "ICacheStore",
    "SCAN_START",
    "InMemoryCacheStore",
    "RedisCacheStore",
    "create_store",
    "open_store",
    # Guardian
    "CacheGuardian",
    "assess_and_evict",
]
