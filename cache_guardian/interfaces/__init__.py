"""
Interfaces for the cache guardian.

Stores implement ICacheStore, which lets the guardian run against Redis in
production and an in-memory fake in tests.
"""

from .store import ICacheStore, SCAN_START

__all__ = [
    "ICacheStore",
    "SCAN_START",
]
