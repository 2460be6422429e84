"""Services module initialization."""

from .guardian import CacheGuardian, assess_and_evict

__all__ = [
    "CacheGuardian",
    "assess_and_evict",
]
