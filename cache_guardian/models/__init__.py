from .memory import MemoryReport, EvictionOutcome
from .config import GuardianConfig

__all__ = [
    "MemoryReport",
    "EvictionOutcome",
    "GuardianConfig",
]
