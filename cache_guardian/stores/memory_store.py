"""
In-memory cache store.

Dict-backed ICacheStore with Redis-like SCAN semantics. Keys occupy slots
in insertion order and a cursor is a slot offset, so deleting keys between
scan calls never shifts the walk. Each call examines batch_size slots and
returns the live keys among them that match the pattern. Used by the tests
and for trying the guardian without a server.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from ..interfaces.store import ICacheStore, SCAN_START
from ..models.memory import MemoryReport
from ..patterns import compile_key_pattern


class InMemoryCacheStore(ICacheStore):
    """
    Example:
        store = InMemoryCacheStore(used_bytes=850, max_bytes=1000)
        store.set("cache:note:1", "...")
        store.set("session:abc", "...")
    """

    def __init__(self, used_bytes: int = 0, max_bytes: int = 0, data: Optional[Dict[str, str]] = None):
        self.used_bytes = used_bytes
        self.max_bytes = max_bytes
        self.connected = False

        self._data: Dict[str, str] = {}
        self._slots: List[str] = []
        for key, value in (data or {}).items():
            self.set(key, value)

        # Call log, inspected by tests
        self.scan_calls: List[Tuple[str, str, int]] = []
        self.delete_calls: List[List[str]] = []

    def connect(self) -> None:
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False

    def set(self, key: str, value: str = "") -> None:
        if key not in self._data and key not in self._slots:
            self._slots.append(key)
        self._data[key] = value

    def keys(self) -> List[str]:
        """Live keys in slot order"""
        return [key for key in self._slots if key in self._data]

    def get_memory_info(self) -> MemoryReport:
        return MemoryReport(used_bytes=self.used_bytes, max_bytes=self.max_bytes)

    def scan_keys(self, cursor: str, pattern: str, batch_size: int) -> Tuple[str, List[str]]:
        self.scan_calls.append((cursor, pattern, batch_size))

        matcher = compile_key_pattern(pattern)
        start = int(cursor)
        end = start + batch_size
        matched = [
            key for key in self._slots[start:end]
            if key in self._data and matcher.fullmatch(key)
        ]

        next_cursor = SCAN_START if end >= len(self._slots) else str(end)
        return next_cursor, matched

    def delete_keys(self, keys: Sequence[str]) -> int:
        self.delete_calls.append(list(keys))
        removed = 0
        for key in keys:
            if key in self._data:
                del self._data[key]
                removed += 1
        return removed
