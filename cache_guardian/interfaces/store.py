"""
Cache store interface - the capabilities the guardian needs from a
key-value store.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple

from ..models.memory import MemoryReport

# Cursor value that both starts a scan and signals that it is complete
SCAN_START = "0"


class ICacheStore(ABC):
    """
    Capability contract for a key-value cache store.

    Connection lifecycle is kept separate from the data operations so the
    caller can own it (see stores.open_store). Implementations translate
    client failures into StoreError.
    """

    @abstractmethod
    def connect(self) -> None:
        """Establish the connection to the store."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Release the connection. Safe to call when not connected."""
        pass

    @abstractmethod
    def get_memory_info(self) -> MemoryReport:
        """
        Read current memory usage and ceiling.

        Returns:
            MemoryReport; max_bytes is 0 when no ceiling is configured
        """
        pass

    @abstractmethod
    def scan_keys(self, cursor: str, pattern: str, batch_size: int) -> Tuple[str, List[str]]:
        """
        Fetch the next batch of keys matching a glob pattern.

        Args:
            cursor: Continuation token; SCAN_START for the first call
            pattern: Glob pattern ('*' wildcard)
            batch_size: Hint for how many keys to examine per call

        Returns:
            Tuple of (next cursor, keys). A next cursor of SCAN_START
            means the scan is complete.
        """
        pass

    @abstractmethod
    def delete_keys(self, keys: Sequence[str]) -> int:
        """
        Delete keys in one bulk call.

        Deleting zero keys or keys that no longer exist is not an error.

        Returns:
            Number of keys actually removed
        """
        pass
