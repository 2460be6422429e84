"""
Memory and sweep result models.

A MemoryReport is fetched fresh on every guardian run; an EvictionOutcome
accumulates the counters of a single sweep and is attached to errors when
the sweep aborts part way through.
"""

from pydantic import BaseModel, Field
from typing import Optional


class MemoryReport(BaseModel):
    """Current memory usage of the cache store, in bytes"""
    used_bytes: int = Field(..., ge=0, description="Memory currently in use")
    max_bytes: int = Field(
        ...,
        ge=0,
        description="Configured ceiling (0 means no ceiling is configured)"
    )

    @property
    def has_ceiling(self) -> bool:
        return self.max_bytes > 0

    @property
    def used_percent(self) -> Optional[float]:
        """Usage as a percentage of the ceiling, or None without a ceiling."""
        if not self.has_ceiling:
            return None
        return self.used_bytes / self.max_bytes * 100

    def exceeds(self, threshold_percent: float) -> bool:
        """
        True when usage is strictly above threshold_percent of the ceiling.

        Compared as used * 100 > threshold * max so that usage sitting
        exactly on the threshold is not pushed over it by float rounding.
        Always False without a ceiling.
        """
        if not self.has_ceiling:
            return False
        return self.used_bytes * 100 > threshold_percent * self.max_bytes


class EvictionOutcome(BaseModel):
    """
    Counters for one assess-and-evict run.

    Attributes:
        scanned_batches: Number of scan calls issued
        keys_deleted: Keys removed (or, for a dry run, keys that matched)
        triggered: Whether usage exceeded the threshold and a sweep ran
        ceiling_unknown: The store reported no memory ceiling
        used_percent: Usage observed before the sweep, if known
        dry_run: Deletes were skipped
    """
    scanned_batches: int = Field(default=0, ge=0)
    keys_deleted: int = Field(default=0, ge=0)
    triggered: bool = False
    ceiling_unknown: bool = False
    used_percent: Optional[float] = None
    dry_run: bool = False

    def summary(self) -> str:
        """One-line, human readable description of the run."""
        if self.ceiling_unknown:
            return (
                "No memory ceiling configured on the cache store; "
                "skipped eviction (rely on TTL expiry instead)"
            )

        usage = f"{self.used_percent:.2f}%" if self.used_percent is not None else "unknown"
        if not self.triggered:
            return f"Memory used {usage}, below threshold; nothing to evict"

        verb = "would delete" if self.dry_run else "deleted"
        return (
            f"Memory used {usage}, above threshold; {verb} {self.keys_deleted} keys "
            f"in {self.scanned_batches} scan batches"
        )
