"""
Error hierarchy for the cache guardian.

An unknown memory ceiling is not an error and is reported through
EvictionOutcome.ceiling_unknown instead.
"""

from typing import Optional

from .models.memory import EvictionOutcome


class GuardianError(Exception):
    """Base class for all cache guardian errors"""


class StoreError(GuardianError):
    """A store call failed (connection refused, timeout, protocol error)"""


class EvictionError(GuardianError):
    """
    An assess-and-evict run was aborted.

    Carries the outcome accumulated before the abort so callers can report
    a partial sweep. Batches deleted before the failure stay deleted; the
    next run re-scans the namespace and picks up the rest.
    """

    def __init__(self, message: str, outcome: Optional[EvictionOutcome] = None):
        super().__init__(message)
        self.outcome = outcome if outcome is not None else EvictionOutcome()

    @property
    def partial(self) -> bool:
        return self.outcome.keys_deleted > 0


class StoreUnavailable(EvictionError):
    """The store failed during assessment or sweep; never retried here"""
