"""
CacheGuardian - memory-pressure-triggered eviction for a shared cache.

The guardian reads the store's memory usage and, only when it is above the
configured threshold, walks the evictable namespace with a cursor-based
scan, deleting each batch before asking for the next one. It works on an
injected ICacheStore and never opens or closes connections itself.
"""

import logging
from typing import List, Optional

from ..exceptions import StoreError, StoreUnavailable
from ..interfaces.store import ICacheStore, SCAN_START
from ..models.config import GuardianConfig
from ..models.memory import EvictionOutcome
from ..patterns import compile_key_pattern

logger = logging.getLogger(__name__)


class CacheGuardian:
    """
    Keeps a shared key-value cache under its memory ceiling.

    Usage:
        guardian = CacheGuardian(GuardianConfig(threshold_percent=80))
        with open_store(store):
            outcome = guardian.assess_and_evict(store)
        print(outcome.summary())

    Runs are strictly sequential and are not retried; retry policy and
    mutual exclusion across processes belong to whatever schedules them.
    """

    def __init__(self, config: Optional[GuardianConfig] = None):
        self.config = config or GuardianConfig()
        self._matcher = compile_key_pattern(self.config.key_pattern)

    def assess_and_evict(self, store: ICacheStore) -> EvictionOutcome:
        """
        Check memory usage and sweep the evictable namespace if needed.

        Args:
            store: Connected cache store

        Returns:
            EvictionOutcome for this run

        Raises:
            StoreUnavailable: A store call failed; the exception's outcome
                holds whatever was accumulated before the failure
        """
        outcome = EvictionOutcome(dry_run=self.config.dry_run)

        try:
            report = store.get_memory_info()
        except StoreError as e:
            logger.error(f"Could not read cache memory usage: {e}")
            raise StoreUnavailable(f"Could not read cache memory usage: {e}", outcome) from e

        if not report.has_ceiling:
            outcome.ceiling_unknown = True
            logger.warning(
                "Cache store has no maxmemory configured; skipping threshold "
                "eviction, use TTLs or an eviction policy instead"
            )
            return outcome

        outcome.used_percent = report.used_percent
        logger.info(
            f"Memory used: {outcome.used_percent:.2f}% "
            f"({report.used_bytes}/{report.max_bytes} bytes)"
        )

        if not report.exceeds(self.config.threshold_percent):
            logger.info(f"Below {self.config.threshold_percent}% threshold, nothing to evict")
            return outcome

        outcome.triggered = True
        logger.warning(
            f"Above {self.config.threshold_percent}% threshold, "
            f"sweeping keys matching {self.config.key_pattern!r}"
        )
        self._sweep(store, outcome)

        logger.info(
            f"Sweep complete: {outcome.keys_deleted} keys "
            f"{'matched' if outcome.dry_run else 'deleted'} "
            f"in {outcome.scanned_batches} batches"
        )
        return outcome

    def _sweep(self, store: ICacheStore, outcome: EvictionOutcome) -> None:
        """Cursor walk over the namespace, one bulk delete per batch"""
        pattern = self.config.key_pattern
        cursor = SCAN_START

        while True:
            try:
                cursor, keys = store.scan_keys(cursor, pattern, self.config.batch_size)
            except StoreError as e:
                raise self._abort("Scan", e, outcome) from e
            outcome.scanned_batches += 1

            keys = self._within_namespace(keys)
            if keys:
                if outcome.dry_run:
                    outcome.keys_deleted += len(keys)
                    logger.info(f"Would delete {len(keys)} keys")
                else:
                    try:
                        removed = store.delete_keys(keys)
                    except StoreError as e:
                        raise self._abort("Delete", e, outcome) from e
                    outcome.keys_deleted += removed
                    logger.info(f"Deleted {removed} keys")

            if cursor == SCAN_START:
                break

    def _within_namespace(self, keys: List[str]) -> List[str]:
        # Nothing outside key_pattern is ever deleted, whatever the store returns
        allowed = [key for key in keys if self._matcher.fullmatch(key)]
        if len(allowed) != len(keys):
            logger.warning(
                f"Store returned {len(keys) - len(allowed)} keys outside "
                f"{self.config.key_pattern!r}; ignoring them"
            )
        return allowed

    def _abort(self, step: str, error: StoreError, outcome: EvictionOutcome) -> StoreUnavailable:
        logger.error(
            f"{step} failed after {outcome.scanned_batches} batches and "
            f"{outcome.keys_deleted} deleted keys: {error}"
        )
        return StoreUnavailable(f"{step} failed during eviction sweep: {error}", outcome)


def assess_and_evict(store: ICacheStore, config: Optional[GuardianConfig] = None) -> EvictionOutcome:
    """Run one assessment (and sweep, if triggered) against store"""
    return CacheGuardian(config).assess_and_evict(store)
