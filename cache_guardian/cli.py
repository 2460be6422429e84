"""
Command-line entry point for the cache guardian.

Meant to be run by a scheduler (cron, a job runner) or by hand:

    cache-guardian
    cache-guardian --threshold 90 --pattern "cache:notes:*"
    cache-guardian --dry-run --log-level DEBUG

Prints a one-line summary on stdout; logs go to stderr. Exit status is 0
on success (including when nothing needed evicting), 1 when the store
failed and 2 for invalid options.
"""

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from .config import Settings
from .exceptions import EvictionError, GuardianError
from .services.guardian import CacheGuardian
from .stores import create_store, open_store

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cache-guardian",
        description="Evict keys from the shared cache when its memory usage passes a threshold",
    )
    parser.add_argument(
        "--redis-url",
        type=str,
        default=None,
        help="Cache store URL (default: $REDIS_URL or redis://localhost:6379/0)",
    )
    parser.add_argument(
        "--pattern",
        dest="key_pattern",
        type=str,
        default=None,
        help="Glob of evictable keys (default: cache:*)",
    )
    parser.add_argument(
        "--threshold",
        dest="threshold_percent",
        type=float,
        default=None,
        help="Memory usage percentage that triggers a sweep (default: 80)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Keys requested per scan call (default: 100)",
    )
    parser.add_argument(
        "--timeout",
        dest="socket_timeout",
        type=float,
        default=None,
        help="Seconds allowed per store call (default: 5)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Scan and count matching keys without deleting them",
    )
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Settings from the environment, overridden by any options given"""
    overrides = {
        name: getattr(args, name)
        for name in ("redis_url", "key_pattern", "threshold_percent", "batch_size", "socket_timeout", "log_level")
        if getattr(args, name) is not None
    }
    settings = Settings()
    # validate_assignment checks each override against the field's constraints
    for name, value in overrides.items():
        setattr(settings, name, value)
    return settings


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args)
        config = settings.guardian_config(dry_run=args.dry_run)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_USAGE

    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    guardian = CacheGuardian(config)
    store = create_store(settings)

    try:
        with open_store(store):
            outcome = guardian.assess_and_evict(store)
    except EvictionError as e:
        print(
            f"Eviction aborted after {e.outcome.scanned_batches} batches "
            f"({e.outcome.keys_deleted} keys deleted): {e}"
        )
        return EXIT_FAILURE
    except GuardianError as e:
        logger.error(f"Cache guardian failed: {e}")
        print(f"Eviction aborted: {e}")
        return EXIT_FAILURE

    print(outcome.summary())
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
