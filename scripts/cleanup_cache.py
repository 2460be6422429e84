#!/usr/bin/env python3
"""
Check the shared cache's memory usage and evict cache:* keys when it is
above the threshold.

Intended to be run from cron or another scheduler. Connection target comes
from REDIS_URL (or CACHE_GUARDIAN_REDIS_URL / .env).

Usage:
    python scripts/cleanup_cache.py
    python scripts/cleanup_cache.py --threshold 90 --dry-run
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from cache_guardian.cli import main


if __name__ == "__main__":
    sys.exit(main())
