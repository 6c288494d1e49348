"""Utility functions and constants for devmem core."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

from devmem.types import Tier, parse_datetime

logger = logging.getLogger(__name__)

# Tier thresholds: hot if either hot condition holds, else warm if either warm
# condition holds, else cold.
HOT_ACCESS_COUNT = 5
HOT_WINDOW_DAYS = 7
WARM_ACCESS_COUNT = 2
WARM_WINDOW_DAYS = 30

# Default result limits per read
DECISION_LIMIT = 10
ERROR_LIMIT = 10
SOLUTION_LIMIT = 5
LEARNING_LIMIT = 20
MAX_LIMIT = 200

# Items shown by status() and comprehensive_load()
STATUS_LIMITS = {"decisions": 5, "learnings": 5, "errors": 3}
COMPREHENSIVE_LIMITS = {"decisions": 20, "learnings": 20, "errors": 10}

DEFAULT_PRUNE_DAYS = 90


def compute_tier(
    access_count: Optional[int],
    last_accessed: Optional[str],
    now: Optional[datetime] = None,
) -> Tier:
    """Classify a record as hot, warm or cold from its access history.

    Args:
        access_count: Times the record was returned by a recall-style read
        last_accessed: ISO timestamp of the last such read (None if never)
        now: Reference time (default: current UTC time)

    Returns:
        The record's tier
    """
    now = now or datetime.now(timezone.utc)
    count = access_count or 0
    last = parse_datetime(last_accessed)
    age = (now - last) if last is not None else None

    if count >= HOT_ACCESS_COUNT or (age is not None and age <= timedelta(days=HOT_WINDOW_DAYS)):
        return Tier.HOT
    if count >= WARM_ACCESS_COUNT or (age is not None and age <= timedelta(days=WARM_WINDOW_DAYS)):
        return Tier.WARM
    return Tier.COLD


def tier_distribution(records: Iterable[Any], now: Optional[datetime] = None) -> Dict[str, int]:
    """Count records per tier."""
    counts = {tier.value: 0 for tier in Tier}
    for record in records:
        tier = compute_tier(record.access_count, record.last_accessed, now)
        counts[tier.value] += 1
    return counts


def cutoff_timestamp(days: int, now: Optional[datetime] = None) -> str:
    """ISO timestamp ``days`` before now."""
    now = now or datetime.now(timezone.utc)
    return (now - timedelta(days=days)).isoformat()
