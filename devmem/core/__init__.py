"""devmem core - the rule engine over decisions, errors, context, learnings and sessions.

Public names are re-exported here:
    from devmem.core import MemoryEngine
    from devmem.core import compute_tier
"""

from devmem.core.engine import MemoryEngine
from devmem.core.utils import (
    COMPREHENSIVE_LIMITS,
    DEFAULT_PRUNE_DAYS,
    HOT_ACCESS_COUNT,
    HOT_WINDOW_DAYS,
    STATUS_LIMITS,
    WARM_ACCESS_COUNT,
    WARM_WINDOW_DAYS,
    compute_tier,
    tier_distribution,
)

__all__ = [
    "MemoryEngine",
    # Constants
    "COMPREHENSIVE_LIMITS",
    "DEFAULT_PRUNE_DAYS",
    "HOT_ACCESS_COUNT",
    "HOT_WINDOW_DAYS",
    "STATUS_LIMITS",
    "WARM_ACCESS_COUNT",
    "WARM_WINDOW_DAYS",
    # Functions
    "compute_tier",
    "tier_distribution",
]
