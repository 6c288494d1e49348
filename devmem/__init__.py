"""
devmem - Persistent project memory for coding assistants.

Decisions, error solutions, context, learnings and sessions, stored locally
in SQLite with an optional Supabase mirror.
"""

from .core import MemoryEngine
from .storage import SQLiteStore

try:
    from importlib.metadata import version

    __version__ = version("devmem")
except Exception:
    __version__ = "0.0.0"

__all__ = ["MemoryEngine", "SQLiteStore"]
