"""Aggregate views over a project's memory: status, comprehensive load, stats."""

import logging
from typing import Any, Dict, Optional

from devmem.core.utils import COMPREHENSIVE_LIMITS, STATUS_LIMITS, tier_distribution
from devmem.types import ARCHIVABLE_KINDS, GLOBAL_PROJECT, RecordKind

logger = logging.getLogger(__name__)


class LoaderMixin:
    """Aggregate read operations for MemoryEngine.

    None of these record accesses.
    """

    def _snapshot(self, project: str, limits: Dict[str, int], include_global: bool) -> Dict[str, Any]:
        store = self._store
        return {
            "project": project,
            "sessions": store.get(RecordKind.SESSION, project),
            "context": store.get(RecordKind.CONTEXT, project),
            "decisions": store.get(RecordKind.DECISION, project, limit=limits["decisions"]),
            "learnings": store.get(
                RecordKind.LEARNING,
                project,
                limit=limits["learnings"],
                include_global=include_global,
            ),
            "errors": store.get(RecordKind.ERROR, project, limit=limits["errors"]),
            "counts": {
                "decisions": store.count(RecordKind.DECISION, project),
                "errors": store.count(RecordKind.ERROR, project),
                "learnings": store.count(
                    RecordKind.LEARNING, project, include_global=include_global
                ),
                "context": store.count(RecordKind.CONTEXT, project),
            },
        }

    def status(self, project: str) -> Dict[str, Any]:
        """Session-start summary: sessions, context, top decisions/learnings/errors, counts."""
        return self._snapshot(project, STATUS_LIMITS, include_global=True)

    def comprehensive_load(self, project: str, include_global: bool = True) -> Dict[str, Any]:
        """Larger snapshot for priming a fresh session.

        With ``include_global``, global learnings and context stored under the
        reserved "global" project are included.
        """
        snapshot = self._snapshot(project, COMPREHENSIVE_LIMITS, include_global)
        snapshot["global_context"] = []
        if include_global and project != GLOBAL_PROJECT:
            snapshot["global_context"] = self._store.get(RecordKind.CONTEXT, GLOBAL_PROJECT)
        return snapshot

    def stats(self, project: Optional[str] = None) -> Dict[str, Any]:
        """Live/archived counts, tier distribution and database size.

        Args:
            project: One project (counts plus tiers), or None for the
                cross-project breakdown
        """
        store = self._store
        if project is not None:
            counts = {}
            tiers = {}
            for kind in RecordKind:
                counts[kind.table] = {
                    "live": store.count(kind, project, archived=False),
                    "archived": store.count(kind, project, archived=True) if kind.archivable else 0,
                }
            for kind in ARCHIVABLE_KINDS:
                tiers[kind.table] = tier_distribution(store.get(kind, project, include_global=False))
            return {"project": project, "counts": counts, "tiers": tiers}

        return {
            "projects": store.project_counts(),
            "total_archived": sum(store.count(k, None, archived=True) for k in ARCHIVABLE_KINDS),
            "db_size": store.file_size(),
            "schema_version": store.schema_version,
        }
