"""Memory read operations for devmem.

Recall-style reads (recall_decisions, find_solution, recall_learnings,
search_all) record an access on every returned record; list-style reads
do not.
"""

import logging
from typing import Any, Dict, List, Optional

from devmem.core.utils import (
    DECISION_LIMIT,
    ERROR_LIMIT,
    LEARNING_LIMIT,
    MAX_LIMIT,
    SOLUTION_LIMIT,
    compute_tier,
)
from devmem.storage import ANY_WORKSPACE
from devmem.types import (
    ContextEntry,
    Decision,
    ErrorSolution,
    Learning,
    RecordKind,
    Session,
    Tier,
)

logger = logging.getLogger(__name__)


class ReadersMixin:
    """Memory read operations for MemoryEngine."""

    def _track(self, kind: RecordKind, records: List[Any]) -> List[Any]:
        if records:
            self._store.track_access(kind, [r.id for r in records])
        return records

    def tier(self, record: Any) -> Tier:
        """Read-time tier of a decision, error or learning."""
        return compute_tier(record.access_count, record.last_accessed)

    def _recall(
        self,
        kind: RecordKind,
        project: str,
        search: Optional[str],
        category: Optional[str],
        limit: int,
    ) -> List[Any]:
        # An explicit category takes precedence over free-text search
        if category:
            return self._store.get(kind, project, category=category, limit=limit)
        if search:
            return self._store.search(kind, project, search, limit=limit)
        return self._store.get(kind, project, limit=limit)

    def recall_decisions(
        self,
        project: str,
        search: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = DECISION_LIMIT,
    ) -> List[Decision]:
        """Decisions for a project, highest priority and most recent first."""
        limit = self._validate_limit(limit, DECISION_LIMIT, MAX_LIMIT)
        results = self._recall(RecordKind.DECISION, project, search, category, limit)
        return self._track(RecordKind.DECISION, results)

    def find_solution(self, project: str, error: str, limit: int = SOLUTION_LIMIT) -> List[ErrorSolution]:
        """Stored solutions whose error pattern contains ``error``."""
        error = self._validate_string_input(error, "error", 2000)
        limit = self._validate_limit(limit, SOLUTION_LIMIT, MAX_LIMIT)
        results = self._store.search(RecordKind.ERROR, project, error, limit=limit)
        return self._track(RecordKind.ERROR, results)

    def list_errors(
        self, project: str, category: Optional[str] = None, limit: int = ERROR_LIMIT
    ) -> List[ErrorSolution]:
        limit = self._validate_limit(limit, ERROR_LIMIT, MAX_LIMIT)
        return self._store.get(RecordKind.ERROR, project, category=category or None, limit=limit)

    def get_context(self, project: str, key: Optional[str] = None) -> List[ContextEntry]:
        """Context entries for a project ordered by key (one entry when ``key`` is given)."""
        return self._store.get(RecordKind.CONTEXT, project, key=key or None)

    def recall_learnings(
        self,
        project: str,
        search: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = LEARNING_LIMIT,
    ) -> List[Learning]:
        """Learnings for a project plus global learnings."""
        limit = self._validate_limit(limit, LEARNING_LIMIT, MAX_LIMIT)
        results = self._recall(RecordKind.LEARNING, project, search, category, limit)
        return self._track(RecordKind.LEARNING, results)

    def get_sessions(self, project: str, workspace: Any = ANY_WORKSPACE) -> List[Session]:
        """Sessions for a project, most recently updated first.

        With ANY_WORKSPACE every workspace is returned; ``None`` selects the
        default workspace.
        """
        return self._store.get(RecordKind.SESSION, project, workspace=workspace)

    def search_all(self, project: str, query: str) -> Dict[str, List[Any]]:
        """Substring search across decisions, errors, learnings and context.

        Returns:
            Non-empty result groups keyed "decisions", "errors", "learnings",
            "context", in that order
        """
        query = self._validate_string_input(query, "query", 500)
        groups: Dict[str, List[Any]] = {}
        for key, kind in (
            ("decisions", RecordKind.DECISION),
            ("errors", RecordKind.ERROR),
            ("learnings", RecordKind.LEARNING),
            ("context", RecordKind.CONTEXT),
        ):
            results = self._store.search(kind, project, query)
            if kind.archivable:
                self._track(kind, results)
            if results:
                groups[key] = results
        return groups
