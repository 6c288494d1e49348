"""Archival, priority and cleanup operations for devmem."""

import logging
from typing import Any, Dict, Optional

from devmem.core.utils import DEFAULT_PRUNE_DAYS, cutoff_timestamp
from devmem.core.validation import sanitize_number
from devmem.types import (
    ARCHIVABLE_KINDS,
    MutationResult,
    ValidationError,
    parse_kind,
)

logger = logging.getLogger(__name__)

ALL = "all"


class LifecycleMixin:
    """Record lifecycle operations for MemoryEngine."""

    def archive(self, kind: Any, record_id: Any) -> MutationResult:
        """Soft-delete a decision, error or learning.

        Returns:
            MutationResult; not applied if the kind or id is invalid or no
            record matched
        """
        try:
            kind = parse_kind(kind, ARCHIVABLE_KINDS)
            record_id = self._validate_id(record_id)
        except ValidationError as e:
            return MutationResult.rejected(str(e))
        changes = self._store.set_flag(kind, record_id, "archived", True)
        if changes:
            logger.info(f"Archived {kind.value} #{record_id}")
        return MutationResult(applied=changes > 0, changes=changes)

    def set_priority(self, kind: Any, record_id: Any, priority: Any) -> MutationResult:
        """Set priority (0 normal, 1 high, 2 critical); invalid levels mutate nothing."""
        try:
            kind = parse_kind(kind, ARCHIVABLE_KINDS)
            record_id = self._validate_id(record_id)
            priority = self._validate_priority(priority)
        except ValidationError as e:
            return MutationResult.rejected(str(e))
        changes = self._store.set_flag(kind, record_id, "priority", priority)
        return MutationResult(applied=changes > 0, changes=changes)

    def _delete_aged(
        self,
        project: str,
        kind: Any,
        days: int,
        archived_only: bool,
    ) -> Dict[str, int]:
        days = int(sanitize_number(days, "days", 0, 36500, DEFAULT_PRUNE_DAYS))
        kinds = ARCHIVABLE_KINDS if kind == ALL else (parse_kind(kind, ARCHIVABLE_KINDS),)
        scope: Optional[str] = None if project == ALL else project
        cutoff = cutoff_timestamp(days)

        deleted = {}
        for k in kinds:
            deleted[k.table] = self._store.delete_older_than(
                k, cutoff, project=scope, archived_only=archived_only
            )
        total = sum(deleted.values())
        if total:
            logger.info(
                f"Deleted {total} {'archived ' if archived_only else ''}records older than "
                f"{days} days ({project})"
            )
        return deleted

    def prune(self, project: str, days: int = DEFAULT_PRUNE_DAYS) -> int:
        """Permanently delete archived records older than ``days``.

        Args:
            project: Project name, or "all" for every project

        Returns:
            Number of records deleted
        """
        return sum(self._delete_aged(project, ALL, days, archived_only=True).values())

    def bulk_cleanup(
        self,
        project: str,
        kind: str = ALL,
        days: int = DEFAULT_PRUNE_DAYS,
        archived_only: bool = True,
    ) -> Dict[str, int]:
        """Delete records older than ``days``, optionally live ones too.

        Returns:
            Deleted counts keyed by table name
        """
        return self._delete_aged(project, kind, days, archived_only)
