"""Memory write operations for devmem."""

import logging
from typing import Any, Optional

from devmem.storage import ANY_WORKSPACE
from devmem.types import (
    MutationResult,
    RecordKind,
    ValidationError,
    WriteResult,
    is_iso_date,
    today,
)

logger = logging.getLogger(__name__)


class WritersMixin:
    """Memory write operations for MemoryEngine."""

    def _push(self, kind: RecordKind, record_id: int) -> bool:
        """Mirror a freshly committed row; never raises."""
        if self._mirror is None:
            return False
        record = self._store.get_one(kind, record_id)
        if record is None:
            return False
        synced = self._mirror.push(kind, record)
        if synced:
            self._store.mark_synced(kind, record_id)
        return synced

    # =========================================================================
    # DECISIONS / ERRORS / LEARNINGS
    # =========================================================================

    def remember_decision(
        self,
        project: str,
        decision: str,
        rationale: Optional[str] = None,
        date: Optional[str] = None,
        category: Optional[str] = None,
        priority: int = 0,
    ) -> WriteResult:
        """Store a decision.

        Args:
            date: ISO date (YYYY-MM-DD); defaults to today
            priority: 0 normal, 1 high, 2 critical
        """
        project = self._validate_string_input(project, "project", 200)
        decision = self._validate_string_input(decision, "decision", 5000)
        if date is not None and not is_iso_date(date):
            raise ValidationError(f"date must be YYYY-MM-DD, got {date!r}")

        record_id = self._store.insert(
            RecordKind.DECISION,
            {
                "project": project,
                "decision": decision,
                "rationale": self._validate_optional(rationale, "rationale", 5000),
                "date": date or today(),
                "category": self._validate_optional(category, "category", 100),
                "priority": self._validate_priority(priority),
            },
        )
        logger.debug(f"Stored decision {record_id} for {project}")
        return WriteResult(record_id, self._push(RecordKind.DECISION, record_id))

    def remember_error(
        self,
        project: str,
        error_pattern: str,
        solution: str,
        context: Optional[str] = None,
        category: Optional[str] = None,
        priority: int = 0,
    ) -> WriteResult:
        """Store an error pattern with its solution."""
        record_id = self._store.insert(
            RecordKind.ERROR,
            {
                "project": self._validate_string_input(project, "project", 200),
                "error_pattern": self._validate_string_input(error_pattern, "error_pattern", 2000),
                "solution": self._validate_string_input(solution, "solution", 5000),
                "context": self._validate_optional(context, "context", 2000),
                "category": self._validate_optional(category, "category", 100),
                "priority": self._validate_priority(priority),
            },
        )
        logger.debug(f"Stored error solution {record_id} for {project}")
        return WriteResult(record_id, self._push(RecordKind.ERROR, record_id))

    def remember_learning(
        self,
        category: str,
        content: str,
        project: Optional[str] = None,
        priority: int = 0,
    ) -> WriteResult:
        """Store a learning; without a project it is global."""
        record_id = self._store.insert(
            RecordKind.LEARNING,
            {
                "project": self._validate_optional(project, "project", 200),
                "category": self._validate_string_input(category, "category", 100),
                "content": self._validate_string_input(content, "content", 5000),
                "priority": self._validate_priority(priority),
            },
        )
        logger.debug(f"Stored learning {record_id} ({category})")
        return WriteResult(record_id, self._push(RecordKind.LEARNING, record_id))

    # =========================================================================
    # CONTEXT
    # =========================================================================

    def set_context(self, project: str, key: str, value: str) -> WriteResult:
        """Set a context value, overwriting any existing value for the key."""
        record_id = self._store.upsert(
            RecordKind.CONTEXT,
            {
                "project": self._validate_string_input(project, "project", 200),
                "key": self._validate_string_input(key, "key", 200),
                "value": self._validate_string_input(value, "value", 5000),
            },
        )
        return WriteResult(record_id, self._push(RecordKind.CONTEXT, record_id))

    def delete_context(self, project: str, key: str) -> MutationResult:
        changes = self._store.delete(RecordKind.CONTEXT, key, project=project)
        return MutationResult(applied=changes > 0, changes=changes)

    # =========================================================================
    # SESSIONS
    # =========================================================================

    def save_session(
        self,
        project: str,
        task: str,
        workspace: Optional[str] = None,
        status: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> WriteResult:
        """Save the working state for (project, workspace), replacing any previous one."""
        record_id = self._store.upsert(
            RecordKind.SESSION,
            {
                "project": self._validate_string_input(project, "project", 200),
                "task": self._validate_string_input(task, "task", 2000),
                "workspace": self._validate_optional(workspace, "workspace", 200),
                "status": self._validate_optional(status, "status", 100),
                "notes": self._validate_optional(notes, "notes", 5000),
            },
        )
        return WriteResult(record_id, self._push(RecordKind.SESSION, record_id))

    def clear_session(self, project: str, workspace: Any = ANY_WORKSPACE) -> MutationResult:
        """Remove a session; without a workspace every session of the project goes."""
        changes = self._store.delete(RecordKind.SESSION, project=project, workspace=workspace)
        return MutationResult(applied=changes > 0, changes=changes)
