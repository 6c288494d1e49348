"""Export/import of a project's memory as one JSON document."""

import json
import logging
from dataclasses import asdict
from typing import Any, Dict, Optional, Union

from devmem.storage import KIND_SPECS
from devmem.types import (
    ImportResult,
    RecordKind,
    StorageFault,
    ValidationError,
    today,
    utc_now,
)

logger = logging.getLogger(__name__)

EXPORT_FORMAT_VERSION = 2

# Document key for each kind, in import order.
EXPORT_KEYS = (
    ("decisions", RecordKind.DECISION),
    ("errors", RecordKind.ERROR),
    ("context", RecordKind.CONTEXT),
    ("learnings", RecordKind.LEARNING),
    ("sessions", RecordKind.SESSION),
)


class SerializersMixin:
    """Export/import operations for MemoryEngine."""

    def export_memory(self, project: str, include_archived: bool = False) -> Dict[str, Any]:
        """Serialize a project's records.

        Only the project's own learnings are exported, not global ones.
        ``session`` mirrors the default-workspace session (or the first
        session) for readers of the single-session format.
        """
        store = self._store
        sessions = store.get(RecordKind.SESSION, project)
        default_session = next((s for s in sessions if s.workspace is None), None)
        if default_session is None and sessions:
            default_session = sessions[0]

        return {
            "project": project,
            "exported_at": utc_now(),
            "version": EXPORT_FORMAT_VERSION,
            "decisions": [
                asdict(r)
                for r in store.get(RecordKind.DECISION, project, include_archived=include_archived)
            ],
            "errors": [
                asdict(r)
                for r in store.get(RecordKind.ERROR, project, include_archived=include_archived)
            ],
            "context": [asdict(r) for r in store.get(RecordKind.CONTEXT, project)],
            "learnings": [
                asdict(r)
                for r in store.get(
                    RecordKind.LEARNING,
                    project,
                    include_archived=include_archived,
                    include_global=False,
                )
            ],
            "sessions": [asdict(s) for s in sessions],
            "session": asdict(default_session) if default_session else None,
        }

    def export_json(self, project: str, include_archived: bool = False) -> str:
        return json.dumps(self.export_memory(project, include_archived), indent=2)

    def merge_record(
        self, kind: RecordKind, row: Dict[str, Any], default_project: Optional[str] = None
    ) -> bool:
        """Merge one exported or pulled row into the local store.

        Decisions, errors and learnings are inserted unless a row with the
        same content already exists; context and sessions are upserted.

        Returns:
            True if the row was written, False if it was a duplicate

        Raises:
            ValidationError: If the row lacks required fields
        """
        kind = RecordKind(kind)
        values = {name: row.get(name) for name in KIND_SPECS[kind].insert_columns}
        if kind == RecordKind.LEARNING:
            values["project"] = row.get("project", default_project)
        else:
            values["project"] = row.get("project") or default_project

        if not kind.archivable:
            self._store.upsert(kind, values)
            return True

        if kind == RecordKind.DECISION and not values.get("date"):
            values["date"] = today()
        values["archived"] = bool(row.get("archived"))
        if self._store.find_duplicate(kind, values) is not None:
            return False
        self._store.insert(kind, values)
        return True

    def _merge_rows(
        self, kind: RecordKind, rows: Any, result: ImportResult, default_project: Optional[str]
    ) -> None:
        if not isinstance(rows, list):
            return
        for row in rows:
            try:
                if not isinstance(row, dict):
                    raise ValidationError(f"{kind.value} row must be an object")
                added = self.merge_record(kind, row, default_project)
            except (ValidationError, StorageFault, TypeError) as e:
                logger.warning(f"Skipping {kind.value} row during import: {e}")
                result.skipped += 1
                continue
            if added:
                result.add(kind)
            else:
                result.skipped += 1

    def import_memory(self, data: Union[str, Dict[str, Any]]) -> ImportResult:
        """Import a document produced by export_memory.

        Rows are merged one at a time; a bad row is counted as skipped and
        never aborts the import. Accepts either ``sessions`` or the single
        ``session`` object.

        Raises:
            ValidationError: If the document is not a JSON object
        """
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as e:
                raise ValidationError(f"Invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError("Import data must be a JSON object")

        default_project = data.get("project") if isinstance(data.get("project"), str) else None
        if "sessions" not in data and isinstance(data.get("session"), dict):
            data = dict(data, sessions=[data["session"]])

        result = ImportResult()
        for key, kind in EXPORT_KEYS:
            self._merge_rows(kind, data.get(key), result, default_project)

        logger.info(
            f"Imported {result.total} records ({result.skipped} skipped) "
            f"for {default_project or 'unknown project'}"
        )
        return result
