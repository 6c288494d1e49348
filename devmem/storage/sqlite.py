"""SQLite storage backend for devmem.

Local-first storage for the five record kinds:
- one SQLite file, opened once per process and closed at shutdown
- versioned schema migrations applied on open
- archived rows soft-deleted (filtered from reads until pruned)
"""

import contextlib
import logging
import sqlite3
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from devmem.types import (
    DEFAULT_SESSION_STATUS,
    KIND_RECORDS,
    VALID_PRIORITIES,
    RecordKind,
    StorageFault,
    ValidationError,
    today,
    utc_now,
)
from devmem.utils import get_devmem_home

from .schema import current_version, migrate_schema, validate_table_name

logger = logging.getLogger(__name__)

# Sentinel for "every workspace" in session reads and deletes.
ANY_WORKSPACE = object()

NOT_ARCHIVED = "(archived IS NULL OR archived = 0)"


@dataclass(frozen=True)
class KindSpec:
    """How one record kind maps onto its table."""

    table: str
    required: Tuple[str, ...]
    insert_columns: Tuple[str, ...]
    search_fields: Tuple[str, ...]
    order_by: str
    content_key: Tuple[str, ...] = ()


KIND_SPECS: Dict[RecordKind, KindSpec] = {
    RecordKind.DECISION: KindSpec(
        table="decisions",
        required=("project", "decision"),
        insert_columns=(
            "project",
            "date",
            "decision",
            "rationale",
            "category",
            "priority",
            "archived",
            "created_at",
        ),
        search_fields=("decision", "rationale"),
        order_by="priority DESC, date DESC, id DESC",
        content_key=("project", "date", "decision", "rationale", "category"),
    ),
    RecordKind.ERROR: KindSpec(
        table="errors",
        required=("project", "error_pattern", "solution"),
        insert_columns=(
            "project",
            "error_pattern",
            "solution",
            "context",
            "category",
            "priority",
            "archived",
            "created_at",
        ),
        search_fields=("error_pattern",),
        order_by="priority DESC, created_at DESC, id DESC",
        content_key=("project", "error_pattern", "solution", "context", "category"),
    ),
    RecordKind.CONTEXT: KindSpec(
        table="context",
        required=("project", "key", "value"),
        insert_columns=("project", "key", "value", "updated_at"),
        search_fields=("key", "value"),
        order_by="key ASC",
    ),
    RecordKind.LEARNING: KindSpec(
        table="learnings",
        required=("category", "content"),
        insert_columns=("project", "category", "content", "priority", "archived", "created_at"),
        search_fields=("content",),
        order_by="priority DESC, created_at DESC, id DESC",
        content_key=("project", "category", "content"),
    ),
    RecordKind.SESSION: KindSpec(
        table="sessions",
        required=("project", "task"),
        insert_columns=("project", "workspace", "task", "status", "notes", "updated_at"),
        search_fields=("task", "notes"),
        order_by="updated_at DESC, id DESC",
    ),
}


def escape_like_pattern(pattern: str) -> str:
    """Escape LIKE pattern special characters to prevent pattern injection."""
    return pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _spec(kind: RecordKind) -> KindSpec:
    spec = KIND_SPECS[RecordKind(kind)]
    validate_table_name(spec.table)
    return spec


def _require(kind: RecordKind, values: Dict[str, Any]) -> None:
    for name in _spec(kind).required:
        value = values.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{name} is required for {RecordKind(kind).value}")


def _check_priority(value: Any) -> int:
    if isinstance(value, bool) or value not in VALID_PRIORITIES:
        raise ValidationError(f"priority must be 0, 1, or 2, got {value!r}")
    return int(value)


class SQLiteStore:
    """SQLite-backed record store.

    Construct, then ``open()`` once at process start and ``close()`` at
    shutdown (or use it as a context manager). ``open()`` applies pending
    schema migrations before any other operation.
    """

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path).expanduser() if db_path else get_devmem_home() / "memory.db"
        self._conn: Optional[sqlite3.Connection] = None

    # === Lifecycle ===

    def open(self) -> "SQLiteStore":
        if self._conn is not None:
            return self
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA busy_timeout=5000")
        except sqlite3.Error as e:
            raise StorageFault(f"Cannot open database {self.db_path}: {e}") from e
        self._conn = conn
        migrate_schema(conn)
        logger.debug(f"Opened {self.db_path} at schema v{current_version(conn)}")
        return self

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "SQLiteStore":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def schema_version(self) -> int:
        with self._connect() as conn:
            return current_version(conn)

    @contextlib.contextmanager
    def _connect(self):
        """Yield the open connection inside a transaction.

        Commits on success, rolls back on any exception. SQLite errors are
        re-raised as StorageFault.
        """
        if self._conn is None:
            raise StorageFault("Store is not open")
        conn = self._conn
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            logger.debug(f"Transaction failed, rolling back: {e}")
            conn.rollback()
            raise StorageFault(str(e)) from e
        except Exception:
            conn.rollback()
            raise

    # === Row helpers ===

    def _row_to_record(self, kind: RecordKind, row: sqlite3.Row):
        record_cls = KIND_RECORDS[RecordKind(kind)]
        keys = set(row.keys())
        values = {}
        for f in fields(record_cls):
            value = row[f.name] if f.name in keys else None
            if f.name == "archived":
                value = bool(value)
            elif value is None and f.name in ("priority", "access_count"):
                value = 0
            elif value is None and f.name == "status":
                value = DEFAULT_SESSION_STATUS
            values[f.name] = value
        return record_cls(**values)

    def _scope(
        self,
        kind: RecordKind,
        project: Optional[str],
        include_global: bool,
    ) -> Tuple[str, List[Any]]:
        if kind == RecordKind.LEARNING:
            if project is None:
                return "project IS NULL", []
            if include_global:
                return "(project = ? OR project IS NULL)", [project]
        return "project = ?", [project]

    # === Writes ===

    def insert(self, kind: RecordKind, values: Dict[str, Any]) -> int:
        """Insert a decision, error or learning.

        Returns:
            The new record's id

        Raises:
            ValidationError: If a required field is missing, the kind is not
                insertable, or priority is out of range
        """
        kind = RecordKind(kind)
        if not kind.archivable:
            raise ValidationError(f"{kind.value} records are written with upsert()")
        _require(kind, values)
        spec = _spec(kind)

        row = {name: values.get(name) for name in spec.insert_columns}
        row["priority"] = _check_priority(values.get("priority") or 0)
        row["archived"] = 1 if values.get("archived") else 0
        row["created_at"] = values.get("created_at") or utc_now()
        if kind == RecordKind.DECISION:
            row["date"] = values.get("date") or today()

        cols = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        with self._connect() as conn:
            cursor = conn.execute(
                f"INSERT INTO {spec.table} ({cols}) VALUES ({placeholders})",
                tuple(row.values()),
            )
            return cursor.lastrowid

    def upsert(self, kind: RecordKind, values: Dict[str, Any]) -> int:
        """Insert or overwrite a context entry or session by natural key.

        Context is keyed by (project, key); sessions by (project, workspace)
        where a NULL workspace is the default workspace.

        Returns:
            The id of the written row
        """
        kind = RecordKind(kind)
        _require(kind, values)
        now = values.get("updated_at") or utc_now()

        with self._connect() as conn:
            if kind == RecordKind.CONTEXT:
                conn.execute(
                    """INSERT INTO context (project, key, value, updated_at)
                       VALUES (?, ?, ?, ?)
                       ON CONFLICT(project, key) DO UPDATE SET
                         value = excluded.value,
                         updated_at = excluded.updated_at""",
                    (values["project"], values["key"], values["value"], now),
                )
                row = conn.execute(
                    "SELECT id FROM context WHERE project = ? AND key = ?",
                    (values["project"], values["key"]),
                ).fetchone()
                return row["id"]

            if kind == RecordKind.SESSION:
                workspace = values.get("workspace") or None
                params = (
                    values["task"],
                    values.get("status") or DEFAULT_SESSION_STATUS,
                    values.get("notes"),
                    now,
                )
                # UNIQUE(project, workspace) does not collide on NULL workspaces,
                # so match with IS before inserting.
                cursor = conn.execute(
                    """UPDATE sessions SET task = ?, status = ?, notes = ?, updated_at = ?
                       WHERE project = ? AND workspace IS ?""",
                    params + (values["project"], workspace),
                )
                if cursor.rowcount == 0:
                    conn.execute(
                        """INSERT INTO sessions (task, status, notes, updated_at, project, workspace)
                           VALUES (?, ?, ?, ?, ?, ?)""",
                        params + (values["project"], workspace),
                    )
                row = conn.execute(
                    "SELECT id FROM sessions WHERE project = ? AND workspace IS ?",
                    (values["project"], workspace),
                ).fetchone()
                return row["id"]

        raise ValidationError(f"{kind.value} records are written with insert()")

    def delete(
        self,
        kind: RecordKind,
        key: Any = None,
        *,
        project: Optional[str] = None,
        workspace: Any = ANY_WORKSPACE,
    ) -> int:
        """Delete by surrogate or natural key.

        - decision/error/learning: ``key`` is the id
        - context: ``project`` + ``key``
        - session: ``project`` + ``workspace`` (ANY_WORKSPACE removes all)

        Returns:
            Number of rows removed (0 is not an error)
        """
        kind = RecordKind(kind)
        spec = _spec(kind)
        if kind.archivable:
            sql, params = f"DELETE FROM {spec.table} WHERE id = ?", [key]
        elif kind == RecordKind.CONTEXT:
            sql, params = "DELETE FROM context WHERE project = ? AND key = ?", [project, key]
        elif workspace is ANY_WORKSPACE:
            sql, params = "DELETE FROM sessions WHERE project = ?", [project]
        else:
            sql = "DELETE FROM sessions WHERE project = ? AND workspace IS ?"
            params = [project, workspace or None]

        with self._connect() as conn:
            return conn.execute(sql, params).rowcount

    def set_flag(self, kind: RecordKind, record_id: int, field: str, value: Any) -> int:
        """Set archived or priority on one record.

        Returns:
            Number of rows changed (0 when the id does not exist)
        """
        kind = RecordKind(kind)
        if not kind.archivable:
            raise ValidationError(f"{kind.value} records have no {field} flag")
        if field == "priority":
            value = _check_priority(value)
        elif field == "archived":
            value = 1 if value else 0
        else:
            raise ValidationError(f"Unknown flag: {field}")

        spec = _spec(kind)
        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE {spec.table} SET {field} = ? WHERE id = ?", (value, record_id)
            )
            return cursor.rowcount

    def track_access(self, kind: RecordKind, record_ids: Iterable[int]) -> int:
        """Increment access_count and stamp last_accessed for each id.

        Returns:
            Number of records updated
        """
        kind = RecordKind(kind)
        ids = [i for i in record_ids if i is not None]
        if not kind.archivable or not ids:
            return 0
        spec = _spec(kind)
        placeholders = ",".join("?" * len(ids))
        with self._connect() as conn:
            cursor = conn.execute(
                f"""UPDATE {spec.table}
                    SET access_count = COALESCE(access_count, 0) + 1,
                        last_accessed = ?
                    WHERE id IN ({placeholders})""",
                [utc_now()] + ids,
            )
            return cursor.rowcount

    def mark_synced(self, kind: RecordKind, record_id: int, synced_at: Optional[str] = None) -> int:
        spec = _spec(kind)
        with self._connect() as conn:
            return conn.execute(
                f"UPDATE {spec.table} SET synced_at = ? WHERE id = ?",
                (synced_at or utc_now(), record_id),
            ).rowcount

    def delete_older_than(
        self,
        kind: RecordKind,
        cutoff: str,
        project: Optional[str] = None,
        archived_only: bool = True,
    ) -> int:
        """Permanently delete rows created before ``cutoff``.

        Args:
            kind: decision, error or learning
            cutoff: ISO timestamp; rows with created_at strictly older go
            project: Restrict to one project (None for every project)
            archived_only: Only delete archived rows

        Returns:
            Number of rows deleted
        """
        kind = RecordKind(kind)
        if not kind.archivable:
            raise ValidationError(f"{kind.value} records cannot be pruned")
        spec = _spec(kind)
        clauses = ["datetime(created_at) < datetime(?)"]
        params: List[Any] = [cutoff]
        if archived_only:
            clauses.append("archived = 1")
        if project is not None:
            clauses.append("project = ?")
            params.append(project)

        with self._connect() as conn:
            cursor = conn.execute(
                f"DELETE FROM {spec.table} WHERE {' AND '.join(clauses)}", params
            )
            return cursor.rowcount

    # === Reads ===

    def get(
        self,
        kind: RecordKind,
        project: Optional[str],
        *,
        category: Optional[str] = None,
        key: Optional[str] = None,
        workspace: Any = ANY_WORKSPACE,
        limit: Optional[int] = None,
        include_archived: bool = False,
        include_global: bool = True,
    ) -> list:
        """List records for a project in the kind's canonical order.

        Archived rows are excluded unless ``include_archived``. Learnings
        include global (project NULL) rows unless ``include_global`` is False.
        """
        kind = RecordKind(kind)
        spec = _spec(kind)
        scope, params = self._scope(kind, project, include_global)
        clauses = [scope]
        if kind.archivable and not include_archived:
            clauses.append(NOT_ARCHIVED)
        if category is not None and kind in (
            RecordKind.DECISION,
            RecordKind.ERROR,
            RecordKind.LEARNING,
        ):
            clauses.append("category = ?")
            params.append(category)
        if key is not None and kind == RecordKind.CONTEXT:
            clauses.append("key = ?")
            params.append(key)
        if workspace is not ANY_WORKSPACE and kind == RecordKind.SESSION:
            clauses.append("workspace IS ?")
            params.append(workspace or None)

        sql = f"SELECT * FROM {spec.table} WHERE {' AND '.join(clauses)} ORDER BY {spec.order_by}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._row_to_record(kind, row) for row in rows]

    def search(
        self,
        kind: RecordKind,
        project: Optional[str],
        query: str,
        *,
        limit: Optional[int] = None,
        include_global: bool = True,
    ) -> list:
        """Case-insensitive unanchored substring search over the kind's text fields."""
        kind = RecordKind(kind)
        spec = _spec(kind)
        scope, params = self._scope(kind, project, include_global)
        clauses = [scope]
        if kind.archivable:
            clauses.append(NOT_ARCHIVED)

        pattern = f"%{escape_like_pattern(query)}%"
        matches = " OR ".join(f"{name} LIKE ? ESCAPE '\\'" for name in spec.search_fields)
        clauses.append(f"({matches})")
        params.extend([pattern] * len(spec.search_fields))

        sql = f"SELECT * FROM {spec.table} WHERE {' AND '.join(clauses)} ORDER BY {spec.order_by}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._row_to_record(kind, row) for row in rows]

    def get_one(self, kind: RecordKind, record_id: int):
        """Fetch one record by id regardless of archived state."""
        spec = _spec(kind)
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT * FROM {spec.table} WHERE id = ?", (record_id,)
            ).fetchone()
        return self._row_to_record(kind, row) if row else None

    def all_rows(self, kind: RecordKind, project: Optional[str] = None) -> list:
        """Every row of a kind, archived included, optionally for one project.

        Learnings are matched on project exactly (global rows only when
        ``project`` is None).
        """
        kind = RecordKind(kind)
        spec = _spec(kind)
        sql = f"SELECT * FROM {spec.table}"
        params: List[Any] = []
        if project is not None:
            sql += " WHERE project = ?"
            params.append(project)
        sql += f" ORDER BY {spec.order_by}"
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._row_to_record(kind, row) for row in rows]

    def find_duplicate(self, kind: RecordKind, values: Dict[str, Any]) -> Optional[int]:
        """Id of an existing row with the same content key, if any."""
        spec = _spec(kind)
        if not spec.content_key:
            return None
        clauses = " AND ".join(f"{name} IS ?" for name in spec.content_key)
        params = [values.get(name) for name in spec.content_key]
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT id FROM {spec.table} WHERE {clauses} LIMIT 1", params
            ).fetchone()
        return row["id"] if row else None

    def count(
        self,
        kind: RecordKind,
        project: Optional[str] = None,
        *,
        archived: Optional[bool] = False,
        include_global: bool = False,
    ) -> int:
        """Count rows.

        Args:
            project: Restrict to one project (None counts every project)
            archived: False for live rows, True for archived rows, None for both
            include_global: For learnings, also count global rows
        """
        kind = RecordKind(kind)
        spec = _spec(kind)
        clauses: List[str] = []
        params: List[Any] = []
        if project is not None:
            scope, params = self._scope(kind, project, include_global)
            clauses.append(scope)
        if kind.archivable and archived is not None:
            clauses.append("archived = 1" if archived else NOT_ARCHIVED)
        sql = f"SELECT COUNT(*) FROM {spec.table}"
        if clauses:
            sql += f" WHERE {' AND '.join(clauses)}"
        with self._connect() as conn:
            return conn.execute(sql, params).fetchone()[0]

    def project_counts(self) -> Dict[str, Dict[str, Dict[str, int]]]:
        """Per-project live/archived counts for every kind.

        Returns:
            {project: {table: {"live": n, "archived": m}}}; global learnings
            are reported under the project key "(global)".
        """
        breakdown: Dict[str, Dict[str, Dict[str, int]]] = {}
        with self._connect() as conn:
            for kind, spec in KIND_SPECS.items():
                validate_table_name(spec.table)
                if kind.archivable:
                    sql = f"""SELECT project,
                                     SUM(CASE WHEN archived = 1 THEN 0 ELSE 1 END) AS live,
                                     SUM(CASE WHEN archived = 1 THEN 1 ELSE 0 END) AS archived
                              FROM {spec.table} GROUP BY project"""
                else:
                    sql = f"""SELECT project, COUNT(*) AS live, 0 AS archived
                              FROM {spec.table} GROUP BY project"""
                for row in conn.execute(sql).fetchall():
                    project = row["project"] if row["project"] is not None else "(global)"
                    breakdown.setdefault(project, {})[spec.table] = {
                        "live": row["live"] or 0,
                        "archived": row["archived"] or 0,
                    }
        return breakdown

    def file_size(self) -> int:
        """On-disk size of the database file in bytes (WAL included)."""
        size = 0
        for path in (self.db_path, self.db_path.with_name(self.db_path.name + "-wal")):
            try:
                size += path.stat().st_size
            except OSError:
                continue
        return size
