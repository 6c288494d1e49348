"""Database schema and migration logic for devmem SQLite storage.

Contains:
- Table allowlist (ALLOWED_TABLES, validate_table_name)
- Versioned migration list (MIGRATIONS, SCHEMA_VERSION)
- Migration runner (migrate_schema)
- Table rebuild primitive (rebuild_table) for constraint changes SQLite
  cannot apply with ALTER TABLE
"""

import logging
import sqlite3
from dataclasses import dataclass
from typing import Callable, Iterable, List, Set

from devmem.types import utc_now

logger = logging.getLogger(__name__)

# Allowed table names for SQL queries (security: prevents SQL injection via table names)
ALLOWED_TABLES = frozenset(
    {
        "decisions",
        "errors",
        "context",
        "learnings",
        "sessions",
        "schema_version",
    }
)


def validate_table_name(table: str) -> str:
    """Validate table name against allowlist to prevent SQL injection.

    Raises:
        ValueError: If table name is not in allowlist
    """
    if table not in ALLOWED_TABLES:
        raise ValueError(f"Invalid table name: {table}")
    return table


SCHEMA_VERSION_DDL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL
);
"""

# Version 1: the tables as the first unversioned releases created them.
BASE_SCHEMA = """
CREATE TABLE IF NOT EXISTS decisions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project TEXT NOT NULL,
    date TEXT NOT NULL,
    decision TEXT NOT NULL,
    rationale TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    synced_at TEXT
);

CREATE TABLE IF NOT EXISTS errors (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project TEXT NOT NULL,
    error_pattern TEXT NOT NULL,
    solution TEXT NOT NULL,
    context TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    synced_at TEXT
);

CREATE TABLE IF NOT EXISTS context (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project TEXT NOT NULL,
    key TEXT NOT NULL,
    value TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    synced_at TEXT,
    UNIQUE(project, key)
);

CREATE TABLE IF NOT EXISTS learnings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project TEXT,
    category TEXT NOT NULL,
    content TEXT NOT NULL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    synced_at TEXT
);

CREATE TABLE IF NOT EXISTS sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project TEXT NOT NULL UNIQUE,
    task TEXT NOT NULL,
    status TEXT,
    notes TEXT,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    synced_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_decisions_project ON decisions(project);
CREATE INDEX IF NOT EXISTS idx_errors_project ON errors(project);
CREATE INDEX IF NOT EXISTS idx_context_project ON context(project);
CREATE INDEX IF NOT EXISTS idx_learnings_project ON learnings(project);
CREATE INDEX IF NOT EXISTS idx_sessions_project ON sessions(project);
"""

# Sessions keyed by (project, workspace). {table} is filled in by rebuild_table.
SESSIONS_WORKSPACE_DDL = """
CREATE TABLE {table} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project TEXT NOT NULL,
    workspace TEXT,
    task TEXT NOT NULL,
    status TEXT DEFAULT 'in-progress',
    notes TEXT,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    synced_at TEXT,
    UNIQUE(project, workspace)
)
"""

RECENCY_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_decisions_order ON decisions(project, archived, priority, date);
CREATE INDEX IF NOT EXISTS idx_errors_order ON errors(project, archived, priority, created_at);
CREATE INDEX IF NOT EXISTS idx_learnings_order ON learnings(project, archived, priority, created_at);
CREATE INDEX IF NOT EXISTS idx_sessions_project ON sessions(project);
"""


def get_columns(conn: sqlite3.Connection, table: str) -> Set[str]:
    """Column names of a table (empty set if the table does not exist)."""
    validate_table_name(table)
    return {row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()}


def add_column(conn: sqlite3.Connection, table: str, column: str, decl: str) -> bool:
    """Add a column unless it already exists.

    Returns:
        True if the column was added, False if it was already present
    """
    if column in get_columns(conn, table):
        return False
    conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {decl}")
    logger.info(f"Added {column} column to {table}")
    return True


def rebuild_table(
    conn: sqlite3.Connection,
    table: str,
    create_sql: str,
    columns: Iterable[str],
) -> int:
    """Rebuild a table with a new schema, copy its rows, and swap it in.

    SQLite cannot change a UNIQUE constraint in place, so the new schema is
    created as a shadow table, the listed columns are copied across, the old
    table is dropped and the shadow renamed. Columns of the new schema that
    are not listed take their defaults. Must run inside a transaction or
    savepoint owned by the caller.

    Args:
        conn: Database connection.
        table: Table to rebuild.
        create_sql: CREATE TABLE statement with a ``{table}`` placeholder.
        columns: Columns present in both old and new schema.

    Returns:
        Number of rows copied.
    """
    validate_table_name(table)
    shadow = f"{table}__new"
    cols = ", ".join(columns)

    conn.execute(f"DROP TABLE IF EXISTS {shadow}")
    conn.execute(create_sql.format(table=shadow))
    cursor = conn.execute(f"INSERT INTO {shadow} ({cols}) SELECT {cols} FROM {table}")
    copied = cursor.rowcount
    conn.execute(f"DROP TABLE {table}")
    conn.execute(f"ALTER TABLE {shadow} RENAME TO {table}")
    logger.info(f"Rebuilt table {table} ({copied} rows copied)")
    return copied


# === Migrations ===


@dataclass(frozen=True)
class Migration:
    version: int
    description: str
    apply: Callable[[sqlite3.Connection], None]


def _create_base_tables(conn: sqlite3.Connection) -> None:
    # executescript() would COMMIT the surrounding savepoint, so run each statement.
    for statement in BASE_SCHEMA.split(";"):
        if statement.strip():
            conn.execute(statement)


def _add_archived(conn: sqlite3.Connection) -> None:
    for table in ("decisions", "errors", "learnings"):
        add_column(conn, table, "archived", "INTEGER DEFAULT 0")


def _add_priority_and_category(conn: sqlite3.Connection) -> None:
    for table in ("decisions", "errors"):
        add_column(conn, table, "category", "TEXT")
        add_column(conn, table, "priority", "INTEGER DEFAULT 0")
    add_column(conn, "learnings", "priority", "INTEGER DEFAULT 0")


def _add_access_tracking(conn: sqlite3.Connection) -> None:
    for table in ("decisions", "errors", "learnings"):
        add_column(conn, table, "access_count", "INTEGER DEFAULT 0")
        add_column(conn, table, "last_accessed", "TEXT")


def _add_session_workspace(conn: sqlite3.Connection) -> None:
    if "workspace" in get_columns(conn, "sessions"):
        return
    # Existing sessions land in the default (NULL) workspace.
    rebuild_table(
        conn,
        "sessions",
        SESSIONS_WORKSPACE_DDL,
        ["id", "project", "task", "status", "notes", "updated_at", "synced_at"],
    )


def _add_recency_indexes(conn: sqlite3.Connection) -> None:
    for statement in RECENCY_INDEXES.split(";"):
        if statement.strip():
            conn.execute(statement)


MIGRATIONS: List[Migration] = [
    Migration(1, "base tables", _create_base_tables),
    Migration(2, "archived flag on decisions/errors/learnings", _add_archived),
    Migration(3, "priority and category columns", _add_priority_and_category),
    Migration(4, "access tracking columns", _add_access_tracking),
    Migration(5, "workspace dimension on sessions", _add_session_workspace),
    Migration(6, "priority/recency indexes", _add_recency_indexes),
]

SCHEMA_VERSION = MIGRATIONS[-1].version


def applied_versions(conn: sqlite3.Connection) -> Set[int]:
    conn.execute(SCHEMA_VERSION_DDL)
    return {row[0] for row in conn.execute("SELECT version FROM schema_version").fetchall()}


def current_version(conn: sqlite3.Connection) -> int:
    """Highest applied migration version (0 for an unversioned database)."""
    versions = applied_versions(conn)
    return max(versions) if versions else 0


def migrate_schema(conn: sqlite3.Connection, migrations: List[Migration] = MIGRATIONS) -> List[int]:
    """Apply every migration not yet recorded in schema_version.

    Each migration runs in its own savepoint. A failing migration is rolled
    back, logged and left unrecorded so it is retried on the next startup;
    later migrations still run against whatever schema resulted.

    Args:
        conn: Database connection.
        migrations: Ordered migration list (defaults to MIGRATIONS).

    Returns:
        Versions applied by this call.
    """
    done = applied_versions(conn)
    conn.commit()
    applied = []

    for migration in sorted(migrations, key=lambda m: m.version):
        if migration.version in done:
            continue
        savepoint = f"migration_{migration.version}"
        conn.execute(f"SAVEPOINT {savepoint}")
        try:
            migration.apply(conn)
            conn.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                (migration.version, utc_now()),
            )
            conn.execute(f"RELEASE SAVEPOINT {savepoint}")
        except sqlite3.Error as e:
            conn.execute(f"ROLLBACK TO SAVEPOINT {savepoint}")
            conn.execute(f"RELEASE SAVEPOINT {savepoint}")
            logger.error(f"Migration {migration.version} ({migration.description}) failed: {e}")
            continue
        conn.commit()
        applied.append(migration.version)
        logger.debug(f"Migration applied: {migration.version} ({migration.description})")

    if applied:
        logger.info(f"Applied {len(applied)} schema migrations (now at v{current_version(conn)})")
    return applied
