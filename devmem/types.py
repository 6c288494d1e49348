"""
Shared record types for devmem.

All record dataclasses live here, together with the record-kind vocabulary
and the error taxonomy. Storage, the rule engine and the MCP layer all
speak in these types.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

# === Shared Utility Functions ===


def utc_now() -> str:
    """Get current timestamp as ISO string in UTC."""
    return datetime.now(timezone.utc).isoformat()


def today() -> str:
    """Get today's date as YYYY-MM-DD (UTC)."""
    return datetime.now(timezone.utc).date().isoformat()


def parse_datetime(s: Optional[str]) -> Optional[datetime]:
    """Parse a stored timestamp.

    Accepts ISO strings written by devmem and the ``YYYY-MM-DD HH:MM:SS``
    strings SQLite's CURRENT_TIMESTAMP produced in older databases. Naive
    values are treated as UTC. Returns None for empty or unparseable input.
    """
    if not s:
        return None
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def is_iso_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
        return True
    except (TypeError, ValueError):
        return False


# === Enums ===


class RecordKind(str, Enum):
    """The five record kinds and the table backing each."""

    DECISION = "decision"
    ERROR = "error"
    CONTEXT = "context"
    LEARNING = "learning"
    SESSION = "session"

    @property
    def table(self) -> str:
        return KIND_TABLES[self]

    @property
    def archivable(self) -> bool:
        return self in ARCHIVABLE_KINDS


KIND_TABLES = {
    RecordKind.DECISION: "decisions",
    RecordKind.ERROR: "errors",
    RecordKind.CONTEXT: "context",
    RecordKind.LEARNING: "learnings",
    RecordKind.SESSION: "sessions",
}

# Kinds carrying archived/priority/access columns, addressed by surrogate id.
ARCHIVABLE_KINDS = (RecordKind.DECISION, RecordKind.ERROR, RecordKind.LEARNING)
VALID_ARCHIVABLE_VALUES = [k.value for k in ARCHIVABLE_KINDS]


class Priority(int, Enum):
    NORMAL = 0
    HIGH = 1
    CRITICAL = 2


PRIORITY_LABELS = {p.value: p.name.lower() for p in Priority}
VALID_PRIORITIES = frozenset(p.value for p in Priority)


class Tier(str, Enum):
    """Read-time usefulness classification of a record."""

    HOT = "hot"
    WARM = "warm"
    COLD = "cold"


# Reserved project name for context shared by every project.
GLOBAL_PROJECT = "global"

DEFAULT_SESSION_STATUS = "in-progress"


# === Errors ===


class DevMemError(Exception):
    """Base for all devmem errors."""

    pass


class ValidationError(DevMemError, ValueError):
    """Malformed or missing argument, or an out-of-range enum value."""

    pass


class NotFoundError(DevMemError, LookupError):
    """A targeted id or natural key does not exist."""

    def __init__(self, kind: str, key):
        self.kind = kind
        self.key = key
        super().__init__(f"No {kind} found with ID {key}")


class TransportError(DevMemError, ConnectionError):
    """Connectivity, auth or quota failure talking to the cloud mirror."""

    pass


class StorageFault(DevMemError):
    """Unexpected local database failure (disk full, corruption, locked file)."""

    pass


# === Records ===


@dataclass
class Decision:
    """A project decision with its rationale."""

    id: Optional[int]
    project: str
    date: str
    decision: str
    rationale: Optional[str] = None
    category: Optional[str] = None
    priority: int = 0
    archived: bool = False
    access_count: int = 0
    last_accessed: Optional[str] = None
    created_at: Optional[str] = None
    synced_at: Optional[str] = None


@dataclass
class ErrorSolution:
    """An error pattern and how it was fixed."""

    id: Optional[int]
    project: str
    error_pattern: str
    solution: str
    context: Optional[str] = None
    category: Optional[str] = None
    priority: int = 0
    archived: bool = False
    access_count: int = 0
    last_accessed: Optional[str] = None
    created_at: Optional[str] = None
    synced_at: Optional[str] = None


@dataclass
class ContextEntry:
    """A key-value fact about a project (SDK version, URLs, ...)."""

    id: Optional[int]
    project: str
    key: str
    value: str
    updated_at: Optional[str] = None
    synced_at: Optional[str] = None


@dataclass
class Learning:
    """A general insight; project None means global."""

    id: Optional[int]
    project: Optional[str]
    category: str
    content: str
    priority: int = 0
    archived: bool = False
    access_count: int = 0
    last_accessed: Optional[str] = None
    created_at: Optional[str] = None
    synced_at: Optional[str] = None

    @property
    def is_global(self) -> bool:
        return self.project is None


@dataclass
class Session:
    """The in-flight task for one (project, workspace) pair."""

    id: Optional[int]
    project: str
    task: str
    workspace: Optional[str] = None
    status: str = DEFAULT_SESSION_STATUS
    notes: Optional[str] = None
    updated_at: Optional[str] = None
    synced_at: Optional[str] = None


KIND_RECORDS = {
    RecordKind.DECISION: Decision,
    RecordKind.ERROR: ErrorSolution,
    RecordKind.CONTEXT: ContextEntry,
    RecordKind.LEARNING: Learning,
    RecordKind.SESSION: Session,
}


@dataclass
class WriteResult:
    """Id of a freshly written record and whether the mirror accepted it."""

    id: int
    synced: bool = False


@dataclass
class MutationResult:
    """Outcome of a targeted mutation.

    ``applied`` is False when validation rejected the request (``reason``
    says why) or when nothing matched (``changes == 0``).
    """

    applied: bool
    changes: int = 0
    reason: Optional[str] = None

    @classmethod
    def rejected(cls, reason: str) -> "MutationResult":
        return cls(applied=False, changes=0, reason=reason)


@dataclass
class ImportResult:
    """Per-kind counts for an import or cloud pull."""

    decisions: int = 0
    errors: int = 0
    context: int = 0
    learnings: int = 0
    sessions: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.decisions + self.errors + self.context + self.learnings + self.sessions

    def add(self, kind: RecordKind) -> None:
        attr = {
            RecordKind.DECISION: "decisions",
            RecordKind.ERROR: "errors",
            RecordKind.CONTEXT: "context",
            RecordKind.LEARNING: "learnings",
            RecordKind.SESSION: "sessions",
        }[kind]
        setattr(self, attr, getattr(self, attr) + 1)


def parse_kind(value, allowed=None) -> RecordKind:
    """Resolve a kind string, raising ValidationError for unknown values."""
    allowed = allowed or list(RecordKind)
    try:
        kind = RecordKind(value)
    except ValueError:
        kind = None
    if kind is None or kind not in allowed:
        names = ", ".join(f"'{k.value}'" for k in allowed)
        raise ValidationError(f"Invalid type: {value}. Use {names}")
    return kind
