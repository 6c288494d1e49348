"""devmem storage backends.

Local-first storage using SQLite, with an optional Supabase mirror.
"""

from .cloud import CloudMirror, doc_id
from .schema import SCHEMA_VERSION, migrate_schema
from .sqlite import ANY_WORKSPACE, KIND_SPECS, SQLiteStore, escape_like_pattern

__all__ = [
    "SQLiteStore",
    "CloudMirror",
    "ANY_WORKSPACE",
    "KIND_SPECS",
    "SCHEMA_VERSION",
    "doc_id",
    "escape_like_pattern",
    "migrate_schema",
]
