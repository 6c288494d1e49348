"""Supabase mirror for devmem records.

Best-effort copy of local records into remote tables named
``{collection_prefix}_{table}``, one row per document keyed by ``doc_id``.
Every failure is logged and swallowed; the local store stays authoritative.
"""

import logging
from dataclasses import asdict
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from supabase import Client, ClientOptions, create_client

from devmem.types import GLOBAL_PROJECT, RecordKind, TransportError, utc_now

if TYPE_CHECKING:
    from devmem.config import CloudConfig

logger = logging.getLogger(__name__)

# Local bookkeeping never sent to the remote document.
_LOCAL_ONLY_FIELDS = ("id", "access_count", "last_accessed")


def doc_id(kind: RecordKind, record: Any) -> str:
    """Remote document id for a record.

    - context: ``{project}_{key}``
    - session: ``{project}`` or ``{project}:{workspace}``
    - everything else: ``{project or 'global'}_{id}``
    """
    kind = RecordKind(kind)
    if kind == RecordKind.CONTEXT:
        return f"{record.project}_{record.key}"
    if kind == RecordKind.SESSION:
        if record.workspace:
            return f"{record.project}:{record.workspace}"
        return record.project
    return f"{record.project or GLOBAL_PROJECT}_{record.id}"


class CloudMirror:
    """Push/pull records to a Supabase project.

    Args:
        client: Supabase client.
        collection_prefix: Prefix for remote table names.
        machine_id: Stamped on every pushed document as ``machine``.
    """

    def __init__(self, client: Client, collection_prefix: str = "devmem", machine_id: str = ""):
        self.client = client
        self.collection_prefix = collection_prefix
        self.machine_id = machine_id

    @classmethod
    def from_config(cls, config: "CloudConfig", machine_id: str = "", key: Optional[str] = None):
        """Build a mirror from config, or return None when it cannot be activated.

        The mirror is only returned when the config enables it, a URL and key
        resolve, and the client constructs without error.
        """
        if not config.enabled:
            return None
        url = config.resolved_url()
        key = config.load_key() or key
        if not url or not key:
            logger.warning("Cloud mirror enabled but url or key missing; running local-only")
            return None
        try:
            client = create_client(
                url,
                key,
                options=ClientOptions(postgrest_client_timeout=config.timeout),
            )
        except Exception as e:
            logger.warning(f"Cloud mirror unavailable, running local-only: {e}")
            return None
        logger.info(f"Cloud mirror enabled ({url}, prefix {config.collection_prefix})")
        return cls(client, config.collection_prefix, machine_id)

    def table_name(self, kind: RecordKind) -> str:
        return f"{self.collection_prefix}_{RecordKind(kind).table}"

    def _payload(self, kind: RecordKind, record: Any) -> Dict[str, Any]:
        payload = {k: v for k, v in asdict(record).items() if k not in _LOCAL_ONLY_FIELDS}
        if RecordKind(kind).archivable:
            payload["archived"] = bool(payload.get("archived"))
        payload["doc_id"] = doc_id(kind, record)
        payload["synced_at"] = utc_now()
        payload["machine"] = self.machine_id
        return payload

    def _upsert(self, kind: RecordKind, payload: Dict[str, Any]) -> None:
        try:
            self.client.table(self.table_name(kind)).upsert(payload, on_conflict="doc_id").execute()
        except Exception as e:
            raise TransportError(f"upsert into {self.table_name(kind)} failed: {e}") from e

    def _select(self, kind: RecordKind, project: str) -> List[Dict[str, Any]]:
        try:
            result = (
                self.client.table(self.table_name(kind)).select("*").eq("project", project).execute()
            )
        except Exception as e:
            raise TransportError(f"select from {self.table_name(kind)} failed: {e}") from e
        return result.data or []

    def push(self, kind: RecordKind, record: Any) -> bool:
        """Upsert one record; fields absent from the payload are left as-is remotely.

        Returns:
            True on success, False on any failure (logged)
        """
        try:
            self._upsert(kind, self._payload(kind, record))
            return True
        except TransportError as e:
            logger.error(f"Cloud push failed for {RecordKind(kind).value}: {e}")
            return False

    def pull(self, kind: RecordKind, project: str) -> List[Dict[str, Any]]:
        """All remote documents of a kind for a project ([] on failure)."""
        try:
            return self._select(kind, project)
        except TransportError as e:
            logger.error(f"Cloud pull failed for {RecordKind(kind).value}: {e}")
            return []
