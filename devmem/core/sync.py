"""Bulk synchronization with the cloud mirror."""

import logging
from typing import Optional

from devmem.types import ImportResult, RecordKind, StorageFault, ValidationError

logger = logging.getLogger(__name__)


class SyncMixin:
    """Sync operations for MemoryEngine."""

    @property
    def cloud_enabled(self) -> bool:
        return self._mirror is not None

    def sync_to_cloud(self, project: str) -> int:
        """Push every local record of a project ("all" for every project).

        Returns:
            Number of records the mirror accepted
        """
        if self._mirror is None:
            return 0
        scope: Optional[str] = None if project == "all" else project
        pushed = 0
        for kind in RecordKind:
            for record in self._store.all_rows(kind, scope):
                if self._mirror.push(kind, record):
                    self._store.mark_synced(kind, record.id)
                    pushed += 1
        logger.info(f"Pushed {pushed} records to cloud ({project})")
        return pushed

    def pull_from_cloud(self, project: str) -> ImportResult:
        """Merge every remote record of a project into the local store.

        Uses the same merge path as import, so already-present records are
        skipped.
        """
        result = ImportResult()
        if self._mirror is None:
            return result
        for kind in RecordKind:
            for row in self._mirror.pull(kind, project):
                try:
                    added = self.merge_record(kind, row, project)
                except (ValidationError, StorageFault, TypeError) as e:
                    logger.warning(f"Skipping pulled {kind.value} document: {e}")
                    result.skipped += 1
                    continue
                if added:
                    result.add(kind)
                else:
                    result.skipped += 1
        logger.info(f"Pulled {result.total} records from cloud ({project})")
        return result
