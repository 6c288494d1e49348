"""MemoryEngine: main interface for memory operations.

This module defines the MemoryEngine class, which inherits from the
operation mixins.
"""

import logging
from typing import TYPE_CHECKING, Optional

from devmem.core.lifecycle import LifecycleMixin
from devmem.core.loader import LoaderMixin
from devmem.core.readers import ReadersMixin
from devmem.core.serializers import SerializersMixin
from devmem.core.sync import SyncMixin
from devmem.core.validation import ValidationMixin
from devmem.core.writers import WritersMixin
from devmem.storage import CloudMirror, SQLiteStore

if TYPE_CHECKING:
    from devmem.config import DevMemConfig

logger = logging.getLogger(__name__)


class MemoryEngine(
    WritersMixin,
    ReadersMixin,
    LifecycleMixin,
    LoaderMixin,
    SerializersMixin,
    SyncMixin,
    ValidationMixin,
):
    """Rule engine over the five record kinds.

    Examples:
        store = SQLiteStore(path).open()
        engine = MemoryEngine(store)

        # With a mirror resolved at startup
        engine = MemoryEngine(store, CloudMirror.from_config(config.cloud))
    """

    def __init__(self, store: SQLiteStore, mirror: Optional[CloudMirror] = None):
        """Initialize MemoryEngine.

        Args:
            store: An opened record store
            mirror: Optional cloud mirror; None runs local-only
        """
        self._store = store
        self._mirror = mirror
        logger.debug(
            f"MemoryEngine initialized with {store.db_path}, "
            f"cloud: {'enabled' if mirror is not None else 'disabled'}"
        )

    @property
    def store(self) -> SQLiteStore:
        return self._store

    @property
    def mirror(self) -> Optional[CloudMirror]:
        return self._mirror

    def close(self) -> None:
        self._store.close()

    @classmethod
    def from_config(cls, config: "DevMemConfig") -> "MemoryEngine":
        """Open the configured store and resolve the cloud mirror once."""
        store = SQLiteStore(config.resolved_db_path()).open()
        mirror = CloudMirror.from_config(config.cloud, config.machine_id, key=config.cloud_key)
        return cls(store, mirror)
