"""
Pytest fixtures and test configuration for devmem tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from unittest.mock import Mock

import pytest

from devmem.core import MemoryEngine
from devmem.storage import CloudMirror, SQLiteStore


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep every test away from the real ~/.devmem."""
    home = tmp_path / "devmem-home"
    monkeypatch.setenv("DEVMEM_HOME", str(home))
    monkeypatch.delenv("DEVMEM_CONFIG", raising=False)
    monkeypatch.delenv("DEVMEM_CLOUD_KEY", raising=False)
    monkeypatch.delenv("DEVMEM_DB_PATH", raising=False)
    return home


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "memory.db"


@pytest.fixture
def store(db_path):
    """Opened SQLite store on a temporary file."""
    s = SQLiteStore(db_path).open()
    yield s
    s.close()


@pytest.fixture
def engine(store):
    """Local-only engine."""
    return MemoryEngine(store)


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client that keeps documents in memory.

    Supports the calls the mirror makes:
    ``table(name).upsert(payload, on_conflict=...).execute()`` (field merge)
    and ``table(name).select("*").eq(field, value).execute()``.
    """
    client = Mock()
    storage: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def create_table_mock(table_name: str):
        table_mock = Mock()
        docs = storage.setdefault(table_name, {})

        def upsert_mock(payload, on_conflict="doc_id"):
            key = payload[on_conflict]
            docs[key] = {**docs.get(key, {}), **payload}
            query = Mock()
            query.execute.return_value = Mock(data=[dict(docs[key])])
            return query

        def select_mock(fields="*"):
            query = Mock()
            filters = []

            def eq_mock(field, value):
                filters.append((field, value))
                return query

            def execute_mock():
                rows = [d for d in docs.values() if all(d.get(f) == v for f, v in filters)]
                return Mock(data=[dict(r) for r in rows])

            query.eq.side_effect = eq_mock
            query.execute.side_effect = execute_mock
            return query

        table_mock.upsert.side_effect = upsert_mock
        table_mock.select.side_effect = select_mock
        return table_mock

    client.table.side_effect = create_table_mock
    client.storage_data = storage
    return client


@pytest.fixture
def mirror(mock_supabase_client):
    return CloudMirror(mock_supabase_client, collection_prefix="devmem", machine_id="test-box")


@pytest.fixture
def cloud_engine(store, mirror):
    """Engine with a working (mocked) cloud mirror."""
    return MemoryEngine(store, mirror)


@pytest.fixture
def days_ago():
    """Build an ISO timestamp N days in the past."""

    def _days_ago(days: float) -> str:
        return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()

    return _days_ago
