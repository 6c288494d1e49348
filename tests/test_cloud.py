"""Tests for the Supabase cloud mirror and engine sync."""

import json
import logging
from unittest.mock import Mock, patch

import pytest

from devmem.config import CloudConfig
from devmem.core import MemoryEngine
from devmem.storage import CloudMirror, SQLiteStore, doc_id
from devmem.types import ContextEntry, Decision, Learning, RecordKind, Session


class TestDocId:
    def test_context_uses_natural_key(self):
        entry = ContextEntry(id=7, project="app", key="db", value="sqlite")
        assert doc_id(RecordKind.CONTEXT, entry) == "app_db"

    def test_session_default_workspace(self):
        assert doc_id(RecordKind.SESSION, Session(id=1, project="app", task="t")) == "app"

    def test_session_named_workspace(self):
        session = Session(id=1, project="app", task="t", workspace="api")
        assert doc_id(RecordKind.SESSION, session) == "app:api"

    def test_decision_uses_local_id(self):
        decision = Decision(id=42, project="app", date="2024-01-01", decision="d")
        assert doc_id(RecordKind.DECISION, decision) == "app_42"

    def test_global_learning(self):
        learning = Learning(id=3, project=None, category="c", content="x")
        assert doc_id(RecordKind.LEARNING, learning) == "global_3"


class TestPush:
    def test_payload_shape(self, mirror, mock_supabase_client):
        decision = Decision(
            id=1, project="app", date="2024-01-01", decision="d", access_count=4, archived=False
        )

        assert mirror.push(RecordKind.DECISION, decision) is True

        doc = mock_supabase_client.storage_data["devmem_decisions"]["app_1"]
        assert doc["decision"] == "d"
        assert doc["machine"] == "test-box"
        assert doc["synced_at"]
        assert "id" not in doc
        assert "access_count" not in doc

    def test_push_merges_fields(self, mirror, mock_supabase_client):
        table = mock_supabase_client.storage_data.setdefault("devmem_context", {})
        table["app_db"] = {"doc_id": "app_db", "remote_only": "kept"}

        mirror.push(RecordKind.CONTEXT, ContextEntry(id=1, project="app", key="db", value="pg"))

        assert table["app_db"]["remote_only"] == "kept"
        assert table["app_db"]["value"] == "pg"

    def test_push_failure_returns_false(self, caplog):
        client = Mock()
        client.table.return_value.upsert.return_value.execute.side_effect = RuntimeError("quota")
        mirror = CloudMirror(client)

        with caplog.at_level(logging.ERROR, logger="devmem.storage.cloud"):
            ok = mirror.push(RecordKind.SESSION, Session(id=1, project="app", task="t"))

        assert ok is False
        assert any("quota" in r.message for r in caplog.records)

    def test_pull_failure_returns_empty(self):
        client = Mock()
        client.table.side_effect = ConnectionError("offline")
        assert CloudMirror(client).pull(RecordKind.DECISION, "app") == []

    def test_table_name_uses_prefix(self, mock_supabase_client):
        mirror = CloudMirror(mock_supabase_client, collection_prefix="team")
        assert mirror.table_name(RecordKind.LEARNING) == "team_learnings"


class TestEngineWrites:
    def test_write_is_mirrored_and_marked(self, cloud_engine, mock_supabase_client):
        result = cloud_engine.remember_decision("app", "Use SQLite")

        assert result.synced is True
        assert f"app_{result.id}" in mock_supabase_client.storage_data["devmem_decisions"]
        record = cloud_engine.store.get_one(RecordKind.DECISION, result.id)
        assert record.synced_at is not None

    def test_session_doc_per_workspace(self, cloud_engine, mock_supabase_client):
        cloud_engine.save_session("app", "default task")
        cloud_engine.save_session("app", "api task", workspace="api")

        assert set(mock_supabase_client.storage_data["devmem_sessions"]) == {"app", "app:api"}

    def test_mirror_failure_does_not_fail_write(self, store):
        client = Mock()
        client.table.return_value.upsert.return_value.execute.side_effect = RuntimeError("down")
        engine = MemoryEngine(store, CloudMirror(client))

        result = engine.remember_error("app", "boom", "fix")

        assert result.synced is False
        record = store.get_one(RecordKind.ERROR, result.id)
        assert record.solution == "fix"
        assert record.synced_at is None

    def test_local_engine_reports_cloud_disabled(self, engine):
        assert engine.cloud_enabled is False
        assert engine.sync_to_cloud("app") == 0


class TestBulkSync:
    def test_sync_to_cloud_pushes_everything(self, engine, mirror, mock_supabase_client):
        engine.remember_decision("app", "d1")
        engine.remember_decision("app", "d2")
        engine.set_context("app", "k", "v")
        engine.remember_decision("other", "not mine")

        synced = MemoryEngine(engine.store, mirror)

        assert synced.sync_to_cloud("app") == 3
        assert len(mock_supabase_client.storage_data["devmem_decisions"]) == 2
        assert synced.sync_to_cloud("all") == 4

    def test_pull_merges_and_is_idempotent(self, cloud_engine, mirror, tmp_path):
        cloud_engine.remember_decision("app", "Use SQLite", rationale="simple")
        cloud_engine.remember_error("app", "ECONNREFUSED", "start service")
        cloud_engine.set_context("app", "db", "sqlite")

        with SQLiteStore(tmp_path / "second-machine.db") as other_store:
            other = MemoryEngine(other_store, mirror)

            first = other.pull_from_cloud("app")
            second = other.pull_from_cloud("app")

            assert (first.decisions, first.errors, first.context) == (1, 1, 1)
            assert (second.decisions, second.errors) == (0, 0)
            assert second.skipped == 2
            assert other.recall_decisions("app")[0].rationale == "simple"

    def test_pull_without_mirror(self, engine):
        assert engine.pull_from_cloud("app").total == 0


class TestFromConfig:
    def test_disabled(self):
        assert CloudMirror.from_config(CloudConfig(enabled=False, url="https://x", key_file="k")) is None

    def test_missing_key(self):
        assert CloudMirror.from_config(CloudConfig(enabled=True, url="https://x.supabase.co")) is None

    def test_missing_url(self):
        assert CloudMirror.from_config(CloudConfig(enabled=True), key="secret") is None

    @pytest.mark.parametrize("content", ["secret-key\n", json.dumps({"key": "secret-key"})])
    def test_key_file(self, tmp_path, content):
        key_file = tmp_path / "key"
        key_file.write_text(content)
        config = CloudConfig(enabled=True, project_id="abc", key_file=str(key_file), timeout=3)

        with patch("devmem.storage.cloud.create_client") as create:
            mirror = CloudMirror.from_config(config, machine_id="box")

        assert mirror is not None
        assert mirror.machine_id == "box"
        args = create.call_args
        assert args.args == ("https://abc.supabase.co", "secret-key")

    def test_explicit_key_used_without_key_file(self):
        config = CloudConfig(enabled=True, url="https://x.supabase.co/")
        with patch("devmem.storage.cloud.create_client") as create:
            assert CloudMirror.from_config(config, key="env-key") is not None
        assert create.call_args.args == ("https://x.supabase.co", "env-key")

    def test_client_construction_failure(self):
        config = CloudConfig(enabled=True, url="https://x.supabase.co")
        with patch("devmem.storage.cloud.create_client", side_effect=Exception("bad key")):
            assert CloudMirror.from_config(config, key="k") is None
