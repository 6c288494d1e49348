"""Tests for the SQLite record store."""

import pytest

from devmem.storage import ANY_WORKSPACE, SQLiteStore, escape_like_pattern
from devmem.types import (
    Decision,
    RecordKind,
    Session,
    StorageFault,
    ValidationError,
)


def add_decision(store, text, **extra):
    values = {"project": "app", "decision": text}
    values.update(extra)
    return store.insert(RecordKind.DECISION, values)


class TestLifecycle:
    def test_open_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "memory.db"
        with SQLiteStore(path) as store:
            assert store.is_open
        assert path.exists()

    def test_operations_require_open_store(self, tmp_path):
        store = SQLiteStore(tmp_path / "closed.db")
        with pytest.raises(StorageFault, match="not open"):
            store.get(RecordKind.DECISION, "app")

    def test_default_path_under_devmem_home(self, isolated_home):
        assert SQLiteStore().db_path == isolated_home / "memory.db"


class TestInsert:
    def test_ids_strictly_increase(self, store):
        first = add_decision(store, "one")
        second = add_decision(store, "two")
        assert second > first

    def test_decision_defaults(self, store):
        record_id = add_decision(store, "Use SQLite")
        record = store.get_one(RecordKind.DECISION, record_id)

        assert isinstance(record, Decision)
        assert record.date  # today
        assert record.priority == 0
        assert record.archived is False
        assert record.access_count == 0
        assert record.created_at

    @pytest.mark.parametrize(
        "kind,values",
        [
            (RecordKind.DECISION, {"project": "app"}),
            (RecordKind.DECISION, {"decision": "no project"}),
            (RecordKind.ERROR, {"project": "app", "error_pattern": "boom"}),
            (RecordKind.LEARNING, {"project": "app", "content": "no category"}),
        ],
    )
    def test_missing_required_field(self, store, kind, values):
        with pytest.raises(ValidationError, match="required"):
            store.insert(kind, values)

    def test_priority_out_of_range_rejected(self, store):
        with pytest.raises(ValidationError, match="priority"):
            add_decision(store, "bad", priority=3)

    def test_context_not_insertable(self, store):
        with pytest.raises(ValidationError):
            store.insert(RecordKind.CONTEXT, {"project": "app", "key": "k", "value": "v"})


class TestOrdering:
    def test_priority_then_date_then_id(self, store):
        old_critical = add_decision(store, "old critical", date="2023-01-01", priority=2)
        newer = add_decision(store, "newer", date="2024-02-01")
        older = add_decision(store, "older", date="2024-01-01")
        same_day = add_decision(store, "same day later id", date="2024-02-01")

        ids = [d.id for d in store.get(RecordKind.DECISION, "app")]
        assert ids == [old_critical, same_day, newer, older]

    def test_context_ordered_by_key(self, store):
        for key in ("zeta", "alpha", "mid"):
            store.upsert(RecordKind.CONTEXT, {"project": "app", "key": key, "value": "v"})
        assert [c.key for c in store.get(RecordKind.CONTEXT, "app")] == ["alpha", "mid", "zeta"]

    def test_limit(self, store):
        for i in range(5):
            add_decision(store, f"d{i}")
        assert len(store.get(RecordKind.DECISION, "app", limit=3)) == 3


class TestFilters:
    def test_archived_excluded_by_default(self, store):
        keep = add_decision(store, "keep")
        gone = add_decision(store, "gone")
        store.set_flag(RecordKind.DECISION, gone, "archived", True)

        assert [d.id for d in store.get(RecordKind.DECISION, "app")] == [keep]
        all_ids = {d.id for d in store.get(RecordKind.DECISION, "app", include_archived=True)}
        assert all_ids == {keep, gone}

    def test_project_scoping(self, store):
        add_decision(store, "mine")
        store.insert(RecordKind.DECISION, {"project": "other", "decision": "theirs"})
        assert [d.decision for d in store.get(RecordKind.DECISION, "app")] == ["mine"]

    def test_category_exact_match(self, store):
        add_decision(store, "db choice", category="db")
        add_decision(store, "db-ish", category="database")
        results = store.get(RecordKind.DECISION, "app", category="db")
        assert [d.decision for d in results] == ["db choice"]

    def test_learnings_include_global(self, store):
        store.insert(RecordKind.LEARNING, {"project": "app", "category": "c", "content": "local"})
        store.insert(RecordKind.LEARNING, {"project": None, "category": "c", "content": "global"})
        store.insert(RecordKind.LEARNING, {"project": "other", "category": "c", "content": "other"})

        with_global = {item.content for item in store.get(RecordKind.LEARNING, "app")}
        only_local = {
            item.content
            for item in store.get(RecordKind.LEARNING, "app", include_global=False)
        }

        assert with_global == {"local", "global"}
        assert only_local == {"local"}


class TestSearch:
    def test_case_insensitive_substring(self, store):
        add_decision(store, "Adopt PostgreSQL", rationale="needs JSONB")
        add_decision(store, "Use Redis for cache")

        assert [d.decision for d in store.search(RecordKind.DECISION, "app", "postgres")] == [
            "Adopt PostgreSQL"
        ]
        assert [d.decision for d in store.search(RecordKind.DECISION, "app", "jsonb")] == [
            "Adopt PostgreSQL"
        ]

    def test_percent_is_literal(self, store):
        add_decision(store, "Coverage at 100% now")
        add_decision(store, "Coverage at 1000 lines")
        results = store.search(RecordKind.DECISION, "app", "0%")
        assert [d.decision for d in results] == ["Coverage at 100% now"]

    def test_underscore_is_literal(self, store):
        add_decision(store, "rename user_id")
        add_decision(store, "rename userXid")
        results = store.search(RecordKind.DECISION, "app", "user_id")
        assert [d.decision for d in results] == ["rename user_id"]

    def test_search_skips_archived(self, store):
        record_id = add_decision(store, "archived match")
        store.set_flag(RecordKind.DECISION, record_id, "archived", True)
        assert store.search(RecordKind.DECISION, "app", "match") == []

    def test_escape_like_pattern(self):
        assert escape_like_pattern("50%_a\\b") == "50\\%\\_a\\\\b"


class TestUpsert:
    def test_context_overwrites_value(self, store):
        first = store.upsert(RecordKind.CONTEXT, {"project": "app", "key": "sdk", "value": "1"})
        second = store.upsert(RecordKind.CONTEXT, {"project": "app", "key": "sdk", "value": "2"})

        entries = store.get(RecordKind.CONTEXT, "app")
        assert first == second
        assert len(entries) == 1
        assert entries[0].value == "2"

    def test_default_workspace_session_upserts(self, store):
        store.upsert(RecordKind.SESSION, {"project": "app", "task": "first"})
        store.upsert(RecordKind.SESSION, {"project": "app", "task": "second"})

        sessions = store.get(RecordKind.SESSION, "app")
        assert len(sessions) == 1
        assert isinstance(sessions[0], Session)
        assert sessions[0].task == "second"
        assert sessions[0].status == "in-progress"

    def test_workspaces_are_independent(self, store):
        store.upsert(RecordKind.SESSION, {"project": "app", "workspace": "api", "task": "a"})
        store.upsert(RecordKind.SESSION, {"project": "app", "workspace": "web", "task": "w"})
        store.upsert(RecordKind.SESSION, {"project": "app", "workspace": "api", "task": "a2"})

        assert len(store.get(RecordKind.SESSION, "app")) == 2
        api = store.get(RecordKind.SESSION, "app", workspace="api")
        assert [s.task for s in api] == ["a2"]


class TestDelete:
    def test_delete_context_by_natural_key(self, store):
        store.upsert(RecordKind.CONTEXT, {"project": "app", "key": "k", "value": "v"})
        assert store.delete(RecordKind.CONTEXT, "k", project="app") == 1
        assert store.delete(RecordKind.CONTEXT, "k", project="app") == 0

    def test_delete_one_workspace(self, store):
        store.upsert(RecordKind.SESSION, {"project": "app", "workspace": "api", "task": "a"})
        store.upsert(RecordKind.SESSION, {"project": "app", "task": "default"})

        assert store.delete(RecordKind.SESSION, project="app", workspace="api") == 1
        assert [s.task for s in store.get(RecordKind.SESSION, "app")] == ["default"]

    def test_delete_all_workspaces(self, store):
        store.upsert(RecordKind.SESSION, {"project": "app", "workspace": "api", "task": "a"})
        store.upsert(RecordKind.SESSION, {"project": "app", "task": "default"})

        assert store.delete(RecordKind.SESSION, project="app", workspace=ANY_WORKSPACE) == 2


class TestFlagsAndAccess:
    def test_set_flag_missing_id_changes_nothing(self, store):
        assert store.set_flag(RecordKind.DECISION, 999, "archived", True) == 0

    def test_set_flag_rejects_unknown_field(self, store):
        record_id = add_decision(store, "d")
        with pytest.raises(ValidationError):
            store.set_flag(RecordKind.DECISION, record_id, "decision", "hacked")

    def test_track_access(self, store):
        record_id = add_decision(store, "d")
        store.track_access(RecordKind.DECISION, [record_id])
        store.track_access(RecordKind.DECISION, [record_id])

        record = store.get_one(RecordKind.DECISION, record_id)
        assert record.access_count == 2
        assert record.last_accessed is not None

    def test_track_access_empty_ids(self, store):
        assert store.track_access(RecordKind.DECISION, []) == 0


class TestCleanupQueries:
    def test_delete_older_than_handles_legacy_timestamps(self, store, days_ago):
        legacy = add_decision(store, "legacy", created_at="2020-01-01 00:00:00", archived=True)
        recent = add_decision(store, "recent", archived=True)

        deleted = store.delete_older_than(RecordKind.DECISION, days_ago(90), project="app")

        assert deleted == 1
        assert store.get_one(RecordKind.DECISION, legacy) is None
        assert store.get_one(RecordKind.DECISION, recent) is not None

    def test_find_duplicate(self, store):
        record_id = add_decision(store, "dup", date="2024-01-01")
        values = {"project": "app", "date": "2024-01-01", "decision": "dup"}
        assert store.find_duplicate(RecordKind.DECISION, values) == record_id
        assert store.find_duplicate(RecordKind.DECISION, dict(values, rationale="other")) is None
        values["decision"] = "different"
        assert store.find_duplicate(RecordKind.DECISION, values) is None

    def test_error_duplicate_includes_context(self, store):
        values = {"project": "app", "error_pattern": "E1", "solution": "fix", "context": "ci"}
        record_id = store.insert(RecordKind.ERROR, values)
        assert store.find_duplicate(RecordKind.ERROR, values) == record_id
        assert store.find_duplicate(RecordKind.ERROR, dict(values, context="local")) is None

    def test_project_counts(self, store):
        add_decision(store, "live")
        archived = add_decision(store, "archived")
        store.set_flag(RecordKind.DECISION, archived, "archived", True)
        store.insert(RecordKind.LEARNING, {"project": None, "category": "c", "content": "g"})

        counts = store.project_counts()
        assert counts["app"]["decisions"] == {"live": 1, "archived": 1}
        assert counts["(global)"]["learnings"] == {"live": 1, "archived": 0}

    def test_file_size(self, store):
        add_decision(store, "d")
        assert store.file_size() > 0
