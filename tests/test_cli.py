"""Tests for the devmem command-line interface."""

import json
import logging
from unittest.mock import patch

import pytest

from devmem.cli.__main__ import build_parser, main, setup_logging
from devmem.core import MemoryEngine
from devmem.storage import SQLiteStore


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    root = logging.getLogger("devmem")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


@pytest.fixture
def seeded_db(tmp_path):
    path = tmp_path / "cli.db"
    with SQLiteStore(path) as store:
        engine = MemoryEngine(store)
        engine.remember_decision("app", "Use SQLite", rationale="simple")
        engine.set_context("app", "db", "sqlite")
    return path


class TestParser:
    def test_defaults_to_no_command(self):
        args = build_parser().parse_args([])
        assert args.command is None

    def test_export_arguments(self):
        args = build_parser().parse_args(["export", "app", "--include-archived", "-o", "out.json"])
        assert args.project == "app"
        assert args.include_archived is True
        assert args.output == "out.json"


class TestCommands:
    def test_migrate(self, tmp_path, capsys):
        path = tmp_path / "fresh.db"
        main(["--db", str(path), "migrate"])
        assert capsys.readouterr().out.strip() == f"{path}: schema v6"

    def test_stats(self, seeded_db, capsys):
        main(["--db", str(seeded_db), "stats", "--project", "app"])
        out = capsys.readouterr().out
        assert out.startswith("# Memory Stats for app")
        assert "decisions: 1 live" in out

    def test_export_to_stdout(self, seeded_db, capsys):
        main(["--db", str(seeded_db), "export", "app"])
        data = json.loads(capsys.readouterr().out)
        assert data["decisions"][0]["decision"] == "Use SQLite"

    def test_export_then_import(self, seeded_db, tmp_path, capsys):
        out_file = tmp_path / "app.json"
        main(["--db", str(seeded_db), "export", "app", "-o", str(out_file)])
        assert capsys.readouterr().out.strip() == f"Exported app to {out_file}"

        target = tmp_path / "target.db"
        main(["--db", str(target), "import", str(out_file)])

        assert capsys.readouterr().out.strip() == (
            "Imported: 1 decisions, 0 errors, 1 context items, 0 learnings, 0 sessions"
        )

    def test_import_missing_file_exits(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["--db", str(tmp_path / "x.db"), "import", str(tmp_path / "missing.json")])
        assert exc_info.value.code == 1

    def test_import_invalid_json_exits(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{oops")
        with pytest.raises(SystemExit):
            main(["--db", str(tmp_path / "x.db"), "import", str(bad)])

    def test_no_command_starts_mcp(self, tmp_path):
        with patch("devmem.mcp.server.main") as mcp_main:
            main(["--db", str(tmp_path / "x.db")])
        config = mcp_main.call_args.args[0]
        assert config.db_path == str(tmp_path / "x.db")


class TestSetupLogging:
    def test_rotating_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "devmem.log"
        setup_logging("INFO", str(log_file))

        logger = logging.getLogger("devmem")
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 2
        logging.getLogger("devmem.test").info("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in log_file.read_text()
