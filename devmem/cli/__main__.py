"""
devmem CLI - command-line interface for project memory.

Usage:
    devmem [mcp]
    devmem migrate
    devmem stats [--project P]
    devmem export PROJECT [--include-archived] [-o FILE]
    devmem import FILE
"""

import argparse
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from devmem.config import DevMemConfig, load_config
from devmem.core import MemoryEngine
from devmem.types import DevMemError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None) -> None:
    """Log to stderr (stdout carries the MCP protocol) and optionally a rotating file."""
    root = logging.getLogger("devmem")
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root.addHandler(console_handler)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=10 * 1024 * 1024, backupCount=3
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)


def cmd_mcp(args, config: DevMemConfig):
    """Start the MCP server."""
    from devmem.mcp.server import main as mcp_main

    mcp_main(config)


def cmd_migrate(args, k: MemoryEngine):
    """Open the database (applying migrations) and report the schema version."""
    print(f"{k.store.db_path}: schema v{k.store.schema_version}")


def cmd_stats(args, k: MemoryEngine):
    from devmem.mcp.handlers.lifecycle import handle_memory_stats

    print(handle_memory_stats({"project": args.project}, k))


def cmd_export(args, k: MemoryEngine):
    text = k.export_json(args.project, include_archived=args.include_archived)
    if args.output:
        Path(args.output).write_text(text)
        print(f"Exported {args.project} to {args.output}")
    else:
        print(text)


def cmd_import(args, k: MemoryEngine):
    from devmem.mcp.handlers.transfer import format_import_result

    data = Path(args.file).read_text()
    print(format_import_result(k.import_memory(data)))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devmem",
        description="Persistent project memory for coding assistants",
    )
    parser.add_argument("--config", "-c", help="Config file (default: ~/.devmem/config.json)")
    parser.add_argument("--db", help="Database path (overrides config)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command")

    # mcp
    subparsers.add_parser("mcp", help="Start MCP server (stdio transport)")

    # migrate
    subparsers.add_parser("migrate", help="Apply pending schema migrations")

    # stats
    p_stats = subparsers.add_parser("stats", help="Show memory statistics")
    p_stats.add_argument("--project", "-p", help="Project name (default: all)")

    # export
    p_export = subparsers.add_parser("export", help="Export a project as JSON")
    p_export.add_argument("project", help="Project name")
    p_export.add_argument("--include-archived", action="store_true")
    p_export.add_argument("--output", "-o", help="Write to file instead of stdout")

    # import
    p_import = subparsers.add_parser("import", help="Import a JSON export")
    p_import.add_argument("file", help="Path to export JSON")

    return parser


COMMANDS = {
    "migrate": cmd_migrate,
    "stats": cmd_stats,
    "export": cmd_export,
    "import": cmd_import,
}


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.db:
        config.db_path = args.db
    setup_logging("DEBUG" if args.verbose else config.log_level, config.log_file)

    command = args.command or "mcp"
    if command == "mcp":
        cmd_mcp(args, config)
        return

    try:
        k = MemoryEngine.from_config(config)
    except DevMemError as e:
        logger.error(f"Failed to open memory store: {e}")
        sys.exit(1)

    try:
        COMMANDS[command](args, k)
    except (ValueError, OSError, DevMemError) as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)
    finally:
        k.close()


if __name__ == "__main__":
    main()
