"""Handlers for lifecycle tools: archive, set_priority, prune, bulk_cleanup, memory_stats."""

from typing import Any, Dict, List

from devmem.core import MemoryEngine
from devmem.mcp.sanitize import (
    optional_string,
    sanitize_string,
    validate_bool,
    validate_enum,
    validate_int,
)
from devmem.types import PRIORITY_LABELS, VALID_ARCHIVABLE_VALUES, NotFoundError
from devmem.utils import format_bytes

# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def _target(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": validate_enum(arguments.get("type"), "type", VALID_ARCHIVABLE_VALUES, required=True),
        "id": validate_int(arguments.get("id"), "id", 1),
    }


def validate_archive(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return _target(arguments)


def validate_set_priority(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized = _target(arguments)
    sanitized["priority"] = validate_int(arguments.get("priority"), "priority", 0, 2)
    return sanitized


def validate_prune(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "project": sanitize_string(arguments.get("project"), "project", 200, required=True),
        "days": validate_int(arguments.get("days"), "days", 0, 36500, 90),
    }


def validate_bulk_cleanup(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized = validate_prune(arguments)
    sanitized["type"] = validate_enum(
        arguments.get("type"), "type", VALID_ARCHIVABLE_VALUES + ["all"], "all"
    )
    sanitized["archived_only"] = validate_bool(
        arguments.get("archived_only"), "archived_only", True
    )
    return sanitized


def validate_memory_stats(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {"project": optional_string(arguments, "project", 200)}


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def handle_archive(args: Dict[str, Any], k: MemoryEngine) -> str:
    result = k.archive(args["type"], args["id"])
    if result.reason:
        return result.reason
    if result.applied:
        return f"Archived {args['type']} #{args['id']}"
    raise NotFoundError(args["type"], args["id"])


def handle_set_priority(args: Dict[str, Any], k: MemoryEngine) -> str:
    result = k.set_priority(args["type"], args["id"], args["priority"])
    if result.reason:
        return result.reason
    if result.applied:
        label = PRIORITY_LABELS[args["priority"]]
        return f"Set {args['type']} #{args['id']} priority to {label}"
    raise NotFoundError(args["type"], args["id"])


def handle_prune(args: Dict[str, Any], k: MemoryEngine) -> str:
    deleted = k.prune(args["project"], days=args["days"])
    return f"Pruned {deleted} archived items older than {args['days']} days"


def handle_bulk_cleanup(args: Dict[str, Any], k: MemoryEngine) -> str:
    deleted = k.bulk_cleanup(
        args["project"],
        kind=args["type"],
        days=args["days"],
        archived_only=args["archived_only"],
    )
    breakdown = ", ".join(f"{table}: {count}" for table, count in deleted.items())
    scope = "archived records" if args["archived_only"] else "records"
    text = f"Deleted {sum(deleted.values())} {scope} older than {args['days']} days ({breakdown})"
    if not args["archived_only"]:
        text = "Warning: live (non-archived) records were included.\n" + text
    return text


def _tier_text(tiers: Dict[str, int]) -> str:
    return ", ".join(f"{name} {count}" for name, count in tiers.items())


def handle_memory_stats(args: Dict[str, Any], k: MemoryEngine) -> str:
    stats = k.stats(args["project"])
    lines: List[str] = []

    if args["project"]:
        lines.append(f"# Memory Stats for {stats['project']}")
        for table, counts in stats["counts"].items():
            line = f"{table}: {counts['live']} live"
            if table in stats["tiers"]:
                line += f", {counts['archived']} archived | tiers: {_tier_text(stats['tiers'][table])}"
            lines.append(line)
        return "\n".join(lines)

    lines.append("# Memory Stats")
    lines.append(f"Database: {format_bytes(stats['db_size'])} (schema v{stats['schema_version']})")
    lines.append(f"Archived records: {stats['total_archived']}")
    if not stats["projects"]:
        lines.append("No records stored")
    for project, tables in sorted(stats["projects"].items()):
        lines.append("")
        lines.append(f"## {project}")
        lines.extend(
            f"{table}: {c['live']} live, {c['archived']} archived" for table, c in tables.items()
        )
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

HANDLERS = {
    "archive": handle_archive,
    "set_priority": handle_set_priority,
    "prune": handle_prune,
    "bulk_cleanup": handle_bulk_cleanup,
    "memory_stats": handle_memory_stats,
}

VALIDATORS = {
    "archive": validate_archive,
    "set_priority": validate_set_priority,
    "prune": validate_prune,
    "bulk_cleanup": validate_bulk_cleanup,
    "memory_stats": validate_memory_stats,
}
