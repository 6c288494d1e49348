"""Handlers for record tools: decisions, errors, context, learnings, sessions, search, status."""

from typing import Any, Dict, List

from devmem.core import MemoryEngine
from devmem.mcp.sanitize import (
    optional_string,
    sanitize_string,
    validate_bool,
    validate_int,
)
from devmem.storage import ANY_WORKSPACE
from devmem.types import PRIORITY_LABELS, WriteResult
from devmem.utils import format_time_ago

# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def _project(arguments: Dict[str, Any]) -> str:
    return sanitize_string(arguments.get("project"), "project", 200, required=True)


def _priority(arguments: Dict[str, Any]) -> int:
    return validate_int(arguments.get("priority"), "priority", 0, 2, 0)


def validate_remember_decision(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["project"] = _project(arguments)
    sanitized["decision"] = sanitize_string(
        arguments.get("decision"), "decision", 5000, required=True
    )
    sanitized["rationale"] = optional_string(arguments, "rationale", 5000)
    sanitized["date"] = optional_string(arguments, "date", 10)
    sanitized["category"] = optional_string(arguments, "category", 100)
    sanitized["priority"] = _priority(arguments)
    return sanitized


def validate_recall_decisions(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["project"] = _project(arguments)
    sanitized["search"] = optional_string(arguments, "search", 500)
    sanitized["category"] = optional_string(arguments, "category", 100)
    sanitized["limit"] = validate_int(arguments.get("limit"), "limit", 1, 200, 10)
    return sanitized


def validate_remember_error(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["project"] = _project(arguments)
    sanitized["error_pattern"] = sanitize_string(
        arguments.get("error_pattern"), "error_pattern", 2000, required=True
    )
    sanitized["solution"] = sanitize_string(
        arguments.get("solution"), "solution", 5000, required=True
    )
    sanitized["context"] = optional_string(arguments, "context", 2000)
    sanitized["category"] = optional_string(arguments, "category", 100)
    sanitized["priority"] = _priority(arguments)
    return sanitized


def validate_find_solution(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["project"] = _project(arguments)
    sanitized["error"] = sanitize_string(arguments.get("error"), "error", 2000, required=True)
    sanitized["limit"] = validate_int(arguments.get("limit"), "limit", 1, 200, 5)
    return sanitized


def validate_list_errors(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["project"] = _project(arguments)
    sanitized["category"] = optional_string(arguments, "category", 100)
    sanitized["limit"] = validate_int(arguments.get("limit"), "limit", 1, 200, 10)
    return sanitized


def validate_set_context(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["project"] = _project(arguments)
    sanitized["key"] = sanitize_string(arguments.get("key"), "key", 200, required=True)
    sanitized["value"] = sanitize_string(arguments.get("value"), "value", 5000, required=True)
    return sanitized


def validate_get_context(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {"project": _project(arguments), "key": optional_string(arguments, "key", 200)}


def validate_delete_context(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "project": _project(arguments),
        "key": sanitize_string(arguments.get("key"), "key", 200, required=True),
    }


def validate_remember_learning(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["category"] = sanitize_string(
        arguments.get("category"), "category", 100, required=True
    )
    sanitized["content"] = sanitize_string(arguments.get("content"), "content", 5000, required=True)
    sanitized["project"] = optional_string(arguments, "project", 200)
    sanitized["priority"] = _priority(arguments)
    return sanitized


def validate_recall_learnings(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["project"] = _project(arguments)
    sanitized["search"] = optional_string(arguments, "search", 500)
    sanitized["category"] = optional_string(arguments, "category", 100)
    sanitized["limit"] = validate_int(arguments.get("limit"), "limit", 1, 200, 20)
    return sanitized


def validate_search_all(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "project": _project(arguments),
        "query": sanitize_string(arguments.get("query"), "query", 500, required=True),
    }


def validate_save_session(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["project"] = _project(arguments)
    sanitized["task"] = sanitize_string(arguments.get("task"), "task", 2000, required=True)
    sanitized["workspace"] = optional_string(arguments, "workspace", 200)
    sanitized["status"] = optional_string(arguments, "status", 100)
    sanitized["notes"] = optional_string(arguments, "notes", 5000)
    return sanitized


def validate_session_lookup(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {"project": _project(arguments), "workspace": optional_string(arguments, "workspace", 200)}


def validate_project_only(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {"project": _project(arguments)}


def validate_load_comprehensive_memory(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "project": _project(arguments),
        "include_global": validate_bool(arguments.get("include_global"), "include_global", True),
    }


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def sync_suffix(result: WriteResult, k: MemoryEngine) -> str:
    if not k.cloud_enabled:
        return ""
    return " (synced)" if result.synced else " (not synced)"


def record_meta(record: Any, k: MemoryEngine, show_category: bool = True) -> str:
    """``(#id, priority, category, tier)``; normal priority and empty category are omitted."""
    parts = [f"#{record.id}"]
    if record.priority:
        parts.append(PRIORITY_LABELS.get(record.priority, str(record.priority)))
    if show_category and record.category:
        parts.append(record.category)
    parts.append(k.tier(record).value)
    return f"({', '.join(parts)})"


def format_decision(d: Any, k: MemoryEngine) -> str:
    return f"[{d.date}] {d.decision} {record_meta(d, k)}\n  Rationale: {d.rationale or 'N/A'}"


def format_solution(e: Any, k: MemoryEngine) -> str:
    return (
        f"Error: {e.error_pattern} {record_meta(e, k)}\n"
        f"Solution: {e.solution}\n"
        f"Context: {e.context or 'N/A'}"
    )


def format_learning(item: Any, k: MemoryEngine) -> str:
    scope = item.project or "global"
    return f"[{item.category}] {item.content} ({scope}) {record_meta(item, k, show_category=False)}"


def format_session(s: Any) -> str:
    where = f" in {s.workspace}" if s.workspace else ""
    return (
        f"Last session{where} ({format_time_ago(s.updated_at)}):\n"
        f"Task: {s.task}\n"
        f"Status: {s.status or 'in-progress'}\n"
        f"Notes: {s.notes or 'None'}"
    )


def format_snapshot(snapshot: Dict[str, Any], title: str) -> str:
    lines: List[str] = [f"# {title} for {snapshot['project']}", ""]

    for s in snapshot["sessions"]:
        where = f" [{s.workspace}]" if s.workspace else ""
        lines.append(f"## Active Session{where} ({format_time_ago(s.updated_at)})")
        lines.append(f"**Task:** {s.task}")
        lines.append(f"**Status:** {s.status or 'in-progress'}")
        if s.notes:
            lines.append(f"**Notes:** {s.notes}")
        lines.append("")

    if snapshot["context"]:
        lines.append(f"## Context ({len(snapshot['context'])} items)")
        lines.extend(f"- **{c.key}:** {c.value}" for c in snapshot["context"])
        lines.append("")

    if snapshot.get("global_context"):
        lines.append(f"## Global Context ({len(snapshot['global_context'])} items)")
        lines.extend(f"- **{c.key}:** {c.value}" for c in snapshot["global_context"])
        lines.append("")

    if snapshot["decisions"]:
        lines.append("## Recent Decisions")
        lines.extend(f"- [{d.date}] {d.decision}" for d in snapshot["decisions"])
        lines.append("")

    if snapshot["learnings"]:
        lines.append("## Learnings")
        lines.extend(
            f"- [{item.category}] {item.content}{'' if item.project else ' (global)'}"
            for item in snapshot["learnings"]
        )
        lines.append("")

    if snapshot["errors"]:
        lines.append("## Recent Error Solutions")
        lines.extend(f"- **{e.error_pattern}**: {e.solution}" for e in snapshot["errors"])
        lines.append("")

    counts = snapshot["counts"]
    lines.append("## Stats")
    lines.append(
        f"Decisions: {counts['decisions']} | Errors: {counts['errors']} | "
        f"Learnings: {counts['learnings']} | Context: {counts['context']}"
    )
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def handle_remember_decision(args: Dict[str, Any], k: MemoryEngine) -> str:
    result = k.remember_decision(**args)
    return f"Decision stored for {args['project']} (ID:{result.id}){sync_suffix(result, k)}"


def handle_recall_decisions(args: Dict[str, Any], k: MemoryEngine) -> str:
    results = k.recall_decisions(**args)
    if not results:
        return "No decisions found for this project"
    return "\n\n".join(format_decision(d, k) for d in results)


def handle_remember_error(args: Dict[str, Any], k: MemoryEngine) -> str:
    result = k.remember_error(**args)
    return f"Error solution stored for {args['project']} (ID:{result.id}){sync_suffix(result, k)}"


def handle_find_solution(args: Dict[str, Any], k: MemoryEngine) -> str:
    results = k.find_solution(args["project"], args["error"], limit=args["limit"])
    if not results:
        return "No matching solutions found"
    return "\n\n---\n\n".join(format_solution(e, k) for e in results)


def handle_list_errors(args: Dict[str, Any], k: MemoryEngine) -> str:
    results = k.list_errors(**args)
    if not results:
        return "No errors stored for this project"
    return "\n\n".join(
        f"[ID:{e.id}] {e.error_pattern}\n  Solution: {e.solution}\n  Context: {e.context or 'N/A'}"
        for e in results
    )


def handle_set_context(args: Dict[str, Any], k: MemoryEngine) -> str:
    result = k.set_context(**args)
    return f"Context {args['key']} set for {args['project']}{sync_suffix(result, k)}"


def handle_get_context(args: Dict[str, Any], k: MemoryEngine) -> str:
    entries = k.get_context(args["project"], args["key"])
    if args["key"]:
        if not entries:
            return f"No value found for {args['key']}"
        return f"{args['key']}: {entries[0].value}"
    if not entries:
        return "No context stored for this project"
    return "\n".join(f"{c.key}: {c.value}" for c in entries)


def handle_delete_context(args: Dict[str, Any], k: MemoryEngine) -> str:
    result = k.delete_context(**args)
    if result.applied:
        return f"Deleted context key '{args['key']}' from {args['project']}"
    return f"No context key '{args['key']}' found for {args['project']}"


def handle_remember_learning(args: Dict[str, Any], k: MemoryEngine) -> str:
    result = k.remember_learning(**args)
    return f"Learning stored ({args['category']}) (ID:{result.id}){sync_suffix(result, k)}"


def handle_recall_learnings(args: Dict[str, Any], k: MemoryEngine) -> str:
    results = k.recall_learnings(**args)
    if not results:
        return "No learnings found"
    return "\n\n".join(format_learning(item, k) for item in results)


def handle_search_all(args: Dict[str, Any], k: MemoryEngine) -> str:
    groups = k.search_all(args["project"], args["query"])
    output = []
    if "decisions" in groups:
        output.append(
            "=== DECISIONS ===\n" + "\n".join(f"[{d.date}] {d.decision}" for d in groups["decisions"])
        )
    if "errors" in groups:
        output.append(
            "=== ERRORS ===\n"
            + "\n".join(f"{e.error_pattern}: {e.solution}" for e in groups["errors"])
        )
    if "learnings" in groups:
        output.append(
            "=== LEARNINGS ===\n"
            + "\n".join(f"[{item.category}] {item.content}" for item in groups["learnings"])
        )
    if "context" in groups:
        output.append(
            "=== CONTEXT ===\n" + "\n".join(f"{c.key}: {c.value}" for c in groups["context"])
        )
    if not output:
        return f"No results found for '{args['query']}'"
    return "\n\n".join(output)


def handle_save_session(args: Dict[str, Any], k: MemoryEngine) -> str:
    result = k.save_session(**args)
    where = f" [{args['workspace']}]" if args["workspace"] else ""
    return f"Session saved for {args['project']}{where}: {args['task']}{sync_suffix(result, k)}"


def handle_get_session(args: Dict[str, Any], k: MemoryEngine) -> str:
    workspace = args["workspace"] if args["workspace"] else ANY_WORKSPACE
    sessions = k.get_sessions(args["project"], workspace)
    if not sessions:
        return "No saved session found"
    return "\n\n".join(format_session(s) for s in sessions)


def handle_clear_session(args: Dict[str, Any], k: MemoryEngine) -> str:
    workspace = args["workspace"] if args["workspace"] else ANY_WORKSPACE
    result = k.clear_session(args["project"], workspace)
    if not result.applied:
        return "No session to clear"
    if args["workspace"]:
        return f"Session cleared for {args['project']} [{args['workspace']}]"
    return f"Session cleared for {args['project']}"


def handle_memory_status(args: Dict[str, Any], k: MemoryEngine) -> str:
    return format_snapshot(k.status(args["project"]), "Memory Status")


def handle_load_comprehensive_memory(args: Dict[str, Any], k: MemoryEngine) -> str:
    snapshot = k.comprehensive_load(args["project"], include_global=args["include_global"])
    return format_snapshot(snapshot, "Comprehensive Memory")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

HANDLERS = {
    "remember_decision": handle_remember_decision,
    "recall_decisions": handle_recall_decisions,
    "remember_error": handle_remember_error,
    "find_solution": handle_find_solution,
    "list_errors": handle_list_errors,
    "set_context": handle_set_context,
    "get_context": handle_get_context,
    "delete_context": handle_delete_context,
    "remember_learning": handle_remember_learning,
    "recall_learnings": handle_recall_learnings,
    "search_all": handle_search_all,
    "save_session": handle_save_session,
    "get_session": handle_get_session,
    "clear_session": handle_clear_session,
    "memory_status": handle_memory_status,
    "load_comprehensive_memory": handle_load_comprehensive_memory,
}

VALIDATORS = {
    "remember_decision": validate_remember_decision,
    "recall_decisions": validate_recall_decisions,
    "remember_error": validate_remember_error,
    "find_solution": validate_find_solution,
    "list_errors": validate_list_errors,
    "set_context": validate_set_context,
    "get_context": validate_get_context,
    "delete_context": validate_delete_context,
    "remember_learning": validate_remember_learning,
    "recall_learnings": validate_recall_learnings,
    "search_all": validate_search_all,
    "save_session": validate_save_session,
    "get_session": validate_session_lookup,
    "clear_session": validate_session_lookup,
    "memory_status": validate_project_only,
    "load_comprehensive_memory": validate_load_comprehensive_memory,
}
