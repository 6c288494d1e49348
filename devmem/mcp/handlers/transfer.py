"""Handlers for export_memory and import_memory."""

import json
from typing import Any, Dict

from devmem.core import MemoryEngine
from devmem.mcp.sanitize import sanitize_string, validate_bool
from devmem.types import ImportResult, ValidationError

MAX_IMPORT_BYTES = 10_000_000


def validate_export_memory(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "project": sanitize_string(arguments.get("project"), "project", 200, required=True),
        "include_archived": validate_bool(
            arguments.get("include_archived"), "include_archived", False
        ),
    }


def validate_import_memory(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "json_data": sanitize_string(
            arguments.get("json_data"), "json_data", MAX_IMPORT_BYTES, required=True
        )
    }


def format_import_result(result: ImportResult) -> str:
    text = (
        f"Imported: {result.decisions} decisions, {result.errors} errors, "
        f"{result.context} context items, {result.learnings} learnings, "
        f"{result.sessions} sessions"
    )
    if result.skipped:
        text += f" ({result.skipped} skipped)"
    return text


def handle_export_memory(args: Dict[str, Any], k: MemoryEngine) -> str:
    return json.dumps(k.export_memory(args["project"], args["include_archived"]), indent=2)


def handle_import_memory(args: Dict[str, Any], k: MemoryEngine) -> str:
    try:
        result = k.import_memory(args["json_data"])
    except ValidationError as e:
        return f"Import failed: {e}"
    return format_import_result(result)


HANDLERS = {
    "export_memory": handle_export_memory,
    "import_memory": handle_import_memory,
}

VALIDATORS = {
    "export_memory": validate_export_memory,
    "import_memory": validate_import_memory,
}
