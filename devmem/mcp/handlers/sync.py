"""Handlers for cloud mirror tools: sync_to_cloud, pull_from_cloud."""

from typing import Any, Dict

from devmem.core import MemoryEngine
from devmem.mcp.sanitize import sanitize_string


def validate_cloud_project(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {"project": sanitize_string(arguments.get("project"), "project", 200, required=True)}


def handle_sync_to_cloud(args: Dict[str, Any], k: MemoryEngine) -> str:
    pushed = k.sync_to_cloud(args["project"])
    return f"Synced {pushed} records to cloud"


def handle_pull_from_cloud(args: Dict[str, Any], k: MemoryEngine) -> str:
    result = k.pull_from_cloud(args["project"])
    text = f"Pulled {result.total} records from cloud"
    if result.skipped:
        text += f" ({result.skipped} already present or invalid)"
    return text


HANDLERS = {
    "sync_to_cloud": handle_sync_to_cloud,
    "pull_from_cloud": handle_pull_from_cloud,
}

VALIDATORS = {
    "sync_to_cloud": validate_cloud_project,
    "pull_from_cloud": validate_cloud_project,
}
