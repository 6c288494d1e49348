"""MCP tool schema definitions for devmem memory operations.

Each Tool() defines the name, description, and JSON Schema for one MCP tool.
Validators and handlers live in devmem.mcp.handlers.
"""

from mcp.types import Tool

from devmem.types import VALID_ARCHIVABLE_VALUES

PRIORITY_SCHEMA = {
    "type": "integer",
    "enum": [0, 1, 2],
    "description": "Priority: 0 normal, 1 high, 2 critical (default: 0)",
    "default": 0,
}

PROJECT_SCHEMA = {"type": "string", "description": "Project name"}

TOOLS = [
    Tool(
        name="remember_decision",
        description="Store an architectural or design decision with its rationale.",
        inputSchema={
            "type": "object",
            "properties": {
                "project": PROJECT_SCHEMA,
                "decision": {"type": "string", "description": "The decision made"},
                "rationale": {"type": "string", "description": "Why this decision was made"},
                "date": {
                    "type": "string",
                    "description": "Decision date as YYYY-MM-DD (default: today)",
                },
                "category": {
                    "type": "string",
                    "description": "Category (e.g. architecture, tooling, api)",
                },
                "priority": PRIORITY_SCHEMA,
            },
            "required": ["project", "decision"],
        },
    ),
    Tool(
        name="recall_decisions",
        description="Recall past decisions for a project, highest priority and most recent first.",
        inputSchema={
            "type": "object",
            "properties": {
                "project": PROJECT_SCHEMA,
                "search": {"type": "string", "description": "Substring to search for"},
                "category": {
                    "type": "string",
                    "description": "Only decisions in this category (takes precedence over search)",
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum results (default: 10)",
                    "default": 10,
                },
            },
            "required": ["project"],
        },
    ),
    Tool(
        name="remember_error",
        description="Store an error pattern and the solution that fixed it.",
        inputSchema={
            "type": "object",
            "properties": {
                "project": PROJECT_SCHEMA,
                "error_pattern": {
                    "type": "string",
                    "description": "Error message or pattern",
                },
                "solution": {"type": "string", "description": "How it was fixed"},
                "context": {"type": "string", "description": "Additional context"},
                "category": {"type": "string", "description": "Category (e.g. build, runtime)"},
                "priority": PRIORITY_SCHEMA,
            },
            "required": ["project", "error_pattern", "solution"],
        },
    ),
    Tool(
        name="find_solution",
        description="Find stored solutions for an error message.",
        inputSchema={
            "type": "object",
            "properties": {
                "project": PROJECT_SCHEMA,
                "error": {"type": "string", "description": "Error text to look up"},
                "limit": {
                    "type": "integer",
                    "description": "Maximum results (default: 5)",
                    "default": 5,
                },
            },
            "required": ["project", "error"],
        },
    ),
    Tool(
        name="list_errors",
        description="List all stored errors for a project",
        inputSchema={
            "type": "object",
            "properties": {
                "project": PROJECT_SCHEMA,
                "category": {"type": "string", "description": "Only errors in this category"},
                "limit": {
                    "type": "integer",
                    "description": "Maximum results (default: 10)",
                    "default": 10,
                },
            },
            "required": ["project"],
        },
    ),
    Tool(
        name="set_context",
        description="Set a key-value context fact for a project (SDK versions, URLs, conventions).",
        inputSchema={
            "type": "object",
            "properties": {
                "project": PROJECT_SCHEMA,
                "key": {"type": "string", "description": "Context key"},
                "value": {"type": "string", "description": "Context value"},
            },
            "required": ["project", "key", "value"],
        },
    ),
    Tool(
        name="get_context",
        description="Get stored context for a project",
        inputSchema={
            "type": "object",
            "properties": {
                "project": PROJECT_SCHEMA,
                "key": {"type": "string", "description": "Specific key (omit for all)"},
            },
            "required": ["project"],
        },
    ),
    Tool(
        name="delete_context",
        description="Delete a context key from a project.",
        inputSchema={
            "type": "object",
            "properties": {
                "project": PROJECT_SCHEMA,
                "key": {"type": "string", "description": "Context key to delete"},
            },
            "required": ["project", "key"],
        },
    ),
    Tool(
        name="remember_learning",
        description="Store a general learning or insight. Omit project for a global learning.",
        inputSchema={
            "type": "object",
            "properties": {
                "category": {
                    "type": "string",
                    "description": "Category (e.g. testing, performance, gotcha)",
                },
                "content": {"type": "string", "description": "What was learned"},
                "project": {
                    "type": "string",
                    "description": "Project name (omit for global)",
                },
                "priority": PRIORITY_SCHEMA,
            },
            "required": ["category", "content"],
        },
    ),
    Tool(
        name="recall_learnings",
        description="Recall learnings for a project, including global learnings.",
        inputSchema={
            "type": "object",
            "properties": {
                "project": PROJECT_SCHEMA,
                "search": {"type": "string", "description": "Substring to search for"},
                "category": {
                    "type": "string",
                    "description": "Only learnings in this category (takes precedence over search)",
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum results (default: 20)",
                    "default": 20,
                },
            },
            "required": ["project"],
        },
    ),
    Tool(
        name="search_all",
        description="Search decisions, errors, learnings and context of a project at once.",
        inputSchema={
            "type": "object",
            "properties": {
                "project": PROJECT_SCHEMA,
                "query": {"type": "string", "description": "Substring to search for"},
            },
            "required": ["project", "query"],
        },
    ),
    Tool(
        name="save_session",
        description="Save current working state (call before ending a session).",
        inputSchema={
            "type": "object",
            "properties": {
                "project": PROJECT_SCHEMA,
                "task": {"type": "string", "description": "Current task"},
                "workspace": {
                    "type": "string",
                    "description": "Workspace within the project (omit for the default)",
                },
                "status": {
                    "type": "string",
                    "description": "Status (default: in-progress)",
                },
                "notes": {"type": "string", "description": "Notes for resuming"},
            },
            "required": ["project", "task"],
        },
    ),
    Tool(
        name="get_session",
        description="Get last saved session state (call at session start to resume work)",
        inputSchema={
            "type": "object",
            "properties": {
                "project": PROJECT_SCHEMA,
                "workspace": {
                    "type": "string",
                    "description": "Workspace (omit for every workspace)",
                },
            },
            "required": ["project"],
        },
    ),
    Tool(
        name="clear_session",
        description="Clear saved session state when a task is done.",
        inputSchema={
            "type": "object",
            "properties": {
                "project": PROJECT_SCHEMA,
                "workspace": {
                    "type": "string",
                    "description": "Workspace (omit to clear every workspace)",
                },
            },
            "required": ["project"],
        },
    ),
    Tool(
        name="memory_status",
        description="Summary of a project's memory: session, context, recent decisions, learnings and errors.",
        inputSchema={
            "type": "object",
            "properties": {"project": PROJECT_SCHEMA},
            "required": ["project"],
        },
    ),
    Tool(
        name="load_comprehensive_memory",
        description="Load a larger memory snapshot for a project, optionally with global memory.",
        inputSchema={
            "type": "object",
            "properties": {
                "project": PROJECT_SCHEMA,
                "include_global": {
                    "type": "boolean",
                    "description": "Include global learnings and context (default: true)",
                    "default": True,
                },
            },
            "required": ["project"],
        },
    ),
    Tool(
        name="archive",
        description="Archive old decisions, errors, or learnings by ID (they won't appear in queries but aren't deleted)",
        inputSchema={
            "type": "object",
            "properties": {
                "type": {"type": "string", "enum": VALID_ARCHIVABLE_VALUES},
                "id": {"type": "integer", "description": "Record ID"},
            },
            "required": ["type", "id"],
        },
    ),
    Tool(
        name="set_priority",
        description="Set the priority of a decision, error or learning.",
        inputSchema={
            "type": "object",
            "properties": {
                "type": {"type": "string", "enum": VALID_ARCHIVABLE_VALUES},
                "id": {"type": "integer", "description": "Record ID"},
                "priority": PRIORITY_SCHEMA,
            },
            "required": ["type", "id", "priority"],
        },
    ),
    Tool(
        name="prune",
        description="Permanently delete archived items older than N days.",
        inputSchema={
            "type": "object",
            "properties": {
                "project": {
                    "type": "string",
                    "description": "Project name, or 'all' for every project",
                },
                "days": {
                    "type": "integer",
                    "description": "Age threshold in days (default: 90)",
                    "default": 90,
                },
            },
            "required": ["project"],
        },
    ),
    Tool(
        name="bulk_cleanup",
        description="Delete records older than N days by type; live records too when archived_only is false.",
        inputSchema={
            "type": "object",
            "properties": {
                "project": {
                    "type": "string",
                    "description": "Project name, or 'all' for every project",
                },
                "type": {
                    "type": "string",
                    "enum": VALID_ARCHIVABLE_VALUES + ["all"],
                    "default": "all",
                },
                "days": {
                    "type": "integer",
                    "description": "Age threshold in days (default: 90)",
                    "default": 90,
                },
                "archived_only": {
                    "type": "boolean",
                    "description": "Only delete archived records (default: true)",
                    "default": True,
                },
            },
            "required": ["project"],
        },
    ),
    Tool(
        name="export_memory",
        description="Export a project's memory as JSON.",
        inputSchema={
            "type": "object",
            "properties": {
                "project": PROJECT_SCHEMA,
                "include_archived": {
                    "type": "boolean",
                    "description": "Include archived records (default: false)",
                    "default": False,
                },
            },
            "required": ["project"],
        },
    ),
    Tool(
        name="import_memory",
        description="Import memory from a JSON export.",
        inputSchema={
            "type": "object",
            "properties": {
                "json_data": {"type": "string", "description": "JSON produced by export_memory"},
            },
            "required": ["json_data"],
        },
    ),
    Tool(
        name="memory_stats",
        description="Record counts, archived counts and access tiers, per project or overall.",
        inputSchema={
            "type": "object",
            "properties": {
                "project": {"type": "string", "description": "Project name (omit for all)"},
            },
        },
    ),
]

# Registered only when the cloud mirror is active.
SYNC_TOOLS = [
    Tool(
        name="sync_to_cloud",
        description="Push all local memory for a project ('all' for every project) to the cloud mirror.",
        inputSchema={
            "type": "object",
            "properties": {
                "project": {
                    "type": "string",
                    "description": "Project name, or 'all' for every project",
                },
            },
            "required": ["project"],
        },
    ),
    Tool(
        name="pull_from_cloud",
        description="Pull a project's memory from the cloud mirror and merge it locally.",
        inputSchema={
            "type": "object",
            "properties": {"project": PROJECT_SCHEMA},
            "required": ["project"],
        },
    ),
]

SYNC_TOOL_NAMES = frozenset(t.name for t in SYNC_TOOLS)
