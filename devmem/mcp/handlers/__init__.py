"""Handler registry for MCP tools.

Merges HANDLERS and VALIDATORS from all sub-modules into unified dicts.
"""

from typing import Callable, Dict

from devmem.mcp.handlers.lifecycle import HANDLERS as _LIFECYCLE_H
from devmem.mcp.handlers.lifecycle import VALIDATORS as _LIFECYCLE_V
from devmem.mcp.handlers.memory import HANDLERS as _MEMORY_H
from devmem.mcp.handlers.memory import VALIDATORS as _MEMORY_V
from devmem.mcp.handlers.sync import HANDLERS as _SYNC_H
from devmem.mcp.handlers.sync import VALIDATORS as _SYNC_V
from devmem.mcp.handlers.transfer import HANDLERS as _TRANSFER_H
from devmem.mcp.handlers.transfer import VALIDATORS as _TRANSFER_V

HANDLERS: Dict[str, Callable] = {
    **_MEMORY_H,
    **_LIFECYCLE_H,
    **_TRANSFER_H,
    **_SYNC_H,
}

VALIDATORS: Dict[str, Callable] = {
    **_MEMORY_V,
    **_LIFECYCLE_V,
    **_TRANSFER_V,
    **_SYNC_V,
}
