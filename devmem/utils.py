"""Small helpers shared across devmem."""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from devmem.types import parse_datetime


def get_devmem_home() -> Path:
    """Directory holding the database, config and logs.

    ``DEVMEM_HOME`` overrides the default ``~/.devmem``.
    """
    env_home = os.environ.get("DEVMEM_HOME")
    if env_home:
        return Path(env_home).expanduser()
    return Path.home() / ".devmem"


def format_time_ago(timestamp: Optional[str], now: Optional[datetime] = None) -> str:
    """Render a stored timestamp relative to now ("5m ago", "3d ago").

    Anything a week or older is shown as its date.
    """
    then = parse_datetime(timestamp)
    if then is None:
        return "unknown"
    now = now or datetime.now(timezone.utc)
    seconds = (now - then).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return then.date().isoformat()


def format_bytes(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"
