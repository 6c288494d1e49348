"""Configuration for devmem.

Settings come from ``~/.devmem/config.json`` (or ``DEVMEM_CONFIG`` /
``--config``), with ``DEVMEM_*`` environment variables filling anything the
file leaves out.
"""

import json
import logging
import os
import socket
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from devmem.utils import get_devmem_home

logger = logging.getLogger(__name__)


class CloudConfig(BaseModel):
    """Supabase mirror settings."""

    enabled: bool = False
    url: Optional[str] = None
    project_id: Optional[str] = None  # expands to https://<id>.supabase.co
    key_file: Optional[str] = None
    collection_prefix: str = "devmem"
    timeout: float = 10.0

    def resolved_url(self) -> Optional[str]:
        if self.url:
            return self.url.rstrip("/")
        if self.project_id:
            return f"https://{self.project_id}.supabase.co"
        return None

    def load_key(self) -> Optional[str]:
        """Read the API key from key_file (raw text, or JSON with a "key" field)."""
        if not self.key_file:
            return None
        path = Path(self.key_file).expanduser()
        try:
            raw = path.read_text().strip()
        except OSError as e:
            logger.warning(f"Cannot read cloud key file {path}: {e}")
            return None
        if raw.startswith("{"):
            try:
                return json.loads(raw).get("key") or None
            except json.JSONDecodeError as e:
                logger.warning(f"Invalid JSON in cloud key file {path}: {e}")
                return None
        return raw or None


class DevMemConfig(BaseSettings):
    """Process-wide settings."""

    db_path: Optional[str] = None
    machine_id: str = socket.gethostname()
    log_level: str = "WARNING"
    log_file: Optional[str] = None
    cloud: CloudConfig = CloudConfig()
    cloud_key: Optional[str] = None  # DEVMEM_CLOUD_KEY

    model_config = SettingsConfigDict(env_prefix="DEVMEM_", extra="ignore")

    def resolved_db_path(self) -> Path:
        if self.db_path:
            return Path(self.db_path).expanduser()
        return get_devmem_home() / "memory.db"


def default_config_path() -> Path:
    env_path = os.environ.get("DEVMEM_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return get_devmem_home() / "config.json"


def load_config(path: Optional[Union[str, Path]] = None) -> DevMemConfig:
    """Load config from a JSON file.

    A missing file yields defaults. An unreadable or invalid file is logged
    and also yields defaults.
    """
    config_path = Path(path).expanduser() if path else default_config_path()
    if not config_path.exists():
        return DevMemConfig()

    try:
        with open(config_path) as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("top-level value must be an object")
        return DevMemConfig(**data)
    except (OSError, ValueError, ValidationError) as e:
        logger.error(f"Ignoring invalid config {config_path}: {e}")
        return DevMemConfig()
