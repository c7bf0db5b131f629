"""
Application configuration -- where documents live and where backups go.

Stored as ``config.yaml`` in the app home. Anything missing falls
back to the defaults below.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel

from . import APP_HOME

logger = logging.getLogger("oneclickcopy.config")

CONFIG_FILE = "config.yaml"


class RemoteBackendType(str, Enum):
    """Supported remote backup stores."""

    GDRIVE = "gdrive"
    LOCAL = "local"


class RemoteConfig(BaseModel):
    """Configuration for the remote backup store."""

    backend_type: RemoteBackendType = RemoteBackendType.LOCAL

    # Local directory store
    local_path: Optional[Path] = None

    # Google Drive
    gdrive_credentials_path: Optional[Path] = None
    gdrive_token_path: Optional[Path] = None


class AppConfig(BaseModel):
    """Complete application configuration."""

    remote: RemoteConfig = RemoteConfig()
    database: str = "documents.db"
    cooldown_seconds: float = 60.0
    debounce_ms: int = 500


def resolve_home(home: Optional[Path] = None) -> Path:
    """Expand the app home, defaulting to ``ONECLICKCOPY_HOME``."""
    return Path(home or APP_HOME).expanduser()


def load_config(home: Optional[Path] = None) -> AppConfig:
    """Load configuration from ``<home>/config.yaml``.

    Args:
        home: App home directory. Defaults to ``~/.oneclickcopy``.

    Returns:
        AppConfig: Parsed config, or defaults if the file is absent or broken.
    """
    config_file = resolve_home(home) / CONFIG_FILE
    if config_file.exists():
        try:
            data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
            return AppConfig(**data)
        except (yaml.YAMLError, ValueError) as exc:
            logger.warning("Failed to load config %s: %s", config_file, exc)
    return AppConfig()


def save_config(config: AppConfig, home: Optional[Path] = None) -> Path:
    """Persist configuration as YAML.

    Returns:
        Path: The written config file.
    """
    home_path = resolve_home(home)
    home_path.mkdir(parents=True, exist_ok=True)
    config_file = home_path / CONFIG_FILE
    data = config.model_dump(mode="json", exclude_none=True)
    config_file.write_text(yaml.dump(data, default_flow_style=False), encoding="utf-8")
    logger.info("Saved config to %s", config_file)
    return config_file
