"""
Configuration loading -- ``<home>/config.yaml``.

A literal placeholder in ``remote.api_key`` means no remote backend has
been set up yet; the client then runs from the local cache only.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from . import PAGE_HOME
from .defaults import ADMIN_DIGEST, ADMIN_SALT

logger = logging.getLogger("creatorpage.config")

CONFIG_FILE = "config.yaml"
PLACEHOLDER_API_KEY = "YOUR_API_KEY_HERE"
DEFAULT_REMOTE_PATH = "portfolioData"
DEFAULT_FALLBACK_SECONDS = 3.0


class RemoteConfig(BaseModel):
    """Where the realtime store lives and how to reach it."""

    database_url: str = ""
    api_key: str = PLACEHOLDER_API_KEY
    project_id: str = ""
    path: str = DEFAULT_REMOTE_PATH
    auth_token: Optional[str] = None
    timeout_seconds: float = Field(default=10.0, gt=0)

    @property
    def is_configured(self) -> bool:
        """False while the credential is still the placeholder."""
        return (
            bool(self.api_key)
            and self.api_key != PLACEHOLDER_API_KEY
            and bool(self.database_url)
        )


class AdminConfig(BaseModel):
    """Salt and stored digest for the edit password."""

    salt: str = ADMIN_SALT
    digest: str = ADMIN_DIGEST


class PageConfig(BaseModel):
    """Complete client configuration."""

    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    fallback_seconds: float = Field(default=DEFAULT_FALLBACK_SECONDS, ge=0)
    cache_dir: Path = Path("cache")
    admin: AdminConfig = Field(default_factory=AdminConfig)

    def cache_path(self, home: Path) -> Path:
        """Cache directory, resolved against ``home`` when relative."""
        path = self.cache_dir.expanduser()
        return path if path.is_absolute() else home / path


def resolve_home(home: Optional[Path] = None) -> Path:
    return Path(home or PAGE_HOME).expanduser()


def _apply_env(config: PageConfig) -> PageConfig:
    api_key = os.environ.get("CREATORPAGE_API_KEY")
    database_url = os.environ.get("CREATORPAGE_DATABASE_URL")
    if api_key:
        config.remote.api_key = api_key
    if database_url:
        config.remote.database_url = database_url
    return config


def load_config(home: Optional[Path] = None) -> PageConfig:
    """Load configuration from ``<home>/config.yaml``.

    Missing or unreadable files fall back to defaults. Environment
    variables CREATORPAGE_API_KEY and CREATORPAGE_DATABASE_URL win over
    the file.
    """
    config_file = resolve_home(home) / CONFIG_FILE
    config = PageConfig()
    if config_file.exists():
        try:
            data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
            config = PageConfig(**data)
        except (OSError, yaml.YAMLError, TypeError, ValueError) as exc:
            logger.warning("Failed to load config %s: %s", config_file, exc)
    return _apply_env(config)


def save_config(config: PageConfig, home: Optional[Path] = None) -> Path:
    """Write ``config`` to ``<home>/config.yaml`` and return the path."""
    home_path = resolve_home(home)
    home_path.mkdir(parents=True, exist_ok=True)
    config_file = home_path / CONFIG_FILE
    data = config.model_dump(mode="json")
    config_file.write_text(
        yaml.dump(data, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
    return config_file
