"""SyncParty relay configuration.

Settings are read from a single YAML file:
  * syncparty.settings.yaml  (or the path in $SYNCPARTY_SETTINGS)

Every section is optional; a missing file means all defaults.

Example:
    server:
      host: 0.0.0.0
      port: 8090
    logging:
      level: debug
    relay:
      max_pending_messages: 512
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("syncparty.settings.yaml")
SETTINGS_ENV_VAR = "SYNCPARTY_SETTINGS"

_LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host:            str       = "0.0.0.0"
    port:            int       = 8090
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])


class LoggingSettings(BaseModel):
    level: str = "info"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.lower()
        if value not in _LOG_LEVELS:
            raise ValueError(f"logging.level must be one of {', '.join(_LOG_LEVELS)}")
        return value


class RelaySettings(BaseModel):
    """Per-connection delivery limits."""
    max_pending_messages: int = Field(default=256, ge=1)


class AppConfig(BaseModel):
    server:  ServerSettings  = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    relay:   RelaySettings   = Field(default_factory=RelaySettings)


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_config(settings_path: Optional[Union[str, Path]] = None) -> AppConfig:
    """Load settings from *settings_path*, $SYNCPARTY_SETTINGS, or the default file."""
    if settings_path is None:
        settings_path = os.environ.get(SETTINGS_ENV_VAR) or SETTINGS_FILE
    path = Path(settings_path)

    config = AppConfig(**_load_yaml(path))
    logger.info(
        "Settings loaded from %s (server=%s:%s, log_level=%s)",
        path,
        config.server.host,
        config.server.port,
        config.logging.level,
    )
    return config


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the cached config. Used by tests."""
    global _config
    _config = None
