from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Literal, Optional

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]

ENV_PREFIX = "NOTIFICATION_SMUGGLER_"


class SmugglerConfig(BaseModel):
    """Runtime knobs for the package, loaded from file + env overrides."""

    # level of the sink added by configure_logging()
    log_level: LogLevel = "WARNING"
    # level of the advisory line written when a notification fails to decode
    decode_failure_level: LogLevel = "WARNING"
    # per-sequence buffer for pull observation; 0 means unbounded
    sequence_buffer: int = Field(default=0, ge=0)
    # reject a second payload type claiming a channel that is already owned
    strict_channels: bool = True


class ConfigManager:
    """Load configuration from a JSON file with environment overrides.

    - default < config file < environment variables
    - the file is only read when NOTIFICATION_SMUGGLER_CONFIG_PATH points at it
    - a missing or corrupted file falls back to defaults; importing the
      package never fails because of configuration
    """

    def __init__(self, environ: Optional[dict[str, str]] = None) -> None:
        self.environ = environ if environ is not None else os.environ

    def _env(self, name: str) -> Optional[str]:
        raw = self.environ.get(ENV_PREFIX + name)
        if raw is None or str(raw).strip() == "":
            return None
        return str(raw).strip()

    def _read_file(self, cfg_path: Path) -> dict:
        if not cfg_path.exists():
            logger.warning("Config file {} not found, using defaults", cfg_path)
            return {}
        try:
            data = json.loads(cfg_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Config file {} unreadable ({}), using defaults", cfg_path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Config file {} must hold a JSON object, using defaults", cfg_path)
            return {}
        return data

    def load(self) -> SmugglerConfig:
        data: dict = {}

        # 1) file
        raw_path = self._env("CONFIG_PATH")
        if raw_path:
            data = self._read_file(Path(raw_path).expanduser())

        # 2) env overrides
        for key in ("LOG_LEVEL", "DECODE_FAILURE_LEVEL"):
            v = self._env(key)
            if v is not None:
                data[key.lower()] = v.upper()

        v = self._env("SEQUENCE_BUFFER")
        if v is not None:
            try:
                data["sequence_buffer"] = int(v)
            except ValueError:
                logger.warning("Ignoring non-integer {}SEQUENCE_BUFFER={!r}", ENV_PREFIX, v)

        v = self._env("STRICT_CHANNELS")
        if v is not None:
            data["strict_channels"] = v.lower() in ("1", "true", "yes", "on")

        try:
            return SmugglerConfig.model_validate(data)
        except ValidationError as e:
            logger.warning("Invalid configuration ({} errors), using defaults", e.error_count())
            return SmugglerConfig()


_config: Optional[SmugglerConfig] = None
_config_lock = threading.Lock()


def get_config() -> SmugglerConfig:
    global _config
    with _config_lock:
        if _config is None:
            _config = ConfigManager().load()
        return _config


def set_config(cfg: SmugglerConfig) -> None:
    """Replace the active configuration (embedding applications, tests)."""
    global _config
    with _config_lock:
        _config = cfg


def reset_config() -> None:
    """Forget the cached configuration; the next get_config() reloads it."""
    global _config
    with _config_lock:
        _config = None
