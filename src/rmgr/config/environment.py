"""
Environment Configuration Management Module

Centralised configuration access for rmgr through the Environment class.
Values are resolved from, in order of precedence:

- The settings file (settings.yaml, or the file named by RMGR_SETTINGS_FILE)
- Environment variables, after loading .env files with python-dotenv
- Built-in defaults

The resource manager never reads configuration implicitly; callers opt in
through ResourceManagerConfig.from_environment().
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from rmgr.config.env_guard import get_system_env_value
from rmgr.config.settings import SETTINGS_FILE, get_system_file_path, get_value, load_settings

DEFAULT_ENV = {
    "RMGR_ACQUIRE_TIMEOUT": None,
    "RMGR_RELEASE_TIMEOUT": None,
}


def load_dotenv_files(directory: Path | None = None) -> None:
    """Load environment variables from .env files for the current environment.

    Files are read from `directory` (default: the working directory). Values
    already present in the process environment are never overridden.
    """
    from dotenv import load_dotenv

    root = directory or Path.cwd()
    env_name = os.environ.get("ENV", "development")

    env_files = [
        root / ".env",
        root / f".env.{env_name}",
        root / f".env.{env_name}.local",
    ]

    for env_file in env_files:
        if env_file.exists():
            load_dotenv(env_file, override=False)


class Environment(object):
    """
    Manages configuration values and their type conversions.

    Settings are loaded lazily on first access and cached on the class;
    call `reset()` to force a reload (tests do this between cases).
    """

    settings: Optional[Dict[str, Any]] = None

    @classmethod
    def get_settings_path(cls) -> Path:
        override = get_system_env_value("RMGR_SETTINGS_FILE")
        if override:
            return Path(override)
        return get_system_file_path(SETTINGS_FILE)

    @classmethod
    def load_settings(cls):
        load_dotenv_files()
        cls.settings = load_settings(cls.get_settings_path())

    @classmethod
    def get_settings(cls) -> Dict[str, Any]:
        if cls.settings is None:
            cls.load_settings()
        assert cls.settings is not None
        return cls.settings

    @classmethod
    def reset(cls) -> None:
        """Drop cached settings so the next access reloads them."""
        cls.settings = None

    @classmethod
    def get(cls, key: str, default: Any = None):
        return get_value(key, cls.get_settings(), DEFAULT_ENV, default)

    @classmethod
    def get_log_level(cls) -> str:
        """Return desired log level string.

        Priority:
        1) Explicit LOG_LEVEL from env
        2) If DEBUG env is truthy, return "DEBUG"
        3) RMGR_LOG_LEVEL env (default "INFO")
        """
        level = os.getenv("LOG_LEVEL")
        if level:
            return str(level).upper()
        debug_env = os.getenv("DEBUG")
        if debug_env and debug_env.lower() not in ("0", "false", "no", "off", ""):
            return "DEBUG"
        return os.getenv("RMGR_LOG_LEVEL", "INFO").upper()

    @classmethod
    def _get_float_setting(cls, key: str) -> float | None:
        raw = cls.get(key)
        if raw is None or str(raw).strip() == "":
            return None
        try:
            return float(raw)
        except (TypeError, ValueError):
            raise ValueError(f"{key} must be a number of seconds, got {raw!r}") from None

    @classmethod
    def get_acquire_timeout(cls) -> float | None:
        """
        Deadline in seconds for acquire actions, or None for no deadline.
        """
        return cls._get_float_setting("RMGR_ACQUIRE_TIMEOUT")

    @classmethod
    def get_release_timeout(cls) -> float | None:
        """
        Deadline in seconds for release actions, or None for no deadline.
        """
        return cls._get_float_setting("RMGR_RELEASE_TIMEOUT")
