import os
from typing import Any


def get_system_env_value(key: str, default: Any = None) -> Any:
    """Return an environment variable value.

    Always reads the live process environment so tests can monkeypatch
    os.environ to drive configuration.
    """
    return os.environ.get(key, default)
