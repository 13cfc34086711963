import pytest

from rmgr.config.environment import Environment


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep tests away from the user's settings file and RMGR_* variables."""
    monkeypatch.setenv("RMGR_SETTINGS_FILE", str(tmp_path / "settings.yaml"))
    for key in ("RMGR_ACQUIRE_TIMEOUT", "RMGR_RELEASE_TIMEOUT", "LOG_LEVEL", "DEBUG", "RMGR_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    Environment.reset()
    yield
    Environment.reset()
