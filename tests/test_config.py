from pathlib import Path

import pytest
from pydantic import ValidationError

from fsrelay.config import Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("FSRELAY_ROOT", "FSRELAY_LOG_LEVEL", "FSRELAY_EXECUTE_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    settings = Settings()

    assert settings.root == Path.cwd()
    assert settings.log_level == "INFO"
    assert settings.execute_timeout == 10.0


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("FSRELAY_ROOT", str(tmp_path))
    monkeypatch.setenv("FSRELAY_LOG_LEVEL", "debug")
    monkeypatch.setenv("FSRELAY_EXECUTE_TIMEOUT", "2.5")

    settings = get_settings()

    assert settings.root == tmp_path
    assert settings.log_level == "DEBUG"
    assert settings.execute_timeout == 2.5


def test_settings_are_cached():
    assert get_settings() is get_settings()


def test_invalid_timeout(monkeypatch):
    monkeypatch.setenv("FSRELAY_EXECUTE_TIMEOUT", "0")

    with pytest.raises(ValidationError):
        Settings()


def test_empty_variables_use_defaults(monkeypatch):
    monkeypatch.setenv("FSRELAY_LOG_LEVEL", "")
    monkeypatch.setenv("FSRELAY_EXECUTE_TIMEOUT", "")

    settings = Settings()

    assert settings.log_level == "INFO"
    assert settings.execute_timeout == 10.0


def test_unprefixed_variables_are_ignored(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")

    assert Settings().log_level == "INFO"
