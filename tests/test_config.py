import pytest

from voxintent.config import load_settings
from voxintent.errors import ConfigurationError
from voxintent.logging_utils import bind_session, current_session


def test_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    settings = load_settings()
    assert settings.backend == "ollama"
    assert settings.port == 8082
    assert settings.completion_timeout_seconds == 30.0
    assert settings.context_max_turns == 5
    assert settings.context_ttl_minutes == 30.0


def test_environment_and_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("VOXINTENT_MODEL", "qwen2.5:7b")
    monkeypatch.setenv("VOXINTENT_PORT", "9000")

    settings = load_settings(port=9100, backend=None)
    assert settings.model == "qwen2.5:7b"
    assert settings.port == 9100
    assert settings.backend == "ollama"


def test_invalid_values_raise_configuration_error(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ConfigurationError):
        load_settings(backend="telepathy")
    with pytest.raises(ConfigurationError):
        load_settings(completion_timeout_seconds=0)


def test_bind_session_scopes_log_context() -> None:
    assert current_session() == "-"
    with bind_session("abc"):
        assert current_session() == "abc"
    assert current_session() == "-"
