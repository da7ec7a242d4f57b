# tests/test_settings.py
from __future__ import annotations

from pathlib import Path

import pytest

import functions.utils.settings as settings_mod


@pytest.fixture(autouse=True)
def _clear_settings_cache(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for name in ("GITEA_URL", "TOKEN", "PORT", "HTTP_TIMEOUT_SECONDS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    # point at an empty parameters file unless a test writes one
    monkeypatch.setattr(settings_mod, "PARAMETERS_PATH", tmp_path / "parameters.yaml")
    settings_mod._load_yaml_parameters.cache_clear()
    settings_mod.get_settings.cache_clear()
    yield
    settings_mod._load_yaml_parameters.cache_clear()
    settings_mod.get_settings.cache_clear()


def test_get_settings_reads_required_values_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITEA_URL", "https://git.example.com")
    monkeypatch.setenv("TOKEN", "s3cret")

    s = settings_mod.get_settings()

    assert str(s.gitea_url).rstrip("/") == "https://git.example.com"
    assert s.token is not None and s.token.get_secret_value() == "s3cret"
    assert s.port == 8080
    assert s.http_timeout_seconds == 10.0


def test_get_settings_missing_required_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITEA_URL", "https://git.example.com")

    with pytest.raises(RuntimeError) as excinfo:
        settings_mod.get_settings()

    assert "TOKEN" in str(excinfo.value)
    assert "GITEA_URL" not in str(excinfo.value)


def test_get_settings_missing_everything_names_both(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(RuntimeError) as excinfo:
        settings_mod.get_settings()

    assert "GITEA_URL" in str(excinfo.value)
    assert "TOKEN" in str(excinfo.value)


def test_env_overrides_yaml_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    (tmp_path / "parameters.yaml").write_text(
        "gitea_url: https://yaml.example.com\n"
        "token: from-yaml\n"
        "port: 9000\n"
        "http_timeout_seconds: 3\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("PORT", "9100")

    s = settings_mod.get_settings()

    assert str(s.gitea_url).startswith("https://yaml.example.com")
    assert s.token is not None and s.token.get_secret_value() == "from-yaml"
    assert s.port == 9100
    assert s.http_timeout_seconds == 3.0


def test_non_mapping_yaml_is_ignored(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    (tmp_path / "parameters.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    monkeypatch.setenv("GITEA_URL", "https://git.example.com")
    monkeypatch.setenv("TOKEN", "t")

    s = settings_mod.get_settings()

    assert s.port == 8080


def test_token_is_not_exposed_in_repr(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITEA_URL", "https://git.example.com")
    monkeypatch.setenv("TOKEN", "s3cret")

    s = settings_mod.get_settings()

    assert "s3cret" not in repr(s)


def test_invalid_env_value_is_reported_instead_of_missing_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITEA_URL", "https://git.example.com")
    monkeypatch.setenv("TOKEN", "s3cret")
    monkeypatch.setenv("PORT", "abc")

    with pytest.raises(RuntimeError) as excinfo:
        settings_mod.get_settings()

    message = str(excinfo.value)
    assert "port" in message
    assert "Missing required settings" not in message
    assert "s3cret" not in message
