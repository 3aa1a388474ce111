from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from clawhub.config import load_settings, resolve_config_path

_ENV_VARS = (
    "GITHUB_TOKEN",
    "CLAWHUB_DB_PATH",
    "CLAWHUB_GITHUB_API_URL",
    "CLAWHUB_GITHUB_TIMEOUT",
    "CLAWHUB_PROFILE_SYNC_WINDOW_HOURS",
    "CLAWHUB_API_TOKENS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_config_file(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "missing.yaml")

    assert settings.github.api_url == "https://api.github.com"
    assert settings.github.token is None
    assert settings.github.user_agent == "clawhub"
    assert settings.profile_sync_window == timedelta(hours=6)
    assert settings.api_tokens == []
    assert settings.database_path.name == "clawhub.sqlite3"


def test_yaml_file_is_applied(tmp_path: Path) -> None:
    config_file = tmp_path / "clawhub.yaml"
    config_file.write_text(
        "database_path: data/registry.sqlite3\n"
        "profile_sync_window_hours: 24\n"
        "api_tokens: [alpha, ' beta ']\n"
        "github:\n"
        "  api_url: https://github.example.com/api/v3/\n"
        "  token: ghp_file\n"
        "  timeout: 2.5\n",
        encoding="utf-8",
    )

    settings = load_settings(config_file)

    assert settings.database_path == (tmp_path / "data" / "registry.sqlite3").resolve()
    assert settings.profile_sync_window == timedelta(hours=24)
    assert settings.api_tokens == ["alpha", "beta"]
    assert settings.github.api_url == "https://github.example.com/api/v3"
    assert settings.github.token == "ghp_file"
    assert settings.github.timeout == 2.5


def test_environment_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_file = tmp_path / "clawhub.yaml"
    config_file.write_text("github:\n  token: ghp_file\n", encoding="utf-8")
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_env")
    monkeypatch.setenv("CLAWHUB_DB_PATH", str(tmp_path / "env.sqlite3"))
    monkeypatch.setenv("CLAWHUB_PROFILE_SYNC_WINDOW_HOURS", "1.5")
    monkeypatch.setenv("CLAWHUB_API_TOKENS", "one, two,,")

    settings = load_settings(config_file)

    assert settings.github.token == "ghp_env"
    assert settings.database_path == (tmp_path / "env.sqlite3").resolve()
    assert settings.profile_sync_window == timedelta(minutes=90)
    assert settings.api_tokens == ["one", "two"]


def test_invalid_numeric_setting(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLAWHUB_GITHUB_TIMEOUT", "soon")

    with pytest.raises(ValueError, match="CLAWHUB_GITHUB_TIMEOUT"):
        load_settings(tmp_path / "missing.yaml")


def test_non_mapping_file_is_rejected(tmp_path: Path) -> None:
    config_file = tmp_path / "clawhub.yaml"
    config_file.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(config_file)


def test_resolve_config_path(tmp_path: Path) -> None:
    assert resolve_config_path(str(tmp_path / "x.yaml")) == (tmp_path / "x.yaml").resolve()
    assert resolve_config_path(None).name == "clawhub.yaml"
