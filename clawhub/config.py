"""Configuration management for the clawhub identity service."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from datetime import timedelta
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from .database import resolve_database_path

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_USER_AGENT = "clawhub"
DEFAULT_PROFILE_SYNC_WINDOW = timedelta(hours=6)


def _parse_float(name: str, value: Optional[str], default: float) -> float:
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Invalid numeric value {value!r} for {name}") from exc


def _split_tokens(raw: str) -> List[str]:
    return [token.strip() for token in raw.split(",") if token.strip()]


@dataclass(frozen=True)
class GitHubSettings:
    """How to reach the GitHub REST API."""

    api_url: str = DEFAULT_GITHUB_API_URL
    token: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 10.0

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "GitHubSettings":
        """Create :class:`GitHubSettings` from the ``github`` section of the YAML file."""
        token = data.get("token")
        return GitHubSettings(
            api_url=str(data.get("api_url", DEFAULT_GITHUB_API_URL)).rstrip("/"),
            token=(str(token).strip() or None) if token is not None else None,
            user_agent=str(data.get("user_agent", DEFAULT_USER_AGENT)),
            timeout=_parse_float("github.timeout", str(data.get("timeout", 10.0)), 10.0),
        )


@dataclass(frozen=True)
class Settings:
    database_path: Path
    github: GitHubSettings = field(default_factory=GitHubSettings)
    profile_sync_window: timedelta = DEFAULT_PROFILE_SYNC_WINDOW
    api_tokens: List[str] = field(default_factory=list)


def _apply_file(settings: Settings, raw: Dict[str, object], config_dir: Path) -> Settings:
    updates: Dict[str, object] = {}

    db_path = raw.get("database_path")
    if db_path:
        candidate = Path(str(db_path)).expanduser()
        if not candidate.is_absolute():
            candidate = config_dir / candidate
        updates["database_path"] = candidate.resolve(strict=False)

    github_raw = raw.get("github")
    if github_raw is not None:
        if not isinstance(github_raw, dict):
            raise ValueError("The 'github' configuration section must be a mapping")
        updates["github"] = GitHubSettings.from_dict(github_raw)

    window = raw.get("profile_sync_window_hours")
    if window is not None:
        hours = _parse_float("profile_sync_window_hours", str(window), 6.0)
        updates["profile_sync_window"] = timedelta(hours=hours)

    tokens = raw.get("api_tokens")
    if tokens:
        if isinstance(tokens, str):
            updates["api_tokens"] = _split_tokens(tokens)
        else:
            updates["api_tokens"] = [str(token).strip() for token in tokens if str(token).strip()]

    return replace(settings, **updates)


def _apply_env(settings: Settings) -> Settings:
    github = settings.github

    token = os.getenv("GITHUB_TOKEN")
    if token and token.strip():
        github = replace(github, token=token.strip())

    api_url = os.getenv("CLAWHUB_GITHUB_API_URL")
    if api_url and api_url.strip():
        github = replace(github, api_url=api_url.strip().rstrip("/"))

    timeout_raw = os.getenv("CLAWHUB_GITHUB_TIMEOUT")
    if timeout_raw is not None:
        github = replace(
            github,
            timeout=_parse_float("CLAWHUB_GITHUB_TIMEOUT", timeout_raw, github.timeout),
        )

    updates: Dict[str, object] = {"github": github}

    db_env = os.getenv("CLAWHUB_DB_PATH")
    if db_env:
        updates["database_path"] = resolve_database_path(db_env)

    window_raw = os.getenv("CLAWHUB_PROFILE_SYNC_WINDOW_HOURS")
    if window_raw is not None and window_raw.strip():
        hours = _parse_float("CLAWHUB_PROFILE_SYNC_WINDOW_HOURS", window_raw, 6.0)
        updates["profile_sync_window"] = timedelta(hours=hours)

    tokens_raw = os.getenv("CLAWHUB_API_TOKENS")
    if tokens_raw:
        updates["api_tokens"] = _split_tokens(tokens_raw)

    return replace(settings, **updates)


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load settings from defaults, an optional YAML file, then the environment."""

    settings = Settings(database_path=resolve_database_path(None))

    if config_path is not None and config_path.exists():
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        settings = _apply_file(settings, raw, config_path.parent)

    return _apply_env(settings)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "clawhub.yaml").resolve(strict=False)
    return candidate


__all__ = [
    "DEFAULT_PROFILE_SYNC_WINDOW",
    "GitHubSettings",
    "Settings",
    "load_settings",
    "resolve_config_path",
]
