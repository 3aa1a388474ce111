"""GitHub REST client and the user-to-GitHub identity bridge."""
from __future__ import annotations

import logging
import re
from typing import Dict, Optional

import httpx

from .config import GitHubSettings
from .database import Database
from .errors import GitHubLookupFailed, RateLimitExceeded
from .models import GitHubProfile
from .timeutil import parse_iso8601_ms

logger = logging.getLogger("clawhub.github")

_NUMERIC_ID = re.compile(r"[0-9]+")
_RATE_LIMIT_STATUSES = {403, 429}


def assert_github_numeric_id(provider_account_id: str) -> None:
    """Reject linkage values that are not a GitHub numeric account id."""

    if not _NUMERIC_ID.fullmatch(provider_account_id):
        raise GitHubLookupFailed()


def _optional_str(value: object) -> Optional[str]:
    if isinstance(value, str):
        return value
    return None


class GitHubClient:
    """Fetch GitHub user profiles by their immutable numeric id.

    Each call is exactly one HTTP round trip. Retries and backoff are left to
    the caller, which can tell a rate limit apart from other failures through
    :class:`~clawhub.errors.RateLimitExceeded`.
    """

    def __init__(
        self,
        settings: GitHubSettings | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = settings or GitHubSettings()
        self._http = httpx.Client(
            timeout=self._settings.timeout,
            transport=transport,
            follow_redirects=True,
        )

    @property
    def settings(self) -> GitHubSettings:
        return self._settings

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def build_headers(self) -> Dict[str, str]:
        headers = {"User-Agent": self._settings.user_agent}
        if self._settings.token:
            headers["Authorization"] = f"Bearer {self._settings.token}"
        return headers

    def user_url(self, provider_account_id: str) -> str:
        return f"{self._settings.api_url.rstrip('/')}/user/{provider_account_id}"

    def fetch_user(self, provider_account_id: str) -> GitHubProfile:
        assert_github_numeric_id(provider_account_id)

        url = self.user_url(provider_account_id)
        logger.debug("Fetching GitHub profile for account %s", provider_account_id)
        try:
            response = self._http.get(url, headers=self.build_headers())
        except httpx.HTTPError as exc:
            raise GitHubLookupFailed() from exc

        if not response.is_success:
            logger.warning(
                "GitHub API returned %s for account %s", response.status_code, provider_account_id
            )
            if response.status_code in _RATE_LIMIT_STATUSES:
                raise RateLimitExceeded()
            raise GitHubLookupFailed()

        try:
            payload = response.json()
        except ValueError as exc:
            raise GitHubLookupFailed() from exc

        if not isinstance(payload, dict):
            raise GitHubLookupFailed()

        raw_created_at = payload.get("created_at")
        if not isinstance(raw_created_at, str) or not raw_created_at.strip():
            raise GitHubLookupFailed()
        try:
            created_at = parse_iso8601_ms(raw_created_at)
        except ValueError as exc:
            raise GitHubLookupFailed() from exc

        return GitHubProfile(
            created_at=created_at,
            login=_optional_str(payload.get("login")),
            avatar_url=_optional_str(payload.get("avatar_url")),
        )


class IdentityResolver:
    """Map registry users to their GitHub account and fetch its live profile."""

    def __init__(self, database: Database, client: GitHubClient) -> None:
        self._database = database
        self._client = client

    def resolve_provider_account_id(self, user_id: int) -> Optional[str]:
        return self._database.get_github_provider_account_id(user_id)

    def fetch_github_profile(self, provider_account_id: str) -> GitHubProfile:
        return self._client.fetch_user(provider_account_id)


__all__ = ["GitHubClient", "IdentityResolver", "assert_github_numeric_id"]
