"""Shared clock constants and a fake GitHub API for the test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

import httpx

from clawhub.config import GitHubSettings
from clawhub.github import GitHubClient

ONE_DAY_MS = 24 * 60 * 60 * 1000
NOW = int(datetime(2026, 2, 2, 12, 0, tzinfo=timezone.utc).timestamp() * 1000)


def fixed_clock() -> int:
    return NOW


class FakeGitHub:
    """Stands in for api.github.com and records every request it receives."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.payload: object = {"created_at": "2020-01-01T00:00:00Z"}
        self.raw_body: Optional[bytes] = None
        self.error: Optional[Exception] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.raw_body is not None:
            return httpx.Response(self.status_code, content=self.raw_body)
        return httpx.Response(self.status_code, json=self.payload)

    def client(self, token: Optional[str] = None) -> GitHubClient:
        return GitHubClient(
            GitHubSettings(token=token),
            transport=httpx.MockTransport(self.handler),
        )
