"""Domain models for the registry's GitHub-linked users."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class User:
    """Represents a registry account stored in the database.

    ``github_created_at`` and ``github_profile_synced_at`` are epoch
    milliseconds and stay ``None`` until the first successful lookup or sync.
    """

    id: int
    name: Optional[str]
    image: Optional[str]
    email: Optional[str]
    created_at: datetime
    deactivated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    github_created_at: Optional[int] = None
    github_profile_synced_at: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.deactivated_at is None and self.deleted_at is None


@dataclass(frozen=True)
class GitHubProfile:
    """Subset of the GitHub ``/user/{id}`` payload used by the registry."""

    created_at: int
    login: Optional[str] = None
    avatar_url: Optional[str] = None


__all__ = ["GitHubProfile", "User"]
