"""Failure taxonomy shared by the GitHub identity workflows."""
from __future__ import annotations

import enum


class GitHubErrorKind(str, enum.Enum):
    """Closed set of failure kinds raised by the identity workflows."""

    USER_NOT_FOUND = "user_not_found"
    ACCOUNT_TOO_YOUNG = "account_too_young"
    GITHUB_ACCOUNT_REQUIRED = "github_account_required"
    GITHUB_LOOKUP_FAILED = "github_lookup_failed"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"


class GitHubIdentityError(RuntimeError):
    """Base class for every failure surfaced by the identity workflows."""

    kind: GitHubErrorKind
    default_message = "GitHub identity check failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class UserNotFound(GitHubIdentityError):
    """Raised for unknown users and for deactivated or deleted accounts alike."""

    kind = GitHubErrorKind.USER_NOT_FOUND
    default_message = "User not found"


class AccountTooYoung(GitHubIdentityError):
    kind = GitHubErrorKind.ACCOUNT_TOO_YOUNG

    def __init__(self, remaining_days: int, *, min_age_days: int = 7) -> None:
        self.remaining_days = remaining_days
        self.min_age_days = min_age_days
        suffix = "" if remaining_days == 1 else "s"
        super().__init__(
            f"GitHub account must be at least {min_age_days} days old to upload skills. "
            f"Try again in {remaining_days} day{suffix}."
        )


class GitHubAccountRequired(GitHubIdentityError):
    kind = GitHubErrorKind.GITHUB_ACCOUNT_REQUIRED
    default_message = "GitHub account required"


class GitHubLookupFailed(GitHubIdentityError):
    kind = GitHubErrorKind.GITHUB_LOOKUP_FAILED
    default_message = "GitHub account lookup failed"


class RateLimitExceeded(GitHubIdentityError):
    """GitHub answered 403 or 429; callers should back off rather than retry."""

    kind = GitHubErrorKind.RATE_LIMIT_EXCEEDED
    default_message = "GitHub API rate limit exceeded. Please try again in a few minutes."


__all__ = [
    "AccountTooYoung",
    "GitHubAccountRequired",
    "GitHubErrorKind",
    "GitHubIdentityError",
    "GitHubLookupFailed",
    "RateLimitExceeded",
    "UserNotFound",
]
