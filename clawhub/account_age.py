"""Minimum GitHub account age gate for publishing skills."""
from __future__ import annotations

import logging
import math

from .database import Database
from .errors import AccountTooYoung, GitHubAccountRequired, UserNotFound
from .github import IdentityResolver
from .timeutil import MS_PER_DAY, Clock, now_ms

logger = logging.getLogger("clawhub.account_age")

MIN_ACCOUNT_AGE_DAYS = 7
MIN_ACCOUNT_AGE_MS = MIN_ACCOUNT_AGE_DAYS * MS_PER_DAY


def check_account_age(github_created_at: int, now: int) -> None:
    """Raise :class:`AccountTooYoung` unless the account reached the minimum age."""

    age_ms = now - github_created_at
    if age_ms >= MIN_ACCOUNT_AGE_MS:
        return
    remaining_ms = MIN_ACCOUNT_AGE_MS - age_ms
    remaining_days = max(1, math.ceil(remaining_ms / MS_PER_DAY))
    raise AccountTooYoung(remaining_days, min_age_days=MIN_ACCOUNT_AGE_DAYS)


class AccountAgeGate:
    """Reject privileged actions for GitHub accounts younger than seven days.

    The GitHub creation time is looked up once and cached on the user record;
    every later check is answered from that cache without a network call.
    """

    def __init__(
        self,
        database: Database,
        resolver: IdentityResolver,
        *,
        clock: Clock = now_ms,
    ) -> None:
        self._database = database
        self._resolver = resolver
        self._clock = clock

    def require_account_age(self, user_id: int) -> None:
        user = self._database.get_user(user_id)
        if user is None or not user.is_active:
            raise UserNotFound()

        now = self._clock()
        created_at = user.github_created_at

        if created_at is None:
            provider_account_id = self._resolver.resolve_provider_account_id(user_id)
            if not provider_account_id:
                raise GitHubAccountRequired()

            profile = self._resolver.fetch_github_profile(provider_account_id)
            created_at = profile.created_at
            self._database.set_github_created_at(user_id, created_at)
            logger.info("Cached GitHub account creation time for user %s", user_id)

        try:
            check_account_age(created_at, now)
        except AccountTooYoung as exc:
            logger.info(
                "Rejected user %s: GitHub account too young (%s day(s) remaining)",
                user_id,
                exc.remaining_days,
            )
            raise


__all__ = ["AccountAgeGate", "MIN_ACCOUNT_AGE_DAYS", "MIN_ACCOUNT_AGE_MS", "check_account_age"]
