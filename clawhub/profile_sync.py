"""Best-effort refresh of cached GitHub display names and avatars."""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from .config import DEFAULT_PROFILE_SYNC_WINDOW
from .database import Database
from .github import IdentityResolver
from .models import User
from .timeutil import Clock, now_ms, to_ms

logger = logging.getLogger("clawhub.profile_sync")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def should_schedule_profile_sync(
    user: Optional[User],
    now: int,
    window: timedelta = DEFAULT_PROFILE_SYNC_WINDOW,
) -> bool:
    """Return ``True`` when a profile sync for ``user`` would not be throttled."""

    if user is None or not user.is_active:
        return False
    last_synced_at = user.github_profile_synced_at
    if last_synced_at is not None and now - last_synced_at < to_ms(window):
        return False
    return True


class ProfileSyncer:
    """Keep ``name``/``image`` loosely in sync with the user's GitHub profile.

    Users synced within the throttle window and users without a linked GitHub
    account are skipped silently. Lookup failures propagate to the caller.
    """

    def __init__(
        self,
        database: Database,
        resolver: IdentityResolver,
        *,
        window: timedelta = DEFAULT_PROFILE_SYNC_WINDOW,
        clock: Clock = now_ms,
    ) -> None:
        self._database = database
        self._resolver = resolver
        self._window = window
        self._clock = clock

    @property
    def window(self) -> timedelta:
        return self._window

    def sync_profile(self, user_id: int) -> bool:
        """Refresh the user's profile and return ``True`` when it was rewritten."""

        user = self._database.get_user(user_id)
        now = self._clock()
        if user is None or not should_schedule_profile_sync(user, now, self._window):
            logger.debug("Skipping GitHub profile sync for user %s", user_id)
            return False

        provider_account_id = self._resolver.resolve_provider_account_id(user_id)
        if not provider_account_id:
            logger.debug("User %s has no linked GitHub account; nothing to sync", user_id)
            return False

        profile = self._resolver.fetch_github_profile(provider_account_id)

        new_name = _clean(profile.login) or user.name
        new_image = _clean(profile.avatar_url) or user.image

        # Unchanged profiles leave the sync timestamp alone so the next
        # eligible call checks GitHub again.
        if new_name == user.name and new_image == user.image:
            return False

        self._database.sync_github_profile(
            user_id,
            synced_at=now,
            name=new_name,
            image=new_image,
        )
        logger.info("Synced GitHub profile for user %s (login=%s)", user_id, new_name)
        return True


__all__ = ["ProfileSyncer", "should_schedule_profile_sync"]
