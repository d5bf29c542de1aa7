"""User registry: who has logged in, when, and how often."""

from datetime import datetime
from typing import Callable, Optional

import structlog

from src.models.records import UserRecord, utcnow
from src.services.storage import UserRepository


logger = structlog.get_logger(__name__)


class UserRegistry:
    """Tracks first-seen / last-seen / login count per email."""

    def __init__(
        self,
        users: UserRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._users = users
        self._clock = clock or utcnow

    async def touch(self, email: str) -> UserRecord:
        """
        Record a login for this email.

        Creates the user on first sight, otherwise refreshes Last Login and
        increments Login Count.
        """
        email = email.strip().lower()
        now = self._clock()

        existing = await self._users.get(email)
        if existing is None:
            record = UserRecord(
                email=email,
                first_login_at=now,
                last_login_at=now,
                login_count=1,
            )
            await self._users.add(record)
            logger.info("user_registered", login_count=1)
            return record

        login_count = existing.login_count + 1
        await self._users.record_login(existing, last_login_at=now, login_count=login_count)
        logger.info("user_login_recorded", login_count=login_count)
        return existing.model_copy(update={
            "last_login_at": now,
            "login_count": login_count,
        })
