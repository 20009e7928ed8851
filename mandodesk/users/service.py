from __future__ import annotations

import logging
from typing import Iterable, Mapping, Sequence

from mandodesk import policy
from mandodesk.security import Principal, Role

from .models import User, UserSummary
from .repository import UserRepository

logger = logging.getLogger(__name__)


class UserDirectory:
    """Read access to users plus idempotent seeding of default accounts."""

    def __init__(self, repository: UserRepository) -> None:
        self._repository = repository

    async def ensure_schema(self) -> None:
        await self._repository.ensure_schema()

    async def lookup_names(self, user_ids: Iterable[str]) -> dict[str, str]:
        """Map ids to display names. Unknown ids are left out of the result."""

        users = await self._repository.get_many(user_ids)
        return {user_id: user.name for user_id, user in users.items()}

    async def get_summaries(self, user_ids: Iterable[str]) -> Mapping[str, UserSummary]:
        users = await self._repository.get_many(user_ids)
        return {user_id: user.summary() for user_id, user in users.items()}

    async def list_users(self, principal: Principal, *, role: Role | None = None) -> Sequence[UserSummary]:
        policy.ensure_can_list_users(principal)
        users = await self._repository.list_users(role=role)
        return [user.summary() for user in users]

    async def ensure_user(self, *, name: str, email: str, role: Role) -> tuple[User, bool]:
        """Return the user registered under ``email``, creating it if missing.

        The boolean is ``True`` when a new user was created.
        """

        existing = await self._repository.get_by_email(email)
        if existing is not None:
            return existing, False
        user = await self._repository.create_user(name=name, email=email, role=role)
        logger.info("Created %s user %s", role.value, email)
        return user, True
