"""Create the default admin, agent and customer accounts if they are missing.

Run with ``python -m mandodesk.tools.seed_users``. Pass ``--print-tokens`` to
also print a bearer token per account for local testing.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Sequence

from mandodesk.core.config import Settings, get_settings
from mandodesk.core.logging import configure_logging
from mandodesk.db.session import create_engine_from_settings, create_session_factory
from mandodesk.security import Principal, Role, create_access_token
from mandodesk.users.models import User
from mandodesk.users.repository import UserRepository
from mandodesk.users.service import UserDirectory

logger = logging.getLogger(__name__)


def default_accounts(settings: Settings) -> list[tuple[str, str, Role]]:
    return [
        (settings.seed_admin_name, settings.seed_admin_email, Role.ADMIN),
        (settings.seed_agent_name, settings.seed_agent_email, Role.AGENT),
        (settings.seed_customer_name, settings.seed_customer_email, Role.CUSTOMER),
    ]


async def seed_users(directory: UserDirectory, settings: Settings) -> list[User]:
    users: list[User] = []
    for name, email, role in default_accounts(settings):
        user, created = await directory.ensure_user(name=name, email=email, role=role)
        if not created:
            logger.info("%s exists: %s", role.value, email)
        users.append(user)
    return users


async def _run(settings: Settings, print_tokens: bool) -> None:
    engine = create_engine_from_settings(settings)
    try:
        repository = UserRepository(create_session_factory(engine), engine=engine)
        directory = UserDirectory(repository)
        await directory.ensure_schema()
        users = await seed_users(directory, settings)
    finally:
        await engine.dispose()

    if print_tokens:
        for user in users:
            token = create_access_token(Principal(id=user.id, role=user.role), settings=settings)
            print(f"{user.role.value}\t{user.email}\t{token}")


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--print-tokens", action="store_true", help="print a bearer token per account")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings)
    asyncio.run(_run(settings, args.print_tokens))


if __name__ == "__main__":
    main()
