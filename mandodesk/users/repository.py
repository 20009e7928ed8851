from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Iterable, Sequence

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import select

from mandodesk.core.errors import translate_store_errors
from mandodesk.db.models import UserTable
from mandodesk.db.session import create_schema, ensure_datetime
from mandodesk.security import Role

from .models import User


class UserRepository:
    """Persistence helper wrapping the ``users`` table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine: AsyncEngine | None = engine

    async def ensure_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("Session factory is not bound to an async engine")
        with translate_store_errors("create user schema"):
            await create_schema(self._engine)

    async def get_by_email(self, email: str) -> User | None:
        with translate_store_errors("load user"):
            async with self._session_factory() as session:
                result = await session.execute(select(UserTable).where(UserTable.email == email))
                row = result.scalars().first()
        return None if row is None else self._table_to_user(row)

    async def get_many(self, user_ids: Iterable[str]) -> dict[str, User]:
        ids = sorted({user_id for user_id in user_ids if user_id})
        if not ids:
            return {}
        with translate_store_errors("load users"):
            async with self._session_factory() as session:
                result = await session.execute(select(UserTable).where(UserTable.id.in_(ids)))
                rows = result.scalars().all()
        return {row.id: self._table_to_user(row) for row in rows}

    async def list_users(self, *, role: Role | None = None) -> Sequence[User]:
        statement = select(UserTable).order_by(UserTable.name.asc())
        if role is not None:
            statement = statement.where(UserTable.role == role.value)
        with translate_store_errors("list users"):
            async with self._session_factory() as session:
                result = await session.execute(statement)
                rows = result.scalars().all()
        return [self._table_to_user(row) for row in rows]

    async def create_user(self, *, name: str, email: str, role: Role, user_id: str | None = None) -> User:
        row = UserTable(
            id=user_id or str(uuid.uuid4()),
            name=name,
            email=email,
            role=role.value,
            created_at=datetime.now(timezone.utc),
        )
        with translate_store_errors("create user"):
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(row)
        return self._table_to_user(row)

    @staticmethod
    def _table_to_user(row: UserTable) -> User:
        return User(
            id=row.id,
            name=row.name,
            email=row.email,
            role=Role(row.role),
            created_at=ensure_datetime(row.created_at),
        )
