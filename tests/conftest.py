from __future__ import annotations

from dataclasses import dataclass

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from mandodesk.db.session import create_schema
from mandodesk.security import Principal, Role
from mandodesk.stats.service import StatsService
from mandodesk.tickets.repository import TicketRepository
from mandodesk.tickets.service import TicketService
from mandodesk.users.repository import UserRepository
from mandodesk.users.service import UserDirectory


@dataclass(slots=True)
class Cast:
    """Principals backed by seeded directory entries."""

    admin: Principal
    agent: Principal
    other_agent: Principal
    customer: Principal
    other_customer: Principal


@pytest_asyncio.fixture
async def engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    try:
        await create_schema(engine)
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def user_repository(session_factory, engine) -> UserRepository:
    return UserRepository(session_factory, engine=engine)


@pytest_asyncio.fixture
async def ticket_repository(session_factory, engine) -> TicketRepository:
    return TicketRepository(session_factory, engine=engine)


@pytest_asyncio.fixture
async def directory(user_repository) -> UserDirectory:
    return UserDirectory(user_repository)


@pytest_asyncio.fixture
async def ticket_service(ticket_repository, directory) -> TicketService:
    return TicketService(ticket_repository, directory)


@pytest_asyncio.fixture
async def stats_service(ticket_repository, directory) -> StatsService:
    return StatsService(ticket_repository, directory)


@pytest_asyncio.fixture
async def cast(user_repository: UserRepository) -> Cast:
    async def make(user_id: str, name: str, role: Role) -> Principal:
        await user_repository.create_user(user_id=user_id, name=name, email=f"{user_id}@example.com", role=role)
        return Principal(id=user_id, role=role)

    return Cast(
        admin=await make("admin-1", "Ada Admin", Role.ADMIN),
        agent=await make("agent-1", "Agnes Agent", Role.AGENT),
        other_agent=await make("agent-2", "Bruno Agent", Role.AGENT),
        customer=await make("cust-1", "Carla Customer", Role.CUSTOMER),
        other_customer=await make("cust-2", "Dan Customer", Role.CUSTOMER),
    )
