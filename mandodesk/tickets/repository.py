from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import DateTime, func, literal, update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import select

from mandodesk.core.errors import translate_store_errors
from mandodesk.db.models import TicketCommentTable, TicketTable
from mandodesk.db.session import create_schema, ensure_datetime, ensure_optional_datetime
from mandodesk.policy import TicketScope

from .models import Comment, Ticket
from .state import TicketLifecycle, TicketPriority, TicketStatus


class TicketRepository:
    """Persistence helper wrapping ``tickets`` and ``ticket_comments``.

    Writes that can race are single statements: the ``closed_at`` stamp is
    folded into the status UPDATE and a comment append is one INSERT, so
    concurrent requests never lose each other's changes.
    """

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
        with translate_store_errors("create ticket schema"):
            await create_schema(self._engine)

    async def create_ticket(self, ticket: Ticket) -> Ticket:
        closed_at = TicketLifecycle.stamp_closed_at(ticket.status, ticket.closed_at, ticket.created_at)
        row = TicketTable(
            id=ticket.id,
            title=ticket.title,
            description=ticket.description,
            status=ticket.status.value,
            priority=ticket.priority.value,
            created_by=ticket.created_by,
            assigned_to=ticket.assigned_to,
            closed_at=closed_at,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at,
        )
        with translate_store_errors("create ticket"):
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(row)
        return self._table_to_ticket(row, [])

    async def get_ticket(self, ticket_id: str) -> Ticket | None:
        with translate_store_errors("load ticket"):
            async with self._session_factory() as session:
                row = await session.get(TicketTable, ticket_id)
                if row is None:
                    return None
                comments = await self._load_comments(session, [ticket_id])
        return self._table_to_ticket(row, comments.get(ticket_id, []))

    async def list_tickets(self, scope: TicketScope | None = None) -> Sequence[Ticket]:
        """Return tickets matching ``scope``, newest first. ``None`` lists everything."""

        statement = select(TicketTable).order_by(TicketTable.created_at.desc())
        scope = scope or TicketScope()
        if not scope.unrestricted:
            if scope.created_by is not None:
                statement = statement.where(TicketTable.created_by == scope.created_by)
            if scope.assigned_to is not None:
                statement = statement.where(TicketTable.assigned_to == scope.assigned_to)

        with translate_store_errors("list tickets"):
            async with self._session_factory() as session:
                result = await session.execute(statement)
                rows = result.scalars().all()
                comments = await self._load_comments(session, [row.id for row in rows])
        return [self._table_to_ticket(row, comments.get(row.id, [])) for row in rows]

    async def update_ticket(
        self,
        ticket_id: str,
        *,
        status: TicketStatus | None = None,
        assigned_to: str | None = None,
        updated_at: datetime,
    ) -> Ticket | None:
        values: dict[str, Any] = {"updated_at": updated_at}
        if status is not None:
            values["status"] = status.value
            if TicketLifecycle.is_closing(status):
                # Evaluated against the stored row, so an existing stamp always wins
                values["closed_at"] = func.coalesce(
                    TicketTable.closed_at, literal(updated_at, DateTime(timezone=True))
                )
        if assigned_to is not None:
            values["assigned_to"] = assigned_to

        statement = (
            update(TicketTable)
            .where(TicketTable.id == ticket_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        with translate_store_errors("update ticket"):
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(statement)
                    if result.rowcount == 0:
                        return None
                    row = await session.get(TicketTable, ticket_id)
                    comments = await self._load_comments(session, [ticket_id])
        if row is None:
            return None
        return self._table_to_ticket(row, comments.get(ticket_id, []))

    async def append_comment(self, ticket_id: str, comment: Comment) -> Ticket | None:
        touch = (
            update(TicketTable)
            .where(TicketTable.id == ticket_id)
            .values(updated_at=comment.created_at)
            .execution_options(synchronize_session=False)
        )
        with translate_store_errors("append comment"):
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(touch)
                    if result.rowcount == 0:
                        return None
                    session.add(
                        TicketCommentTable(
                            ticket_id=ticket_id,
                            author=comment.author,
                            message=comment.message,
                            created_at=comment.created_at,
                        )
                    )
                    await session.flush()
                    row = await session.get(TicketTable, ticket_id)
                    comments = await self._load_comments(session, [ticket_id])
        if row is None:
            return None
        return self._table_to_ticket(row, comments.get(ticket_id, []))

    @staticmethod
    async def _load_comments(session: AsyncSession, ticket_ids: Sequence[str]) -> dict[str, list[Comment]]:
        if not ticket_ids:
            return {}
        result = await session.execute(
            select(TicketCommentTable)
            .where(TicketCommentTable.ticket_id.in_(ticket_ids))
            .order_by(TicketCommentTable.seq.asc())
        )
        grouped: dict[str, list[Comment]] = defaultdict(list)
        for row in result.scalars().all():
            grouped[row.ticket_id].append(
                Comment(author=row.author, message=row.message, created_at=ensure_datetime(row.created_at))
            )
        return grouped

    @staticmethod
    def _table_to_ticket(row: TicketTable, comments: Sequence[Comment]) -> Ticket:
        return Ticket(
            id=row.id,
            title=row.title,
            description=row.description,
            status=TicketStatus(row.status),
            priority=TicketPriority(row.priority),
            created_by=row.created_by,
            assigned_to=row.assigned_to,
            closed_at=ensure_optional_datetime(row.closed_at),
            created_at=ensure_datetime(row.created_at),
            updated_at=ensure_datetime(row.updated_at),
            comments=list(comments),
        )
