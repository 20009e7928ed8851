from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Sequence

from opentelemetry import trace

from mandodesk import policy
from mandodesk.core.errors import TicketNotFoundError, ValidationError
from mandodesk.security import Principal
from mandodesk.users.service import UserDirectory

from .models import Comment, Ticket, TicketView
from .repository import TicketRepository
from .state import TicketLifecycle, TicketPriority, TicketStatus

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def _require_text(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    return value


class TicketService:
    """Ticket create/read/update/comment operations behind the access policy.

    The caller's principal is passed explicitly to every operation.
    """

    def __init__(self, repository: TicketRepository, directory: UserDirectory) -> None:
        self._repository = repository
        self._directory = directory

    async def create_ticket(
        self,
        principal: Principal,
        *,
        title: str | None,
        description: str | None,
        priority: str | TicketPriority | None = None,
    ) -> TicketView:
        title = _require_text(title, "Title")
        description = _require_text(description, "Description")

        now = datetime.now(timezone.utc)
        status = TicketLifecycle.initial_state()
        ticket = Ticket(
            id=str(uuid.uuid4()),
            title=title,
            description=description,
            status=status,
            priority=TicketPriority.parse(priority),
            created_by=principal.id,
            assigned_to=None,
            closed_at=TicketLifecycle.stamp_closed_at(status, None, now),
            created_at=now,
            updated_at=now,
        )
        with tracer.start_as_current_span("tickets.create"):
            created = await self._repository.create_ticket(ticket)
        logger.info("Ticket %s created by %s", created.id, principal.id)
        return await self._expand_one(created)

    async def list_tickets(self, principal: Principal) -> Sequence[TicketView]:
        scope = policy.list_scope(principal)
        with tracer.start_as_current_span("tickets.list"):
            tickets = await self._repository.list_tickets(scope)
        logger.debug("Listed %d tickets for %s %s", len(tickets), principal.role.value, principal.id)
        return await self._expand(tickets)

    async def get_ticket(self, principal: Principal, ticket_id: str) -> TicketView:
        ticket = await self._repository.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(ticket_id)
        policy.ensure_can_read(principal, ticket)
        return await self._expand_one(ticket)

    async def update_ticket(
        self,
        principal: Principal,
        ticket_id: str,
        *,
        status: TicketStatus | None = None,
        assigned_to: str | None = None,
    ) -> TicketView:
        """Apply the provided fields. Any status may follow any other."""

        policy.ensure_can_update(principal)
        now = datetime.now(timezone.utc)
        with tracer.start_as_current_span("tickets.update"):
            updated = await self._repository.update_ticket(
                ticket_id,
                status=status,
                assigned_to=assigned_to or None,
                updated_at=now,
            )
        if updated is None:
            raise TicketNotFoundError(ticket_id)
        logger.info(
            "Ticket %s updated by %s (status=%s, assigned_to=%s)",
            ticket_id,
            principal.id,
            status.value if status is not None else "-",
            assigned_to or "-",
        )
        return await self._expand_one(updated)

    async def add_comment(self, principal: Principal, ticket_id: str, *, message: str | None) -> TicketView:
        message = _require_text(message, "Message")
        ticket = await self._repository.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(ticket_id)
        policy.ensure_can_comment(principal, ticket)

        comment = Comment(author=principal.id, message=message, created_at=datetime.now(timezone.utc))
        with tracer.start_as_current_span("tickets.comment"):
            updated = await self._repository.append_comment(ticket_id, comment)
        if updated is None:
            raise TicketNotFoundError(ticket_id)
        logger.info("Comment added to ticket %s by %s", ticket_id, principal.id)
        return await self._expand_one(updated)

    async def _expand_one(self, ticket: Ticket) -> TicketView:
        views = await self._expand([ticket])
        return views[0]

    async def _expand(self, tickets: Sequence[Ticket]) -> list[TicketView]:
        ids: set[str] = set()
        for ticket in tickets:
            ids.add(ticket.created_by)
            if ticket.assigned_to:
                ids.add(ticket.assigned_to)
        users = await self._directory.get_summaries(ids) if ids else {}
        return [
            TicketView(
                ticket=ticket,
                creator=users.get(ticket.created_by),
                assignee=users.get(ticket.assigned_to) if ticket.assigned_to else None,
            )
            for ticket in tickets
        ]
