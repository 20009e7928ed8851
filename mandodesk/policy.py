"""Access policy for tickets, statistics and the user directory.

Every rule is a pure predicate over the principal and, where relevant, the
ticket. The ``ensure_*`` helpers raise :class:`ForbiddenError` on denial so
services can guard an operation in one line.

Note the deliberate asymmetry for agents: reading a ticket by id is allowed
while it is unassigned, but the list scope only ever contains tickets
assigned to the agent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from mandodesk.core.errors import ForbiddenError
from mandodesk.security import Principal, Role

if TYPE_CHECKING:
    from mandodesk.tickets.models import Ticket

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TicketScope:
    """Filter applied to ticket list queries. Both ``None`` means no filter."""

    created_by: str | None = None
    assigned_to: str | None = None

    @property
    def unrestricted(self) -> bool:
        return self.created_by is None and self.assigned_to is None


def list_scope(principal: Principal) -> TicketScope:
    if principal.role is Role.CUSTOMER:
        return TicketScope(created_by=principal.id)
    if principal.role is Role.AGENT:
        return TicketScope(assigned_to=principal.id)
    return TicketScope()


def can_read(principal: Principal, ticket: "Ticket") -> bool:
    if principal.role is Role.ADMIN:
        return True
    if principal.role is Role.CUSTOMER:
        return ticket.created_by == principal.id
    if principal.role is Role.AGENT:
        return ticket.assigned_to is None or ticket.assigned_to == principal.id
    return False


def can_update(principal: Principal) -> bool:
    return principal.is_staff


def can_comment(principal: Principal, ticket: "Ticket") -> bool:
    if principal.is_staff:
        return True
    if ticket.created_by == principal.id:
        return True
    return ticket.assigned_to is not None and ticket.assigned_to == principal.id


def can_view_stats(principal: Principal) -> bool:
    return principal.role is Role.ADMIN


def can_list_users(principal: Principal) -> bool:
    return principal.role is Role.ADMIN


def _deny(principal: Principal, operation: str, target: str | None = None) -> ForbiddenError:
    logger.warning(
        "Denied %s for %s principal %s%s",
        operation,
        principal.role.value,
        principal.id,
        f" on {target}" if target else "",
    )
    return ForbiddenError("Forbidden")


def ensure_can_read(principal: Principal, ticket: "Ticket") -> None:
    if not can_read(principal, ticket):
        raise _deny(principal, "ticket read", ticket.id)


def ensure_can_update(principal: Principal) -> None:
    if not can_update(principal):
        raise _deny(principal, "ticket update")


def ensure_can_comment(principal: Principal, ticket: "Ticket") -> None:
    if not can_comment(principal, ticket):
        raise _deny(principal, "comment", ticket.id)


def ensure_can_view_stats(principal: Principal) -> None:
    if not can_view_stats(principal):
        raise _deny(principal, "stats summary")


def ensure_can_list_users(principal: Principal) -> None:
    if not can_list_users(principal):
        raise _deny(principal, "user listing")
