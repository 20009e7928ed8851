from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from mandodesk.users.models import UserSummary

from .state import TicketPriority, TicketStatus


@dataclass(frozen=True, slots=True)
class Comment:
    """Comment appended to a ticket; never edited afterwards."""

    author: str
    message: str
    created_at: datetime


@dataclass(slots=True)
class Ticket:
    """Aggregate representing a support ticket and its comment thread."""

    id: str
    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    created_by: str
    assigned_to: str | None
    closed_at: datetime | None
    created_at: datetime
    updated_at: datetime
    comments: Sequence[Comment] = field(default_factory=list)


@dataclass(slots=True)
class TicketView:
    """Ticket with creator and assignee identities expanded for display.

    ``creator``/``assignee`` are ``None`` when the referenced user is unknown
    (or, for the assignee, when nobody is assigned).
    """

    ticket: Ticket
    creator: UserSummary | None
    assignee: UserSummary | None
