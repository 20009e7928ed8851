from __future__ import annotations

from datetime import datetime
from enum import Enum


class TicketStatus(str, Enum):
    """Supported states for a ticket's lifecycle."""

    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class TicketPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def parse(cls, value: "str | TicketPriority | None") -> "TicketPriority":
        """Return the matching priority, falling back to Medium for anything unknown."""

        if isinstance(value, TicketPriority):
            return value
        if value:
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return cls.MEDIUM


CLOSING_STATUSES: frozenset[TicketStatus] = frozenset({TicketStatus.RESOLVED, TicketStatus.CLOSED})


class TicketLifecycle:
    """Rules coupling status changes to the one-shot ``closed_at`` stamp.

    Any status may move to any other status; agents and admins decide what
    is legal. The only side effect is that ``closed_at`` is captured the first
    time a ticket enters a closing status and is never cleared afterwards.
    """

    @classmethod
    def initial_state(cls) -> TicketStatus:
        return TicketStatus.OPEN

    @classmethod
    def is_closing(cls, status: TicketStatus) -> bool:
        return status in CLOSING_STATUSES

    @classmethod
    def stamp_closed_at(
        cls,
        status: TicketStatus,
        closed_at: datetime | None,
        now: datetime,
    ) -> datetime | None:
        """Compute ``closed_at`` for a write that leaves the ticket in ``status``."""

        if closed_at is not None:
            return closed_at
        if cls.is_closing(status):
            return now
        return None
