"""Ticket domain models, store and service."""

from .models import Comment, Ticket, TicketView
from .repository import TicketRepository
from .service import TicketService
from .state import CLOSING_STATUSES, TicketLifecycle, TicketPriority, TicketStatus

__all__ = [
    "CLOSING_STATUSES",
    "Comment",
    "Ticket",
    "TicketLifecycle",
    "TicketPriority",
    "TicketRepository",
    "TicketService",
    "TicketStatus",
    "TicketView",
]
