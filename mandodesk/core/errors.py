"""Error taxonomy shared by the ticket, user and stats services."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError


class ServiceError(RuntimeError):
    """Base error for service issues surfaced to callers."""


class ValidationError(ServiceError):
    """Raised when a required field is missing or blank."""


class NotFoundError(ServiceError):
    """Raised when an operation targets an unknown identifier."""


class TicketNotFoundError(NotFoundError):
    """Raised when a ticket could not be located."""

    def __init__(self, ticket_id: str) -> None:
        super().__init__(f"Ticket {ticket_id} not found")
        self.ticket_id = ticket_id


class ForbiddenError(ServiceError):
    """Raised when the access policy denies an operation."""


class StoreError(ServiceError):
    """Raised when the underlying persistence layer fails."""


@contextmanager
def translate_store_errors(action: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures inside the block as :class:`StoreError`."""

    try:
        yield
    except SQLAlchemyError as exc:
        raise StoreError(f"Failed to {action}") from exc
