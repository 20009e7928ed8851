"""Database models and utilities."""

from .models import TicketCommentTable, TicketTable, UserTable
from .session import create_engine_from_settings, create_schema, create_session_factory, to_asyncpg_dsn

__all__ = [
    "TicketCommentTable",
    "TicketTable",
    "UserTable",
    "create_engine_from_settings",
    "create_schema",
    "create_session_factory",
    "to_asyncpg_dsn",
]
