"""Route modules exposed by the API package."""

from . import ping, stats, tickets, users

__all__ = ["ping", "stats", "tickets", "users"]
