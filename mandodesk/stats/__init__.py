"""Ticket statistics for administrators."""

from .service import StatsReport, StatsService, summarize_tickets

__all__ = ["StatsReport", "StatsService", "summarize_tickets"]
