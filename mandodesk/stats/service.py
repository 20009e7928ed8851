from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable, Mapping

from opentelemetry import trace

from mandodesk import policy
from mandodesk.security import Principal
from mandodesk.tickets.models import Ticket
from mandodesk.tickets.repository import TicketRepository
from mandodesk.tickets.state import TicketLifecycle, TicketStatus
from mandodesk.users.service import UserDirectory

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

_SECONDS_PER_HOUR = 3600.0


@dataclass(slots=True)
class StatsReport:
    """Aggregated view over the whole ticket corpus."""

    by_status: dict[str, int]
    by_agent: dict[str, int] = field(default_factory=dict)
    avg_resolution_hours: float = 0.0

    def as_dict(self) -> dict[str, object]:
        return {
            "byStatus": dict(self.by_status),
            "byAgent": dict(self.by_agent),
            "avgResolutionHours": self.avg_resolution_hours,
        }


def count_by_status(tickets: Iterable[Ticket]) -> dict[str, int]:
    counts = {status.value: 0 for status in TicketStatus}
    for ticket in tickets:
        counts[ticket.status.value] += 1
    return counts


def count_by_assignee(tickets: Iterable[Ticket]) -> Counter[str]:
    return Counter(ticket.assigned_to for ticket in tickets if ticket.assigned_to)


def average_resolution_hours(tickets: Iterable[Ticket]) -> float:
    """Mean ``closed_at - created_at`` in hours over closed tickets, 0 when none qualify."""

    total = timedelta()
    resolved = 0
    for ticket in tickets:
        if TicketLifecycle.is_closing(ticket.status) and ticket.closed_at is not None:
            total += ticket.closed_at - ticket.created_at
            resolved += 1
    if not resolved:
        return 0.0
    return round(total.total_seconds() / resolved / _SECONDS_PER_HOUR, 2)


def name_agents(counts: Mapping[str, int], names: Mapping[str, str]) -> dict[str, int]:
    """Re-key per-agent counts by display name, keeping the raw id for unknown agents."""

    named: dict[str, int] = {}
    for agent_id, count in counts.items():
        key = names.get(agent_id) or agent_id
        named[key] = named.get(key, 0) + count
    return named


def summarize_tickets(tickets: Iterable[Ticket], names: Mapping[str, str]) -> StatsReport:
    tickets = list(tickets)
    return StatsReport(
        by_status=count_by_status(tickets),
        by_agent=name_agents(count_by_assignee(tickets), names),
        avg_resolution_hours=average_resolution_hours(tickets),
    )


class StatsService:
    """Admin-only summary of ticket counts, agent workload and resolution time."""

    def __init__(self, repository: TicketRepository, directory: UserDirectory) -> None:
        self._repository = repository
        self._directory = directory

    async def summarize(self, principal: Principal) -> StatsReport:
        policy.ensure_can_view_stats(principal)
        with tracer.start_as_current_span("stats.summarize"):
            tickets = await self._repository.list_tickets()
            agent_counts = count_by_assignee(tickets)
            names = await self._directory.lookup_names(agent_counts.keys())
        missing = set(agent_counts) - set(names)
        if missing:
            logger.debug("No directory entry for agents %s; reporting raw ids", sorted(missing))
        return summarize_tickets(tickets, names)
