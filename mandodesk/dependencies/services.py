from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from mandodesk.stats.service import StatsService
from mandodesk.tickets.service import TicketService
from mandodesk.users.service import UserDirectory


def _from_state(request: Request, name: str, label: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=503, detail=f"{label} is not configured")
    return service


async def get_ticket_service(request: Request) -> TicketService:
    return _from_state(request, "ticket_service", "Ticket service")


async def get_stats_service(request: Request) -> StatsService:
    return _from_state(request, "stats_service", "Stats service")


async def get_user_directory(request: Request) -> UserDirectory:
    return _from_state(request, "user_directory", "User directory")


TicketServiceDep = Annotated[TicketService, Depends(get_ticket_service)]
StatsServiceDep = Annotated[StatsService, Depends(get_stats_service)]
UserDirectoryDep = Annotated[UserDirectory, Depends(get_user_directory)]
