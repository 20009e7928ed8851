from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from mandodesk.api.errors import http_error
from mandodesk.core.errors import ForbiddenError
from mandodesk.dependencies.auth import CurrentPrincipal
from mandodesk.dependencies.services import StatsServiceDep

router = APIRouter(prefix="/tickets/__stats", tags=["stats"])


class StatsSummaryModel(BaseModel):
    byStatus: dict[str, int]
    byAgent: dict[str, int]
    avgResolutionHours: float


@router.get("/summary", response_model=StatsSummaryModel, summary="Ticket counts and resolution time")
async def stats_summary(service: StatsServiceDep, principal: CurrentPrincipal) -> StatsSummaryModel:
    try:
        report = await service.summarize(principal)
    except ForbiddenError as exc:
        raise http_error(exc) from exc
    return StatsSummaryModel.model_validate(report.as_dict())
