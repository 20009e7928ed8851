from __future__ import annotations

from fastapi import APIRouter, status
from pydantic import BaseModel

from mandodesk.api.errors import http_error
from mandodesk.core.errors import ForbiddenError, NotFoundError, ValidationError
from mandodesk.dependencies.auth import CurrentPrincipal
from mandodesk.dependencies.services import TicketServiceDep
from mandodesk.security import Role
from mandodesk.tickets.models import Comment, TicketView
from mandodesk.tickets.state import TicketPriority, TicketStatus
from mandodesk.users.models import UserSummary

router = APIRouter(prefix="/tickets", tags=["tickets"])


class UserRefModel(BaseModel):
    id: str
    name: str | None = None
    email: str | None = None
    role: Role | None = None

    @classmethod
    def from_summary(cls, user_id: str, summary: UserSummary | None) -> "UserRefModel":
        if summary is None:
            return cls(id=user_id)
        return cls(id=summary.id, name=summary.name, email=summary.email, role=summary.role)


class CommentModel(BaseModel):
    author: str
    message: str
    createdAt: str

    @classmethod
    def from_entity(cls, comment: Comment) -> "CommentModel":
        return cls(author=comment.author, message=comment.message, createdAt=comment.created_at.isoformat())


class TicketModel(BaseModel):
    id: str
    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    createdBy: UserRefModel
    assignedTo: UserRefModel | None = None
    closedAt: str | None = None
    createdAt: str
    updatedAt: str
    comments: list[CommentModel]

    @classmethod
    def from_view(cls, view: TicketView) -> "TicketModel":
        ticket = view.ticket
        return cls(
            id=ticket.id,
            title=ticket.title,
            description=ticket.description,
            status=ticket.status,
            priority=ticket.priority,
            createdBy=UserRefModel.from_summary(ticket.created_by, view.creator),
            assignedTo=(
                UserRefModel.from_summary(ticket.assigned_to, view.assignee) if ticket.assigned_to else None
            ),
            closedAt=ticket.closed_at.isoformat() if ticket.closed_at else None,
            createdAt=ticket.created_at.isoformat(),
            updatedAt=ticket.updated_at.isoformat(),
            comments=[CommentModel.from_entity(comment) for comment in ticket.comments],
        )


class TicketCreateRequest(BaseModel):
    # Blank or missing values are rejected by the service with a 400
    title: str | None = None
    description: str | None = None
    priority: str | None = None


class TicketUpdateRequest(BaseModel):
    status: TicketStatus | None = None
    assignedTo: str | None = None


class CommentCreateRequest(BaseModel):
    message: str | None = None


@router.post("", response_model=TicketModel, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: TicketCreateRequest,
    service: TicketServiceDep,
    principal: CurrentPrincipal,
) -> TicketModel:
    try:
        view = await service.create_ticket(
            principal,
            title=payload.title,
            description=payload.description,
            priority=payload.priority,
        )
    except ValidationError as exc:
        raise http_error(exc) from exc
    return TicketModel.from_view(view)


@router.get("", response_model=list[TicketModel], summary="List tickets visible to the caller")
async def list_tickets(service: TicketServiceDep, principal: CurrentPrincipal) -> list[TicketModel]:
    views = await service.list_tickets(principal)
    return [TicketModel.from_view(view) for view in views]


@router.get("/{ticket_id}", response_model=TicketModel)
async def get_ticket(ticket_id: str, service: TicketServiceDep, principal: CurrentPrincipal) -> TicketModel:
    try:
        view = await service.get_ticket(principal, ticket_id)
    except (NotFoundError, ForbiddenError) as exc:
        raise http_error(exc) from exc
    return TicketModel.from_view(view)


@router.put("/{ticket_id}", response_model=TicketModel)
async def update_ticket(
    ticket_id: str,
    payload: TicketUpdateRequest,
    service: TicketServiceDep,
    principal: CurrentPrincipal,
) -> TicketModel:
    try:
        view = await service.update_ticket(
            principal,
            ticket_id,
            status=payload.status,
            assigned_to=payload.assignedTo,
        )
    except (ForbiddenError, NotFoundError) as exc:
        raise http_error(exc) from exc
    return TicketModel.from_view(view)


@router.post("/{ticket_id}/comments", response_model=TicketModel, status_code=status.HTTP_201_CREATED)
async def add_comment(
    ticket_id: str,
    payload: CommentCreateRequest,
    service: TicketServiceDep,
    principal: CurrentPrincipal,
) -> TicketModel:
    try:
        view = await service.add_comment(principal, ticket_id, message=payload.message)
    except (ValidationError, NotFoundError, ForbiddenError) as exc:
        raise http_error(exc) from exc
    return TicketModel.from_view(view)
