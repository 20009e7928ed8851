from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from mandodesk.api.errors import GENERIC_ERROR_DETAIL, http_error
from mandodesk.core.errors import ForbiddenError, StoreError, TicketNotFoundError, ValidationError
from mandodesk.dependencies.auth import get_current_principal
from mandodesk.dependencies.services import get_stats_service, get_ticket_service, get_user_directory
from mandodesk.main import create_app
from mandodesk.security import Principal, Role
from mandodesk.stats.service import StatsReport
from mandodesk.tickets.models import Comment, Ticket, TicketView
from mandodesk.tickets.state import TicketPriority, TicketStatus
from mandodesk.users.models import UserSummary

NOW = datetime(2024, 7, 1, 10, 30, tzinfo=timezone.utc)
CUSTOMER = UserSummary(id="cust-1", name="Carla Customer", email="carla@example.com", role=Role.CUSTOMER)
AGENT = UserSummary(id="agent-1", name="Agnes Agent", email="agnes@example.com", role=Role.AGENT)


def _make_view(
    *,
    status: TicketStatus = TicketStatus.OPEN,
    assigned: bool = False,
    comments: tuple[Comment, ...] = (),
) -> TicketView:
    ticket = Ticket(
        id="t-1",
        title="Mail bounces",
        description="Outgoing mail is rejected",
        status=status,
        priority=TicketPriority.HIGH,
        created_by=CUSTOMER.id,
        assigned_to=AGENT.id if assigned else None,
        closed_at=NOW if status in (TicketStatus.RESOLVED, TicketStatus.CLOSED) else None,
        created_at=NOW,
        updated_at=NOW,
        comments=list(comments),
    )
    return TicketView(ticket=ticket, creator=CUSTOMER, assignee=AGENT if assigned else None)


@pytest.fixture
def api():
    app = create_app()
    ctx = SimpleNamespace(
        principal=Principal(CUSTOMER.id, Role.CUSTOMER),
        tickets=AsyncMock(),
        stats=AsyncMock(),
        directory=AsyncMock(),
    )

    async def override_tickets():
        return ctx.tickets

    async def override_stats():
        return ctx.stats

    async def override_directory():
        return ctx.directory

    app.dependency_overrides[get_current_principal] = lambda: ctx.principal
    app.dependency_overrides[get_ticket_service] = override_tickets
    app.dependency_overrides[get_stats_service] = override_stats
    app.dependency_overrides[get_user_directory] = override_directory

    ctx.client = TestClient(app)
    try:
        yield ctx
    finally:
        app.dependency_overrides.clear()


def test_create_ticket_returns_created_with_camel_case_body(api):
    api.tickets.create_ticket = AsyncMock(return_value=_make_view())

    response = api.client.post(
        "/tickets", json={"title": "Mail bounces", "description": "Outgoing mail is rejected", "priority": "High"}
    )

    assert response.status_code == 201
    body = response.json()
    assert body["id"] == "t-1"
    assert body["status"] == "Open"
    assert body["priority"] == "High"
    assert body["createdBy"] == {
        "id": "cust-1",
        "name": "Carla Customer",
        "email": "carla@example.com",
        "role": "customer",
    }
    assert body["assignedTo"] is None
    assert body["closedAt"] is None
    assert body["comments"] == []
    api.tickets.create_ticket.assert_awaited_once_with(
        api.principal, title="Mail bounces", description="Outgoing mail is rejected", priority="High"
    )


def test_create_ticket_validation_error_maps_to_400(api):
    api.tickets.create_ticket = AsyncMock(side_effect=ValidationError("Title is required"))

    response = api.client.post("/tickets", json={"description": "x"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Title is required"


def test_list_tickets_returns_views(api):
    api.tickets.list_tickets = AsyncMock(return_value=[_make_view(assigned=True)])

    response = api.client.get("/tickets")

    assert response.status_code == 200
    [item] = response.json()
    assert item["assignedTo"]["name"] == "Agnes Agent"


def test_get_ticket_not_found_and_forbidden(api):
    api.tickets.get_ticket = AsyncMock(side_effect=TicketNotFoundError("t-9"))
    assert api.client.get("/tickets/t-9").status_code == 404

    api.tickets.get_ticket = AsyncMock(side_effect=ForbiddenError("Forbidden"))
    response = api.client.get("/tickets/t-1")
    assert response.status_code == 403
    assert response.json()["detail"] == "Forbidden"


def test_update_ticket_passes_status_and_assignee(api):
    api.principal = Principal(AGENT.id, Role.AGENT)
    api.tickets.update_ticket = AsyncMock(return_value=_make_view(status=TicketStatus.RESOLVED, assigned=True))

    response = api.client.put("/tickets/t-1", json={"status": "Resolved", "assignedTo": "agent-1"})

    assert response.status_code == 200
    assert response.json()["closedAt"] == NOW.isoformat()
    api.tickets.update_ticket.assert_awaited_once_with(
        api.principal, "t-1", status=TicketStatus.RESOLVED, assigned_to="agent-1"
    )


def test_update_ticket_rejects_unknown_status(api):
    api.tickets.update_ticket = AsyncMock()

    response = api.client.put("/tickets/t-1", json={"status": "Reopened"})

    assert response.status_code == 422
    api.tickets.update_ticket.assert_not_awaited()


def test_update_ticket_forbidden_for_customer(api):
    api.tickets.update_ticket = AsyncMock(side_effect=ForbiddenError("Forbidden"))

    assert api.client.put("/tickets/t-1", json={"status": "Closed"}).status_code == 403


def test_add_comment_returns_created(api):
    comment = Comment(author=CUSTOMER.id, message="Still broken", created_at=NOW)
    api.tickets.add_comment = AsyncMock(return_value=_make_view(comments=(comment,)))

    response = api.client.post("/tickets/t-1/comments", json={"message": "Still broken"})

    assert response.status_code == 201
    assert response.json()["comments"] == [
        {"author": "cust-1", "message": "Still broken", "createdAt": NOW.isoformat()}
    ]


def test_add_comment_error_mapping(api):
    api.tickets.add_comment = AsyncMock(side_effect=ValidationError("Message is required"))
    assert api.client.post("/tickets/t-1/comments", json={}).status_code == 400

    api.tickets.add_comment = AsyncMock(side_effect=ForbiddenError("Forbidden"))
    assert api.client.post("/tickets/t-1/comments", json={"message": "hi"}).status_code == 403


def test_store_error_returns_generic_500(api):
    api.tickets.list_tickets = AsyncMock(side_effect=StoreError("Failed to list tickets"))

    response = api.client.get("/tickets")

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}


def test_stats_summary_route(api):
    api.principal = Principal("admin-1", Role.ADMIN)
    api.stats.summarize = AsyncMock(
        return_value=StatsReport(
            by_status={"Open": 1, "In Progress": 0, "Resolved": 0, "Closed": 1},
            by_agent={"Agnes Agent": 2},
            avg_resolution_hours=3.0,
        )
    )

    response = api.client.get("/tickets/__stats/summary")

    assert response.status_code == 200
    assert response.json() == {
        "byStatus": {"Open": 1, "In Progress": 0, "Resolved": 0, "Closed": 1},
        "byAgent": {"Agnes Agent": 2},
        "avgResolutionHours": 3.0,
    }


def test_stats_summary_forbidden(api):
    api.stats.summarize = AsyncMock(side_effect=ForbiddenError("Forbidden"))
    assert api.client.get("/tickets/__stats/summary").status_code == 403


def test_list_users_with_role_filter(api):
    api.principal = Principal("admin-1", Role.ADMIN)
    api.directory.list_users = AsyncMock(return_value=[AGENT])

    response = api.client.get("/users", params={"role": "agent"})

    assert response.status_code == 200
    assert response.json() == [
        {"id": "agent-1", "name": "Agnes Agent", "email": "agnes@example.com", "role": "agent"}
    ]
    api.directory.list_users.assert_awaited_once_with(api.principal, role=Role.AGENT)


def test_list_users_forbidden(api):
    api.directory.list_users = AsyncMock(side_effect=ForbiddenError("Forbidden"))
    assert api.client.get("/users").status_code == 403


def test_missing_service_returns_503():
    app = create_app()
    app.dependency_overrides[get_current_principal] = lambda: Principal("admin-1", Role.ADMIN)
    client = TestClient(app)

    assert client.get("/tickets").status_code == 503


@pytest.mark.parametrize(
    ("error", "status_code", "detail"),
    [
        (ValidationError("Title is required"), 400, "Title is required"),
        (ForbiddenError("Forbidden"), 403, "Forbidden"),
        (TicketNotFoundError("t-9"), 404, "Ticket t-9 not found"),
        (StoreError("Failed to load ticket"), 500, GENERIC_ERROR_DETAIL),
    ],
)
def test_http_error_maps_service_errors(error, status_code, detail):
    exc = http_error(error)

    assert exc.status_code == status_code
    assert exc.detail == detail
