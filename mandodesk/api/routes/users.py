from __future__ import annotations

from fastapi import APIRouter, Query
from pydantic import BaseModel

from mandodesk.api.errors import http_error
from mandodesk.core.errors import ForbiddenError
from mandodesk.dependencies.auth import CurrentPrincipal
from mandodesk.dependencies.services import UserDirectoryDep
from mandodesk.security import Role

router = APIRouter(prefix="/users", tags=["users"])


class UserModel(BaseModel):
    id: str
    name: str
    email: str
    role: Role


@router.get("", response_model=list[UserModel], summary="List users, optionally by role")
async def list_users(
    directory: UserDirectoryDep,
    principal: CurrentPrincipal,
    role: Role | None = Query(default=None),
) -> list[UserModel]:
    try:
        users = await directory.list_users(principal, role=role)
    except ForbiddenError as exc:
        raise http_error(exc) from exc
    return [UserModel(id=user.id, name=user.name, email=user.email, role=user.role) for user in users]
