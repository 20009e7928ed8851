from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from mandodesk.security import Principal, principal_from_token

bearer_scheme = HTTPBearer(auto_error=False)


def resolve_principal_from_token(token: str) -> Principal:
    """Return the principal for ``token`` or raise a 401."""

    principal = principal_from_token(token)
    if principal is None:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")
    return principal


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    request: Request,
) -> Principal:
    """Principal resolved by the RBAC middleware, or from the bearer header directly."""

    cached = getattr(request.state, "principal", None)
    if isinstance(cached, Principal):
        return cached

    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")

    principal = resolve_principal_from_token(credentials.credentials)
    request.state.principal = principal
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
