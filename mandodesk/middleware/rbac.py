"""Authentication middleware populating the request principal."""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from mandodesk.dependencies.auth import resolve_principal_from_token


class RBACMiddleware(BaseHTTPMiddleware):
    """Resolve the bearer token, if any, into ``request.state.principal``.

    Requests without an Authorization header pass through with no principal;
    routes that need one reject them via ``get_current_principal``.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request.state.principal = None
        authorization = request.headers.get("Authorization")

        if authorization:
            scheme, _, credentials = authorization.partition(" ")
            if scheme.lower() != "bearer" or not credentials.strip():
                return JSONResponse(
                    status_code=401, content={"detail": "Invalid authentication credentials"}
                )
            try:
                request.state.principal = resolve_principal_from_token(credentials.strip())
            except HTTPException as exc:
                return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

        return await call_next(request)
