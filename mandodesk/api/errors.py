from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from mandodesk.core.errors import ForbiddenError, NotFoundError, ServiceError, StoreError, ValidationError

logger = logging.getLogger(__name__)

GENERIC_ERROR_DETAIL = "Internal server error"

_STATUS_CODES: tuple[tuple[type[ServiceError], int], ...] = (
    (ValidationError, 400),
    (ForbiddenError, 403),
    (NotFoundError, 404),
)


def http_error(exc: ServiceError) -> HTTPException:
    """Translate a caller-facing service error into an HTTPException."""

    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=GENERIC_ERROR_DETAIL)


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.exception("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": GENERIC_ERROR_DETAIL})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": GENERIC_ERROR_DETAIL})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
