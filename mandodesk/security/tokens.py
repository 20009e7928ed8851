"""Bearer token verification.

Tokens are issued by the identity provider that owns credentials; this
service only checks the signature and reads the ``sub`` and ``role`` claims.
:func:`create_access_token` exists for the seed tool and for tests.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import jwt

from mandodesk.core.config import Settings, get_settings

from .principal import Principal, Role

logger = logging.getLogger(__name__)


def create_access_token(principal: Principal, *, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    payload = {
        "sub": principal.id,
        "role": principal.role.value,
        "exp": int(time.time()) + settings.jwt_expire_seconds,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, *, settings: Settings | None = None) -> dict[str, Any] | None:
    settings = settings or get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as exc:
        logger.info("Rejected bearer token: %s", exc)
        return None


def principal_from_token(token: str, *, settings: Settings | None = None) -> Principal | None:
    """Return the principal carried by ``token`` or ``None`` if it is unusable."""

    claims = decode_access_token(token, settings=settings)
    if not claims:
        return None
    subject = claims.get("sub")
    role = Role.parse(claims.get("role"))
    if not subject or role is None:
        return None
    return Principal(id=str(subject), role=role)
