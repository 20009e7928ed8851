from fastapi import APIRouter

from mandodesk.dependencies.auth import CurrentPrincipal

router = APIRouter(prefix="/ping", tags=["health"])


@router.get("", summary="Public health probe")
async def ping() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/whoami", summary="Echo the authenticated principal")
async def whoami(principal: CurrentPrincipal) -> dict[str, str]:
    return {"id": principal.id, "role": principal.role.value}
