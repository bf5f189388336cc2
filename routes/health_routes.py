"""
Liveness and readiness endpoints.

GET /        plain-text banner, never touches the database
GET /health  pings MongoDB; the API cannot serve anything without it, so a
             failed ping answers 503
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response
from fastapi.responses import PlainTextResponse

from schemas.dto.responses.common import HealthResponse
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["health"])

BANNER = "4Wheeler API is running"


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return BANNER


async def _ping_mongo(request: Request) -> bool:
    try:
        await request.app.state.db.client.admin.command("ping")
    except Exception as exc:
        log.error("health_check_failed", dependency="mongodb", error=str(exc))
        return False
    return True


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, response: Response) -> HealthResponse:
    mongo_ok = await _ping_mongo(request)
    if not mongo_ok:
        response.status_code = 503
    return HealthResponse(
        status="healthy" if mongo_ok else "unhealthy",
        checks={"mongodb": "ok" if mongo_ok else "error"},
    )
