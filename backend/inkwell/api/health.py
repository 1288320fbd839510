"""Liveness endpoint: database reachability and token signing readiness."""

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

from inkwell.core import check_db_connection

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    database: str
    auth: str
    revoked_tokens: int


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Service is unhealthy"}},
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    """503 when the database is unreachable or no JWT secret is configured."""
    db_ok = await check_db_connection()
    auth_ok = request.app.state.token_service.is_configured
    if not (db_ok and auth_ok):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="healthy" if db_ok and auth_ok else "unhealthy",
        version=request.app.state.settings.app_version,
        database="connected" if db_ok else "disconnected",
        auth="configured" if auth_ok else "unconfigured",
        revoked_tokens=len(request.app.state.revocations),
    )
