"""
PostDesk Backend — Health Check Route
=======================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs SELECT 1 against the engine on app.state.

Status levels:
    - healthy:   database reachable, or no database configured (HTTP 200)
    - unhealthy: database configured but unreachable (HTTP 503)

Health is not a business resource, so it answers with the plain
HealthResponse rather than the success envelope.
"""

import logging
import time

from fastapi import APIRouter, Request, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from postdesk import __version__
from postdesk.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    engine = getattr(request.app.state, "engine", None)
    db_status = "not_configured"
    overall = "healthy"

    if engine is not None:
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            db_status = "connected"
        except (SQLAlchemyError, OSError) as e:
            db_status = "disconnected"
            overall = "unhealthy"
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
