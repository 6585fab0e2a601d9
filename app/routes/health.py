"""
SocialFeed Backend - Health Check Route
=========================================

What:  Liveness plus database reachability for load balancers and monitors.
How:   Delegates the round-trip to `ping_database`; the HTTP status stays 200
       either way and the body carries the verdict.
"""

import time

from fastapi import APIRouter

from app.database import ping_database
from app.schemas.common import HealthResponse

router = APIRouter(tags=["Health"])

_started_at = time.monotonic()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check() -> HealthResponse:
    reachable = await ping_database()
    return HealthResponse(
        status="healthy" if reachable else "unhealthy",
        database="connected" if reachable else "disconnected",
        uptime_seconds=round(time.monotonic() - _started_at, 2),
    )
