"""
VocalSaaS Backend: Health Check Route
======================================

What:  GET /api/health for monitoring and load balancer probes. No auth.
How:   SELECT 1 against the database and a quota-free probe against the
       voice vendor (skipped while its circuit breaker is open).

Status levels:
    OK:        database and vendor reachable
    DEGRADED:  vendor unreachable or circuit open (history still readable)
    UNHEALTHY: database unreachable
"""

import logging
import time

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from vocalsaas import __version__
from vocalsaas.database import engine
from vocalsaas.dependencies import get_voice_vendor
from vocalsaas.schemas.common import HealthResponse
from vocalsaas.services.vendor_base import VoiceVendor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(vendor: VoiceVendor = Depends(get_voice_vendor)) -> HealthResponse:
    db_status = "connected"
    vendor_status = "available"
    overall = "OK"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "UNHEALTHY"
        logger.warning("Health check: database unreachable: %s", str(e))

    breaker = getattr(vendor, "circuit_breaker", None)
    if breaker is not None and breaker.state == breaker.OPEN:
        vendor_status = "circuit_open"
    elif not await vendor.health_check():
        vendor_status = "unavailable"

    if vendor_status != "available" and overall == "OK":
        overall = "DEGRADED"

    return HealthResponse(
        status=overall,
        message="VocalSaaS Backend is running",
        version=__version__,
        database=db_status,
        vendor=vendor_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
