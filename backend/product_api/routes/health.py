"""
Product API Backend — Health Check Route
=========================================

What:  Liveness/readiness probe for load balancers and container health checks.
How:   Pings the document store through the gateway; the service is only
       healthy when the store answers.

Status levels:
    healthy:   store reachable (HTTP 200)
    unhealthy: store unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response

from product_api import __version__
from product_api.database import get_gateway
from product_api.schemas.product import HealthResponse
from product_api.services.gateway_base import ProductGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Document store unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(
    response: Response,
    gateway: ProductGateway = Depends(get_gateway),
) -> HealthResponse:
    if await gateway.ping():
        db_status, overall = "connected", "healthy"
    else:
        db_status, overall = "disconnected", "unhealthy"
        response.status_code = 503
        logger.warning("Health check: document store unreachable")

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
