"""
Health check router.

Provides a simple health endpoint for liveness/readiness probes.
No business logic. Returns application status and version, wrapped
in the standard envelope like any other route.
"""

from fastapi import APIRouter, Request

from response_wrapper.core.config import settings
from response_wrapper.interfaces.route import ResponseWrapperRoute
from response_wrapper.interfaces.schemas import HealthResponse
from response_wrapper.shared.security.rate_limiting import limiter

router = APIRouter(tags=["health"], route_class=ResponseWrapperRoute)


@router.get(
    "/health",
    summary="Health check",
    description="Returns application health status and version.",
)
@limiter.limit(settings.rate_limit_default)
def health_check(request: Request) -> HealthResponse:
    """Return current application health status."""
    return HealthResponse(status="ok", version=settings.version)
