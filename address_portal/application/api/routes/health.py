"""
Health check routes.

This module reports application status together with the state of every
circuit breaker guarding the remote address API.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request
import structlog

from address_portal.application.models import DependencyStatus, HealthResponse, HealthStatus
from address_portal.infrastructure.resilience import circuit_breaker_registry

logger = structlog.get_logger(__name__)
router = APIRouter()

BREAKER_STATE_HEALTH = {
    "closed": HealthStatus.HEALTHY,
    "half_open": HealthStatus.DEGRADED,
    "open": HealthStatus.UNHEALTHY,
}

_SEVERITY = [HealthStatus.HEALTHY, HealthStatus.DEGRADED, HealthStatus.UNHEALTHY]


def dependency_from_breaker(status: Dict[str, Any]) -> DependencyStatus:
    """Describe a remote dependency by the state of its circuit breaker."""
    return DependencyStatus(
        name=status["name"],
        status=BREAKER_STATE_HEALTH.get(status["state"], HealthStatus.UNHEALTHY),
        details=status,
    )


@router.get("", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Report overall health.

    The application is healthy when every breaker is closed, degraded while a
    breaker is probing a recovering dependency, and unhealthy while one is open.
    """
    dependencies = [
        dependency_from_breaker(status)
        for status in circuit_breaker_registry.get_all_status().values()
    ]

    overall = HealthStatus.HEALTHY
    for dependency in dependencies:
        if _SEVERITY.index(dependency.status) > _SEVERITY.index(overall):
            overall = dependency.status

    if overall != HealthStatus.HEALTHY:
        logger.warning("Health check reports degraded dependencies", status=overall.value)

    return HealthResponse(
        status=overall,
        timestamp=datetime.now(timezone.utc),
        version=request.app.version,
        dependencies=dependencies,
    )
