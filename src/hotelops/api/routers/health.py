"""Health check endpoints.

- GET /health        - Liveness
- GET /health/db     - Database round trip
- GET /health/ready  - Database plus configuration checks, for readiness checks
"""

import time
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from hotelops.api.dependencies import get_settings_dependency
from hotelops.api.schemas.health import (
    ComponentHealth,
    HealthDetailResponse,
    HealthResponse,
    HealthStatus,
)
from hotelops.config.settings import Settings
from hotelops.config.validation import ValidationSeverity, validate_configuration
from hotelops.db.dependencies import get_db

router = APIRouter(tags=["health"])

APP_VERSION = "0.1.0"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Basic health check",
    description="Returns basic liveness status. No authentication required.",
)
async def health_check() -> HealthResponse:
    """Liveness check; 200 whenever the application is running."""
    return HealthResponse(
        status=HealthStatus.HEALTHY,
        version=APP_VERSION,
        timestamp=datetime.now(UTC),
    )


@router.get(
    "/health/db",
    response_model=HealthDetailResponse,
    summary="Database health check",
    description="Checks database connectivity. No authentication required.",
)
async def health_db(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> HealthDetailResponse:
    db_health = await _check_database(db)
    return HealthDetailResponse(
        status=db_health.status,
        version=APP_VERSION,
        timestamp=datetime.now(UTC),
        database=db_health,
    )


@router.get(
    "/health/ready",
    response_model=HealthDetailResponse,
    summary="Readiness check",
    description="Database connectivity and configuration errors. No authentication required.",
)
async def health_ready(
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings_dependency)],
) -> HealthDetailResponse:
    """Unhealthy when the database is unreachable or configuration has errors.

    Configuration warnings are reported but do not fail readiness.
    """
    db_health = await _check_database(db)
    config_health = _check_configuration(settings)
    unhealthy = HealthStatus.UNHEALTHY in (db_health.status, config_health.status)
    return HealthDetailResponse(
        status=HealthStatus.UNHEALTHY if unhealthy else HealthStatus.HEALTHY,
        version=APP_VERSION,
        timestamp=datetime.now(UTC),
        database=db_health,
        configuration=config_health,
    )


async def _check_database(db: AsyncSession) -> ComponentHealth:
    """Run ``SELECT 1`` and time it.

    Args:
        db: Database session

    Returns:
        ComponentHealth with database status
    """
    start = time.perf_counter()
    try:
        await db.execute(text("SELECT 1"))
        latency_ms = (time.perf_counter() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Database connection successful",
            latency_ms=round(latency_ms, 2),
        )
    except Exception as e:
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message=f"Database connection failed: {str(e)[:100]}",
            latency_ms=round(latency_ms, 2),
        )


def _check_configuration(settings: Settings) -> ComponentHealth:
    issues = validate_configuration(settings)
    errors = [issue for issue in issues if issue.severity == ValidationSeverity.ERROR]
    if errors:
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message="; ".join(f"{issue.field}: {issue.message}" for issue in errors),
        )
    return ComponentHealth(
        status=HealthStatus.HEALTHY,
        message=f"{len(issues)} warning(s)" if issues else "No issues",
    )
