"""
Health check endpoints.

- ``GET /v1/health/api``: liveness, always 200 with the SUCCESS envelope.
- ``GET /v1/health/infrastructure``: readiness report. 200 when every hard
  dependency is healthy, 404 otherwise.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from api.dependencies import HealthCheckServiceDep, TelemetryDep
from api.response import write_api_ok, write_json

API_HEALTH_CHECK_HANDLER = "handler.healthcheck.api"
INFRASTRUCTURE_HEALTH_CHECK_HANDLER = "handler.healthcheck.infrastructure"

UNHEALTHY_STATUS_CODE = 404

router = APIRouter(prefix="/v1/health", tags=["health"])


@router.get("/api")
async def health_api(service: HealthCheckServiceDep, telemetry: TelemetryDep) -> JSONResponse:
    """Liveness check endpoint."""
    with telemetry.create_span(API_HEALTH_CHECK_HANDLER):
        await service.check_liveness()
    return write_api_ok()


@router.get("/infrastructure")
async def health_infrastructure(service: HealthCheckServiceDep, telemetry: TelemetryDep) -> JSONResponse:
    """
    Readiness check endpoint with dependency verification.

    Returns:
        JSONResponse: ``{"items": [...], "result": "..."}``
        - 200 OK: all hard dependencies healthy (soft ones may be degraded)
        - 404: at least one hard dependency unhealthy
    """
    with telemetry.create_span(INFRASTRUCTURE_HEALTH_CHECK_HANDLER):
        health_result = await service.check_readiness()

    status_code = 200 if health_result.is_ok else UNHEALTHY_STATUS_CODE
    return write_json(health_result.to_dict(), status_code=status_code)
