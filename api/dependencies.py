"""FastAPI dependency injection."""

from typing import Annotated

from fastapi import Depends, Request

from errors.exceptions import database_unavailable
from health.service import HealthCheckService
from movie.service import MovieService
from telemetry.service import TelemetryService


async def get_telemetry(request: Request) -> TelemetryService:
    """Get the TelemetryService instance from app state."""
    return request.app.state.telemetry


async def get_health_check_service(request: Request) -> HealthCheckService:
    """Get the HealthCheckService instance from app state."""
    service = getattr(request.app.state, "health_check_service", None)
    if service is None:
        raise database_unavailable("Database connections are not initialized")
    return service


async def get_movie_service(request: Request) -> MovieService:
    """Get the MovieService instance from app state."""
    service = getattr(request.app.state, "movie_service", None)
    if service is None:
        raise database_unavailable("Database connections are not initialized")
    return service


TelemetryDep = Annotated[TelemetryService, Depends(get_telemetry)]
HealthCheckServiceDep = Annotated[HealthCheckService, Depends(get_health_check_service)]
MovieServiceDep = Annotated[MovieService, Depends(get_movie_service)]
