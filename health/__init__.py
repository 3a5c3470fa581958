"""
Health check module for the Movie API.

Liveness answers without touching dependencies; readiness probes the master
and slave databases concurrently and reports a single verdict.
"""

from health.probes import (
    DatabaseProbe,
    DependencyProbe,
    DependencyType,
    build_database_probes,
    create_probe_executor,
)
from health.service import (
    COUGHING_MSG,
    DYING_MSG,
    HEALTHY_MSG,
    DependencyCheckItem,
    HealthCheckService,
    InfrastructureHealthResult,
)

__all__ = [
    "DatabaseProbe",
    "DependencyProbe",
    "DependencyType",
    "build_database_probes",
    "create_probe_executor",
    "COUGHING_MSG",
    "DYING_MSG",
    "HEALTHY_MSG",
    "DependencyCheckItem",
    "HealthCheckService",
    "InfrastructureHealthResult",
]
