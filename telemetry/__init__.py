"""
Telemetry module for structured logging and tracing.

This module provides:
- JSONFormatter for structured JSON log output
- TelemetryService for logging setup, metrics and spans
- Integration with OpenTelemetry for distributed tracing
"""

from telemetry.service import (
    JSONFormatter,
    NoOpSpan,
    TelemetryService,
    initialize_telemetry,
)

__all__ = [
    "JSONFormatter",
    "NoOpSpan",
    "TelemetryService",
    "initialize_telemetry",
]
