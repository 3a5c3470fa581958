"""
Telemetry service for structured logging and tracing.

This module provides structured JSON logging with request correlation and
OpenTelemetry integration for distributed tracing. The service instance is
created once at startup and handed to the components that trace their work,
such as the health check aggregator.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional, Dict

from middleware.request_id import get_request_id


class JSONFormatter(logging.Formatter):
    """
    Log formatter that outputs one JSON object per record.

    Each entry contains timestamp, level, message, logger name, request_id,
    the code location, any ``extra_data`` attached to the record, and the
    formatted exception when one is present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "request_id": get_request_id(),
        }

        if record.module:
            log_data["module"] = record.module
        if record.funcName and record.funcName != "<module>":
            log_data["function"] = record.funcName
        if record.lineno:
            log_data["line"] = record.lineno

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            log_data.update(extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_trace"] = record.stack_info

        return json.dumps(log_data, default=str)


class TelemetryService:
    """
    Centralized telemetry service for logging, metrics, and tracing.

    Attributes:
        settings: Application settings (log_level, otel_endpoint, otel_service_name)
        tracer: The OpenTelemetry tracer, or None when tracing is disabled
    """

    def __init__(
        self,
        settings: Optional[Any] = None,
        tracer: Optional[Any] = None,
        configure_logging: bool = True,
    ):
        """
        Initialize the telemetry service.

        Args:
            settings: Application settings
            tracer: A ready-made tracer; skips the OTLP exporter setup when given
            configure_logging: Whether to install the JSON handler on the root logger
        """
        self.settings = settings
        self.tracer = tracer
        self._logger = logging.getLogger("telemetry")
        if configure_logging:
            self._setup_logging()
        if self.tracer is None:
            self._setup_tracing()

    def _setup_logging(self) -> None:
        """Install a stdout handler with JSONFormatter on the root logger."""
        log_level_str = getattr(self.settings, "log_level", None) or "INFO"
        log_level = getattr(logging, log_level_str.upper(), logging.INFO)

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setLevel(log_level)
        stdout_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(stdout_handler)

        self._logger.info("Telemetry service initialized", extra={
            "extra_data": {"log_level": log_level_str}
        })

    def _setup_tracing(self) -> None:
        """
        Configure OpenTelemetry tracing.

        Sets up the TracerProvider and an OTLP span exporter if an endpoint is
        configured in settings; otherwise spans are no-ops.
        """
        otel_endpoint = getattr(self.settings, "otel_endpoint", None)
        if not otel_endpoint:
            self._logger.debug("OpenTelemetry endpoint not configured, tracing disabled")
            return

        try:
            from opentelemetry import trace
            from opentelemetry.sdk.trace import TracerProvider
            from opentelemetry.sdk.trace.export import BatchSpanProcessor
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
            from opentelemetry.sdk.resources import Resource, SERVICE_NAME

            service_name = getattr(self.settings, "otel_service_name", "movie-api")

            provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: service_name}))
            provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otel_endpoint)))
            trace.set_tracer_provider(provider)

            self.tracer = trace.get_tracer(service_name)

            self._logger.info("OpenTelemetry tracing configured", extra={
                "extra_data": {
                    "otel_endpoint": otel_endpoint,
                    "service_name": service_name
                }
            })
        except ImportError as e:
            self._logger.warning(
                "OpenTelemetry exporter not installed, tracing disabled",
                extra={"extra_data": {"error": str(e)}}
            )

    def record_metric(
        self,
        name: str,
        value: float,
        tags: Optional[Dict[str, str]] = None
    ) -> None:
        """
        Record a custom metric as a debug log entry.

        Args:
            name: Name of the metric
            value: Metric value
            tags: Optional tags for metric dimensions
        """
        metric_data: Dict[str, Any] = {
            "metric_name": name,
            "metric_value": value,
        }
        if tags:
            metric_data["tags"] = tags

        self._logger.debug(
            f"Metric: {name}={value}",
            extra={"extra_data": metric_data}
        )

    def create_span(self, name: str, attributes: Optional[Dict[str, Any]] = None):
        """
        Create a span for distributed tracing.

        Args:
            name: Name of the span, e.g. "service.healthcheck.infrastructure"
            attributes: Optional attributes to set on the span

        Returns:
            A span context manager; a no-op one when tracing is disabled
        """
        if self.tracer:
            return self.tracer.start_as_current_span(name, attributes=attributes)
        return NoOpSpan()


class NoOpSpan:
    """
    No-op span used when tracing is not configured.

    Lets callers use span context managers without checking whether
    tracing is enabled.
    """

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False

    def set_attribute(self, key: str, value: Any) -> None:
        pass

    def add_event(self, name: str, attributes: Optional[Dict[str, Any]] = None) -> None:
        pass

    def record_exception(self, exception: BaseException) -> None:
        pass


def initialize_telemetry(settings: Optional[Any] = None) -> TelemetryService:
    """
    Initialize telemetry for the process: JSON logging on the root logger
    and, when an endpoint is configured, OTLP tracing.

    Args:
        settings: Application settings for configuration

    Returns:
        The initialized telemetry service
    """
    return TelemetryService(settings)
