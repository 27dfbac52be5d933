"""OpenTelemetry configuration for tracing, metrics, and logging.

- OTLP gRPC exporters, endpoint taken from settings
- Auto-instrumentation for FastAPI, the HTTPX catalog client and logging
"""
import logging
import socket
from typing import Any, Optional

from opentelemetry import metrics, trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from pokefolio.core.config import settings

logger = logging.getLogger(__name__)

# Global tracer for custom spans
_tracer: Optional[trace.Tracer] = None


def get_tracer() -> trace.Tracer:
    """Get the configured tracer for creating custom spans."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(
            settings.otel_service_name,
            settings.otel_service_version
        )
    return _tracer


def _create_resource() -> Resource:
    """Create OpenTelemetry resource with service attributes."""
    environment = "Development" if settings.debug else "Production"

    return Resource.create({
        SERVICE_NAME: settings.otel_service_name,
        SERVICE_VERSION: settings.otel_service_version,
        "deployment.environment": environment,
        "service.instance.id": socket.gethostname(),
    })


def configure_telemetry() -> None:
    """
    Configure OpenTelemetry with tracing, metrics, and logging.

    Endpoint resolution:
    1. OTEL_EXPORTER_OTLP_ENDPOINT
    2. OTLP_ENDPOINT
    3. http://localhost:4317
    """
    otlp_endpoint = settings.resolved_otlp_endpoint
    resource = _create_resource()

    logger.info(f"Configuring OpenTelemetry with endpoint: {otlp_endpoint}")
    logger.info(f"Service: {settings.otel_service_name} v{settings.otel_service_version}")

    _configure_tracing(resource, otlp_endpoint)
    _configure_metrics(resource, otlp_endpoint)
    _configure_logging(resource, otlp_endpoint)

    logger.info("OpenTelemetry configuration complete")


def _configure_tracing(resource: Resource, otlp_endpoint: str) -> None:
    """Configure distributed tracing with OTLP exporter."""
    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
    )
    trace.set_tracer_provider(tracer_provider)

    logger.info("Tracing configured with OTLP exporter")


def _configure_metrics(resource: Resource, otlp_endpoint: str) -> None:
    """Configure metrics collection with OTLP exporter."""
    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=otlp_endpoint, insecure=True),
        export_interval_millis=60000
    )
    metrics.set_meter_provider(
        MeterProvider(resource=resource, metric_readers=[metric_reader])
    )

    logger.info("Metrics configured with OTLP exporter")


def _configure_logging(resource: Resource, otlp_endpoint: str) -> None:
    """Ship Python log records through the OTLP log exporter."""
    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(
        BatchLogRecordProcessor(OTLPLogExporter(endpoint=otlp_endpoint, insecure=True))
    )
    set_logger_provider(logger_provider)

    logging.getLogger().addHandler(
        LoggingHandler(level=logging.NOTSET, logger_provider=logger_provider)
    )

    logger.info("Logging configured with OTLP exporter")


def instrument_app(app: Any) -> None:
    """
    Apply auto-instrumentation to the FastAPI application.

    Instruments FastAPI requests, outgoing HTTPX calls to the card catalog,
    and Python logging (trace context in log records).
    """
    FastAPIInstrumentor.instrument_app(app)
    HTTPXClientInstrumentor().instrument()
    LoggingInstrumentor().instrument(set_logging_format=True)
    logger.info("FastAPI, HTTPX and logging instrumentation enabled")
