"""Tracing, metrics and structured logging for the storefront."""

import logging
import os
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.botocore import BotocoreInstrumentor
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pythonjsonlogger import jsonlogger

logger = logging.getLogger(__name__)

SERVICE_NAME = "zequi-storefront"
SERVICE_VERSION = "1.0.0"
DEFAULT_OTLP_ENDPOINT = "http://localhost:4318"

# Health probes and long-lived SSE connections would drown the traces
UNTRACED_URLS = "health,api/stream,api/admin/stream"

# Chatty third-party loggers kept at WARNING
QUIET_LOGGERS = ("botocore", "boto3", "urllib3", "PIL")


def otlp_endpoint() -> str:
    """Base URL of the OTLP/HTTP collector."""
    return os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT).rstrip("/")


def exporters_enabled() -> bool:
    """Exporters run everywhere except under test or when the SDK is disabled."""
    if os.getenv("ENVIRONMENT", "development") == "test":
        return False
    return os.getenv("OTEL_SDK_DISABLED", "false").lower() != "true"


def get_service_resource() -> Resource:
    """Resource attributes identifying this deployment of the storefront."""
    return Resource.create(
        {
            "service.name": os.getenv("OTEL_SERVICE_NAME", SERVICE_NAME),
            "service.version": SERVICE_VERSION,
            "deployment.environment": os.getenv("ENVIRONMENT", "development"),
        }
    )


def setup_tracing(resource: Resource) -> None:
    """Export spans in batches to the collector."""
    exporter = OTLPSpanExporter(endpoint=f"{otlp_endpoint()}/v1/traces")
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    logger.info(f"Tracing exported to {otlp_endpoint()}")


def setup_metrics(resource: Resource) -> None:
    """Export order, upload and subscription metrics once a minute."""
    exporter = OTLPMetricExporter(endpoint=f"{otlp_endpoint()}/v1/metrics")
    reader = PeriodicExportingMetricReader(exporter, export_interval_millis=60000)
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))

    logger.info(f"Metrics exported to {otlp_endpoint()}")


def setup_observability(app: Any = None) -> None:
    """Install providers, instrument DynamoDB calls and the FastAPI app.

    Safe to call again on a warm Lambda container: instrumentors that are
    already active are left alone.

    Args:
        app: Optional FastAPI application to instrument
    """
    resource = get_service_resource()

    if exporters_enabled():
        setup_tracing(resource)
        setup_metrics(resource)
    else:
        trace.set_tracer_provider(TracerProvider(resource=resource))
        metrics.set_meter_provider(MeterProvider(resource=resource))

    botocore = BotocoreInstrumentor()
    if not botocore.is_instrumented_by_opentelemetry:
        botocore.instrument()

    if app is not None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=UNTRACED_URLS)

    logger.info(
        f"Observability ready for {resource.attributes.get('service.name')} "
        f"({'exporting' if exporters_enabled() else 'in-process only'})"
    )


def configure_logging(log_level: str = "INFO") -> None:
    """Send every log record to stdout as one JSON object per line.

    Args:
        log_level: Level used when LOG_LEVEL is not set
    """
    level_name = os.getenv("LOG_LEVEL", log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger"},
            timestamp=True,
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger.info(f"JSON logging at {level_name}")
