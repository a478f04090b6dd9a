"""Telemetry and logging bootstrap for the order service.

Both entry points (the Lambda handler and the uvicorn dev server) call
``setup_observability`` once per process; repeated calls only instrument
additional FastAPI apps.
"""

import logging
import os
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.botocore import BotocoreInstrumentor
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pythonjsonlogger import jsonlogger

logger = logging.getLogger(__name__)

SERVICE_NAME = "order-svc"
DEFAULT_OTLP_ENDPOINT = "http://localhost:4318"
METRIC_EXPORT_INTERVAL_MS = 60000

# Polled by load balancers and uptime checks; not worth a span each
EXCLUDED_URLS = "health"

# Libraries that log every request at INFO
NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "httpx", "httpcore")

_providers_configured = False


def _otlp_endpoint() -> str:
    return os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT).rstrip("/")


def get_service_resource() -> Resource:
    """Resource attributes attached to every span and metric.

    When running on Lambda the function name is added so traces from
    several deployments of the service can be told apart.
    """
    attributes: dict[str, Any] = {
        "service.name": os.getenv("OTEL_SERVICE_NAME", SERVICE_NAME),
        "deployment.environment": os.getenv("ENVIRONMENT", "development"),
    }
    function_name = os.getenv("AWS_LAMBDA_FUNCTION_NAME")
    if function_name:
        attributes["faas.name"] = function_name
    return Resource.create(attributes)


def setup_tracing(resource: Resource) -> None:
    """Export spans to the collector over OTLP/HTTP.

    Args:
        resource: Service resource for trace identification
    """
    endpoint = _otlp_endpoint()
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{endpoint}/v1/traces"))
    )
    trace.set_tracer_provider(provider)

    logger.info(f"Span export configured: {endpoint}/v1/traces")


def setup_metrics(resource: Resource) -> None:
    """Export order metrics to the collector over OTLP/HTTP.

    Args:
        resource: Service resource for metric identification
    """
    endpoint = _otlp_endpoint()
    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=f"{endpoint}/v1/metrics"),
        export_interval_millis=METRIC_EXPORT_INTERVAL_MS,
    )
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))

    logger.info(f"Metric export configured: {endpoint}/v1/metrics")


def setup_auto_instrumentation() -> None:
    """Trace auth service calls (httpx) and DynamoDB calls (botocore)."""
    HTTPXClientInstrumentor().instrument()
    BotocoreInstrumentor().instrument()

    logger.info("Client instrumentation enabled for httpx and botocore")


def setup_observability(app: Any = None, enable_exporters: bool = True) -> None:
    """Configure providers and instrumentation, then instrument ``app``.

    Args:
        app: FastAPI application to instrument, if any
        enable_exporters: Send telemetry to the collector; always off when
            ENVIRONMENT=test, where providers are installed without exporters
    """
    global _providers_configured

    if not _providers_configured:
        if os.getenv("ENVIRONMENT", "development") == "test":
            enable_exporters = False

        resource = get_service_resource()
        if enable_exporters:
            setup_tracing(resource)
            setup_metrics(resource)
        else:
            trace.set_tracer_provider(TracerProvider(resource=resource))
            metrics.set_meter_provider(MeterProvider(resource=resource))

        setup_auto_instrumentation()
        _providers_configured = True
        logger.info(f"Observability configured (exporters enabled: {enable_exporters})")

    if app is not None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=EXCLUDED_URLS)
        logger.info(f"Instrumented FastAPI app '{app.title}'")


def configure_logging(log_level: str = "INFO") -> None:
    """Send JSON log lines to stdout, tagged with the service name.

    Any handlers already on the root logger (for example the Lambda
    runtime's default handler) are replaced.

    Args:
        log_level: Used when LOG_LEVEL is not set
    """
    level_name = os.getenv("LOG_LEVEL", log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        rename_fields={"levelname": "level", "name": "logger"},
        static_fields={"service": os.getenv("OTEL_SERVICE_NAME", SERVICE_NAME)},
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    quiet_level = max(level, logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    logger.info(f"JSON logging configured at {level_name}")
