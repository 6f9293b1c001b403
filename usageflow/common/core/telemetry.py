from typing import TYPE_CHECKING, Any, Dict, Optional
import functools
import asyncio
import logging

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

if TYPE_CHECKING:
    from usageflow.common.core.config import UsageFlowSettings

LOGGER_NAMESPACE = "usageflow"
TRACER_NAME = "usageflow"

# Configure logging at module level
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Global flag to ensure the tracer provider is installed only once
_initialized = False


def configure_telemetry(settings: "UsageFlowSettings") -> None:
    """
    Apply logging level and install the trace exporter.

    The debug flag only changes verbosity. The tracer provider is installed
    once per process and only when an OTLP endpoint is configured; without
    one, spans go to the default no-op provider.
    """
    global _initialized

    namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
    namespace_logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)

    if _initialized or not settings.otlp_endpoint:
        return

    resource = Resource(
        attributes={
            SERVICE_NAME: settings.otel_service_name,
            SERVICE_VERSION: settings.otel_service_version,
        }
    )
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(
        endpoint=settings.otlp_endpoint,
        headers=settings.otlp_headers or None,
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    _initialized = True
    namespace_logger.info(
        "Telemetry initialized",
        extra={"service": settings.otel_service_name, "endpoint": settings.otlp_endpoint},
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.
    Use this instead of logging.getLogger() directly.
    """
    return logging.getLogger(name)


def _span_name(func, args) -> str:
    # methods are named Class.method
    if args and not isinstance(args[0], (str, bytes, int, float)):
        return f"{type(args[0]).__name__}.{func.__name__}"
    return func.__name__


def trace_span(func):
    """Run the decorated function (sync or async) inside its own span."""
    tracer = trace.get_tracer(TRACER_NAME)

    if asyncio.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            with tracer.start_as_current_span(_span_name(func, args)):
                return await func(*args, **kwargs)

        return async_wrapper

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        with tracer.start_as_current_span(_span_name(func, args)):
            return func(*args, **kwargs)

    return sync_wrapper


def log_span_event(message: str, attributes: Optional[Dict[str, Any]] = None) -> None:
    """Attach an event to the current span, if one is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(message, attributes=attributes or {})
