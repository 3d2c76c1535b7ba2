"""
OpenTelemetry tracing for pshare.

Off unless ENABLE_TRACING=true. Each request gets one span named after its
route, carrying the requested path, the response status and the body size.
"""

from contextlib import contextmanager
import logging
import os

from dotenv import load_dotenv
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Status, StatusCode

logger = logging.getLogger(__name__)

load_dotenv()

ENABLE_TRACING = os.getenv("ENABLE_TRACING", "false").lower() == "true"
OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT", "localhost:4317")

tracer = trace.get_tracer("pshare.dispatch")


def setup_tracing(app=None, file_count=None):
    """
    Export spans over OTLP and instrument the app.

    Args:
        app (FastAPI, optional): Application to instrument
        file_count (int, optional): Registry size, recorded on the resource

    Returns:
        bool: True if tracing was enabled
    """
    if not ENABLE_TRACING:
        logger.info("Tracing is disabled")
        return False

    attributes = {"service.name": "pshare"}
    if file_count is not None:
        attributes["pshare.files"] = file_count

    try:
        provider = TracerProvider(resource=Resource.create(attributes))
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=OTLP_ENDPOINT)))
        trace.set_tracer_provider(provider)
        if app:
            FastAPIInstrumentor.instrument_app(app)
    except Exception as e:
        logger.error(f"Failed to set up tracing: {e}")
        return False

    logger.info(f"Tracing requests to {OTLP_ENDPOINT}")
    return True


@contextmanager
def request_span(route, method, path):
    """
    Span around one dispatch.

    Args:
        route (str): 'index' or 'file'
        method (str): HTTP method
        path (str): Raw request path
    """
    with tracer.start_as_current_span(f"pshare.{route}") as span:
        span.set_attribute("pshare.route", route)
        span.set_attribute("http.request.method", method)
        span.set_attribute("url.path", path)
        yield span


def record_result(span, status, body_size):
    """Attach the response outcome to a request span."""
    span.set_attribute("http.response.status_code", status)
    span.set_attribute("pshare.body_bytes", body_size)
    if status >= 400:
        span.set_status(Status(StatusCode.ERROR, f"HTTP {status}"))
