"""OpenTelemetry spans for provisioning stages and sync runs.

Tracing is opt-in: a command line run rarely has a collector nearby, so
nothing is exported unless ``OTEL_TRACES_ENABLED=true``. The endpoint and
service name follow the usual ``OTEL_EXPORTER_OTLP_ENDPOINT`` and
``OTEL_SERVICE_NAME`` variables.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Tracer

from .constants import TOOL_NAME

logger = logging.getLogger(__name__)

_tracer: Tracer | None = None


def _build_provider(service_name: str) -> TracerProvider:
    resource = Resource.create({
        "service.name": service_name,
        "service.version": os.getenv("OTEL_SERVICE_VERSION", "unknown"),
    })
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317"))
    provider.add_span_processor(BatchSpanProcessor(exporter))
    return provider


def initialize_tracing(service_name: str = TOOL_NAME) -> None:
    """Install the OTLP exporter when tracing is enabled in the environment."""
    global _tracer

    if os.getenv("OTEL_TRACES_ENABLED", "false").lower() != "true":
        return

    try:
        trace.set_tracer_provider(_build_provider(os.getenv("OTEL_SERVICE_NAME", service_name)))
    except Exception as e:
        # A broken exporter must not stop a deploy
        logger.warning(f"Tracing disabled, exporter setup failed: {e}")
        return
    _tracer = trace.get_tracer("s3_website")


def get_tracer() -> Tracer | None:
    return _tracer


@contextmanager
def trace_span(
    name: str,
    component: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span | None]:
    """Run the block inside a span named ``name``.

    Yields the span, or None when tracing was never initialized. An
    exception leaving the block is recorded on the span and re-raised.
    """
    tracer = get_tracer()
    if tracer is None:
        yield None
        return

    span_attributes = dict(attributes or {})
    if component:
        span_attributes["s3_website.component"] = component

    with tracer.start_as_current_span(name, attributes=span_attributes, record_exception=False) as span:
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
            raise
