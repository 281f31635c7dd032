"""OpenTelemetry tracing helpers.

Every analysis stage runs inside a span. Without an exporter the spans are
still recorded in-process; `--trace` on the CLI prints them to stderr.
"""

from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor


@lru_cache()
def init_tracing(service_name: str, console: bool = False) -> None:
    # A provider installed by the embedding process is left alone.
    if isinstance(trace.get_tracer_provider(), TracerProvider):
        return
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if console:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)


def get_tracer(name: str) -> trace.Tracer:
    return trace.get_tracer(name)


@contextmanager
def stage_span(tracer: trace.Tracer, stage: str, **attributes: Any) -> Iterator[trace.Span]:
    """Span for one pipeline stage; None-valued attributes are dropped."""

    with tracer.start_as_current_span(stage) as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)
        yield span
