from __future__ import annotations
import os
from contextlib import contextmanager
from typing import Iterator, Optional

from opentelemetry import trace

from bot.settings import env_flag

_tracer = trace.get_tracer("profile-bot")


def otel_enabled() -> bool:
    return env_flag("OTEL_ENABLE", False)

def init_otel(service_name: str = "profile-bot") -> bool:
    """Install a tracer provider when OTEL_ENABLE is on. Returns whether it did."""
    if not otel_enabled():
        return False
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "").strip()
    if endpoint:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        exporter = OTLPSpanExporter(endpoint=endpoint)
    else:
        exporter = ConsoleSpanExporter()

    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    return True

@contextmanager
def turn_span(name: str, **attributes) -> Iterator[None]:
    """Span around one bot turn. A no-op tracer is used until init_otel() runs."""
    with _tracer.start_as_current_span(name) as span:
        for k, v in attributes.items():
            if v is not None:
                span.set_attribute(k, v)
        yield

def current_trace_ids() -> Optional[dict]:
    span = trace.get_current_span()
    ctx = span.get_span_context()
    if not ctx or not ctx.is_valid:
        return None
    return {
        "trace_id": format(ctx.trace_id, "032x"),
        "span_id": format(ctx.span_id, "016x"),
    }
