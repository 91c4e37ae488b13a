"""OpenTelemetry tracing configuration."""

from __future__ import annotations

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from domainkit.config import ObservabilitySettings


def setup_tracing(settings: ObservabilitySettings) -> TracerProvider | None:
    """Configure OpenTelemetry tracing. Returns the installed provider."""
    if not settings.tracing_enabled:
        return None

    resource = Resource.create({
        SERVICE_NAME: settings.service_name,
        SERVICE_VERSION: "0.1.0",
    })

    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    return provider


def get_tracer(name: str = "domainkit") -> trace.Tracer:
    """Get a tracer instance."""
    return trace.get_tracer(name)
