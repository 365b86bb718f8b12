"""OpenTelemetry tracing configuration for distributed tracing."""
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from lumen.config import settings


def setup_tracing(app, engine) -> None:  # noqa: ANN001
    """
    Configure OpenTelemetry tracing with FastAPI and SQLAlchemy instrumentation.

    Args:
        app: FastAPI application instance
        engine: Async SQLAlchemy engine whose queries should be traced
    """
    resource = Resource(attributes={SERVICE_NAME: settings.otel_service_name})
    provider = TracerProvider(resource=resource)

    otlp_exporter = OTLPSpanExporter(endpoint=f"{settings.otel_exporter_otlp_endpoint}/v1/traces")
    provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app)
    # Async engines are instrumented through their sync core
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


def get_tracer(name: str) -> trace.Tracer:
    """
    Get a tracer instance for creating custom spans.

    Without setup_tracing() this returns a no-op tracer.

    Args:
        name: Tracer name (typically module name)

    Returns:
        Tracer: OpenTelemetry tracer instance
    """
    return trace.get_tracer(name)
