"""
Telemetry configuration (Metrics & Tracing).
Sets up Prometheus instrumentation, engine counters and OpenTelemetry.
"""
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

from feed_engine.config import get_settings

# =============================================================================
# Engine Counters
# =============================================================================

EMBEDDING_FALLBACK_TOTAL = Counter(
    "feed_embedding_fallback_total",
    "Content similarity computations served by the keyword fallback",
    ["reason"],
)

SCORER_FAILURES_TOTAL = Counter(
    "feed_scorer_failures_total",
    "Signal computations that raised and were scored 0",
    ["signal"],
)

MALFORMED_CANDIDATES_TOTAL = Counter(
    "feed_malformed_candidates_total",
    "Catalog candidates skipped because required fields were missing or invalid",
)


def setup_telemetry(app: FastAPI) -> None:
    """
    Setup Observability (Metrics & Tracing).

    1. Prometheus Metrics via /metrics
    2. OpenTelemetry Tracing via OTLP
    """
    settings = get_settings()

    # -------------------------------------------------------------------------
    # 1. Prometheus Metrics
    # -------------------------------------------------------------------------
    if settings.ENABLE_PROMETHEUS:
        instrumentator = Instrumentator(
            should_group_status_codes=False,
            should_ignore_untemplated=True,
            should_respect_env_var=True,
            should_instrument_requests_inprogress=True,
            excluded_handlers=["/metrics", "/health", "/health/ready"],
            env_var_name="ENABLE_METRICS",
            inprogress_name="inprogress",
            inprogress_labels=True,
        )
        instrumentator.instrument(app).expose(app, include_in_schema=False)

    # -------------------------------------------------------------------------
    # 2. OpenTelemetry Tracing
    # -------------------------------------------------------------------------
    if settings.ENABLE_OTEL:
        resource = Resource.create(attributes={
            "service.name": settings.APP_NAME,
            "service.version": settings.APP_VERSION,
            "deployment.environment": "production" if not settings.DEBUG else "development",
        })

        provider = TracerProvider(resource=resource)

        # Default endpoint is localhost:4317
        otlp_exporter = OTLPSpanExporter()
        processor = BatchSpanProcessor(otlp_exporter)
        provider.add_span_processor(processor)

        trace.set_tracer_provider(provider)

        FastAPIInstrumentor.instrument_app(app, tracer_provider=provider)
