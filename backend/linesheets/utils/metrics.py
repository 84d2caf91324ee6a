"""
Métricas personalizadas para Prometheus
Contadores del pipeline: mensajes, análisis IA y escrituras en Sheets
"""

from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST

# Registry para métricas personalizadas
REGISTRY = CollectorRegistry()

MESSAGES_PROCESSED_COUNTER = Counter(
    'linesheets_messages_processed_total',
    'Total number of messages run through the pipeline',
    ['status'],
    registry=REGISTRY
)

AI_ANALYSES_COUNTER = Counter(
    'linesheets_ai_analyses_total',
    'Total number of AI analyses by outcome',
    ['outcome'],  # ai | fallback
    registry=REGISTRY
)

SHEET_APPENDS_COUNTER = Counter(
    'linesheets_sheet_appends_total',
    'Total number of Google Sheets row appends',
    ['result'],
    registry=REGISTRY
)

PIPELINE_DURATION_HISTOGRAM = Histogram(
    'linesheets_pipeline_duration_seconds',
    'Duration of a single message pipeline run in seconds',
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=REGISTRY
)

CONTENT_TYPE = CONTENT_TYPE_LATEST


def record_message_processed(status: str, duration_seconds: float) -> None:
    MESSAGES_PROCESSED_COUNTER.labels(status=status).inc()
    PIPELINE_DURATION_HISTOGRAM.observe(duration_seconds)


def record_ai_analysis(outcome: str) -> None:
    AI_ANALYSES_COUNTER.labels(outcome=outcome).inc()


def record_sheet_append(success: bool) -> None:
    SHEET_APPENDS_COUNTER.labels(result="success" if success else "error").inc()


def get_metrics() -> bytes:
    """Exposición en formato texto de Prometheus."""
    return generate_latest(REGISTRY)
