from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response

# Aggregate fetcher metrics
aggregate_cache_lookups = Counter(
    "ratingschema_aggregate_cache_lookups_total",
    "Aggregate cache lookups",
    ["result"],  # result: hit | miss
)

aggregate_query_duration = Histogram(
    "ratingschema_aggregate_query_duration_seconds",
    "Time to run the review count/average query for one content item",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

# Head-block rendering outcomes
schema_renders = Counter(
    "ratingschema_schema_renders_total",
    "Head-block render decisions",
    ["outcome"],  # outcome: standalone | merged | suppressed | ineligible
)

# HTTP request metrics (from middleware)
http_requests = Counter(
    "ratingschema_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)

http_request_duration = Histogram(
    "ratingschema_http_request_duration_seconds",
    "HTTP request duration",
    ["method", "path"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


async def metrics_endpoint():
    """FastAPI endpoint handler that returns Prometheus metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
