"""
Prometheus metrics endpoint for monitoring infrastructure.

Public endpoint following standard Prometheus practice. It exposes the
metrics collected by ``@measure_operation`` and the booking conflict and
rollback counters.
"""

from fastapi import APIRouter, Response
from prometheus_client import Counter

from ..monitoring.prometheus_metrics import REGISTRY, prometheus_metrics

router = APIRouter(tags=["monitoring"])

_scrape_counter = Counter(
    "staybook_prometheus_scrapes_total",
    "Total number of Prometheus metrics scrapes",
    registry=REGISTRY,
)


@router.get("/metrics", include_in_schema=False)
def get_metrics() -> Response:
    _scrape_counter.inc()
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
