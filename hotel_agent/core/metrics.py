"""
Prometheus-Metriken.

- http_request_duration_seconds: Histogramm nach method, route, status
- http_requests_total: Zähler nach method, route, status
- up: 1, solange der Prozess läuft
- Prozess- und Plattform-Metriken des Clients

Die Route ist das Muster der gefundenen Route ("/retell/tool/quote"), nicht
der rohe Pfad. Unbekannte Pfade landen gesammelt unter "unmatched".
"""
from __future__ import annotations

import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

UNMATCHED_ROUTE = "unmatched"

REGISTRY = CollectorRegistry()
ProcessCollector(registry=REGISTRY)
PlatformCollector(registry=REGISTRY)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "Duration of HTTP requests in seconds",
    ["method", "route", "status"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10),
    registry=REGISTRY,
)
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "route", "status"],
    registry=REGISTRY,
)
UP = Gauge("up", "Service is up", registry=REGISTRY)
UP.set(1)


def route_label(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


class MetricsMiddleware(BaseHTTPMiddleware):
    """Misst Dauer und Anzahl jeder Anfrage."""

    async def dispatch(self, request: Request, call_next) -> Response:
        started = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            labels = (request.method, route_label(request), str(status))
            REQUEST_DURATION.labels(*labels).observe(time.perf_counter() - started)
            REQUEST_COUNT.labels(*labels).inc()


def render_metrics() -> Response:
    """Aktueller Stand im Prometheus-Textformat."""
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
