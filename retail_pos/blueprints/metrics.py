"""
Prometheus metrics.

/metrics serves request latency and status counts plus the settlement
counters fed by services.settlement. The endpoint is not authenticated:
restrict it at the network level.
"""
import os
import time

from flask import Blueprint, Response, request, g
from prometheus_client import (
    Counter, Histogram, Gauge, CollectorRegistry, REGISTRY, CONTENT_TYPE_LATEST, generate_latest, multiprocess
)

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn workers share metrics through PROMETHEUS_MULTIPROC_DIR
if os.environ.get('PROMETHEUS_MULTIPROC_DIR'):
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
    _register_on = None
else:
    registry = REGISTRY
    _register_on = REGISTRY

http_requests_total = Counter(
    'http_requests_total',
    'HTTP requests by endpoint and status',
    ['method', 'endpoint', 'http_status'],
    registry=_register_on
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    registry=_register_on,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
)

http_requests_in_flight = Gauge(
    'http_requests_in_flight',
    'HTTP requests being served',
    registry=_register_on
)

settlements_total = Counter(
    'pos_settlements_total',
    'Settlements completed (sale, cancel, load, return)',
    ['operation'],
    registry=_register_on
)

settlement_failures_total = Counter(
    'pos_settlement_failures_total',
    'Settlements stopped by a failing store step',
    ['operation', 'step'],
    registry=_register_on
)


def _step_label(step: str) -> str:
    # stock:<id> would give one series per product
    return step.split(':', 1)[0]


def record_settlement_failure(operation: str, step: str) -> None:
    settlement_failures_total.labels(operation=operation, step=_step_label(step)).inc()


def setup_metrics_instrumentation(app):
    """Time every request and count it by endpoint and status."""

    @app.before_request
    def start_timer():
        g._metrics_started = time.time()
        http_requests_in_flight.inc()

    @app.after_request
    def record_request(response):
        started = g.pop('_metrics_started', None)
        if started is None:
            return response
        endpoint = request.endpoint or 'unknown'
        try:
            http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(time.time() - started)
            http_requests_total.labels(method=request.method, endpoint=endpoint, http_status=response.status_code).inc()
            http_requests_in_flight.dec()
        except ValueError as e:
            app.logger.warning(f"Failed to record metrics: {e}")
        return response


@metrics_bp.route('/metrics')
def metrics():
    """Prometheus text exposition."""
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
