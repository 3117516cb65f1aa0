"""Metrics endpoint and request tracking middleware.

Tracks: request count, latency, active requests, error rate, plus the
workflow counters services bump through ``increment``.
"""
import time
import logging
from collections import defaultdict

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse, Response

logger = logging.getLogger(__name__)

# In-memory, per-process counters
_metrics: dict[str, float] = defaultdict(float)
_histograms: dict[str, list[float]] = defaultdict(list)
_labelled: dict[tuple[str, str, str], float] = defaultdict(float)

_HISTOGRAM_WINDOW = 10_000


def increment(name: str, amount: float = 1.0, **labels: str) -> None:
    """Bump a counter. At most one label is kept (``name{label="value"}``)."""
    if labels:
        key, value = next(iter(labels.items()))
        _labelled[(name, key, value)] += amount
    else:
        _metrics[name] += amount


def get_counter(name: str, **labels: str) -> float:
    if labels:
        key, value = next(iter(labels.items()))
        return _labelled.get((name, key, value), 0.0)
    return _metrics.get(name, 0.0)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Track request metrics."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        method = request.method
        path = request.url.path

        _metrics["http_requests_active"] += 1

        try:
            response = await call_next(request)
            status = response.status_code
        except Exception:
            status = 500
            _metrics["http_requests_errors_total"] += 1
            raise
        finally:
            duration = time.time() - start
            _metrics["http_requests_active"] -= 1
            _metrics["http_requests_total"] += 1
            durations = _histograms["http_request_duration_seconds"]
            durations.append(duration)
            if len(durations) > _HISTOGRAM_WINDOW:
                del durations[: len(durations) - _HISTOGRAM_WINDOW]

            key = f"http_requests_by_status_{status // 100}xx"
            _metrics[key] += 1

            # Log slow requests (>500ms)
            if duration > 0.5:
                logger.warning("slow_request", extra={
                    "method": method, "path": path,
                    "duration_ms": round(duration * 1000, 2),
                    "status": status,
                })

        return response


def _percentile(data: list[float], p: float) -> float:
    if not data:
        return 0.0
    sorted_data = sorted(data)
    idx = int(len(sorted_data) * p / 100)
    return sorted_data[min(idx, len(sorted_data) - 1)]


def render_metrics() -> str:
    durations = _histograms.get("http_request_duration_seconds", [])
    lines = [
        "# HELP http_requests_total Total HTTP requests",
        "# TYPE http_requests_total counter",
        f'http_requests_total {_metrics["http_requests_total"]:.0f}',
        "",
        "# HELP http_requests_active Active HTTP requests",
        "# TYPE http_requests_active gauge",
        f'http_requests_active {_metrics["http_requests_active"]:.0f}',
        "",
        "# HELP http_requests_errors_total Total HTTP errors",
        "# TYPE http_requests_errors_total counter",
        f'http_requests_errors_total {_metrics["http_requests_errors_total"]:.0f}',
        "",
        "# HELP http_request_duration_seconds Request duration",
        "# TYPE http_request_duration_seconds summary",
        f'http_request_duration_seconds{{quantile="0.5"}} {_percentile(durations, 50):.6f}',
        f'http_request_duration_seconds{{quantile="0.9"}} {_percentile(durations, 90):.6f}',
        f'http_request_duration_seconds{{quantile="0.99"}} {_percentile(durations, 99):.6f}',
        f"http_request_duration_seconds_count {len(durations)}",
        "",
        "# HELP http_requests_by_status HTTP requests by status class",
        "# TYPE http_requests_by_status counter",
        f'http_requests_by_status{{status="2xx"}} {_metrics["http_requests_by_status_2xx"]:.0f}',
        f'http_requests_by_status{{status="4xx"}} {_metrics["http_requests_by_status_4xx"]:.0f}',
        f'http_requests_by_status{{status="5xx"}} {_metrics["http_requests_by_status_5xx"]:.0f}',
        "",
        "# HELP authorization_denials_total Requests rejected by a role or ownership gate",
        "# TYPE authorization_denials_total counter",
        f'authorization_denials_total {_metrics["authorization_denials_total"]:.0f}',
        "",
        "# HELP audit_write_failures_total Audit entries that could not be written",
        "# TYPE audit_write_failures_total counter",
        f'audit_write_failures_total {_metrics["audit_write_failures_total"]:.0f}',
        "",
        "# HELP workflow_transitions_total Successful workflow transitions",
        "# TYPE workflow_transitions_total counter",
    ]
    for (name, key, value), amount in sorted(_labelled.items()):
        if name == "workflow_transitions_total":
            lines.append(f'{name}{{{key}="{value}"}} {amount:.0f}')
    return "\n".join(lines) + "\n"


def setup_metrics(app: FastAPI) -> None:
    """Register the /metrics endpoint."""

    @app.get("/metrics", tags=["monitoring"], include_in_schema=False)
    async def metrics_endpoint():
        return PlainTextResponse(render_metrics(), media_type="text/plain")
