"""Prometheus metrics for the AI gateway."""

from __future__ import annotations

from prometheus_client import Counter, Histogram


# ── HTTP metrics ─────────────────────────────────────────────
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

# ── Gateway metrics ──────────────────────────────────────────
GATEWAY_REQUESTS = Counter(
    "gateway_requests_total",
    "Gateway completion requests by outcome",
    ["feature", "outcome"],  # success / no_providers / all_failed
)

PROVIDER_ATTEMPTS = Counter(
    "gateway_provider_attempts_total",
    "Individual provider attempts made by the failover router",
    ["provider", "outcome"],  # success / failure
)

PROVIDER_LATENCY = Histogram(
    "gateway_provider_latency_seconds",
    "Provider attempt latency",
    ["provider"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0),
)

# ── Health probe metrics ─────────────────────────────────────
PROBE_RESULTS = Counter(
    "gateway_probe_results_total",
    "Health probe results per model entry",
    ["model_id", "outcome"],  # ok / failed
)
