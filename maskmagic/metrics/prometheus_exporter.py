"""Prometheus exporter helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram


edit_requests_total = Counter(
    "maskmagic_edit_requests_total",
    "Edit requests handled by the backend relay, by outcome.",
    ["outcome"],
)

edit_upstream_seconds = Histogram(
    "maskmagic_edit_upstream_seconds",
    "Time spent waiting for the upstream image edit endpoint.",
)
