"""Prometheus metrics helpers for the importer and the signup identity linker."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

_import_rows_counter = Counter(
    "discfinder_importer_rows_total",
    "Legacy rows processed by entity and outcome.",
    ["entity", "outcome"],
)
_import_run_duration = Histogram(
    "discfinder_importer_run_duration_seconds",
    "Duration of importer runs in seconds.",
    ["entity"],
    buckets=(1, 5, 15, 30, 60, 120, 300, 600, 1800),
)
_identity_links_counter = Counter(
    "discfinder_identity_links_total",
    "Signup identity link outcomes by terminal state.",
    ["state"],
)


def record_import_row(entity: str, outcome: str) -> None:
    """Increment the per-row outcome counter."""

    _import_rows_counter.labels(entity=entity, outcome=outcome).inc()


def record_import_run(entity: str, duration_seconds: float) -> None:
    _import_run_duration.labels(entity=entity).observe(max(0.0, duration_seconds))


def record_identity_link(state: str) -> None:
    """Increment the linker outcome counter (linked, direct, existing, failed)."""

    _identity_links_counter.labels(state=state).inc()
