"""Prometheus metrics helpers for the exporter."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, write_to_textfile

_directory_bind_attempts = Counter(
    "mailroute_directory_bind_attempts_total",
    "LDAP bind attempts made by readiness checks, by outcome.",
    ["outcome"],
)
_export_runs_counter = Counter(
    "mailroute_export_runs_total",
    "Export runs by final state.",
    ["state"],
)
_export_run_duration = Histogram(
    "mailroute_export_run_duration_seconds",
    "Duration of export runs in seconds.",
    buckets=(0.5, 1, 2, 5, 10, 30, 60, 120, 300, 900),
)
_accounts_exported_counter = Counter(
    "mailroute_export_accounts_total",
    "Accounts written to attribute and proxy tables.",
)
_addresses_excluded_counter = Counter(
    "mailroute_export_addresses_excluded_total",
    "Routing addresses dropped by the legacy-address exclusion rule.",
)
_proxy_width_gauge = Gauge(
    "mailroute_export_proxy_width",
    "Address column count of the most recent proxies table.",
)


def record_directory_bind_attempt(outcome: Literal["success", "failure"]) -> None:
    """Increment the directory bind counter."""

    _directory_bind_attempts.labels(outcome=outcome).inc()


def record_export_run(
    *,
    state: str,
    duration_seconds: float,
    accounts: int = 0,
    addresses_excluded: int = 0,
    width: int | None = None,
) -> None:
    """Capture metrics for a finished (or failed) export run."""

    _export_runs_counter.labels(state=state).inc()
    _export_run_duration.observe(duration_seconds)
    if accounts:
        _accounts_exported_counter.inc(accounts)
    if addresses_excluded:
        _addresses_excluded_counter.inc(addresses_excluded)
    if width is not None:
        _proxy_width_gauge.set(width)


def write_metrics_textfile(path: str | Path, registry: CollectorRegistry = REGISTRY) -> Path:
    """Publish the registry for a node-exporter textfile collector."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    write_to_textfile(str(target), registry)
    return target


__all__ = [
    "record_directory_bind_attempt",
    "record_export_run",
    "write_metrics_textfile",
]
