"""
GET run orchestration: query, normalize, shape and write one export.

Each stage appends to an immutable ``RunLog``; the log is rendered and
written once when the run ends, whether it succeeded, failed or was
cancelled before any query was issued. Failures are never retried.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Sequence

from mailroute.exporter.errors import ExportError
from mailroute.exporter.metrics import record_export_run
from mailroute.exporter.models import ExportFileSet, OrganizationalScope, RunLog, RunState
from mailroute.exporter.pipeline.normalize import LEGACY_ADDRESS_MARKERS, normalize_accounts
from mailroute.exporter.pipeline.shape import build_attribute_rows, shape_proxies
from mailroute.exporter.pipeline.write import write_attribute_table, write_proxy_table, write_run_log

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_ALLOWED_TRANSITIONS: dict[RunState, frozenset[RunState]] = {
    RunState.IDLE: frozenset({RunState.SCOPE_RESOLVED, RunState.CANCELLED}),
    RunState.SCOPE_RESOLVED: frozenset({RunState.ACCOUNTS_QUERIED, RunState.FAILED}),
    RunState.ACCOUNTS_QUERIED: frozenset({RunState.NORMALIZED, RunState.FAILED}),
    RunState.NORMALIZED: frozenset({RunState.SHAPED, RunState.FAILED}),
    RunState.SHAPED: frozenset({RunState.WRITTEN, RunState.FAILED}),
    RunState.WRITTEN: frozenset({RunState.FAILED}),
    RunState.FAILED: frozenset(),
    RunState.CANCELLED: frozenset(),
}

# Stage reported when an error escapes without naming one.
_PENDING_STAGE: dict[RunState, str] = {
    RunState.SCOPE_RESOLVED: "query",
    RunState.ACCOUNTS_QUERIED: "normalize",
    RunState.NORMALIZED: "shape",
    RunState.SHAPED: "write",
    RunState.WRITTEN: "log",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ExportRunSummary:
    """Outcome of a GET run."""

    state: RunState
    scope: OrganizationalScope | None
    account_count: int
    width: int
    addresses_excluded: int
    attributes_path: Path | None
    proxies_path: Path | None
    log_path: Path | None
    run_log: RunLog
    started_at: datetime
    finished_at: datetime

    def as_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "scope": self.scope.distinguished_path if self.scope else None,
            "account_count": self.account_count,
            "width": self.width,
            "addresses_excluded": self.addresses_excluded,
            "attributes_path": str(self.attributes_path) if self.attributes_path else None,
            "proxies_path": str(self.proxies_path) if self.proxies_path else None,
            "log_path": str(self.log_path) if self.log_path else None,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
        }


class ExportRun:
    """Tracks the state and log of a single run."""

    def __init__(self, file_set: ExportFileSet, *, clock: Clock = _utcnow) -> None:
        self.file_set = file_set
        self.clock = clock
        self.state = RunState.IDLE
        self.run_log = RunLog()
        self.scope: OrganizationalScope | None = None
        self.started_at = clock()
        self._started_monotonic = time.monotonic()
        self.account_count = 0
        self.width = 0
        self.addresses_excluded = 0
        self.attributes_path: Path | None = None
        self.proxies_path: Path | None = None
        self.log_path: Path | None = None

    def note(self, stage: str, message: str) -> None:
        self.run_log = self.run_log.append(stage, message, at=self.clock())

    def advance(self, state: RunState, message: str) -> None:
        if state not in _ALLOWED_TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal run transition {self.state.value} -> {state.value}")
        self.state = state
        self.note(state.value, message)

    def fail(self, error: ExportError) -> None:
        if error.stage is None:
            error.stage = _PENDING_STAGE.get(self.state, self.state.value)
        self.advance(RunState.FAILED, f"Run aborted during {error.stage}: {error.describe()}")

    def elapsed(self) -> float:
        return time.monotonic() - self._started_monotonic

    def summary(self) -> ExportRunSummary:
        return ExportRunSummary(
            state=self.state,
            scope=self.scope,
            account_count=self.account_count,
            width=self.width,
            addresses_excluded=self.addresses_excluded,
            attributes_path=self.attributes_path,
            proxies_path=self.proxies_path,
            log_path=self.log_path,
            run_log=self.run_log,
            started_at=self.started_at,
            finished_at=self.clock(),
        )


def _record_metrics(run: ExportRun) -> None:
    record_export_run(
        state=run.state.value,
        duration_seconds=run.elapsed(),
        accounts=run.account_count if run.state == RunState.WRITTEN else 0,
        addresses_excluded=run.addresses_excluded if run.state == RunState.WRITTEN else 0,
        width=run.width if run.state == RunState.WRITTEN else None,
    )


def _write_log_after_failure(run: ExportRun) -> None:
    try:
        run.log_path = write_run_log(run.file_set, run.run_log)
    except ExportError:
        # The original failure is what gets raised to the caller.
        logger.error("Run log could not be written after a failed run", exc_info=True)


def run_get_export(
    extractor,
    scope: OrganizationalScope,
    file_set: ExportFileSet,
    *,
    markers: Sequence[str] = LEGACY_ADDRESS_MARKERS,
    clock: Clock = _utcnow,
) -> ExportRunSummary:
    """
    Export attributes and routing addresses for every account under ``scope``.

    Args:
        extractor: Object exposing ``query_accounts(scope)``.
        scope: A scope already resolved against the catalog.
        file_set: Target directory, date stamp and file prefixes.
        markers: Substrings that mark a routing address as legacy.
        clock: Timestamp source for log records.

    Returns:
        ExportRunSummary for the written run.

    Raises:
        ExportError: Any query or write failure, with ``stage`` set. Files
            already written stay on disk.
    """

    run = ExportRun(file_set, clock=clock)
    run.scope = scope
    run.advance(RunState.SCOPE_RESOLVED, f"Search scope {scope.distinguished_path}")

    try:
        records = extractor.query_accounts(scope)
        run.account_count = len(records)
        run.advance(RunState.ACCOUNTS_QUERIED, f"Queried {len(records)} accounts")

        address_sets = normalize_accounts(records, markers=markers)
        run.addresses_excluded = sum(
            len(record.routing_addresses) - len(address_set.addresses)
            for record, address_set in zip(records, address_sets)
        )
        run.advance(
            RunState.NORMALIZED,
            f"Excluded {run.addresses_excluded} routing addresses matching {', '.join(markers)}",
        )

        attribute_rows = build_attribute_rows(records)
        shaped = shape_proxies(address_sets)
        run.width = shaped.width
        run.advance(RunState.SHAPED, f"Proxies table width {shaped.width}")

        run.attributes_path = write_attribute_table(file_set, attribute_rows)
        run.note("write", f"Attributes table {run.attributes_path.name} ({len(attribute_rows)} rows)")
        run.proxies_path = write_proxy_table(file_set, shaped.width, shaped.rows)
        run.note("write", f"Proxies table {run.proxies_path.name} ({len(shaped.rows)} rows)")

        run.advance(
            RunState.WRITTEN,
            f"Run complete: scope={scope.distinguished_path} accounts={run.account_count} "
            f"width={run.width} excluded={run.addresses_excluded} "
            f"completed={run.clock().isoformat(timespec='seconds')}",
        )
        run.log_path = write_run_log(file_set, run.run_log)
    except ExportError as exc:
        run.fail(exc)
        logger.error(
            "Export run failed",
            extra={"stage": exc.stage, "scope": scope.distinguished_path, "error": str(exc)},
        )
        _write_log_after_failure(run)
        _record_metrics(run)
        raise

    _record_metrics(run)
    logger.info("Export run complete", extra=run.summary().as_dict())
    return run.summary()


def record_cancelled_run(
    file_set: ExportFileSet,
    reason: str,
    *,
    clock: Clock = _utcnow,
) -> ExportRunSummary:
    """Write the run log for a run cancelled before a scope was resolved."""

    run = ExportRun(file_set, clock=clock)
    run.advance(
        RunState.CANCELLED,
        f"Run cancelled: {reason} (at {run.clock().isoformat(timespec='seconds')})",
    )
    run.log_path = write_run_log(file_set, run.run_log)
    _record_metrics(run)
    logger.info("Export run cancelled", extra={"reason": reason})
    return run.summary()


__all__ = ["ExportRun", "ExportRunSummary", "record_cancelled_run", "run_get_export"]
