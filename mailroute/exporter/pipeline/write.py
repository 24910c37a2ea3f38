"""
Versioned CSV and run-log writers.

File names follow ``<prefix>_<date>_<seq>.<ext>``. The sequence number is
derived from the files already present when each file is written; two runs
started together against one directory can pick the same number, in which
case the later write wins.
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Iterable, Sequence

from mailroute.exporter.errors import IOFailure
from mailroute.exporter.models import AttributeRow, ExportFileSet, ProxyRow, RunLog
from mailroute.exporter.pipeline.shape import ATTRIBUTE_HEADER, proxy_header

logger = logging.getLogger(__name__)

CSV_EXTENSION = ".csv"
LOG_EXTENSION = ".txt"


def next_run_sequence(directory: Path, prefix: str, date_stamp: str, extension: str = CSV_EXTENSION) -> int:
    """Count existing ``<prefix>_<date>_*<ext>`` files and return the next number."""

    existing = [path for path in directory.glob(f"{prefix}_{date_stamp}_*{extension}") if path.is_file()]
    return len(existing) + 1


def build_export_path(directory: Path, prefix: str, date_stamp: str, extension: str = CSV_EXTENSION) -> Path:
    sequence = next_run_sequence(directory, prefix, date_stamp, extension)
    return directory / f"{prefix}_{date_stamp}_{sequence}{extension}"


def _render_csv_row(values: Sequence[str]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer).writerow(values)
    return buffer.getvalue()


def write_attribute_table(file_set: ExportFileSet, rows: Iterable[AttributeRow]) -> Path:
    """Write the attributes table as one complete batch."""

    path = build_export_path(file_set.directory, file_set.attributes_prefix, file_set.date_stamp)
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(ATTRIBUTE_HEADER)
    row_count = 0
    for row in rows:
        writer.writerow(row.as_tuple())
        row_count += 1

    try:
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(buffer.getvalue())
    except OSError as exc:
        raise IOFailure(f"Could not write {path}: {exc}", stage="write", cause=exc) from exc

    logger.info("Attributes table written", extra={"path": str(path), "row_count": row_count})
    return path


def write_proxy_table(file_set: ExportFileSet, width: int, rows: Iterable[ProxyRow]) -> Path:
    """Write the proxies table, appending and flushing one complete row at a time."""

    path = build_export_path(file_set.directory, file_set.proxies_prefix, file_set.date_stamp)
    row_count = 0
    try:
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(_render_csv_row(proxy_header(width)))
            for row in rows:
                if len(row.fields) != width:
                    raise ValueError(
                        f"Proxy row for {row.account_id} has {len(row.fields)} address fields, expected {width}."
                    )
                handle.write(_render_csv_row(row.as_tuple()))
                handle.flush()
                row_count += 1
    except OSError as exc:
        raise IOFailure(
            f"Could not write {path} after {row_count} rows: {exc}", stage="write", cause=exc
        ) from exc

    logger.info("Proxies table written", extra={"path": str(path), "row_count": row_count, "width": width})
    return path


def write_run_log(file_set: ExportFileSet, run_log: RunLog) -> Path:
    path = build_export_path(file_set.directory, file_set.log_prefix, file_set.date_stamp, LOG_EXTENSION)
    try:
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(run_log.render())
    except OSError as exc:
        raise IOFailure(f"Could not write {path}: {exc}", stage="log", cause=exc) from exc
    logger.debug("Run log written", extra={"path": str(path), "record_count": len(run_log)})
    return path


__all__ = [
    "CSV_EXTENSION",
    "LOG_EXTENSION",
    "build_export_path",
    "next_run_sequence",
    "write_attribute_table",
    "write_proxy_table",
    "write_run_log",
]
