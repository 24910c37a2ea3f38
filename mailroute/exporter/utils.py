"""
Exporter-specific utilities for the working directory and run dates.
"""

from __future__ import annotations

import os
from datetime import date, datetime
from pathlib import Path
from typing import Callable

from mailroute.exporter.errors import IOFailure

DATE_STAMP_FORMAT = "%Y-%m-%d"


def resolve_working_directory(configured_path: str | Path, *, base_dir: str | Path | None = None) -> Path:
    """
    Determine and create (if necessary) the export working directory.

    Relative paths are anchored at ``base_dir`` (the current directory when
    omitted). Raises ``IOFailure`` when the directory cannot be created or is
    not writable.
    """

    candidate = Path(configured_path).expanduser()
    if not candidate.is_absolute():
        candidate = Path(base_dir or Path.cwd()) / candidate

    try:
        candidate.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise IOFailure(f"Could not create working directory {candidate}: {exc}", stage="prepare", cause=exc) from exc

    if not candidate.is_dir():
        raise IOFailure(f"Working directory {candidate} is not a directory.", stage="prepare")
    if not os.access(candidate, os.W_OK | os.X_OK):
        raise IOFailure(f"Working directory {candidate} is not writable.", stage="prepare")
    return candidate.resolve()


def format_date_stamp(value: date | datetime) -> str:
    return value.strftime(DATE_STAMP_FORMAT)


def parse_date_stamp(value: str) -> str:
    """Validate a ``YYYY-MM-DD`` stamp and return it unchanged."""

    datetime.strptime(value, DATE_STAMP_FORMAT)
    return value


def today_stamp(clock: Callable[[], datetime] = datetime.now) -> str:
    return format_date_stamp(clock())


__all__ = [
    "DATE_STAMP_FORMAT",
    "format_date_stamp",
    "parse_date_stamp",
    "resolve_working_directory",
    "today_stamp",
]
