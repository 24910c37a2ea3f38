"""Exporter pipeline helpers."""

from __future__ import annotations

from .normalize import LEGACY_ADDRESS_MARKERS, is_legacy_address, normalize_accounts, normalize_addresses
from .run_service import ExportRun, ExportRunSummary, record_cancelled_run, run_get_export
from .scope import resolve_scope, select_scope
from .shape import ATTRIBUTE_HEADER, ShapedProxies, build_attribute_rows, proxy_header, shape_proxies
from .write import next_run_sequence, write_attribute_table, write_proxy_table, write_run_log

__all__ = [
    "ATTRIBUTE_HEADER",
    "ExportRun",
    "ExportRunSummary",
    "LEGACY_ADDRESS_MARKERS",
    "ShapedProxies",
    "build_attribute_rows",
    "is_legacy_address",
    "next_run_sequence",
    "normalize_accounts",
    "normalize_addresses",
    "proxy_header",
    "record_cancelled_run",
    "resolve_scope",
    "run_get_export",
    "select_scope",
    "shape_proxies",
    "write_attribute_table",
    "write_proxy_table",
    "write_run_log",
]
