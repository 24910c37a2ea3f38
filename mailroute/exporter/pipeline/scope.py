"""Resolve a caller-supplied search scope against the discovered catalog."""

from __future__ import annotations

from mailroute.exporter.errors import InvalidScope
from mailroute.exporter.models import OrganizationalScope, ScopeCatalog


def resolve_scope(candidate: str | None, catalog: ScopeCatalog) -> OrganizationalScope:
    """
    Match ``candidate`` against each catalog entry's distinguished path.

    The comparison is exact apart from case and surrounding whitespace; the
    first match wins. A missing or unmatched candidate raises ``InvalidScope``
    so the caller can fall back to interactive selection. No default scope is
    ever chosen here.
    """

    if candidate is None or not candidate.strip():
        raise InvalidScope(None)
    scope = catalog.find_by_path(candidate)
    if scope is None:
        raise InvalidScope(candidate)
    return scope


def select_scope(token: str, catalog: ScopeCatalog) -> OrganizationalScope:
    """Map a token picked during interactive selection back to its scope."""

    scope = catalog.find_by_token(token)
    if scope is None:
        raise InvalidScope(token, f"Selection '{token}' does not match any listed scope.")
    return scope


__all__ = ["resolve_scope", "select_scope"]
