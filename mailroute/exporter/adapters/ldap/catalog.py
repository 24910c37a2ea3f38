"""Enumerate organizational units that can bound an account query."""

from __future__ import annotations

import logging

from mailroute.exporter.adapters.ldap.search import iter_entries
from mailroute.exporter.models import OrganizationalScope, ScopeCatalog

logger = logging.getLogger(__name__)

SCOPE_FILTER = "(objectCategory=organizationalUnit)"
# Only the DN is needed; "1.1" asks the server for no attributes at all.
SCOPE_ATTRIBUTES = ("1.1",)


def discover_scopes(connection, search_base: str, *, page_size: int = 1000, time_limit: int = 0) -> ScopeCatalog:
    """
    List every organizational unit below ``search_base``.

    Tokens are assigned "1", "2", ... in the order the directory returns the
    entries, which is not guaranteed to be stable between passes.
    """

    scopes: list[OrganizationalScope] = []
    for entry in iter_entries(
        connection,
        search_base=search_base,
        search_filter=SCOPE_FILTER,
        attributes=SCOPE_ATTRIBUTES,
        page_size=page_size,
        time_limit=time_limit,
        stage="catalog",
    ):
        dn = entry.get("dn")
        if not dn:
            continue
        scopes.append(OrganizationalScope(token=str(len(scopes) + 1), distinguished_path=dn))

    logger.info("Discovered search scopes", extra={"search_base": search_base, "scope_count": len(scopes)})
    return ScopeCatalog(scopes=tuple(scopes))


__all__ = ["SCOPE_ATTRIBUTES", "SCOPE_FILTER", "discover_scopes"]
