"""Paged subtree searches with exporter error translation."""

from __future__ import annotations

import logging
from typing import Any, Iterator, Mapping, Sequence

from ldap3 import SUBTREE
from ldap3.core.exceptions import (
    LDAPException,
    LDAPResponseTimeoutError,
    LDAPSocketReceiveError,
    LDAPTimeLimitExceededResult,
)

from mailroute.exporter.errors import DirectoryUnavailable, ExportError, QueryTimeout

logger = logging.getLogger(__name__)

SEARCH_RESULT_ENTRY = "searchResEntry"


def translate_ldap_error(exc: LDAPException, *, stage: str, search_base: str) -> ExportError:
    """Map an ldap3 exception onto the exporter error taxonomy."""

    if isinstance(exc, (LDAPResponseTimeoutError, LDAPTimeLimitExceededResult)):
        return QueryTimeout(f"Search under {search_base} did not complete: {exc}", stage=stage, cause=exc)
    if isinstance(exc, LDAPSocketReceiveError) and "timed out" in str(exc).lower():
        return QueryTimeout(f"Search under {search_base} timed out: {exc}", stage=stage, cause=exc)
    return DirectoryUnavailable(f"Search under {search_base} failed: {exc}", stage=stage, cause=exc)


def iter_entries(
    connection,
    *,
    search_base: str,
    search_filter: str,
    attributes: Sequence[str],
    page_size: int,
    time_limit: int = 0,
    stage: str,
) -> Iterator[Mapping[str, Any]]:
    """
    Yield ``searchResEntry`` responses for a paged subtree search.

    Referrals and other response types are skipped. ldap3 errors raised while
    paging are re-raised as ``QueryTimeout`` or ``DirectoryUnavailable``.
    """

    logger.debug(
        "Executing paged search",
        extra={"search_base": search_base, "search_filter": search_filter, "page_size": page_size},
    )
    try:
        responses = connection.extend.standard.paged_search(
            search_base=search_base,
            search_filter=search_filter,
            search_scope=SUBTREE,
            attributes=list(attributes),
            paged_size=max(1, int(page_size)),
            time_limit=time_limit,
            generator=True,
        )
        for response in responses:
            if response.get("type") != SEARCH_RESULT_ENTRY:
                continue
            yield response
    except LDAPException as exc:
        error = translate_ldap_error(exc, stage=stage, search_base=search_base)
        logger.error(
            "Directory search failed",
            extra={"search_base": search_base, "stage": stage, "error": str(exc)},
        )
        raise error from exc


def first_value(value: Any) -> str:
    """Collapse an ldap3 attribute value to a single string ("" when absent)."""

    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else ""
    return str(value)


def all_values(value: Any) -> tuple[str, ...]:
    """Return a multi-valued attribute as a tuple, treating absent as empty."""

    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value)
    return (str(value),)


__all__ = ["SEARCH_RESULT_ENTRY", "all_values", "first_value", "iter_entries", "translate_ldap_error"]
