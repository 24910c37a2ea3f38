"""
Account extractor for routing-address exports.

Runs one paged subtree query per run against the resolved scope and returns
account records carrying exactly the four attributes the export needs.
"""

from __future__ import annotations

import logging
import time
from typing import Iterable, List, Mapping, Sequence

from mailroute.exporter.adapters.ldap.search import all_values, first_value, iter_entries
from mailroute.exporter.models import AccountRecord, OrganizationalScope

ACCOUNT_ID_ATTRIBUTE = "sAMAccountName"
PRIMARY_EMAIL_ATTRIBUTE = "mail"
DISPLAY_ALIAS_ATTRIBUTE = "mailNickname"
ROUTING_ADDRESSES_ATTRIBUTE = "proxyAddresses"

ACCOUNT_ATTRIBUTES: Sequence[str] = (
    ACCOUNT_ID_ATTRIBUTE,
    PRIMARY_EMAIL_ATTRIBUTE,
    DISPLAY_ALIAS_ATTRIBUTE,
    ROUTING_ADDRESSES_ATTRIBUTE,
)

BASE_ACCOUNT_CLAUSES: Sequence[str] = ("(objectCategory=person)", "(objectClass=user)")


def build_account_filter(extra_clauses: Iterable[str] = ()) -> str:
    """Construct the LDAP filter used for account exports."""

    clauses = list(dict.fromkeys([*BASE_ACCOUNT_CLAUSES, *extra_clauses]))
    return f"(&{''.join(clauses)})"


def record_from_entry(entry: Mapping[str, object]) -> AccountRecord | None:
    """Build an ``AccountRecord`` from an ldap3 search response entry.

    Entries without an account identifier are skipped (returns ``None``).
    """

    attributes = entry.get("attributes") or {}
    account_id = first_value(attributes.get(ACCOUNT_ID_ATTRIBUTE))
    if not account_id:
        return None
    return AccountRecord(
        account_id=account_id,
        primary_email=first_value(attributes.get(PRIMARY_EMAIL_ATTRIBUTE)),
        display_alias=first_value(attributes.get(DISPLAY_ALIAS_ATTRIBUTE)),
        routing_addresses=all_values(attributes.get(ROUTING_ADDRESSES_ATTRIBUTE)),
    )


class LdapAccountExtractor:
    """Execute the bulk account query for a resolved scope."""

    def __init__(
        self,
        *,
        connection,
        page_size: int = 1000,
        time_limit: int = 0,
        search_filter: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.connection = connection
        self.page_size = max(1, int(page_size))
        self.time_limit = max(0, int(time_limit))
        self.search_filter = search_filter or build_account_filter()
        self.logger = logger or logging.getLogger(__name__)

    # Public API -----------------------------------------------------------------

    def query_accounts(self, scope: OrganizationalScope) -> List[AccountRecord]:
        """Return every account under ``scope`` in directory order.

        An empty scope yields an empty list.
        """

        started = time.monotonic()
        records: list[AccountRecord] = []
        skipped = 0
        for entry in iter_entries(
            self.connection,
            search_base=scope.distinguished_path,
            search_filter=self.search_filter,
            attributes=ACCOUNT_ATTRIBUTES,
            page_size=self.page_size,
            time_limit=self.time_limit,
            stage="query",
        ):
            record = record_from_entry(entry)
            if record is None:
                skipped += 1
                self.logger.warning("Skipping directory entry without %s: %s", ACCOUNT_ID_ATTRIBUTE, entry.get("dn"))
                continue
            records.append(record)

        self.logger.info(
            "Account query complete",
            extra={
                "search_base": scope.distinguished_path,
                "account_count": len(records),
                "skipped_entries": skipped,
                "duration_seconds": round(time.monotonic() - started, 3),
            },
        )
        return records


__all__ = [
    "ACCOUNT_ATTRIBUTES",
    "LdapAccountExtractor",
    "build_account_filter",
    "record_from_entry",
]
