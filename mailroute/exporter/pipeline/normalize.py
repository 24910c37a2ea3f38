"""Routing-address filtering for exported accounts."""

from __future__ import annotations

from typing import Iterable, Sequence

from mailroute.exporter.models import AccountRecord, NormalizedAddressSet

# X.400 routing addresses have no counterpart in the target system.
LEGACY_ADDRESS_MARKERS: tuple[str, ...] = ("X400",)


def is_legacy_address(address: str, markers: Sequence[str] = LEGACY_ADDRESS_MARKERS) -> bool:
    """Return True when ``address`` contains any marker (case-sensitive)."""

    return any(marker in address for marker in markers)


def normalize_addresses(
    record: AccountRecord,
    *,
    markers: Sequence[str] = LEGACY_ADDRESS_MARKERS,
) -> NormalizedAddressSet:
    """Drop legacy routing addresses, keeping the order of the rest."""

    kept = tuple(address for address in record.routing_addresses if not is_legacy_address(address, markers))
    return NormalizedAddressSet(account_id=record.account_id, addresses=kept)


def normalize_accounts(
    records: Iterable[AccountRecord],
    *,
    markers: Sequence[str] = LEGACY_ADDRESS_MARKERS,
) -> list[NormalizedAddressSet]:
    return [normalize_addresses(record, markers=markers) for record in records]


__all__ = ["LEGACY_ADDRESS_MARKERS", "is_legacy_address", "normalize_accounts", "normalize_addresses"]
