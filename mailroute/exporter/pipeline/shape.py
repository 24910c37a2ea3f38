"""Reshape accounts into fixed-width export rows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from mailroute.exporter.models import AccountRecord, AttributeRow, NormalizedAddressSet, ProxyRow

ATTRIBUTE_HEADER: tuple[str, ...] = ("accountId", "primaryEmail", "displayAlias")
PROXY_ID_COLUMN = "accountId"
PROXY_ADDRESS_COLUMN = "address_{index}"


@dataclass(frozen=True)
class ShapedProxies:
    """Proxies table for one run: the column width and one row per account."""

    width: int
    rows: tuple[ProxyRow, ...]

    @property
    def header(self) -> tuple[str, ...]:
        return proxy_header(self.width)


def proxy_header(width: int) -> tuple[str, ...]:
    return (PROXY_ID_COLUMN, *(PROXY_ADDRESS_COLUMN.format(index=index) for index in range(width)))


def build_attribute_rows(records: Iterable[AccountRecord]) -> list[AttributeRow]:
    return [
        AttributeRow(
            account_id=record.account_id,
            primary_email=record.primary_email,
            display_alias=record.display_alias,
        )
        for record in records
    ]


def shape_proxies(sets: Sequence[NormalizedAddressSet]) -> ShapedProxies:
    """
    Pad every address set to the widest set in the run.

    The width is fixed from the complete collection before any row is built,
    and rows keep the input order.
    """

    width = max((len(address_set.addresses) for address_set in sets), default=0)
    rows = tuple(
        ProxyRow(
            account_id=address_set.account_id,
            fields=address_set.addresses + ("",) * (width - len(address_set.addresses)),
        )
        for address_set in sets
    )
    return ShapedProxies(width=width, rows=rows)


__all__ = [
    "ATTRIBUTE_HEADER",
    "ShapedProxies",
    "build_attribute_rows",
    "proxy_header",
    "shape_proxies",
]
