"""Directory adapters for the exporter."""

from __future__ import annotations

from .ldap.catalog import discover_scopes
from .ldap.extractor import ACCOUNT_ATTRIBUTES, LdapAccountExtractor, build_account_filter

__all__ = [
    "ACCOUNT_ATTRIBUTES",
    "LdapAccountExtractor",
    "build_account_filter",
    "discover_scopes",
]
