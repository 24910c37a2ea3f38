# conftest.py

import os
from types import SimpleNamespace

import pytest
from click.testing import CliRunner

# Set testing environment BEFORE importing config so TestingConfig is selected
os.environ["MAILROUTE_ENV"] = "testing"

from config import load_config  # noqa: E402


class FakeConnection:
    """Stands in for an ldap3 Connection exposing ``extend.standard.paged_search``.

    ``ous`` lists OU DNs returned for organizational-unit searches and
    ``accounts`` maps a search base to the attribute dicts of its users.
    ``error`` is raised when the search starts; ``error_after`` is raised
    after that many entries have been yielded.
    """

    def __init__(self, *, ous=None, accounts=None, error=None, error_after=None):
        self.ous = list(ous or [])
        self.accounts = dict(accounts or {})
        self.error = error
        self.error_after = error_after
        self.search_calls = []
        self.unbound = False
        self.extend = SimpleNamespace(standard=SimpleNamespace(paged_search=self._paged_search))

    def _responses(self, search_base, search_filter):
        if "organizationalUnit" in search_filter:
            for dn in self.ous:
                yield {"type": "searchResEntry", "dn": dn, "attributes": {}}
            return
        for index, attributes in enumerate(self.accounts.get(search_base, [])):
            yield {
                "type": "searchResEntry",
                "dn": f"CN=user{index},{search_base}",
                "attributes": attributes,
            }

    def _paged_search(self, **kwargs):
        self.search_calls.append(kwargs)
        if self.error is not None and self.error_after is None:
            raise self.error
        return self._generate(kwargs["search_base"], kwargs["search_filter"])

    def _generate(self, search_base, search_filter):
        for count, response in enumerate(self._responses(search_base, search_filter)):
            if self.error_after is not None and count >= self.error_after:
                raise self.error
            yield response

    def unbind(self):
        self.unbound = True


@pytest.fixture
def exporter_config():
    """Flattened testing config, safe to mutate per test."""
    return load_config("testing")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def fake_connection_factory():
    return FakeConnection


@pytest.fixture
def frozen_clock():
    from datetime import datetime, timezone

    return lambda: datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
