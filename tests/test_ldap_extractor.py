import pytest
from ldap3.core.exceptions import LDAPResponseTimeoutError, LDAPSocketOpenError

from mailroute.exporter.adapters.ldap.extractor import (
    ACCOUNT_ATTRIBUTES,
    LdapAccountExtractor,
    build_account_filter,
    record_from_entry,
)
from mailroute.exporter.errors import DirectoryUnavailable, QueryTimeout
from mailroute.exporter.models import AccountRecord, OrganizationalScope

SCOPE = OrganizationalScope(token="1", distinguished_path="OU=Staff,DC=example,DC=org")


def _account(sam, mail=None, nickname=None, proxies=None):
    attributes = {"sAMAccountName": sam}
    if mail is not None:
        attributes["mail"] = mail
    if nickname is not None:
        attributes["mailNickname"] = nickname
    if proxies is not None:
        attributes["proxyAddresses"] = proxies
    return attributes


def test_build_account_filter_defaults():
    assert build_account_filter() == "(&(objectCategory=person)(objectClass=user))"


def test_build_account_filter_extra_clauses_deduplicated():
    ldap_filter = build_account_filter(["(mail=*)", "(objectClass=user)"])
    assert ldap_filter == "(&(objectCategory=person)(objectClass=user)(mail=*))"


def test_query_requests_exactly_four_attributes(fake_connection_factory):
    connection = fake_connection_factory(accounts={SCOPE.distinguished_path: []})
    extractor = LdapAccountExtractor(connection=connection, page_size=250)

    extractor.query_accounts(SCOPE)

    assert len(connection.search_calls) == 1
    call = connection.search_calls[0]
    assert call["search_base"] == SCOPE.distinguished_path
    assert call["attributes"] == ["sAMAccountName", "mail", "mailNickname", "proxyAddresses"]
    assert tuple(call["attributes"]) == tuple(ACCOUNT_ATTRIBUTES)
    assert call["paged_size"] == 250


def test_query_returns_records_in_directory_order(fake_connection_factory):
    connection = fake_connection_factory(
        accounts={
            SCOPE.distinguished_path: [
                _account(
                    ["jsmith"],
                    ["j@x.com"],
                    ["jsmith"],
                    ["SMTP:j@x.com", "X400:c=US;a=;p=Foo;", "smtp:alias@x.com"],
                ),
                _account("adoe", "a@x.com", "adoe", ["SMTP:a@x.com"]),
            ]
        }
    )

    records = LdapAccountExtractor(connection=connection).query_accounts(SCOPE)

    assert records == [
        AccountRecord(
            account_id="jsmith",
            primary_email="j@x.com",
            display_alias="jsmith",
            routing_addresses=("SMTP:j@x.com", "X400:c=US;a=;p=Foo;", "smtp:alias@x.com"),
        ),
        AccountRecord(
            account_id="adoe",
            primary_email="a@x.com",
            display_alias="adoe",
            routing_addresses=("SMTP:a@x.com",),
        ),
    ]


def test_query_empty_scope_is_not_an_error(fake_connection_factory):
    connection = fake_connection_factory()
    assert LdapAccountExtractor(connection=connection).query_accounts(SCOPE) == []


def test_missing_and_null_attributes_become_empty(fake_connection_factory):
    connection = fake_connection_factory(
        accounts={
            SCOPE.distinguished_path: [
                _account("nomail"),
                {"sAMAccountName": "nullproxies", "mail": [], "mailNickname": None, "proxyAddresses": None},
                {"sAMAccountName": "emptyproxies", "proxyAddresses": []},
            ]
        }
    )

    records = LdapAccountExtractor(connection=connection).query_accounts(SCOPE)

    assert [record.account_id for record in records] == ["nomail", "nullproxies", "emptyproxies"]
    for record in records:
        assert record.primary_email == ""
        assert record.display_alias == ""
        assert record.routing_addresses == ()


def test_entries_without_account_id_are_skipped(fake_connection_factory):
    connection = fake_connection_factory(
        accounts={SCOPE.distinguished_path: [{"mail": "orphan@x.com"}, _account("kept")]}
    )

    records = LdapAccountExtractor(connection=connection).query_accounts(SCOPE)

    assert [record.account_id for record in records] == ["kept"]


def test_record_from_entry_handles_single_string_proxy_value():
    record = record_from_entry({"attributes": {"sAMAccountName": "solo", "proxyAddresses": "SMTP:solo@x.com"}})
    assert record.routing_addresses == ("SMTP:solo@x.com",)


def test_referrals_are_ignored(fake_connection_factory):
    connection = fake_connection_factory(accounts={SCOPE.distinguished_path: [_account("kept")]})
    original = connection._responses

    def with_referral(search_base, search_filter):
        yield {"type": "searchResRef", "uri": ["ldap://other.example.org/DC=other"]}
        yield from original(search_base, search_filter)

    connection._responses = with_referral

    records = LdapAccountExtractor(connection=connection).query_accounts(SCOPE)

    assert [record.account_id for record in records] == ["kept"]


def test_query_timeout_is_surfaced(fake_connection_factory):
    connection = fake_connection_factory(
        accounts={SCOPE.distinguished_path: [_account("a"), _account("b")]},
        error=LDAPResponseTimeoutError("no response from server"),
        error_after=1,
    )

    with pytest.raises(QueryTimeout) as excinfo:
        LdapAccountExtractor(connection=connection).query_accounts(SCOPE)

    assert excinfo.value.stage == "query"


def test_refused_connection_is_directory_unavailable(fake_connection_factory):
    connection = fake_connection_factory(
        error=LDAPSocketOpenError("socket connection error while opening: [Errno 111] Connection refused")
    )

    with pytest.raises(DirectoryUnavailable) as excinfo:
        LdapAccountExtractor(connection=connection).query_accounts(SCOPE)

    assert excinfo.value.stage == "query"
    assert "OU=Staff,DC=example,DC=org" in str(excinfo.value)
