from mailroute.exporter.models import AccountRecord, AttributeRow, NormalizedAddressSet
from mailroute.exporter.pipeline import ATTRIBUTE_HEADER, build_attribute_rows, proxy_header, shape_proxies


def test_width_is_the_largest_address_set():
    sets = [
        NormalizedAddressSet("full", ("SMTP:a@x.com", "smtp:b@x.com", "smtp:c@x.com")),
        NormalizedAddressSet("empty", ()),
    ]

    shaped = shape_proxies(sets)

    assert shaped.width == 3
    assert shaped.rows[0].as_tuple() == ("full", "SMTP:a@x.com", "smtp:b@x.com", "smtp:c@x.com")
    assert shaped.rows[1].as_tuple() == ("empty", "", "", "")


def test_every_row_has_width_fields_and_round_trips():
    sets = [
        NormalizedAddressSet("one", ("SMTP:1@x.com",)),
        NormalizedAddressSet("four", ("SMTP:4@x.com", "smtp:a@x.com", "smtp:b@x.com", "smtp:c@x.com")),
        NormalizedAddressSet("two", ("SMTP:2@x.com", "smtp:d@x.com")),
    ]

    shaped = shape_proxies(sets)

    assert shaped.width == 4
    assert all(len(row.fields) == 4 for row in shaped.rows)
    assert [row.account_id for row in shaped.rows] == ["one", "four", "two"]
    assert [row.addresses for row in shaped.rows] == [address_set.addresses for address_set in sets]


def test_no_accounts_gives_zero_width():
    shaped = shape_proxies([])
    assert shaped.width == 0
    assert shaped.rows == ()
    assert shaped.header == ("accountId",)


def test_zero_width_still_emits_a_row_per_account():
    shaped = shape_proxies([NormalizedAddressSet("a"), NormalizedAddressSet("b")])
    assert shaped.width == 0
    assert [row.as_tuple() for row in shaped.rows] == [("a",), ("b",)]


def test_proxy_header():
    assert proxy_header(3) == ("accountId", "address_0", "address_1", "address_2")


def test_attribute_rows_follow_records():
    records = [
        AccountRecord("jsmith", "j@x.com", "jsmith", ("SMTP:j@x.com",)),
        AccountRecord("adoe", "", "", ()),
    ]
    assert build_attribute_rows(records) == [
        AttributeRow("jsmith", "j@x.com", "jsmith"),
        AttributeRow("adoe", "", ""),
    ]
    assert ATTRIBUTE_HEADER == ("accountId", "primaryEmail", "displayAlias")
