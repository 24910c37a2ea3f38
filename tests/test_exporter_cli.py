import csv
import json
from unittest.mock import patch

from mailroute.exporter.cli import exporter_cli
from mailroute.exporter.errors import DirectoryUnavailable

STAFF = "OU=Staff,DC=example,DC=org"
SALES = "OU=Sales,DC=example,DC=org"


def _connection(factory):
    return factory(
        ous=[STAFF, SALES],
        accounts={
            STAFF: [
                {
                    "sAMAccountName": ["jsmith"],
                    "mail": ["j@x.com"],
                    "mailNickname": ["jsmith"],
                    "proxyAddresses": ["SMTP:j@x.com", "X400:c=US;a=;p=Foo;", "smtp:alias@x.com"],
                },
                {"sAMAccountName": ["adoe"], "mail": ["a@x.com"], "mailNickname": ["adoe"], "proxyAddresses": []},
            ],
            SALES: [],
        },
    )


def _invoke(runner, config, args, connection, input=None):
    with patch("mailroute.exporter.cli.open_connection", return_value=connection):
        return runner.invoke(exporter_cli, args, obj=config, input=input)


def test_group_without_subcommand_lists_settings(runner, exporter_config):
    result = runner.invoke(exporter_cli, [], obj=exporter_config)

    assert result.exit_code == 0, result.output
    assert "ldap.test.invalid" in result.output
    assert "DC=example,DC=org" in result.output


def test_run_with_scope_option_writes_exports(runner, exporter_config, fake_connection_factory, tmp_path):
    connection = _connection(fake_connection_factory)

    result = _invoke(
        runner,
        exporter_config,
        ["run", "--scope", STAFF.lower(), "--working-dir", str(tmp_path), "--date", "2024-01-01", "--json"],
        connection,
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["state"] == "written"
    assert payload["scope"] == STAFF
    assert payload["account_count"] == 2
    assert payload["width"] == 2
    with (tmp_path / "ExportedProxies_2024-01-01_1.csv").open(encoding="utf-8", newline="") as handle:
        assert list(csv.reader(handle)) == [
            ["accountId", "address_0", "address_1"],
            ["jsmith", "SMTP:j@x.com", "smtp:alias@x.com"],
            ["adoe", "", ""],
        ]
    assert connection.unbound is True


def test_run_prompts_when_scope_is_unknown(runner, exporter_config, fake_connection_factory, tmp_path):
    connection = _connection(fake_connection_factory)

    result = _invoke(
        runner,
        exporter_config,
        ["run", "--scope", "OU=Missing,DC=example,DC=org", "--working-dir", str(tmp_path), "--date", "2024-01-01"],
        connection,
        input="9\n2\n",
    )

    assert result.exit_code == 0, result.output
    assert "is not in the catalog" in result.output
    assert f"1  {STAFF}" in result.output
    assert "Selection '9' does not match any listed scope." in result.output
    assert f"scope              : {SALES}" in result.output
    assert (tmp_path / "ExportedAttributes_2024-01-01_1.csv").exists()


def test_blank_selection_cancels_and_writes_log(runner, exporter_config, fake_connection_factory, tmp_path):
    connection = _connection(fake_connection_factory)

    result = _invoke(
        runner,
        exporter_config,
        ["run", "--working-dir", str(tmp_path), "--date", "2024-01-01"],
        connection,
        input="\n",
    )

    assert result.exit_code == 1
    assert "Export cancelled" in result.output
    assert not list(tmp_path.glob("*.csv"))
    log_text = (tmp_path / "ExportLog_2024-01-01_1.txt").read_text(encoding="utf-8")
    assert "[cancelled] Run cancelled: no search scope selected" in log_text


def test_no_input_fails_on_unresolved_scope(runner, exporter_config, fake_connection_factory, tmp_path):
    result = _invoke(
        runner,
        exporter_config,
        ["run", "--no-input", "--working-dir", str(tmp_path)],
        _connection(fake_connection_factory),
    )

    assert result.exit_code == 1
    assert "Pass --scope" in result.output


def test_put_mode_is_rejected(runner, exporter_config, tmp_path):
    result = runner.invoke(exporter_cli, ["run", "--mode", "put", "--working-dir", str(tmp_path)], obj=exporter_config)

    assert result.exit_code == 1
    assert "PUT (re-import) direction is not implemented" in result.output
    assert not list(tmp_path.iterdir())


def test_invalid_date_is_rejected(runner, exporter_config, tmp_path):
    result = runner.invoke(
        exporter_cli,
        ["run", "--date", "01/02/2024", "--working-dir", str(tmp_path)],
        obj=exporter_config,
    )

    assert result.exit_code == 2
    assert "YYYY-MM-DD" in result.output


def test_directory_unavailable_is_reported(runner, exporter_config, tmp_path):
    failure = DirectoryUnavailable("Could not bind to ldap.test.invalid", stage="connect")

    with patch("mailroute.exporter.cli.open_connection", side_effect=failure):
        result = runner.invoke(exporter_cli, ["run", "--working-dir", str(tmp_path)], obj=exporter_config)

    assert result.exit_code == 1
    assert "Directory unavailable: [connect] Could not bind to ldap.test.invalid" in result.output


def test_password_is_prompted_when_missing(runner, exporter_config, fake_connection_factory, tmp_path):
    exporter_config["LDAP_PASSWORD"] = None
    connection = _connection(fake_connection_factory)

    with patch("mailroute.exporter.cli.open_connection", return_value=connection) as opener:
        result = runner.invoke(
            exporter_cli,
            ["run", "--scope", STAFF, "--working-dir", str(tmp_path), "--date", "2024-01-01"],
            obj=exporter_config,
            input="s3cret\n",
        )

    assert result.exit_code == 0, result.output
    assert opener.call_args.kwargs["password"] == "s3cret"


def test_scopes_lists_catalog(runner, exporter_config, fake_connection_factory):
    result = _invoke(runner, exporter_config, ["scopes", "--json"], _connection(fake_connection_factory))

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == [
        {"token": "1", "distinguished_path": STAFF},
        {"token": "2", "distinguished_path": SALES},
    ]


def test_check_reports_missing_settings(runner, exporter_config):
    exporter_config["LDAP_SERVER"] = None

    result = runner.invoke(exporter_cli, ["check"], obj=exporter_config)

    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert payload["status"] == "missing-env"
    assert payload["missing_env_vars"] == ["LDAP_SERVER"]


def test_check_ready(runner, exporter_config):
    result = runner.invoke(exporter_cli, ["check"], obj=exporter_config)

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["status"] == "ready"
