from app import cli
from mailroute import __version__


def test_version_option(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_root_group_passes_config_to_exporter(runner, exporter_config):
    result = runner.invoke(cli, ["exporter"], obj=exporter_config)

    assert result.exit_code == 0, result.output
    assert "ldap.test.invalid" in result.output


def test_root_group_loads_testing_config_when_no_obj(runner):
    result = runner.invoke(cli, ["exporter"])

    assert result.exit_code == 0, result.output
    assert "ldap.test.invalid" in result.output
