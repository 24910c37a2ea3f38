"""
CLI commands for routing-address exports.

The command group expects ``ctx.obj`` to hold the flattened config mapping
produced by ``config.load_config``; ``app.cli`` sets that up.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

import click

from mailroute.exporter.adapters.ldap import check_ldap_adapter_readiness
from mailroute.exporter.adapters.ldap.catalog import discover_scopes
from mailroute.exporter.adapters.ldap.connection import open_connection
from mailroute.exporter.adapters.ldap.extractor import LdapAccountExtractor
from mailroute.exporter.errors import DirectoryUnavailable, ExportError, InvalidScope, UnsupportedOperation
from mailroute.exporter.metrics import write_metrics_textfile
from mailroute.exporter.models import ExportFileSet, ExportRequest, OperationMode, OrganizationalScope, ScopeCatalog
from mailroute.exporter.pipeline import (
    ExportRunSummary,
    LEGACY_ADDRESS_MARKERS,
    record_cancelled_run,
    resolve_scope,
    run_get_export,
    select_scope,
)
from mailroute.exporter.utils import parse_date_stamp, resolve_working_directory, today_stamp

logger = logging.getLogger(__name__)


@click.group(name="exporter", invoke_without_command=True)
@click.pass_context
def exporter_cli(ctx):
    """
    Routing-address export commands.

    Displays the effective directory settings when invoked without a subcommand.
    """
    config = ctx.ensure_object(dict)
    if ctx.invoked_subcommand is None:
        click.echo("Exporter settings:")
        click.echo(f"  server        : {config.get('LDAP_SERVER') or 'not configured'}")
        click.echo(f"  search base   : {config.get('LDAP_SEARCH_BASE') or 'not configured'}")
        click.echo(f"  working dir   : {config.get('EXPORT_WORKING_DIR')}")
        click.echo(f"  operation mode: {config.get('EXPORT_OPERATION_MODE', 'get')}")


def _require_setting(config: Mapping[str, Any], name: str) -> str:
    value = config.get(name)
    if not value:
        raise click.ClickException(f"{name} is not configured. Set it in the environment or .env file.")
    return value


def _open_connection(config: Mapping[str, Any]):
    """
    Bind to the directory, prompting for the password when it is not configured.
    """
    _require_setting(config, "LDAP_SERVER")
    password = config.get("LDAP_PASSWORD")
    if not password:
        password = click.prompt(f"LDAP password for {config.get('LDAP_USER')}", hide_input=True)
    try:
        return open_connection(config, password=password)
    except DirectoryUnavailable as exc:
        raise click.ClickException(
            f"Directory unavailable: {exc.describe()}. The single-file fallback export is not supported; "
            "check connectivity and credentials and rerun."
        ) from exc


def _close_connection(connection) -> None:
    unbind = getattr(connection, "unbind", None)
    if unbind is None:
        return
    try:
        unbind()
    except Exception as exc:  # pragma: no cover - best-effort cleanup
        logger.warning("Failed to unbind LDAP connection: %s", exc)


def _discover_catalog(connection, config: Mapping[str, Any]) -> ScopeCatalog:
    return discover_scopes(
        connection,
        _require_setting(config, "LDAP_SEARCH_BASE"),
        page_size=int(config.get("LDAP_PAGE_SIZE", 1000)),
        time_limit=int(config.get("LDAP_TIME_LIMIT", 0)),
    )


def _echo_catalog(catalog: ScopeCatalog) -> None:
    width = len(str(len(catalog)))
    for scope in catalog:
        click.echo(f"  {scope.token.rjust(width)}  {scope.distinguished_path}")


def _prompt_for_scope(catalog: ScopeCatalog) -> Optional[OrganizationalScope]:
    """Interactive selection; returns None when the operator cancels."""
    click.echo("Available search scopes:")
    _echo_catalog(catalog)
    while True:
        answer = click.prompt(
            "Select a search scope by number (blank to cancel)",
            default="",
            show_default=False,
        )
        if not answer.strip():
            return None
        try:
            return select_scope(answer, catalog)
        except InvalidScope as exc:
            click.echo(str(exc), err=True)


def _choose_scope(
    catalog: ScopeCatalog,
    candidate: Optional[str],
    *,
    interactive: bool,
) -> Optional[OrganizationalScope]:
    try:
        return resolve_scope(candidate, catalog)
    except InvalidScope as exc:
        if candidate:
            click.echo(str(exc), err=True)
        if not interactive:
            raise click.ClickException(f"{exc} Pass --scope with a listed distinguished name.") from exc
    if not len(catalog):
        raise click.ClickException("No organizational units were found under the configured search base.")
    selected = _prompt_for_scope(catalog)
    if selected is None:
        return None
    return resolve_scope(selected.distinguished_path, catalog)


def _publish_metrics(config: Mapping[str, Any]) -> None:
    target = config.get("EXPORT_METRICS_TEXTFILE")
    if not target:
        return
    try:
        write_metrics_textfile(target)
    except OSError as exc:
        logger.warning("Failed to write metrics textfile %s: %s", target, exc)


def _format_summary(summary: ExportRunSummary) -> str:
    scope_value = summary.scope.distinguished_path if summary.scope else "n/a"
    return (
        f"Export {summary.state.value}.\n"
        f"  scope              : {scope_value}\n"
        f"  accounts           : {summary.account_count}\n"
        f"  address columns    : {summary.width}\n"
        f"  addresses_excluded : {summary.addresses_excluded}\n"
        f"  attributes file    : {summary.attributes_path or 'n/a'}\n"
        f"  proxies file       : {summary.proxies_path or 'n/a'}\n"
        f"  run log            : {summary.log_path or 'n/a'}"
    )


@exporter_cli.command("check")
@click.option("--ping", is_flag=True, help="Attempt a bind to validate credentials.")
@click.pass_context
def check_command(ctx, ping: bool):
    """Report LDAP adapter readiness as JSON."""
    config = ctx.ensure_object(dict)
    settings = {key: str(value) for key, value in config.items() if isinstance(value, (str, int, bool))}
    readiness = check_ldap_adapter_readiness(settings, require_bind=ping)
    click.echo(json.dumps(readiness.as_dict(), indent=2))
    if readiness.status != "ready":
        ctx.exit(1)


@exporter_cli.command("scopes")
@click.option("--json", "as_json", is_flag=True, help="Emit the catalog as JSON.")
@click.pass_context
def scopes_command(ctx, as_json: bool):
    """List the organizational units available as search scopes."""
    config = ctx.ensure_object(dict)
    connection = _open_connection(config)
    try:
        catalog = _discover_catalog(connection, config)
    except ExportError as exc:
        raise click.ClickException(f"Scope discovery failed: {exc.describe()}") from exc
    finally:
        _close_connection(connection)

    if as_json:
        payload = [{"token": scope.token, "distinguished_path": scope.distinguished_path} for scope in catalog]
        click.echo(json.dumps(payload, indent=2))
        return
    if not len(catalog):
        click.echo("No organizational units found.")
        return
    _echo_catalog(catalog)


@exporter_cli.command("run")
@click.option(
    "--mode",
    type=click.Choice([mode.value for mode in OperationMode], case_sensitive=False),
    default=None,
    help="Operation mode (defaults to EXPORT_OPERATION_MODE).",
)
@click.option("--scope", "scope_candidate", default=None, help="Distinguished name of the OU to export.")
@click.option(
    "--working-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory receiving the export files (defaults to EXPORT_WORKING_DIR).",
)
@click.option("--date", "date_stamp", default=None, help="Date stamp for file names (YYYY-MM-DD, default today).")
@click.option("--no-input", is_flag=True, help="Fail instead of prompting when the scope cannot be resolved.")
@click.option("--json", "as_json", is_flag=True, help="Emit the run summary as JSON.")
@click.pass_context
def run_command(
    ctx,
    mode: Optional[str],
    scope_candidate: Optional[str],
    working_dir: Optional[Path],
    date_stamp: Optional[str],
    no_input: bool,
    as_json: bool,
):
    """Run an export for one search scope."""
    config = ctx.ensure_object(dict)
    operation_mode = OperationMode((mode or config.get("EXPORT_OPERATION_MODE") or "get").lower())
    if operation_mode is OperationMode.PUT:
        error = UnsupportedOperation("The PUT (re-import) direction is not implemented.", stage="prepare")
        raise click.ClickException(error.describe())

    if date_stamp is not None:
        try:
            parse_date_stamp(date_stamp)
        except ValueError as exc:
            raise click.BadParameter("Expected YYYY-MM-DD.", param_hint="--date") from exc
    else:
        date_stamp = today_stamp()

    try:
        directory = resolve_working_directory(working_dir or config.get("EXPORT_WORKING_DIR") or "exports")
    except ExportError as exc:
        raise click.ClickException(exc.describe()) from exc

    file_set = ExportFileSet(
        directory=directory,
        date_stamp=date_stamp,
        attributes_prefix=config.get("EXPORT_ATTRIBUTES_PREFIX", "ExportedAttributes"),
        proxies_prefix=config.get("EXPORT_PROXIES_PREFIX", "ExportedProxies"),
        log_prefix=config.get("EXPORT_LOG_PREFIX", "ExportLog"),
    )
    markers = tuple(config.get("EXPORT_LEGACY_MARKERS") or LEGACY_ADDRESS_MARKERS)
    candidate = scope_candidate or config.get("EXPORT_SEARCH_SCOPE")

    connection = _open_connection(config)
    try:
        catalog = _discover_catalog(connection, config)
        scope = _choose_scope(catalog, candidate, interactive=not no_input)
        if scope is None:
            summary = record_cancelled_run(file_set, "no search scope selected")
            click.echo(f"Export cancelled. Run log written to {summary.log_path}.")
            ctx.exit(1)

        request = ExportRequest(operation_mode=operation_mode, working_directory=directory, search_scope=scope)
        extractor = LdapAccountExtractor(
            connection=connection,
            page_size=int(config.get("LDAP_PAGE_SIZE", 1000)),
            time_limit=int(config.get("LDAP_TIME_LIMIT", 0)),
        )
        summary = run_get_export(extractor, request.search_scope, file_set, markers=markers)
    except ExportError as exc:
        raise click.ClickException(f"Export failed: {exc.describe()}") from exc
    finally:
        _close_connection(connection)
        _publish_metrics(config)

    if as_json:
        click.echo(json.dumps(summary.as_dict(), indent=2))
    else:
        click.echo(_format_summary(summary))


__all__ = ["exporter_cli"]
