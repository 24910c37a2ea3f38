"""Open read-only ldap3 connections from exporter settings."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ldap3 import NONE, Connection, Server
from ldap3.core.exceptions import LDAPException

from config.base import _coerce_bool, _coerce_int
from mailroute.exporter.errors import DirectoryUnavailable

logger = logging.getLogger(__name__)


def build_server(settings: Mapping[str, Any]) -> Server:
    use_ssl = _coerce_bool(settings.get("LDAP_USE_SSL"), default=True)
    port = _coerce_int(settings.get("LDAP_PORT"), 636 if use_ssl else 389, minimum=1)
    return Server(
        settings["LDAP_SERVER"],
        port=port,
        use_ssl=use_ssl,
        get_info=NONE,
        connect_timeout=_coerce_int(settings.get("LDAP_CONNECT_TIMEOUT"), 30, minimum=1),
    )


def open_connection(settings: Mapping[str, Any], *, password: str | None = None) -> Connection:
    """
    Bind a read-only connection described by ``settings``.

    ``settings`` may hold raw environment strings or values already coerced by
    ``config.base.Config``. Any failure to reach or bind the directory is
    reported as ``DirectoryUnavailable``.
    """

    server_name = settings.get("LDAP_SERVER")
    if not server_name:
        raise DirectoryUnavailable("LDAP_SERVER is not configured.", stage="connect")

    try:
        server = build_server(settings)
        connection = Connection(
            server,
            user=settings.get("LDAP_USER"),
            password=password if password is not None else settings.get("LDAP_PASSWORD"),
            auto_bind=True,
            read_only=True,
            raise_exceptions=True,
            receive_timeout=_coerce_int(settings.get("LDAP_RECEIVE_TIMEOUT"), 600, minimum=1),
        )
    except LDAPException as exc:
        logger.error(
            "LDAP bind failed",
            extra={"ldap_server": server_name, "error": str(exc)},
        )
        raise DirectoryUnavailable(f"Could not bind to {server_name}: {exc}", stage="connect", cause=exc) from exc

    logger.info("Connected to directory", extra={"ldap_server": server_name})
    return connection


__all__ = ["build_server", "open_connection"]
