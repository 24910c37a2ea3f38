"""LDAP adapter readiness and dependency validation utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib import import_module
from typing import Literal, Mapping, Tuple

from mailroute.exporter.metrics import record_directory_bind_attempt

REQUIRED_ENV_VARS: Tuple[str, ...] = ("LDAP_SERVER", "LDAP_USER", "LDAP_SEARCH_BASE")
OPTIONAL_ENV_VARS: Tuple[str, ...] = ("LDAP_PASSWORD", "LDAP_PORT", "LDAP_USE_SSL")


class LdapAdapterError(RuntimeError):
    """Base error for LDAP adapter readiness issues."""


class LdapAdapterDependencyError(LdapAdapterError):
    """Raised when the ldap3 dependency is missing."""


class LdapAdapterConfigError(LdapAdapterError):
    """Raised when required configuration or environment variables are missing."""


class LdapAdapterAuthError(LdapAdapterError):
    """Raised when credentials fail to bind."""


@dataclass(frozen=True)
class LdapAdapterReadiness:
    dependency_ok: bool
    dependency_errors: Tuple[str, ...]
    missing_env_vars: Tuple[str, ...]
    bind_status: Literal["skipped", "ok", "failed"]
    bind_error: str | None = None
    notes: Tuple[str, ...] = ()

    @property
    def status(self) -> str:
        if not self.dependency_ok:
            return "missing-deps"
        if self.missing_env_vars:
            return "missing-env"
        if self.bind_status == "failed":
            return "bind-error"
        return "ready"

    def messages(self) -> Tuple[str, ...]:
        messages: list[str] = []
        if not self.dependency_ok:
            if self.dependency_errors:
                messages.extend(self.dependency_errors)
            else:
                messages.append("LDAP adapter dependencies are missing. Install via pip install ldap3.")
        if self.missing_env_vars:
            messages.append(f"Missing required LDAP env vars: {', '.join(self.missing_env_vars)}")
        if self.bind_status == "failed" and self.bind_error:
            messages.append(self.bind_error)
        if self.notes:
            messages.extend(self.notes)
        return tuple(messages)

    def as_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "status": self.status,
            "dependency_ok": self.dependency_ok,
            "dependency_errors": list(self.dependency_errors),
            "missing_env_vars": list(self.missing_env_vars),
            "bind_status": self.bind_status,
            "messages": list(self.messages()),
        }
        if self.bind_error:
            payload["bind_error"] = self.bind_error
        if self.notes:
            payload["notes"] = list(self.notes)
        return payload


def _collect_dependency_errors() -> list[str]:
    dependency_errors: list[str] = []
    try:
        ldap3 = import_module("ldap3")
        if getattr(ldap3, "Connection", None) is None or getattr(ldap3, "Server", None) is None:
            dependency_errors.append("ldap3 import succeeded but Connection/Server are missing; ensure ldap3 >= 2.9.")
    except ModuleNotFoundError:
        dependency_errors.append("ldap3 is not installed. Install via pip install ldap3.")
    return dependency_errors


def check_ldap_adapter_readiness(
    env: Mapping[str, str] | None = None,
    *,
    require_bind: bool = False,
) -> LdapAdapterReadiness:
    """
    Perform a non-raising readiness check for the LDAP adapter.

    Args:
        env: Optional mapping of settings to inspect. Defaults to os.environ.
        require_bind: Whether to attempt a bind to validate credentials.

    Returns:
        LdapAdapterReadiness describing dependency and configuration status.
    """

    env = env if env is not None else os.environ
    dependency_errors = _collect_dependency_errors()
    missing_env = tuple(sorted(var for var in REQUIRED_ENV_VARS if not env.get(var)))

    bind_status: Literal["skipped", "ok", "failed"] = "skipped"
    bind_error: str | None = None
    if require_bind and not dependency_errors and not missing_env:
        from mailroute.exporter.adapters.ldap.connection import open_connection
        from mailroute.exporter.errors import DirectoryUnavailable

        try:
            connection = open_connection(env, password=env.get("LDAP_PASSWORD"))
        except DirectoryUnavailable as exc:
            bind_status = "failed"
            bind_error = f"LDAP bind failed: {exc}"
        else:
            bind_status = "ok"
            connection.unbind()

    optional_missing = tuple(sorted(var for var in OPTIONAL_ENV_VARS if not env.get(var)))
    notes: Tuple[str, ...] = ()
    if optional_missing:
        notes = (
            f"Optional env vars not set: {', '.join(optional_missing)}. "
            "Defaults apply and the password is prompted for when missing.",
        )

    return LdapAdapterReadiness(
        dependency_ok=not dependency_errors,
        dependency_errors=tuple(dependency_errors),
        missing_env_vars=missing_env,
        bind_status=bind_status,
        bind_error=bind_error,
        notes=notes,
    )


def ensure_ldap_adapter_ready(
    env: Mapping[str, str] | None = None,
    *,
    require_bind: bool = False,
) -> LdapAdapterReadiness:
    """
    Validate LDAP adapter readiness, raising actionable errors when not ready.
    """

    readiness = check_ldap_adapter_readiness(env=env, require_bind=require_bind)
    if require_bind:
        if readiness.bind_status == "ok":
            record_directory_bind_attempt("success")
        elif readiness.bind_status == "failed":
            record_directory_bind_attempt("failure")
    if not readiness.dependency_ok:
        raise LdapAdapterDependencyError("; ".join(readiness.dependency_errors))
    if readiness.missing_env_vars:
        raise LdapAdapterConfigError(
            "LDAP adapter configured but missing required settings: "
            + ", ".join(readiness.missing_env_vars)
            + ". Set these in the environment or .env file."
        )
    if readiness.bind_status == "failed":
        raise LdapAdapterAuthError(readiness.bind_error or "LDAP bind failed.")
    return readiness


__all__ = [
    "REQUIRED_ENV_VARS",
    "OPTIONAL_ENV_VARS",
    "LdapAdapterError",
    "LdapAdapterDependencyError",
    "LdapAdapterConfigError",
    "LdapAdapterAuthError",
    "LdapAdapterReadiness",
    "check_ldap_adapter_readiness",
    "ensure_ldap_adapter_ready",
]
