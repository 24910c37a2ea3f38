# config/validation.py

"""
Environment variable validation for mailroute-export.
Validates required environment variables at startup.
"""

import os
import sys
from typing import List, Mapping, Tuple


def validate_environment(mailroute_env: str = None, env: Mapping[str, str] = None) -> Tuple[bool, List[str]]:
    """
    Validate required environment variables.

    Args:
        mailroute_env: Runtime environment (development, production, testing)
                       If None, reads from MAILROUTE_ENV environment variable
        env: Mapping to validate instead of os.environ

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    env = os.environ if env is None else env
    if mailroute_env is None:
        mailroute_env = env.get("MAILROUTE_ENV", "development")

    errors = []

    mode = env.get("EXPORT_OPERATION_MODE", "get").strip().lower()
    if mode not in {"get", "put"}:
        errors.append(f"EXPORT_OPERATION_MODE must be 'get' or 'put' (got '{mode}').")

    page_size = env.get("LDAP_PAGE_SIZE")
    if page_size is not None:
        try:
            if int(page_size) < 1:
                errors.append("LDAP_PAGE_SIZE must be a positive integer.")
        except ValueError:
            errors.append(f"LDAP_PAGE_SIZE must be an integer (got '{page_size}').")

    # Only validate connection settings in production
    if mailroute_env != "production":
        return len(errors) == 0, errors

    for name in ("LDAP_SERVER", "LDAP_USER", "LDAP_SEARCH_BASE"):
        if not env.get(name):
            errors.append(f"{name} is required in production.")

    if env.get("LDAP_USE_SSL", "true").strip().lower() in {"0", "false", "no", "off"}:
        errors.append(
            "LDAP_USE_SSL must not be disabled in production. "
            "Binding over plain LDAP sends the password in clear text."
        )

    metrics_textfile = env.get("EXPORT_METRICS_TEXTFILE")
    if metrics_textfile and not metrics_textfile.endswith(".prom"):
        errors.append("EXPORT_METRICS_TEXTFILE must end in .prom for the textfile collector to pick it up.")

    is_valid = len(errors) == 0
    return is_valid, errors


def validate_and_exit(mailroute_env: str = None) -> None:
    """
    Validate environment variables and exit with error if validation fails.
    Intended to be called at application startup.

    Args:
        mailroute_env: Runtime environment (development, production, testing)
    """
    is_valid, errors = validate_environment(mailroute_env)

    if not is_valid:
        print("=" * 80, file=sys.stderr)
        print("ENVIRONMENT VALIDATION FAILED", file=sys.stderr)
        print("=" * 80, file=sys.stderr)
        print("\nThe following environment variables are missing or invalid:\n", file=sys.stderr)

        for i, error in enumerate(errors, 1):
            print(f"{i}. {error}", file=sys.stderr)

        print("\n" + "=" * 80, file=sys.stderr)
        print("Please check your .env file or environment variables.", file=sys.stderr)
        print("See .env.example for required configuration.", file=sys.stderr)
        print("=" * 80, file=sys.stderr)

        sys.exit(1)
