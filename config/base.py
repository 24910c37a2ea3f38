# config/base.py
import os


def _coerce_bool(value, default=False):
    """Convert environment-style truthy/falsey values to bool."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    value_str = str(value).strip().lower()
    if value_str in {"1", "true", "yes", "on"}:
        return True
    if value_str in {"0", "false", "no", "off"}:
        return False
    return default


def _coerce_int(value, default, *, minimum=None):
    """Parse an integer setting, falling back to ``default`` on bad input."""
    if value is None or value == "":
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if minimum is not None and number < minimum:
        return minimum
    return number


def _parse_marker_list(value, default=("X400",)):
    """
    Parse a comma-separated marker list while keeping order and removing duplicates.

    Markers are matched case-sensitively, so their case is preserved.

    Returns:
        tuple[str, ...]: Marker strings.
    """
    if not value:
        return tuple(default)

    seen = set()
    markers = []
    for raw_item in value.split(","):
        item = raw_item.strip()
        if not item or item in seen:
            continue
        seen.add(item)
        markers.append(item)
    return tuple(markers) or tuple(default)


class Config:
    _mailroute_env = os.environ.get("MAILROUTE_ENV", "development")
    _is_testing = _mailroute_env == "testing"
    _is_production = _mailroute_env == "production"

    ENV_NAME = _mailroute_env
    TESTING = False

    # Directory connection
    LDAP_SERVER = os.environ.get("LDAP_SERVER")
    LDAP_USE_SSL = _coerce_bool(os.environ.get("LDAP_USE_SSL"), default=True)
    LDAP_PORT = _coerce_int(os.environ.get("LDAP_PORT"), 636 if LDAP_USE_SSL else 389, minimum=1)
    LDAP_USER = os.environ.get("LDAP_USER")
    # Prompted for by the CLI when unset
    LDAP_PASSWORD = os.environ.get("LDAP_PASSWORD")
    LDAP_SEARCH_BASE = os.environ.get("LDAP_SEARCH_BASE")
    LDAP_CONNECT_TIMEOUT = _coerce_int(os.environ.get("LDAP_CONNECT_TIMEOUT"), 30, minimum=1)
    # AD can take minutes to page through large OUs
    LDAP_RECEIVE_TIMEOUT = _coerce_int(os.environ.get("LDAP_RECEIVE_TIMEOUT"), 600, minimum=1)
    LDAP_TIME_LIMIT = _coerce_int(os.environ.get("LDAP_TIME_LIMIT"), 0, minimum=0)
    LDAP_PAGE_SIZE = _coerce_int(os.environ.get("LDAP_PAGE_SIZE"), 1000, minimum=1)

    # Export run
    EXPORT_OPERATION_MODE = os.environ.get("EXPORT_OPERATION_MODE", "get").strip().lower()
    EXPORT_WORKING_DIR = os.environ.get("EXPORT_WORKING_DIR", "exports")
    EXPORT_SEARCH_SCOPE = os.environ.get("EXPORT_SEARCH_SCOPE")
    EXPORT_LEGACY_MARKERS = _parse_marker_list(os.environ.get("EXPORT_LEGACY_MARKERS"))
    EXPORT_ATTRIBUTES_PREFIX = os.environ.get("EXPORT_ATTRIBUTES_PREFIX", "ExportedAttributes")
    EXPORT_PROXIES_PREFIX = os.environ.get("EXPORT_PROXIES_PREFIX", "ExportedProxies")
    EXPORT_LOG_PREFIX = os.environ.get("EXPORT_LOG_PREFIX", "ExportLog")
    EXPORT_METRICS_TEXTFILE = os.environ.get("EXPORT_METRICS_TEXTFILE")

    if EXPORT_OPERATION_MODE not in {"get", "put"}:
        raise ValueError(
            f"EXPORT_OPERATION_MODE must be 'get' or 'put', got '{EXPORT_OPERATION_MODE}'."
        )


class DevelopmentConfig(Config):
    DEBUG = True


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    LDAP_SERVER = "ldap.test.invalid"
    LDAP_USE_SSL = False
    LDAP_PORT = 389
    LDAP_USER = "CN=svc-export,OU=Service,DC=example,DC=org"
    LDAP_PASSWORD = "test-password"
    LDAP_SEARCH_BASE = "DC=example,DC=org"
    LDAP_PAGE_SIZE = 100
    EXPORT_SEARCH_SCOPE = None
    EXPORT_METRICS_TEXTFILE = None


class ProductionConfig(Config):
    DEBUG = False
    # Plain LDAP would send the bind password in clear text
    LDAP_USE_SSL = True
