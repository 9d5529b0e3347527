# config/base.py
import os
from datetime import timedelta


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


def _parse_email_list(value):
    """
    Parse a comma-separated email allow-list while keeping order and removing duplicates.

    Returns:
        tuple[str, ...]: Lower-cased email addresses.
    """
    if not value:
        return ()

    seen = set()
    emails = []
    for raw_item in value.split(","):
        item = raw_item.strip().lower()
        if not item or item in seen:
            continue
        seen.add(item)
        emails.append(item)
    return tuple(emails)


def _parse_int(value, default, *, minimum=0):
    try:
        number = int(value) if value is not None else default
    except (TypeError, ValueError):
        return default
    return max(minimum, number)


def _parse_float(value, default, *, minimum=0.0):
    try:
        number = float(value) if value is not None else default
    except (TypeError, ValueError):
        return default
    return max(minimum, number)


class Config:
    # SECRET_KEY must be set via environment variable for security
    # Generate with: python -c "import secrets; print(secrets.token_hex(32))"
    _flask_env = os.environ.get("FLASK_ENV", "development")
    _is_testing = _flask_env == "testing"
    _is_production = _flask_env == "production"

    SECRET_KEY = os.environ.get("SECRET_KEY")

    if not SECRET_KEY and _is_production:
        raise ValueError(
            "SECRET_KEY environment variable is required in production. "
            'Generate with: python -c "import secrets; print(secrets.token_hex(32))"'
        )

    if not SECRET_KEY and not _is_testing:
        import warnings

        warnings.warn(
            "SECRET_KEY not set. Using default for development only. "
            "Set SECRET_KEY environment variable before deploying.",
            UserWarning,
        )
        SECRET_KEY = "dev-secret-key-change-in-production"

    if not SECRET_KEY:
        SECRET_KEY = "test-secret-key-placeholder"

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {}

    # Logging
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text").lower()  # "json" or "text"
    LOG_DIR = os.environ.get("LOG_DIR", "logs")
    LOG_FILE_MAX_BYTES = _parse_int(os.environ.get("LOG_FILE_MAX_BYTES"), 10485760, minimum=1024)
    LOG_FILE_BACKUP_COUNT = _parse_int(os.environ.get("LOG_FILE_BACKUP_COUNT"), 10)
    ENABLE_FILE_LOGGING = _coerce_bool(os.environ.get("ENABLE_FILE_LOGGING"), default=False)
    ENABLE_CONSOLE_LOGGING = _coerce_bool(os.environ.get("ENABLE_CONSOLE_LOGGING"), default=True)

    # Importer configuration
    IMPORTER_ENABLED = _coerce_bool(os.environ.get("IMPORTER_ENABLED"), default=True)
    # Legacy backend rate limits: pause IMPORTER_ROW_DELAY_SECONDS after every IMPORTER_THROTTLE_EVERY rows
    IMPORTER_ROW_DELAY_SECONDS = _parse_float(os.environ.get("IMPORTER_ROW_DELAY_SECONDS"), 0.1)
    IMPORTER_THROTTLE_EVERY = _parse_int(os.environ.get("IMPORTER_THROTTLE_EVERY"), 10, minimum=1)
    IMPORTER_ERROR_PREVIEW_LIMIT = _parse_int(os.environ.get("IMPORTER_ERROR_PREVIEW_LIMIT"), 10, minimum=1)
    IMPORTER_DEFAULT_COUNTRY_CODE = os.environ.get("IMPORTER_DEFAULT_COUNTRY_CODE", "1").strip().lstrip("+") or "1"
    IMPORTER_DEFAULT_LOCATION_FOUND = os.environ.get(
        "IMPORTER_DEFAULT_LOCATION_FOUND",
        "Exact location unknown.",
    )

    # Seeded once into admin_bootstrap_grants by `flask admin seed-bootstrap`
    BOOTSTRAP_ADMIN_EMAILS = _parse_email_list(os.environ.get("BOOTSTRAP_ADMIN_EMAILS", ""))

    # Session configuration
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)
    SESSION_COOKIE_SECURE = False  # Set to True in production with HTTPS
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"


class DevelopmentConfig(Config):
    DEBUG = True
    _config_dir = os.path.dirname(os.path.abspath(__file__))
    _project_root = os.path.dirname(_config_dir)
    instance_path = os.path.join(_project_root, "instance")

    if not os.path.exists(instance_path):
        os.makedirs(instance_path, exist_ok=True)

    # Windows needs forward slashes in the SQLite URI
    db_path = os.path.join(instance_path, "discfinder_dev.db")
    db_path_normalized = db_path.replace("\\", "/")
    db_uri = f"sqlite:///{db_path_normalized}"

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", db_uri)
    SQLALCHEMY_ECHO = False
    if SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
        SQLALCHEMY_ENGINE_OPTIONS = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": 5,
            }
        }
    else:
        SQLALCHEMY_ENGINE_OPTIONS = {}


class TestingConfig(Config):
    TESTING = True
    LOG_LEVEL = "WARNING"
    ENABLE_FILE_LOGGING = False
    SECRET_KEY = os.environ.get("SECRET_KEY", "test-secret-key-for-testing-only")
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ECHO = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {
            "check_same_thread": False,
            "timeout": 5,
        }
    }
    IMPORTER_ROW_DELAY_SECONDS = 0.0


class ProductionConfig(Config):
    DEBUG = False
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json").lower()
    uri = os.environ.get("DATABASE_URL")
    if uri and uri.startswith("postgres://"):
        uri = uri.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = uri
    SQLALCHEMY_ECHO = False
    SESSION_COOKIE_SECURE = True
