"""
Application configuration and constants for Wheely API Server.

This module centralizes environment-based configuration, field limits,
regular expressions, timezones, and other constants.

Configuration values can be overridden via environment variables.
"""

from os import environ
from zoneinfo import ZoneInfo


# ---------------------------------------------------------------------------
# Application metadata
# ---------------------------------------------------------------------------
API_TITLE = "Wheely API Server"
API_VERSION = "1.0.0"


# ---------------------------------------------------------------------------
# PostgreSQL configuration
# ---------------------------------------------------------------------------
PSQL_DB_DRIVER = environ.get("PSQL_DB_DRIVER", "postgresql")
PSQL_DB_USERNAME = environ.get("PSQL_DB_USERNAME", "postgres")
PSQL_DB_PORT = environ.get("PSQL_DB_PORT", "5432")
PSQL_DB_PASSWORD = environ.get("PSQL_DB_PASSWORD", "password")
PSQL_DB_HOST = environ.get("PSQL_DB_HOST", "localhost")
PSQL_DB_NAME = environ.get("PSQL_DB_NAME", "postgres")


# ---------------------------------------------------------------------------
# OpenObserve configuration
# ---------------------------------------------------------------------------
OPENOBSERVE_PROTOCOL = environ.get("OPENOBSERVE_PROTOCOL", "http")
OPENOBSERVE_HOST = environ.get("OPENOBSERVE_HOST", "localhost")
OPENOBSERVE_PORT = environ.get("OPENOBSERVE_PORT", "5080")
OPENOBSERVE_USERNAME = environ.get("OPENOBSERVE_USERNAME", "admin@wheely.com")
OPENOBSERVE_PASSWORD = environ.get("OPENOBSERVE_PASSWORD", "password")
OPENOBSERVE_ORG = environ.get("OPENOBSERVE_ORG", "wheely")
OPENOBSERVE_STREAM = environ.get("OPENOBSERVE_STREAM", "wheely-core-server")
OPENOBSERVE_TIMEOUT = 5  # Request timeout (in seconds)


# ---------------------------------------------------------------------------
# Redis configuration
# ---------------------------------------------------------------------------
REDIS_HOST = environ.get("REDIS_HOST", "localhost")
REDIS_PORT = environ.get("REDIS_PORT", "6379")
REDIS_PASSWORD = environ.get("REDIS_PASSWORD", "password")
REDIS_DB = int(environ.get("REDIS_DB", "0"))


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------
# User allowed to delete any report. Unset means only the author can delete.
ADMIN_OVERRIDE_USER_ID = (
    int(environ["ADMIN_OVERRIDE_USER_ID"])
    if environ.get("ADMIN_OVERRIDE_USER_ID")
    else None
)


# ---------------------------------------------------------------------------
# Resource upper limits
# ---------------------------------------------------------------------------
MAX_USER_TOKENS = 5  # Maximum tokens per user
MAX_TOKEN_VALIDITY = 7 * 24 * 60 * 60  # Token validity (in seconds, 7 days)


# ---------------------------------------------------------------------------
# Field limits
# ---------------------------------------------------------------------------
MAX_ROUTE_NAME_LENGTH = 100
MAX_ROUTE_PLACE_LENGTH = 100  # origin and destination labels
MAX_PERIOD_NAME_LENGTH = 20
MAX_PERIOD_DESCRIPTION_LENGTH = 100
MAX_REPORT_TITLE_LENGTH = 100
MAX_USER_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 256
MIN_AVERAGE_TIME = 1  # Minutes
MAX_AVERAGE_TIME = 300  # Minutes (5 hours)


# ---------------------------------------------------------------------------
# Regex constants (input validation)
# ---------------------------------------------------------------------------
REGEX_EMAIL = r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$"


# ---------------------------------------------------------------------------
# Password policy
# ---------------------------------------------------------------------------
MIN_PASSWORD_LENGTH = 8
PASSWORD_SYMBOLS = '#%$"/!?¿¡\\'


# ---------------------------------------------------------------------------
# Timezone constants
# ---------------------------------------------------------------------------
TMZ_PRIMARY = ZoneInfo("UTC")
TMZ_LOCAL = ZoneInfo(environ.get("WHEELY_TIMEZONE", "America/Mexico_City"))


# ---------------------------------------------------------------------------
# Redis mutex lock constants
# ---------------------------------------------------------------------------
MUTEX_LOCK_TIMEOUT = 10  # Lock timeout (in seconds)
MUTEX_LOCK_MAX_WAIT_TIME = 60  # Max blocking wait time (in seconds)
