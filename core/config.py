"""
Environment-driven settings.

Values are read from os.environ at call time so that .env.local (loaded by
main.py) and test monkeypatching both take effect.
"""

import os

DEFAULT_LESSONS_API_URL = "http://localhost:5000/api"
DEFAULT_LESSONS_API_TIMEOUT = 10.0


def get_lessons_api_url() -> str:
    """Base URL of the remote lessons API, without a trailing slash."""
    return os.environ.get("LESSONS_API_URL", DEFAULT_LESSONS_API_URL).rstrip("/")


def get_lessons_api_timeout() -> float:
    raw = os.environ.get("LESSONS_API_TIMEOUT")
    if not raw:
        return DEFAULT_LESSONS_API_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        return DEFAULT_LESSONS_API_TIMEOUT


def get_database_url() -> str:
    """Async SQLAlchemy URL. Plain postgresql:// URLs are upgraded to asyncpg."""
    database_url = os.environ.get("DATABASE_URL", "")
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


def get_log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").upper()


def get_sentry_dsn() -> str | None:
    return os.environ.get("SENTRY_DSN") or None


def get_environment() -> str:
    return os.environ.get("ENVIRONMENT", "development")


def uses_database_store() -> bool:
    """Serve lessons from the local database instead of the remote API."""
    return bool(os.environ.get("DATABASE_URL"))
