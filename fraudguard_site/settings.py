"""
Django settings for the FraudGuard API.

This settings module supports two database modes:
1) SQLite for CI and lightweight local runs.
2) Postgres for Docker-based development.

The database only backs Django's auth tables. Transactions and OTP challenges
live in process memory (see fraud.services).

Database selection is driven by environment variables so CI and development can
use different backends without code changes.
"""

import os
from pathlib import Path
from urllib.parse import parse_qs, urlparse

BASE_DIR = Path(__file__).resolve().parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-insecure-secret-key")

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv("DEBUG", "True").lower() == "true"

ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")

RUNNING_IN_DOCKER = os.getenv("RUNNING_IN_DOCKER", "0") == "1"

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "fraud",
    "accounts",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "fraudguard_site.middleware.ApiTokenMiddleware",
]

ROOT_URLCONF = "fraudguard_site.urls"
APPEND_SLASH = False


def _sqlite_database_config(base_dir: Path) -> dict:
    """
    Build a SQLite database config.

    Args:
        base_dir: Project base directory used to place db.sqlite3.

    Returns:
        A Django DATABASES['default'] config dict for SQLite.
    """
    return {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": base_dir / "db.sqlite3",
    }


def _postgres_database_config_from_env() -> dict:
    """
    Build a Postgres database config from discrete environment variables.

    Expected variables:
        POSTGRES_DB, POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_HOST, POSTGRES_PORT
    """
    return {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.getenv("POSTGRES_DB", "fraudguard"),
        "USER": os.getenv("POSTGRES_USER", "fraudguard"),
        "PASSWORD": os.getenv("POSTGRES_PASSWORD", "fraudguard_password"),
        "HOST": os.getenv("POSTGRES_HOST", ""),
        "PORT": os.getenv("POSTGRES_PORT", "5432"),
        "CONN_MAX_AGE": int(os.getenv("DB_CONN_MAX_AGE", "60")),
    }


def _postgres_database_config_from_url(database_url: str) -> dict:
    """
    Build a Postgres database config from DATABASE_URL.

    Raises:
        ValueError: If the URL scheme is unsupported.
    """
    parsed = urlparse(database_url)
    scheme = (parsed.scheme or "").lower()

    if scheme not in {"postgres", "postgresql"}:
        raise ValueError(f"Unsupported DATABASE_URL scheme: {scheme}")

    options = parse_qs(parsed.query or "")
    django_options = {}
    if options.get("sslmode"):
        django_options["sslmode"] = options["sslmode"][0]

    return {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": (parsed.path or "").lstrip("/"),
        "USER": parsed.username or "",
        "PASSWORD": parsed.password or "",
        "HOST": parsed.hostname or "",
        "PORT": str(parsed.port or "5432"),
        "CONN_MAX_AGE": int(os.getenv("DB_CONN_MAX_AGE", "60")),
        "OPTIONS": django_options,
    }


def _select_database(base_dir: Path) -> dict:
    """
    Select the active database backend.

    Priority order:
    1) DJANGO_DB explicit override (sqlite or postgres)
    2) DATABASE_URL for Postgres
    3) Docker dev signal or explicit POSTGRES_HOST uses Postgres
    4) Fallback to SQLite
    """
    dj_db = (os.getenv("DJANGO_DB") or "").strip().lower()
    database_url = (os.getenv("DATABASE_URL") or "").strip()

    if dj_db in {"sqlite", "sqlite3"}:
        return _sqlite_database_config(base_dir)
    if dj_db in {"postgres", "postgresql"}:
        if database_url:
            return _postgres_database_config_from_url(database_url)
        return _postgres_database_config_from_env()

    if database_url:
        return _postgres_database_config_from_url(database_url)

    if RUNNING_IN_DOCKER or os.getenv("POSTGRES_HOST"):
        return _postgres_database_config_from_env()

    return _sqlite_database_config(base_dir)


DATABASES = {"default": _select_database(BASE_DIR)}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

LANGUAGE_CODE = "en-us"
# Local hour drives the unusual-time scoring rule.
TIME_ZONE = os.getenv("FRAUDGUARD_TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

EMAIL_BACKEND = os.getenv("EMAIL_BACKEND", "django.core.mail.backends.console.EmailBackend")

CACHES = {
    "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
}

# Fraud scoring and OTP policy
FRAUDGUARD_OTP_DIGITS = int(os.getenv("FRAUDGUARD_OTP_DIGITS", "6"))
FRAUDGUARD_OTP_VALIDITY_SECONDS = int(os.getenv("FRAUDGUARD_OTP_VALIDITY_SECONDS", "120"))
FRAUDGUARD_OTP_SWEEP_INTERVAL_SECONDS = int(os.getenv("FRAUDGUARD_OTP_SWEEP_INTERVAL_SECONDS", "60"))
FRAUDGUARD_FREQUENCY_WINDOW_SECONDS = int(os.getenv("FRAUDGUARD_FREQUENCY_WINDOW_SECONDS", "3600"))
FRAUDGUARD_FLAGGED_THRESHOLD = float(os.getenv("FRAUDGUARD_FLAGGED_THRESHOLD", "40"))

# API access
FRAUDGUARD_TOKEN_MAX_AGE_SECONDS = int(os.getenv("FRAUDGUARD_TOKEN_MAX_AGE_SECONDS", str(12 * 60 * 60)))
FRAUDGUARD_API_REQUIRE_STAFF = os.getenv("FRAUDGUARD_API_REQUIRE_STAFF", "True").lower() == "true"

FRAUDGUARD_NOTIFY_FROM_EMAIL = os.getenv("FRAUDGUARD_NOTIFY_FROM_EMAIL", "security@fraudguard.com")
FRAUDGUARD_PASSWORD_RESET_URL = os.getenv(
    "FRAUDGUARD_PASSWORD_RESET_URL", "https://fraudguard.com/reset-password"
)

FRAUDGUARD_LOG_LEVEL = os.getenv("FRAUDGUARD_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "fraud": {"handlers": ["console"], "level": FRAUDGUARD_LOG_LEVEL, "propagate": True},
        "accounts": {"handlers": ["console"], "level": FRAUDGUARD_LOG_LEVEL, "propagate": True},
        "fraudguard_site": {"handlers": ["console"], "level": FRAUDGUARD_LOG_LEVEL, "propagate": True},
    },
}
