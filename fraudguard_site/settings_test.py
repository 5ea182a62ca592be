"""
Test settings for fraudguard_site.

Goal:
- Tests must not require external services (no local Postgres, no Docker dependency).
- Reuse the full base settings (INSTALLED_APPS, MIDDLEWARE, ROOT_URLCONF, etc.).
- Override DATABASES to SQLite for deterministic pytest runs.

pyproject.toml points DJANGO_SETTINGS_MODULE at this module.
"""
from __future__ import annotations

from pathlib import Path

from . import settings as base


# Copy every UPPERCASE setting from the base settings module.
for _name in dir(base):
    if _name.isupper():
        globals()[_name] = getattr(base, _name)


BASE_DIR = globals().get("BASE_DIR") or Path(__file__).resolve().parent.parent

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": str(BASE_DIR / "test.sqlite3"),
    }
}

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

CACHES = {
    "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
}

FRAUDGUARD_API_REQUIRE_STAFF = True
FRAUDGUARD_OTP_VALIDITY_SECONDS = 120
