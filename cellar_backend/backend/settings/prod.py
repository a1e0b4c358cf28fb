# backend/settings/prod.py
"""
PATH: backend/settings/prod.py

PRODUCTION SETTINGS

Fails closed at import time. A deployment that boots is one where:
- DEBUG is off and SECRET_KEY is real
- the database is Postgres (DATABASE_URL, never SQLite)
- hosts, CORS and CSRF origins are explicit https values
- notification links point at the https frontend
- payment references get a usable fallback prefix
Static files are served by WhiteNoise behind a TLS-terminating proxy.
"""

from __future__ import annotations

import re

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F403
from .base import (  # explicit for Ruff (F405)
    BASE_DIR,
    FRONTEND_BASE_URL,
    MIDDLEWARE,
    PCO_DEFAULT_PAYMENT_PREFIX,
    WMS_EXPIRY_WARNING_DAYS,
    env,
)

DEBUG = False


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ImproperlyConfigured(message)


def _explicit_https_origins(name: str) -> list[str]:
    origins = env.list(name, default=[])
    _require(bool(origins), f"{name} must be set in production.")
    for origin in origins:
        _require(
            "localhost" not in origin and "127.0.0.1" not in origin,
            f"Remove local origins from {name} in production ({origin}).",
        )
        _require(origin.startswith("https://"), f"{name} must be https:// in production ({origin}).")
    return origins


# ----------------------------
# Secrets / hosts
# ----------------------------
SECRET_KEY = (env("SECRET_KEY", default="") or "").strip()
_require(
    bool(SECRET_KEY) and SECRET_KEY != "dev-insecure-change-me",
    "SECRET_KEY must be set to a strong value in production.",
)

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=[])
_require(bool(ALLOWED_HOSTS), "ALLOWED_HOSTS must be set in production.")

# ----------------------------
# Database (Postgres only)
# ----------------------------
_database_url = (env("DATABASE_URL", default="") or "").strip()
_require(bool(_database_url), "DATABASE_URL must be set in production (Postgres).")
_require(
    _database_url.startswith(("postgres://", "postgresql://", "pgsql://")),
    "Refusing to start in production without a Postgres DATABASE_URL.",
)

DATABASES = {"default": env.db("DATABASE_URL")}
DATABASES["default"]["CONN_MAX_AGE"] = env.int("DB_CONN_MAX_AGE", default=60)

# ----------------------------
# Domain settings sanity
# ----------------------------
_require(
    FRONTEND_BASE_URL.startswith("https://"),
    "FRONTEND_BASE_URL must be https:// in production (used in notification links).",
)
_require(
    bool(re.fullmatch(r"[A-Z0-9]{2,10}", PCO_DEFAULT_PAYMENT_PREFIX)),
    "PCO_DEFAULT_PAYMENT_PREFIX must be 2-10 uppercase letters or digits.",
)
_require(WMS_EXPIRY_WARNING_DAYS > 0, "WMS_EXPIRY_WARNING_DAYS must be positive.")

# ----------------------------
# Static files (WhiteNoise)
# ----------------------------
STATIC_ROOT = env("STATIC_ROOT", default=str(BASE_DIR / "staticfiles"))

MIDDLEWARE.insert(1, "whitenoise.middleware.WhiteNoiseMiddleware")
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# ----------------------------
# Transport security
# ----------------------------
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=True)

SECURE_HSTS_SECONDS = env.int("SECURE_HSTS_SECONDS", default=3600)
SECURE_HSTS_INCLUDE_SUBDOMAINS = env.bool("SECURE_HSTS_INCLUDE_SUBDOMAINS", default=True)
SECURE_HSTS_PRELOAD = env.bool("SECURE_HSTS_PRELOAD", default=False)

SESSION_COOKIE_SECURE = CSRF_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = CSRF_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = CSRF_COOKIE_SAMESITE = "Lax"

SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "same-origin"
SECURE_CROSS_ORIGIN_OPENER_POLICY = "same-origin"
X_FRAME_OPTIONS = "DENY"

# ----------------------------
# CORS / CSRF
# ----------------------------
# The API is bearer-token only; no cookies cross origins.
CORS_ALLOWED_ORIGINS = _explicit_https_origins("CORS_ALLOWED_ORIGINS")
CSRF_TRUSTED_ORIGINS = _explicit_https_origins("CSRF_TRUSTED_ORIGINS")
CORS_ALLOW_CREDENTIALS = False
