import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name):
    raw = os.environ.get(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "django-insecure-sheetnotes-dev-key")
DEBUG = _env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = _env_list("DJANGO_ALLOWED_HOSTS") or ["localhost", "127.0.0.1", "testserver"]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "rest_framework_simplejwt",
    "core",
    "authapi",
    "notes",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "sheetnotes_backend.urls"
WSGI_APPLICATION = "sheetnotes_backend.wsgi.application"

# Notes live in the external spreadsheet store; the local database only backs
# Django's contrib apps.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Identity provider, session token and storage endpoint.
GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID", "")
JWT_SECRET = os.environ.get("JWT_SECRET", "")
ALLOWED_USERS = _env_list("ALLOWED_USERS")
APPS_SCRIPT_URL = os.environ.get("APPS_SCRIPT_URL", "")

# Field encryption. The secret falls back to JWT_SECRET when unset.
NOTES_ENCRYPTION_SECRET = os.environ.get("NOTES_ENCRYPTION_SECRET", "")
NOTES_ENCRYPTION_SALT = os.environ.get("NOTES_ENCRYPTION_SALT", "sheetnotes-field-encryption-v1")
NOTES_KDF_ITERATIONS = int(os.environ.get("NOTES_KDF_ITERATIONS", "100000"))

NOTES_DUE_DATE_TIMEZONE = os.environ.get("NOTES_DUE_DATE_TIMEZONE", "Asia/Manila")
NOTES_OVERDUE_RECHECK_SECONDS = int(os.environ.get("NOTES_OVERDUE_RECHECK_SECONDS", "3600"))
NOTES_STORAGE_TIMEOUT = float(os.environ.get("NOTES_STORAGE_TIMEOUT", "30"))

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "authapi.authentication.SessionTokenAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "EXCEPTION_HANDLER": "core.exceptions.api_exception_handler",
    "UNAUTHENTICATED_USER": None,
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(hours=24),
    "ALGORITHM": "HS256",
    "SIGNING_KEY": JWT_SECRET or SECRET_KEY,
    "AUTH_HEADER_TYPES": ("Bearer",),
    "USER_ID_CLAIM": "sub",
    "TOKEN_USER_CLASS": "authapi.tokens.SessionUser",
    "UPDATE_LAST_LOGIN": False,
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "root": {"handlers": ["console"], "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO")},
}
