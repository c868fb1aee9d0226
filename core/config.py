from dataclasses import dataclass

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

MIN_SIGNING_SECRET_LENGTH = 32


@dataclass(frozen=True)
class NotesConfig:
    identity_client_id: str
    session_signing_secret: str
    allowed_users: tuple
    storage_endpoint: str
    encryption_secret: str
    encryption_salt: str
    kdf_iterations: int
    due_date_timezone: str
    overdue_recheck_seconds: int
    storage_timeout: float


def _allowed_users():
    raw = getattr(settings, "ALLOWED_USERS", ())
    if isinstance(raw, str):
        raw = raw.split(",")
    return tuple(u.strip() for u in raw if u and u.strip())


def get_notes_config(require_identity=False, require_storage=False):
    """
    Collect the environment-provided configuration from Django settings.

    Settings are read on every call so that tests and reloaded settings are
    honoured. Missing values only fail when the caller needs them.
    """
    client_id = getattr(settings, "GOOGLE_CLIENT_ID", "") or ""
    signing_secret = getattr(settings, "JWT_SECRET", "") or ""
    endpoint = getattr(settings, "APPS_SCRIPT_URL", "") or ""

    if require_identity:
        if not client_id:
            raise ImproperlyConfigured("GOOGLE_CLIENT_ID not set")
        if not signing_secret:
            raise ImproperlyConfigured("JWT_SECRET not set")
        if len(signing_secret) < MIN_SIGNING_SECRET_LENGTH:
            raise ImproperlyConfigured(
                f"JWT_SECRET must be at least {MIN_SIGNING_SECRET_LENGTH} characters"
            )
    if require_storage and not endpoint:
        raise ImproperlyConfigured("APPS_SCRIPT_URL not configured")

    return NotesConfig(
        identity_client_id=client_id,
        session_signing_secret=signing_secret,
        allowed_users=_allowed_users(),
        storage_endpoint=endpoint,
        encryption_secret=getattr(settings, "NOTES_ENCRYPTION_SECRET", "") or signing_secret,
        encryption_salt=getattr(settings, "NOTES_ENCRYPTION_SALT", "sheetnotes-field-encryption-v1"),
        kdf_iterations=int(getattr(settings, "NOTES_KDF_ITERATIONS", 100000)),
        due_date_timezone=getattr(settings, "NOTES_DUE_DATE_TIMEZONE", "Asia/Manila"),
        overdue_recheck_seconds=int(getattr(settings, "NOTES_OVERDUE_RECHECK_SECONDS", 3600)),
        storage_timeout=float(getattr(settings, "NOTES_STORAGE_TIMEOUT", 30)),
    )
