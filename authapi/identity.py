import logging
from dataclasses import asdict, dataclass

from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from core.exceptions import InvalidAssertion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityClaims:
    subject: str
    email: str = ""
    name: str = ""
    picture: str = ""

    def as_dict(self):
        return asdict(self)


def verify_identity(assertion, client_id, request=None):
    """Verify a Google ID token for our client id and return its claims."""
    if not assertion:
        raise InvalidAssertion("Token required.")
    try:
        payload = id_token.verify_oauth2_token(
            assertion,
            request or google_requests.Request(),
            audience=client_id,
        )
    except (ValueError, google_exceptions.GoogleAuthError) as exc:
        logger.warning("Google token verification failed: %s", exc)
        raise InvalidAssertion() from exc
    if not payload.get("sub"):
        raise InvalidAssertion()
    return IdentityClaims(
        subject=payload["sub"],
        email=payload.get("email", ""),
        name=payload.get("name", ""),
        picture=payload.get("picture", ""),
    )


def check_access(email, allowed_users):
    if not allowed_users:
        return True
    return email in {u.strip() for u in allowed_users}
