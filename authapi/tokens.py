from datetime import timedelta

from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.models import TokenUser
from rest_framework_simplejwt.tokens import AccessToken

from core.exceptions import AuthenticationFailure

SESSION_LIFETIME = timedelta(hours=24)
SESSION_CLAIMS = ("sub", "email", "name", "picture")


class SessionUser(TokenUser):
    """Stateless user built from the claims of a verified session token."""

    @property
    def subject(self):
        return self.token["sub"]

    @property
    def email(self):
        return self.token.get("email", "")

    @property
    def name(self):
        return self.token.get("name", "")

    @property
    def picture(self):
        return self.token.get("picture", "")

    def claims(self):
        return {claim: self.token.get(claim, "") for claim in SESSION_CLAIMS}


def issue_session(claims):
    token = AccessToken()
    token.set_exp(lifetime=SESSION_LIFETIME)
    token["sub"] = claims.subject
    token["email"] = claims.email
    token["name"] = claims.name
    token["picture"] = claims.picture
    return str(token)


def require_session(raw_token):
    if not raw_token:
        raise AuthenticationFailure()
    try:
        token = AccessToken(raw_token)
    except TokenError as exc:
        raise AuthenticationFailure("Invalid authentication token.") from exc
    if not token.get("sub"):
        raise AuthenticationFailure("Invalid authentication token.")
    return SessionUser(token)
