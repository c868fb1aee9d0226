from rest_framework import HTTP_HEADER_ENCODING
from rest_framework_simplejwt.authentication import JWTStatelessUserAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken

from core.exceptions import AuthenticationFailure
from .tokens import require_session


class SessionTokenAuthentication(JWTStatelessUserAuthentication):
    """
    Bearer session tokens issued by ``authapi.tokens.issue_session``.

    No user table is consulted; ``request.user`` is a ``SessionUser`` built
    from the token claims by ``require_session``.
    """

    www_authenticate_realm = "notes"

    def get_validated_token(self, raw_token):
        if isinstance(raw_token, bytes):
            raw_token = raw_token.decode(HTTP_HEADER_ENCODING)
        try:
            return require_session(raw_token).token
        except AuthenticationFailure as exc:
            raise InvalidToken(exc.message) from exc
