import logging

from django.core.exceptions import ImproperlyConfigured
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.config import get_notes_config
from core.exceptions import AccessDenied
from .identity import check_access, verify_identity
from .serializers import SessionSerializer, VerifyIdentitySerializer
from .tokens import issue_session

logger = logging.getLogger(__name__)


class VerifyIdentityView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        try:
            config = get_notes_config(require_identity=True)
        except ImproperlyConfigured as exc:
            logger.error("Auth verify misconfigured: %s", exc)
            return Response(
                {"detail": f"Server configuration error: {exc}"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        serializer = VerifyIdentitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        claims = verify_identity(serializer.validated_data["token"], config.identity_client_id)
        if not check_access(claims.email, config.allowed_users):
            logger.warning("User not in allowed list: %s", claims.email)
            raise AccessDenied()

        token = issue_session(claims)
        logger.info("Authentication successful for %s", claims.email)
        user = SessionSerializer(
            {"sub": claims.subject, "email": claims.email, "name": claims.name, "picture": claims.picture}
        ).data
        return Response({"user": user, "authenticated": True, "token": token})


class LogoutView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        # Session tokens are stateless; the client discards its copy.
        return Response({"success": True, "message": "Logged out successfully"})


class SessionProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(SessionSerializer(request.user.claims()).data)


class AuthApiIndexView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return Response(
            {
                "detail": "Auth API root",
                "endpoints": {
                    "verify": "/api/auth/verify/",
                    "logout": "/api/auth/logout/",
                    "me": "/api/auth/me/",
                },
            }
        )
