import logging

from rest_framework import status
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class NotesError(Exception):
    """Base class for every failure the notes API reports to its callers."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationFailure(NotesError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required."


class InvalidAssertion(AuthenticationFailure):
    default_message = "Invalid Google token."


class AccessDenied(NotesError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied."


class StorageFailure(NotesError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Note storage is unavailable."


class EncryptionFailure(NotesError):
    default_message = "Could not initialise note encryption."


class DecryptionFailure(NotesError):
    default_message = "Could not decrypt note field."


class MalformedEnvelope(DecryptionFailure):
    default_message = "Encrypted field is not in a recognised format."


class NotFound(NotesError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Note not found."


class OwnershipViolation(NotesError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to modify this note."


class MoveRejected(NotesError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Cannot manually reorder completed notes; they are sorted by completion date."


def api_exception_handler(exc, context):
    if isinstance(exc, NotesError):
        if exc.status_code >= 500:
            logger.error("%s: %s", type(exc).__name__, exc.message)
        return Response({"detail": exc.message}, status=exc.status_code)
    from rest_framework.views import exception_handler

    return exception_handler(exc, context)
