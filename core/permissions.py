from rest_framework.permissions import BasePermission

from .exceptions import OwnershipViolation


class IsNoteOwner(BasePermission):
    """
    Object permission for notes: the session subject must own the note.
    Rows from legacy sheets without an owner column carry no user id and
    are left to the store's own filtering.
    """

    message = OwnershipViolation.default_message

    def has_object_permission(self, request, view, obj):
        subject = getattr(request.user, "subject", None)
        if not subject:
            return False
        owner = getattr(obj, "user_id", "")
        return not owner or owner == subject
