"""
Client for the spreadsheet-backed storage script.

The script is an opaque collaborator: ``GET`` lists the caller's notes,
``POST`` takes ``{action, note}`` with the user context carried in the body.
Every write goes out with the sensitive fields encrypted and every read is
decrypted on the way in.
"""
import json
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from core.exceptions import AuthenticationFailure, NotFound, OwnershipViolation, StorageFailure
from .models import Note

logger = logging.getLogger(__name__)

ACTIONS = ("add", "update", "delete", "test")


@dataclass(frozen=True)
class StoreResult:
    success: bool
    message: str = ""
    error: Optional[type] = None

    @classmethod
    def failed(cls, message, error=StorageFailure):
        return cls(success=False, message=message, error=error)


def _classify(message):
    lowered = (message or "").lower()
    if "note not found" in lowered:
        return NotFound
    if "access denied" in lowered or "do not own" in lowered:
        return OwnershipViolation
    return StorageFailure


class NoteStoreClient:
    def __init__(self, endpoint, session, cipher=None, timeout=None, transport=None):
        if session is None or not getattr(session, "subject", None):
            raise AuthenticationFailure()
        if not endpoint:
            raise StorageFailure("Note storage endpoint is not configured.")
        self.endpoint = endpoint
        self.session = session
        self.cipher = cipher
        client_kwargs = {"follow_redirects": True}
        if timeout is not None:
            client_kwargs["timeout"] = timeout
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.Client(**client_kwargs)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        self._client.close()

    def _user_context(self):
        return {
            "X-User-ID": self.session.subject,
            "X-User-Email": self.session.email or "",
            "X-User-Name": self.session.name or "",
        }

    def list_notes(self):
        """Fetch, ownership-filter and decrypt the session user's notes."""
        try:
            response = self._client.get(self.endpoint, params=self._user_context())
        except httpx.HTTPError as exc:
            logger.exception("Failed to reach note storage")
            raise StorageFailure("Failed to fetch notes.") from exc
        if not response.is_success:
            raise StorageFailure(f"Failed to fetch notes: HTTP {response.status_code}.")
        try:
            rows = response.json()
        except ValueError as exc:
            raise StorageFailure("Note storage returned an invalid response.") from exc
        if isinstance(rows, dict):
            raise StorageFailure(rows.get("message") or "Failed to fetch notes.")
        if not isinstance(rows, list):
            raise StorageFailure("Note storage returned an invalid response.")

        notes = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            owner = row.get("userId")
            if owner and owner != self.session.subject:
                logger.warning("Dropping note %s not owned by the current user", row.get("id"))
                continue
            note = Note.from_wire(row)
            if self.cipher is not None:
                self.cipher.decrypt_note(note)
            notes.append(note)
        return notes

    def _post(self, action, payload):
        if action not in ACTIONS:
            raise ValueError(f"Unknown action: {action}")
        body = {"action": action, "note": payload, **self._user_context()}
        try:
            response = self._client.post(
                self.endpoint,
                content=json.dumps(body),
                headers={"Content-Type": "text/plain;charset=utf-8"},
            )
        except httpx.HTTPError as exc:
            logger.error("Error performing %s action: %s", action, exc)
            return StoreResult.failed(f"Failed to {action} note: {exc}")
        if not response.is_success:
            return StoreResult.failed(f"Failed to {action} note: HTTP {response.status_code}.")
        try:
            data = response.json()
        except ValueError:
            return StoreResult.failed(f"Failed to {action} note: invalid response from storage.")
        if not isinstance(data, dict):
            return StoreResult.failed(f"Failed to {action} note: invalid response from storage.")
        message = str(data.get("message") or "")
        if not data.get("success"):
            logger.warning("Storage rejected %s: %s", action, message)
            return StoreResult.failed(message or f"Failed to {action} note.", _classify(message))
        return StoreResult(success=True, message=message)

    def _outgoing(self, note):
        if self.cipher is not None:
            note = self.cipher.encrypt_note(note)
        return note.to_wire()

    def add(self, note):
        return self._post("add", self._outgoing(note))

    def update(self, note):
        return self._post("update", self._outgoing(note))

    def delete(self, note_id):
        return self._post("delete", {"id": note_id})

    def test(self):
        return self._post("test", {"id": "connectivity-check", "title": "Connectivity check"})
