import copy
import functools
import json
from dataclasses import dataclass
from datetime import datetime, timezone

import httpx
import pytest

from notes.models import Note
from notes.store import NoteStoreClient, StoreResult

STORAGE_URL = "https://storage.example.test/exec"
NOW = datetime(2025, 7, 29, 15, 0, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Owner:
    subject: str = "user-1"
    email: str = "ada@example.com"
    name: str = "Ada"


class FakeSheet:
    """In-memory stand-in for the storage script, served through httpx."""

    def __init__(self):
        self.rows = []
        self.requests = []
        self.fail_ids = set()

    @property
    def transport(self):
        return httpx.MockTransport(self.handle)

    def seed(self, *rows):
        self.rows.extend(copy.deepcopy(list(rows)))

    def row(self, note_id):
        return next(r for r in self.rows if r["id"] == note_id)

    def posts(self, action=None):
        bodies = [json.loads(r.content) for r in self.requests if r.method == "POST"]
        return [b for b in bodies if action is None or b["action"] == action]

    def handle(self, request):
        self.requests.append(request)
        if request.method == "GET":
            user_id = request.url.params.get("X-User-ID")
            if not user_id:
                return httpx.Response(200, json={"error": True, "success": False, "message": "Unauthorized"})
            return httpx.Response(200, json=[r for r in self.rows if r.get("userId") == user_id])

        body = json.loads(request.content)
        user_id = body.get("X-User-ID")
        note = body.get("note") or {}
        action = body.get("action")
        if note.get("id") in self.fail_ids:
            return httpx.Response(500, text="boom")
        if action == "test":
            return httpx.Response(200, json={"success": True, "message": "Test successful"})
        if action == "add":
            note["userId"] = user_id
            note["userEmail"] = body.get("X-User-Email")
            self.rows.append(note)
            return httpx.Response(200, json={"success": True, "message": "Note added successfully"})
        for index, row in enumerate(self.rows):
            if row["id"] != note.get("id"):
                continue
            if row.get("userId") != user_id:
                return httpx.Response(
                    200,
                    json={"success": False, "message": "Operation failed: Error: Access denied: You do not own this note"},
                )
            if action == "delete":
                del self.rows[index]
                return httpx.Response(200, json={"success": True, "message": "Note deleted successfully"})
            note["userId"] = user_id
            self.rows[index] = note
            return httpx.Response(200, json={"success": True, "message": "Note updated successfully"})
        return httpx.Response(200, json={"success": False, "message": "Operation failed: Error: Note not found"})


class FakeStore:
    """Store double for board tests; keeps notes by id without any HTTP."""

    def __init__(self, notes=()):
        self.saved = {n.id: n.copy() for n in notes}
        self.updates = []
        self.adds = []
        self.deletes = []
        self.fail_ids = set()

    def list_notes(self):
        return [n.copy() for n in self.saved.values()]

    def _result(self, note_id, message):
        if note_id in self.fail_ids:
            return StoreResult.failed(f"Failed to write {note_id}")
        return StoreResult(success=True, message=message)

    def add(self, note):
        self.adds.append(note.id)
        result = self._result(note.id, "Note added successfully")
        if result.success:
            self.saved[note.id] = note.copy()
        return result

    def update(self, note):
        self.updates.append((note.id, note.priority))
        result = self._result(note.id, "Note updated successfully")
        if result.success:
            self.saved[note.id] = note.copy()
        return result

    def delete(self, note_id):
        self.deletes.append(note_id)
        result = self._result(note_id, "Note deleted successfully")
        if result.success:
            self.saved.pop(note_id, None)
        return result


def make_note(note_id, priority=None, done=False, timestamp="2025-07-01T00:00:00.000Z", **extra):
    values = {
        "id": note_id,
        "timestamp": timestamp,
        "title": f"Note {note_id}",
        "priority": priority,
        "done": done,
        "user_id": "user-1",
        "user_email": "ada@example.com",
    }
    values.update(extra)
    return Note(**values)


@pytest.fixture
def owner():
    return Owner()


@pytest.fixture
def sheet():
    return FakeSheet()


@pytest.fixture
def notes_settings(settings):
    settings.GOOGLE_CLIENT_ID = "client-id.apps.googleusercontent.com"
    settings.JWT_SECRET = "s" * 40
    settings.APPS_SCRIPT_URL = STORAGE_URL
    settings.ALLOWED_USERS = []
    settings.NOTES_ENCRYPTION_SECRET = "test-encryption-secret"
    settings.NOTES_KDF_ITERATIONS = 1000
    return settings


@pytest.fixture
def storage(monkeypatch, sheet, notes_settings):
    """Route the views' store client to the in-memory sheet."""
    from notes import services

    monkeypatch.setattr(
        services,
        "NoteStoreClient",
        functools.partial(NoteStoreClient, transport=sheet.transport),
    )
    return sheet
