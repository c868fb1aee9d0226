import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

SENSITIVE_FIELDS = ("title", "description", "comments")
EDITABLE_FIELDS = ("title", "description", "tags", "comments", "system", "due_date")

DEFAULT_TITLE = "New Note"
DEFAULT_DESCRIPTION = "Add your description here."
DEFAULT_TAGS = "new"

# snake_case attribute -> storage column name
WIRE_NAMES = {
    "id": "id",
    "timestamp": "timestamp",
    "title": "title",
    "description": "description",
    "tags": "tags",
    "comments": "comments",
    "system": "system",
    "done": "done",
    "date_done": "dateDone",
    "date_undone": "dateUndone",
    "priority": "priority",
    "user_id": "userId",
    "user_email": "userEmail",
    "created_by": "createdBy",
    "last_modified": "lastModified",
    "is_shared": "isShared",
    "due_date": "dueDate",
    "is_overdue": "isOverdue",
    "overdue_checked_at": "overdueCheckedAt",
}


def iso_now(now=None):
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value):
    """Parse an ISO-8601 timestamp from the store; blank or garbage gives None."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def default_due_date(now=None, tz_name="Asia/Manila"):
    """Midnight at the start of the next calendar day in ``tz_name``."""
    now = now or datetime.now(timezone.utc)
    local = now.astimezone(ZoneInfo(tz_name))
    tomorrow = (local + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return iso_now(tomorrow)


def _to_bool(value):
    return value is True or value == 1 or (isinstance(value, str) and value.strip().lower() == "true")


def _to_priority(value):
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if not isinstance(value, float):
        text = str(value).strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    if not math.isfinite(value):
        return None
    return int(value)


@dataclass(frozen=True)
class EncryptedField:
    encrypted: str
    iv: str
    version: int = 1

    def to_wire(self):
        return {"encrypted": self.encrypted, "iv": self.iv, "version": self.version}

    @classmethod
    def from_wire(cls, data):
        version = data.get("version", 1)
        try:
            version = int(float(version))
        except (TypeError, ValueError):
            version = 1
        return cls(encrypted=str(data["encrypted"]), iv=str(data["iv"]), version=version)


FieldValue = Union[str, EncryptedField, dict]

UNSET = object()


@dataclass
class Note:
    id: str
    timestamp: str = ""
    title: FieldValue = ""
    description: FieldValue = ""
    tags: str = ""
    comments: FieldValue = ""
    system: str = ""
    done: bool = False
    date_done: str = ""
    date_undone: str = ""
    priority: Optional[int] = None
    user_id: str = ""
    user_email: str = ""
    created_by: str = ""
    last_modified: str = ""
    is_shared: bool = False
    due_date: str = ""
    is_overdue: bool = False
    overdue_checked_at: str = ""
    decrypt_errors: tuple = field(default=(), compare=False)
    # Priority as last persisted; reconciliation pushes notes that differ.
    stored_priority: Optional[int] = field(default=UNSET, compare=False, repr=False)

    def __post_init__(self):
        if self.stored_priority is UNSET:
            self.stored_priority = self.priority

    @classmethod
    def new(cls, owner, now=None, due_tz="Asia/Manila"):
        now = now or datetime.now(timezone.utc)
        stamp = iso_now(now)
        return cls(
            id=str(uuid.uuid4()),
            timestamp=stamp,
            title=DEFAULT_TITLE,
            description=DEFAULT_DESCRIPTION,
            tags=DEFAULT_TAGS,
            priority=0,
            user_id=owner.subject,
            user_email=owner.email,
            created_by=owner.subject,
            last_modified=stamp,
            due_date=default_due_date(now, due_tz),
        )

    @classmethod
    def from_wire(cls, data):
        values = {}
        for attr, wire in WIRE_NAMES.items():
            if wire not in data:
                continue
            value = data[wire]
            if attr in ("done", "is_shared", "is_overdue"):
                value = _to_bool(value)
            elif attr == "priority":
                value = _to_priority(value)
            elif attr in SENSITIVE_FIELDS:
                if value is None:
                    value = ""
                elif not isinstance(value, (str, dict, EncryptedField)):
                    value = str(value)
            else:
                value = "" if value is None else str(value)
            values[attr] = value
        values.setdefault("id", "")
        return cls(**values)

    def to_wire(self):
        data = {}
        for attr, wire in WIRE_NAMES.items():
            value = getattr(self, attr)
            if isinstance(value, EncryptedField):
                value = value.to_wire()
            data[wire] = value
        if data["priority"] is None:
            data["priority"] = ""
        return data

    def copy(self, **changes):
        return replace(self, **changes)

    def tag_set(self):
        return {t.strip().lower() for t in (self.tags or "").split(",") if t.strip()}

    def apply_edits(self, edits, now=None):
        """Apply user edits; only the editable fields are ever touched."""
        changed = False
        for attr in EDITABLE_FIELDS:
            if attr in edits and edits[attr] is not None:
                setattr(self, attr, edits[attr])
                if attr in self.decrypt_errors:
                    self.decrypt_errors = tuple(n for n in self.decrypt_errors if n != attr)
                changed = True
        if changed:
            self.touch(now)
        return changed

    def touch(self, now=None):
        self.last_modified = iso_now(now)

    @property
    def priority_dirty(self):
        return not self.done and self.priority != self.stored_priority

    def mark_persisted(self):
        self.stored_priority = self.priority

    def display_title(self):
        return self.title if isinstance(self.title, str) else "[Encrypted]"


def refresh_overdue(notes, now=None, recheck_seconds=3600):
    """
    Recompute the cached "is dueDate in the past" flag on stale notes.

    Returns the notes whose ``is_overdue`` value changed. Only those get a
    new ``overdue_checked_at``, since only they are written back.
    """
    now = now or datetime.now(timezone.utc)
    stamp = iso_now(now)
    changed = []
    for note in notes:
        checked = parse_iso(note.overdue_checked_at)
        if checked is not None and (now - checked).total_seconds() < recheck_seconds:
            continue
        due = parse_iso(note.due_date)
        overdue = bool(due is not None and due < now and not note.done)
        if overdue != note.is_overdue:
            note.is_overdue = overdue
            note.overdue_checked_at = stamp
            changed.append(note)
    return changed
