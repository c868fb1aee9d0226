import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from core.exceptions import StorageFailure
from . import ordering
from .models import Note, refresh_overdue

logger = logging.getLogger(__name__)


def parse_tag_query(query):
    return [t.strip().lower() for t in (query or "").split(",") if t.strip()]


def matches_tags(note, tags):
    if not tags:
        return True
    return bool(note.tag_set().intersection(tags))


@dataclass(frozen=True)
class BoardSnapshot:
    active: tuple
    done: tuple
    query: str
    systems: tuple
    total: int
    status: str


@dataclass(frozen=True)
class BoardResult:
    snapshot: BoardSnapshot
    pushes: tuple = ()

    @property
    def failures(self):
        return tuple((note_id, result) for note_id, result in self.pushes if not result.success)


def _raise_for(result):
    error = result.error or StorageFailure
    raise error(result.message or None)


class NoteBoard:
    """
    Working copy of one user's notes.

    Mutations change local state first, push the touched note to storage,
    then reconcile priorities and push whatever moved. A failed priority push
    is reported in the result, never raised; local state stays authoritative
    until the next load.
    """

    def __init__(self, store, owner, due_tz="Asia/Manila", overdue_recheck_seconds=3600, clock=None):
        self.store = store
        self.owner = owner
        self.due_tz = due_tz
        self.overdue_recheck_seconds = overdue_recheck_seconds
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.notes = []
        self.query = ""
        self.status = ""

    def get(self, note_id):
        return self.notes[ordering.find_index(self.notes, note_id)]

    def _push_all(self, notes):
        now = self.clock()
        for note in notes:
            note.touch(now)
        pairs = ordering.push_concurrently(self.store.update, notes)
        for note, result in pairs:
            if result.success:
                note.mark_persisted()
        return tuple((note.id, result) for note, result in pairs)

    def _push_one(self, note):
        result = self.store.update(note)
        if not result.success:
            _raise_for(result)
        note.mark_persisted()
        return (note.id, result)

    def _reconcile(self, exclude=()):
        changed = [
            n for n in ordering.reassign_priorities(self.notes)
            if not any(n is skip for skip in exclude)
        ]
        return self._push_all(changed)

    def _result(self, status, pushes=()):
        self.status = status
        return BoardResult(snapshot=self.snapshot(), pushes=tuple(pushes))

    def load(self):
        notes = self.store.list_notes()
        flipped = refresh_overdue(notes, self.clock(), self.overdue_recheck_seconds)
        self.notes = ordering.canonical_order(notes)
        pushes = self._push_all(flipped) if flipped else ()
        logger.info("Loaded %d notes for %s", len(self.notes), self.owner.email)
        return self._result(f"Loaded {len(self.notes)} notes.", pushes)

    def add(self, edits=None):
        note = Note.new(self.owner, self.clock(), self.due_tz)
        if edits:
            note.apply_edits(edits, self.clock())
        ordering.insert_front(self.notes, note)
        ordering.reassign_priorities(self.notes)
        result = self.store.add(note)
        if not result.success:
            self.notes.remove(note)
            for other in self.notes:
                other.priority = other.stored_priority
            self.notes.sort(key=ordering.sort_key)
            _raise_for(result)
        note.mark_persisted()
        pushes = [(note.id, result)]
        pushes.extend(self._reconcile(exclude=(note,)))
        return self._result("Added a new note and updated order.", pushes)

    def update(self, note_id, edits):
        note = self.get(note_id)
        if not note.apply_edits(edits, self.clock()):
            return self._result("Nothing to update.")
        pushes = [self._push_one(note)]
        return self._result("Note updated.", pushes)

    def delete(self, note_id):
        note = self.get(note_id)
        result = self.store.delete(note.id)
        if not result.success:
            _raise_for(result)
        ordering.remove(self.notes, note.id)
        pushes = [(note.id, result)]
        pushes.extend(self._reconcile())
        return self._result(f'Note "{note.display_title()}" deleted.', pushes)

    def toggle(self, note_id):
        note = self.get(note_id)
        now = self.clock()
        if note.done:
            ordering.mark_active(self.notes, note, now)
            changed = ordering.reassign_priorities(self.notes)
            pushes = [self._push_one(note)]
            pushes.extend(self._push_all([n for n in changed if n is not note]))
            status = f'Note "{note.display_title()}" marked as active and moved to top.'
        else:
            ordering.mark_done(note, now)
            note.is_overdue = False
            pushes = [self._push_one(note)]
            self.notes.sort(key=ordering.sort_key)
            status = f'Note "{note.display_title()}" marked as done.'
        return self._result(status, pushes)

    def move(self, note_id, direction):
        if not ordering.move(self.notes, note_id, direction):
            return self._result("Note is already at the edge of the list.")
        pushes = self._reconcile()
        return self._result("Note order saved.", pushes)

    def search(self, query):
        self.query = (query or "").strip()
        return self.snapshot()

    def clear_search(self):
        self.query = ""
        return self.snapshot()

    def systems(self):
        return tuple(sorted({n.system.strip() for n in self.notes if n.system and n.system.strip()}))

    def snapshot(self):
        tags = parse_tag_query(self.query)
        visible = [n for n in ordering.canonical_order(self.notes) if matches_tags(n, tags)]
        return BoardSnapshot(
            active=tuple(n.copy() for n in visible if not n.done),
            done=tuple(n.copy() for n in visible if n.done),
            query=self.query,
            systems=self.systems(),
            total=len(self.notes),
            status=self.status,
        )
