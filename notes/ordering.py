"""
Ordering of a user's notes and reconciliation of stored priorities.

Active notes form a total order by ``priority`` (lower first). Completed
notes are ordered by completion time, newest first, and their priority is
left exactly as it was when they were completed.
"""
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from core.exceptions import MoveRejected, NotFound
from .models import iso_now, parse_iso

logger = logging.getLogger(__name__)

PRIORITY_STEP = 1000
UP = -1
DOWN = 1

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MAX_PUSH_WORKERS = 8


def sort_key(note):
    if not note.done:
        priority = math.inf if note.priority is None else note.priority
        created = parse_iso(note.timestamp) or _EPOCH
        return (0, priority, created.timestamp())
    finished = parse_iso(note.date_done) or _EPOCH
    return (1, -finished.timestamp(), 0)


def canonical_order(notes):
    return sorted(notes, key=sort_key)


def reassign_priorities(notes):
    """
    Sort ``notes`` in place and renumber the active ones as 0, STEP, 2*STEP...

    Returns the active notes whose new priority differs from the one last
    persisted; only those need to be pushed to storage.
    """
    notes.sort(key=sort_key)
    position = 0
    for note in notes:
        if note.done:
            continue
        note.priority = position * PRIORITY_STEP
        position += 1
    return [note for note in notes if note.priority_dirty]


def find_index(notes, note_id):
    for index, note in enumerate(notes):
        if note.id == note_id:
            return index
    raise NotFound(f"Note {note_id} not found.")


def _front_priority(notes, note):
    priorities = [n.priority for n in notes if not n.done and n is not note and n.priority is not None]
    return min([0] + priorities) - 1


def insert_front(notes, note):
    """Put ``note`` ahead of every active note so reassignment gives it 0."""
    note.priority = _front_priority(notes, note)
    notes.insert(0, note)
    return note


def mark_done(note, now=None):
    stamp = iso_now(now)
    note.done = True
    note.date_done = stamp
    note.date_undone = ""
    note.last_modified = stamp
    return note


def mark_active(notes, note, now=None):
    stamp = iso_now(now)
    note.done = False
    note.date_undone = stamp
    note.date_done = ""
    note.last_modified = stamp
    notes.remove(note)
    insert_front(notes, note)
    return note


def move(notes, note_id, direction):
    """
    Swap an active note with its neighbour in the active subsequence.

    Completed notes raise ``MoveRejected``. Moving the first note up or the
    last note down is a no-op and returns False.
    """
    if direction not in (UP, DOWN):
        raise ValueError(f"direction must be {UP} or {DOWN}")
    note = notes[find_index(notes, note_id)]
    if note.done:
        raise MoveRejected()

    active = [n for n in canonical_order(notes) if not n.done]
    position = next(i for i, n in enumerate(active) if n is note)
    target = position + direction
    if target < 0 or target >= len(active):
        return False

    active[position], active[target] = active[target], active[position]
    for index, item in enumerate(active):
        item.priority = index * PRIORITY_STEP
    notes.sort(key=sort_key)
    return True


def remove(notes, note_id):
    return notes.pop(find_index(notes, note_id))


def push_concurrently(push, notes):
    """
    Call ``push(note)`` for every note on a thread pool.

    Each push stands alone; the returned list holds one ``(note, result)``
    pair per note, in input order, failures included.
    """
    if not notes:
        return []
    workers = min(_MAX_PUSH_WORKERS, len(notes))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(push, notes))
    failures = [note.id for note, result in zip(notes, results) if not result.success]
    if failures:
        logger.warning("Priority update failed for %d of %d notes: %s", len(failures), len(notes), failures)
    return list(zip(notes, results))
