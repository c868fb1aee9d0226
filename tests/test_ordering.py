import pytest

from core.exceptions import MoveRejected, NotFound
from notes import ordering
from notes.store import StoreResult
from tests.conftest import NOW, make_note


def ids(notes):
    return [n.id for n in notes]


def test_canonical_order_active_then_done():
    notes = [
        make_note("done-old", done=True, date_done="2025-07-01T00:00:00Z"),
        make_note("b", priority=1000),
        make_note("done-new", done=True, date_done="2025-07-20T00:00:00Z"),
        make_note("a", priority=0),
        make_note("done-undated", done=True),
        make_note("unprioritised"),
    ]

    assert ids(ordering.canonical_order(notes)) == [
        "a", "b", "unprioritised", "done-new", "done-old", "done-undated",
    ]


def test_priority_ties_break_by_creation_time():
    notes = [
        make_note("younger", priority=5, timestamp="2025-07-02T00:00:00Z"),
        make_note("older", priority=5, timestamp="2025-07-01T00:00:00Z"),
    ]

    assert ids(ordering.canonical_order(notes)) == ["older", "younger"]


def test_reassign_steps_priorities_and_reports_only_changes():
    notes = [
        make_note("a", priority=0),
        make_note("b", priority=7),
        make_note("c", priority=2000),
        make_note("d", priority=None),
        make_note("x", priority=42, done=True, date_done="2025-07-01T00:00:00Z"),
    ]

    changed = ordering.reassign_priorities(notes)

    assert ids(notes) == ["a", "b", "c", "d", "x"]
    assert [n.priority for n in notes] == [0, 1000, 2000, 3000, 42]
    assert ids(changed) == ["b", "d"]


@pytest.mark.parametrize("count", [1, 2, 5, 12])
def test_active_priorities_are_unique_and_stepped(count):
    notes = [make_note(f"n{i}", priority=(count - i) * 3) for i in range(count)]

    ordering.reassign_priorities(notes)

    priorities = [n.priority for n in notes if not n.done]
    assert priorities == [i * ordering.PRIORITY_STEP for i in range(count)]
    assert len(set(priorities)) == count


def test_delete_closes_the_gap():
    notes = [make_note(f"n{i}", priority=i * 1000) for i in range(5)]

    ordering.remove(notes, "n2")
    ordering.reassign_priorities(notes)

    assert [n.priority for n in notes] == [0, 1000, 2000, 3000]
    assert ids(notes) == ["n0", "n1", "n3", "n4"]


def test_move_up_swaps_with_previous_active_note():
    notes = [make_note("A", priority=0), make_note("B", priority=1000), make_note("C", priority=2000)]

    assert ordering.move(notes, "C", ordering.UP) is True
    changed = ordering.reassign_priorities(notes)

    assert ids(notes) == ["A", "C", "B"]
    assert [n.priority for n in notes] == [0, 1000, 2000]
    assert sorted(ids(changed)) == ["B", "C"]


def test_move_skips_over_done_notes():
    notes = [
        make_note("A", priority=0),
        make_note("gone", priority=500, done=True, date_done="2025-07-01T00:00:00Z"),
        make_note("B", priority=1000),
    ]

    assert ordering.move(notes, "A", ordering.DOWN) is True
    assert ids(n for n in notes if not n.done) == ["B", "A"]
    assert notes[-1].priority == 500


def test_move_out_of_bounds_is_noop():
    notes = [make_note("A", priority=0), make_note("B", priority=1000)]

    assert ordering.move(notes, "A", ordering.UP) is False
    assert ordering.move(notes, "B", ordering.DOWN) is False
    assert ordering.reassign_priorities(notes) == []


def test_move_rejects_done_notes_and_unknown_ids():
    notes = [make_note("A", priority=0), make_note("D", done=True)]

    with pytest.raises(MoveRejected):
        ordering.move(notes, "D", ordering.UP)
    with pytest.raises(NotFound):
        ordering.move(notes, "missing", ordering.UP)


def test_undone_note_goes_to_front():
    notes = [
        make_note("A", priority=0),
        make_note("B", priority=1000),
        make_note("D", priority=3000, done=True, date_done="2025-07-01T00:00:00Z"),
    ]
    done = notes[2]

    ordering.mark_active(notes, done, NOW)
    changed = ordering.reassign_priorities(notes)

    assert ids(notes) == ["D", "A", "B"]
    assert [n.priority for n in notes] == [0, 1000, 2000]
    assert set(ids(changed)) == {"D", "A", "B"}
    assert done.date_undone == "2025-07-29T15:00:00.000Z"
    assert done.date_done == ""


def test_done_then_undone_restores_front_position():
    notes = [make_note("A", priority=0), make_note("B", priority=1000), make_note("C", priority=2000)]
    target = notes[2]

    ordering.mark_done(target, NOW)
    assert target.date_done and target.date_undone == ""
    assert target.priority == 2000

    ordering.mark_active(notes, target, NOW)
    ordering.reassign_priorities(notes)

    assert target.priority == 0
    assert ids(notes)[0] == "C"


def test_push_concurrently_reports_every_result():
    notes = [make_note("ok1"), make_note("bad"), make_note("ok2")]

    def push(note):
        if note.id == "bad":
            return StoreResult.failed("nope")
        return StoreResult(success=True)

    pairs = ordering.push_concurrently(push, notes)

    assert [(n.id, r.success) for n, r in pairs] == [("ok1", True), ("bad", False), ("ok2", True)]
    assert ordering.push_concurrently(push, []) == []
