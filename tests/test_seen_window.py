from __future__ import annotations

from chat_trigger.engine.dedup import SeenWindow

from conftest import msg


def test_admit_filters_previously_seen() -> None:
    window = SeenWindow()
    first = window.admit([msg("alice", "hi"), msg("bob", "yo")])
    assert [m.username for m in first] == ["alice", "bob"]

    second = window.admit([msg("alice", "hi"), msg("carol", "hey")])
    assert [m.username for m in second] == ["carol"]
    assert "alice:hi" in window


def test_identity_is_username_and_text() -> None:
    window = SeenWindow()
    window.admit([msg("alice", "hi")])
    # Same text from another user is a different message.
    assert [m.username for m in window.admit([msg("bob", "hi")])] == ["bob"]


def test_duplicates_within_one_sample_collapse() -> None:
    window = SeenWindow()
    fresh = window.admit([msg("a", "x"), msg("a", "x"), msg("b", "y")])
    assert [m.identity for m in fresh] == ["a:x", "b:y"]
    assert len(window) == 2


def test_window_trims_to_retained_tail_before_additions() -> None:
    window = SeenWindow(retain=50)
    window.admit([msg("u", str(i)) for i in range(80)])
    assert len(window) == 80

    window.admit([msg("v", str(i)) for i in range(10)])
    assert len(window) == 60
    assert window.identities()[:2] == ["u:30", "u:31"]


def test_window_size_bounded_over_many_ticks() -> None:
    window = SeenWindow(retain=50)
    for tick in range(25):
        fresh = window.admit([msg("u", f"{tick}-{i}") for i in range(30)])
        assert len(window) <= 50 + len(fresh)


def test_oldest_identity_is_evicted_first() -> None:
    window = SeenWindow(retain=2)
    window.admit([msg("a", "1"), msg("b", "2"), msg("c", "3")])
    window.admit([msg("d", "4")])
    assert window.identities() == ["b:2", "c:3", "d:4"]
    # "a" fell out of the window and reads as new again.
    assert [m.identity for m in window.admit([msg("a", "1")])] == ["a:1"]


def test_clear() -> None:
    window = SeenWindow()
    window.admit([msg("a", "1")])
    window.clear()
    assert len(window) == 0
    assert "a:1" not in window
