"""Tests for the expansion set."""

from unittest.mock import MagicMock

from callmap.core.expansion import ExpansionState


def test_nothing_expanded_by_default():
    state = ExpansionState()
    assert len(state) == 0
    assert not state.is_expanded("main.main@main.go")


def test_toggle_flips_membership():
    state = ExpansionState()
    assert state.toggle("a@a.go") is True
    assert "a@a.go" in state
    assert state.toggle("a@a.go") is False
    assert "a@a.go" not in state


def test_collapse_all_empties_and_resets_viewport():
    on_collapse = MagicMock()
    state = ExpansionState(on_collapse_all=on_collapse)
    state.expand(["a@a.go", "b@b.go"])

    state.collapse_all()

    assert len(state) == 0
    on_collapse.assert_called_once()


def test_reset_does_not_touch_viewport():
    on_collapse = MagicMock()
    state = ExpansionState(on_collapse_all=on_collapse)
    state.expand(["a@a.go"])

    state.reset()

    assert len(state) == 0
    on_collapse.assert_not_called()


def test_snapshot_is_immutable_copy():
    state = ExpansionState()
    state.toggle("a@a.go")
    snap = state.snapshot()
    state.toggle("a@a.go")
    assert snap == frozenset({"a@a.go"})
