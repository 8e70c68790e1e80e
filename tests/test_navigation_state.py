"""NavigationState tests."""

import pytest

from domains.client_hub.core.state import LockState, NavigationState, View
from domains.notebook_hub.core.views import FAVORITES_KEY, LOCKED_KEY, ViewKey


def test_initial_state():
    state = NavigationState()
    assert state.current_section == "regular"
    assert state.current_view == View.NOTEBOOKS
    assert state.lock_state == LockState.UNKNOWN
    assert state.current_key() == ViewKey("regular")


@pytest.mark.parametrize("section,view,key", [
    ("regular", View.NOTEBOOKS, ViewKey("regular")),
    ("checklist", View.NOTEBOOKS, ViewKey("checklist")),
    ("favorites", View.NOTES, FAVORITES_KEY),
])
def test_enter_section(section, view, key):
    state = NavigationState()
    state.enter_section(section)
    assert state.current_view == view
    assert state.current_key() == key


def test_enter_invalid_section():
    with pytest.raises(ValueError):
        NavigationState().enter_section("archive")


def test_open_notebook_and_back():
    state = NavigationState()
    state.open_notebook({"_id": "nb1", "name": "Groceries"})
    assert state.current_view == View.NOTES
    assert state.current_notebook_id == "nb1"
    assert state.current_key() == ViewKey("regular", "nb1")

    state.back()
    assert state.current_notebook is None
    assert state.current_key() == ViewKey("regular")


def test_checklist_notebook_uses_checklist_view():
    state = NavigationState()
    state.enter_section("checklist")
    state.open_notebook({"_id": "nb2"})
    assert state.current_view == View.CHECKLIST
    assert state.current_key() == ViewKey("checklist", "nb2")


def test_switching_section_closes_notebook():
    state = NavigationState()
    state.open_notebook({"_id": "nb1"})
    state.enter_section("checklist")
    assert state.current_notebook is None
    assert state.current_key() == ViewKey("checklist")


class TestLockedSection:
    def test_no_visible_view_until_unlocked(self):
        state = NavigationState()
        state.enter_section("locked")
        assert state.current_key() is None

        state.lock_state = LockState.UNLOCKED
        assert state.current_key() == LOCKED_KEY

    def test_leaving_relocks(self):
        state = NavigationState()
        state.enter_section("locked")
        state.lock_state = LockState.UNLOCKED

        state.enter_section("regular")

        assert state.lock_state == LockState.LOCKED
        state.enter_section("locked")
        assert state.current_key() is None

    def test_leaving_before_setup_keeps_state(self):
        state = NavigationState()
        state.enter_section("locked")
        state.lock_state = LockState.NEEDS_SETUP
        state.enter_section("favorites")
        assert state.lock_state == LockState.NEEDS_SETUP

    def test_reentering_locked_keeps_unlock(self):
        state = NavigationState()
        state.enter_section("locked")
        state.lock_state = LockState.UNLOCKED
        state.enter_section("locked")
        assert state.is_unlocked

    def test_reset(self):
        state = NavigationState()
        state.enter_section("locked")
        state.lock_state = LockState.UNLOCKED
        state.reset()
        assert state == NavigationState()
