"""Tests for the per-session edit store."""

import pytest

from dm_config.controllers.session_store import SessionStore
from dm_config.models.sections import SectionId

DM = SectionId.DEVICE_MANAGER


def test_unloaded_section_is_clean_and_empty():
    store = SessionStore()
    st = store.get(DM)
    assert st.current == {} and st.baseline is None
    assert not store.is_dirty(DM)
    assert not store.is_loaded(DM)


def test_edit_without_baseline_is_never_dirty():
    store = SessionStore()
    store.put(DM, {"key": "DM-2"})
    assert store.get(DM).baseline is None
    assert not store.is_dirty(DM)


def test_dirty_tracks_current_against_baseline():
    store = SessionStore()
    store.put(DM, {"key": "DM-1"}, baseline={"key": "DM-1"})
    assert not store.is_dirty(DM)
    store.put(DM, {"key": "DM-2"})
    assert store.is_dirty(DM)
    store.put(DM, {"key": "DM-1"})
    assert not store.is_dirty(DM)
    assert store.get(DM).baseline == {"key": "DM-1"}


def test_put_is_idempotent():
    store = SessionStore()
    store.put(DM, {"key": "DM-1"}, baseline={"key": "DM-1"})
    store.put(DM, {"key": "DM-3"})
    first = (store.get(DM), store.is_dirty(DM))
    store.put(DM, {"key": "DM-3"})
    assert (store.get(DM), store.is_dirty(DM)) == first


def test_mark_saved_clears_dirty():
    store = SessionStore()
    store.put(DM, {"key": "DM-1"}, baseline={"key": "DM-1"})
    store.put(DM, {"key": "DM-2"})
    store.mark_saved(DM, {"key": "DM-2"})
    assert store.get(DM).baseline == {"key": "DM-2"}
    assert not store.is_dirty(DM)


def test_edit_during_save_stays_dirty():
    store = SessionStore()
    store.put(DM, {"key": "DM-1"}, baseline={"key": "DM-1"})
    store.put(DM, {"key": "DM-2"})
    # operator keeps typing while DM-2 is in flight
    store.put(DM, {"key": "DM-3"})
    store.mark_saved(DM, {"key": "DM-2"})
    assert store.is_dirty(DM)
    assert store.get(DM).current == {"key": "DM-3"}


def test_returned_maps_are_copies():
    store = SessionStore()
    values = {"key": "DM-1"}
    store.put(DM, values, baseline=values)
    values["key"] = "changed"
    store.get(DM).current["key"] = "changed"
    assert store.get(DM).current == {"key": "DM-1"}
    assert not store.is_dirty(DM)


def test_listeners_get_every_write():
    store = SessionStore()
    seen = []
    store.subscribe(lambda s, d: seen.append((s, d)))
    store.put(DM, {"key": "DM-1"}, baseline={"key": "DM-1"})
    store.put(DM, {"key": "DM-2"})
    store.put(DM, {"key": "DM-2"})
    assert seen == [(DM, False), (DM, True), (DM, True)]


def test_dirty_sections_follow_save_order():
    store = SessionStore()
    for s in (SectionId.NETWORK, SectionId.BROKER, DM):
        store.put(s, {"a": 1}, baseline={"a": 1})
        store.put(s, {"a": 2})
    assert store.dirty_sections() == [DM, SectionId.BROKER, SectionId.NETWORK]


def test_close_discards_everything():
    store = SessionStore()
    store.put(DM, {"key": "DM-1"}, baseline={"key": "DM-1"})
    store.put(DM, {"key": "DM-2"})
    store.close()
    assert store.closed
    assert store.dirty_sections() == []
    assert store.get(DM).baseline is None
    with pytest.raises(RuntimeError):
        store.put(DM, {"key": "DM-3"})
