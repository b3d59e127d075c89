# dm_config/controllers/session_store.py
from __future__ import annotations

import copy
import logging
from typing import Callable, Dict, List

from dm_config.models.results import SectionState
from dm_config.models.sections import FieldMap, SECTION_ORDER, SectionId

log = logging.getLogger(__name__)

DirtyListener = Callable[[SectionId, bool], None]

_KEEP = object()


class SessionStore:
    """
    Per-session edit state, keyed by section.

    - Holds {current, baseline} for every section the operator has opened
    - Survives panel rebuilds: panels and controllers read/write through here
    - Computes each section's dirty flag inside the same call that mutates it,
      then notifies listeners, so a listener never sees a stale flag
    - put() and mark_saved() are the only mutators; maps are copied in and out

    Created at session start and dropped with close() at session end; nothing is written to disk.
    """

    def __init__(self) -> None:
        self._states: Dict[SectionId, SectionState] = {}
        self._dirty: Dict[SectionId, bool] = {}
        self._listeners: List[DirtyListener] = []
        self._closed = False

    # ---------------- Read ----------------

    def get(self, section: SectionId) -> SectionState:
        """Stored state, or {current: {}, baseline: None} for a section never loaded."""
        st = self._states.get(SectionId(section))
        if st is None:
            return SectionState()
        return SectionState(
            current=copy.deepcopy(st.current),
            baseline=copy.deepcopy(st.baseline) if st.baseline is not None else None,
        )

    def is_loaded(self, section: SectionId) -> bool:
        st = self._states.get(SectionId(section))
        return st is not None and st.baseline is not None

    def is_dirty(self, section: SectionId) -> bool:
        return self._dirty.get(SectionId(section), False)

    def dirty_flags(self) -> Dict[SectionId, bool]:
        return {s: self._dirty.get(s, False) for s in SECTION_ORDER}

    def dirty_sections(self) -> List[SectionId]:
        return [s for s in SECTION_ORDER if self._dirty.get(s, False)]

    # ---------------- Write ----------------

    def put(self, section: SectionId, current: FieldMap, baseline=_KEEP) -> None:
        """
        Replace `current`. `baseline` is replaced only when passed explicitly;
        in-progress edits omit it so the loaded baseline survives.
        """
        section = SectionId(section)
        self._ensure_open()
        st = self._states.get(section) or SectionState()
        new_baseline = st.baseline if baseline is _KEEP else (
            copy.deepcopy(baseline) if baseline is not None else None
        )
        self._states[section] = SectionState(current=copy.deepcopy(dict(current)), baseline=new_baseline)
        self._recompute(section)

    def mark_saved(self, section: SectionId, saved_values: FieldMap) -> None:
        """
        Adopt what was just persisted as the new baseline. The section stays dirty if
        the operator kept editing while the save was in flight.
        """
        section = SectionId(section)
        self._ensure_open()
        st = self._states.get(section) or SectionState()
        self._states[section] = SectionState(
            current=st.current,
            baseline=copy.deepcopy(dict(saved_values)),
        )
        self._recompute(section)
        log.debug("[store] %s marked saved; dirty=%s", section, self._dirty[section])

    # ---------------- Listeners ----------------

    def subscribe(self, listener: DirtyListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: DirtyListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    # ---------------- Lifecycle ----------------

    def close(self) -> None:
        """End of session: forget every section."""
        self._states.clear()
        self._dirty.clear()
        self._listeners.clear()
        self._closed = True
        log.info("[store] session state discarded")

    @property
    def closed(self) -> bool:
        return self._closed

    # ---------------- Internals ----------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("session store is closed")

    def _recompute(self, section: SectionId) -> None:
        st = self._states[section]
        dirty = st.baseline is not None and st.current != st.baseline
        changed = self._dirty.get(section, False) != dirty
        self._dirty[section] = dirty
        if changed:
            log.debug("[store] %s dirty=%s", section, dirty)
        # republished on every write, changed or not
        for listener in list(self._listeners):
            listener(section, dirty)
