# dm_config/controllers/orchestrator.py
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from dm_config.controllers.backend_gateway import BackendGateway, GatewayError
from dm_config.controllers.section_controller import SectionController, Snapshot
from dm_config.controllers.session_store import SessionStore
from dm_config.models.results import (
    RebootOutcome,
    RebootResult,
    SaveGate,
    SaveReport,
    SaveResult,
    SaveState,
)
from dm_config.models.sections import SECTION_ORDER, SectionId, section_info, section_label

log = logging.getLogger(__name__)

StateListener = Callable[[SaveState], None]
BlockedListener = Callable[[List[SectionId]], None]


class SaveOrchestrator:
    """
    Gatekeeper and runner for the save-and-reboot workflow.

        IDLE -> CONFIRMING -> SAVING -> {SUCCEEDED, PARTIALLY_FAILED, FAILED} -> IDLE

    - Dirty flags come from the SessionStore, validity flags from the section controllers
    - request_save() only opens the confirmation step; nothing touches the network
    - confirm_save() saves every dirty section, keeps going past failures, then reboots once
    - While SAVING, request_save()/confirm_save() are ignored; the state is the lock

    All methods run on the session's event loop.
    """

    def __init__(self, store: SessionStore, gateway: BackendGateway) -> None:
        self._store = store
        self._gateway = gateway
        self._controllers: Dict[SectionId, SectionController] = {}
        self._valid: Dict[SectionId, bool] = {}
        self._dirty: Dict[SectionId, bool] = dict(store.dirty_flags())
        self._state = SaveState.IDLE
        self._last_report: Optional[SaveReport] = None
        self._state_listeners: List[StateListener] = []
        self._blocked_listeners: List[BlockedListener] = []
        store.subscribe(self._on_dirty)

    # ---------------- Wiring ----------------

    def attach(self, controller: SectionController) -> None:
        self._controllers[controller.section] = controller

    def attach_all(self, controllers: Dict[SectionId, SectionController]) -> None:
        for c in controllers.values():
            self.attach(c)

    def set_valid(self, section: SectionId, valid: bool) -> None:
        self._valid[SectionId(section)] = bool(valid)

    def subscribe(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    def on_blocked(self, listener: BlockedListener) -> None:
        self._blocked_listeners.append(listener)

    def _on_dirty(self, section: SectionId, dirty: bool) -> None:
        self._dirty[section] = dirty

    # ---------------- Flags ----------------

    @property
    def state(self) -> SaveState:
        return self._state

    @property
    def last_report(self) -> Optional[SaveReport]:
        return self._last_report

    def is_valid(self, section: SectionId) -> bool:
        # fail-open: a section nobody has validated yet counts as valid
        return self._valid.get(SectionId(section), True)

    def is_dirty(self, section: SectionId) -> bool:
        return self._dirty.get(SectionId(section), False)

    def dirty_sections(self) -> List[SectionId]:
        return [s for s in SECTION_ORDER if self.is_dirty(s)]

    def save_gate(self) -> SaveGate:
        dirty = self.dirty_sections()
        invalid = [s for s in dirty if not self.is_valid(s)]
        if self._state == SaveState.SAVING:
            return SaveGate(False, dirty, invalid, "A save is already in progress.")
        if not dirty:
            return SaveGate(False, dirty, invalid, "No changes to save.")
        if invalid:
            names = ", ".join(section_label(s) for s in invalid)
            return SaveGate(False, dirty, invalid, f"Fix validation errors in: {names}")
        return SaveGate(True, dirty, invalid, "")

    def can_save(self) -> bool:
        return self.save_gate().allowed

    def pending_sections(self) -> List[SectionId]:
        """Sections the confirmation step lists, in save order."""
        return self.dirty_sections()

    # ---------------- Transitions ----------------

    def request_save(self) -> SaveGate:
        if self._state in (SaveState.SAVING, SaveState.CONFIRMING):
            log.debug("[save] request ignored in state %s", self._state.value)
            return self.save_gate()

        gate = self.save_gate()
        if not gate.allowed:
            log.info("[save] refused: %s", gate.reason)
            if gate.invalid_sections:
                self._emit_blocked(gate.invalid_sections)
            return gate

        self._set_state(SaveState.CONFIRMING)
        return gate

    def cancel(self) -> bool:
        """Drop the pending save attempt. Edits stay where they are."""
        if self._state != SaveState.CONFIRMING:
            return False
        self._set_state(SaveState.IDLE)
        log.info("[save] cancelled by operator")
        return True

    def acknowledge(self) -> None:
        """Operator dismissed the result; back to IDLE."""
        if self._state.is_terminal:
            self._set_state(SaveState.IDLE)

    async def confirm_save(self) -> Optional[SaveReport]:
        if self._state != SaveState.CONFIRMING:
            log.debug("[save] confirm ignored in state %s", self._state.value)
            return None

        # Edits may have landed while the dialog was open
        gate = self.save_gate()
        if not gate.allowed:
            log.info("[save] refused at confirm: %s", gate.reason)
            self._set_state(SaveState.IDLE)
            if gate.invalid_sections:
                self._emit_blocked(gate.invalid_sections)
            return None

        # Snapshot the whole batch before the first await
        batch: List[tuple] = []
        unshaped: Dict[SectionId, str] = {}
        for section in gate.dirty_sections:
            controller = self._controllers.get(section)
            if controller is None:
                log.error("[save] no controller attached for %s", section)
                continue
            try:
                batch.append((section, controller.capture()))
            except Exception:
                log.exception("[save] %s could not be prepared", section)
                unshaped[section] = f"Could not prepare {section_label(section)} for saving; check its fields."
                batch.append((section, None))

        self._set_state(SaveState.SAVING)
        log.info("[save] saving %s", ", ".join(section_label(s) for s, _ in batch))

        results: List[SaveResult] = []
        for section, snap in batch:
            if snap is None:
                results.append(SaveResult(section, False, unshaped[section]))
                continue
            results.append(await self._save_one(section, snap))

        succeeded = [r.section for r in results if r.success]
        if results and len(succeeded) == len(results):
            final = SaveState.SUCCEEDED
        elif succeeded:
            final = SaveState.PARTIALLY_FAILED
        else:
            final = SaveState.FAILED

        reboot = await self._reboot_after(succeeded)
        report = SaveReport(state=final, results=results, reboot=reboot)
        self._last_report = report
        self._set_state(final)
        log.info("[save] %s; reboot=%s", final.value, reboot.outcome.value)
        return report

    # ---------------- Internals ----------------

    async def _save_one(self, section: SectionId, snap: Snapshot) -> SaveResult:
        try:
            resp = await self._gateway.save_section(section, snap.payload)
        except GatewayError as e:
            log.warning("[save] %s failed: %s", section, e.message)
            return SaveResult(section, False, e.message, snap.payload)
        except Exception as e:
            log.exception("[save] %s failed unexpectedly", section)
            return SaveResult(section, False, f"Unexpected error: {e}", snap.payload)

        # Baseline becomes what the operator had when the snapshot was cut
        self._store.mark_saved(section, snap.fields)
        return SaveResult(section, True, resp.message, snap.payload)

    async def _reboot_after(self, succeeded: List[SectionId]) -> RebootResult:
        if not succeeded:
            return RebootResult(RebootOutcome.NOT_REQUIRED, "Nothing was saved; no reboot.")
        if any(section_info(s).implies_reboot for s in succeeded):
            # The network save already restarts the device; the other sections ride along
            return RebootResult(RebootOutcome.DEVICE_INITIATED, "Device reboot started by the network change.")

        try:
            resp = await self._gateway.reboot()
        except GatewayError as e:
            log.error("[save] reboot request failed: %s", e.message)
            return RebootResult(RebootOutcome.FAILED, e.message)
        except Exception as e:
            log.exception("[save] reboot request failed unexpectedly")
            return RebootResult(RebootOutcome.FAILED, f"Unexpected error: {e}")
        return RebootResult(RebootOutcome.REQUESTED, resp.message or "Reboot initiated")

    def _set_state(self, state: SaveState) -> None:
        if state == self._state:
            return
        log.debug("[save] %s -> %s", self._state.value, state.value)
        self._state = state
        for listener in list(self._state_listeners):
            try:
                listener(state)
            except Exception:
                log.exception("[save] state listener failed")

    def _emit_blocked(self, invalid: List[SectionId]) -> None:
        for listener in list(self._blocked_listeners):
            try:
                listener(list(invalid))
            except Exception:
                log.exception("[save] blocked listener failed")
