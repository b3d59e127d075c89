# dm_config/app.py
from __future__ import annotations
import argparse
import logging
import queue
from typing import Dict, Optional

import customtkinter as ctk

from dm_config.controllers.app_state import AppState
from dm_config.controllers.console_session import ConsoleSession
from dm_config.models.results import RebootOutcome, RebootResult, SaveReport, SaveState
from dm_config.models.sections import SECTION_ORDER, SectionId, section_label
from dm_config.ui.confirm_dialog import ConfirmationDialog, NoticeDialog
from dm_config.ui.logging_utils import install_queue_logging
from dm_config.ui.panels.base_panel import SectionPanel
from dm_config.ui.panels.broker_panel import BrokerPanel
from dm_config.ui.panels.device_manager_panel import DeviceManagerPanel
from dm_config.ui.panels.network_panel import NetworkPanel
from dm_config.ui.panels.peripheral_panel import PeripheralPanel

log = logging.getLogger(__name__)

PANEL_CLASSES = {
    SectionId.DEVICE_MANAGER: DeviceManagerPanel,
    SectionId.BROKER: BrokerPanel,
    SectionId.NETWORK: NetworkPanel,
}

RESULT_TITLES = {
    SaveState.SUCCEEDED: "Configuration saved",
    SaveState.PARTIALLY_FAILED: "Some sections were not saved",
    SaveState.FAILED: "Save failed",
}


class App(ctk.CTk):
    def __init__(self, session: Optional[ConsoleSession] = None, backend_url: Optional[str] = None):
        super().__init__()
        # Window
        self.title("DM Configurator")
        self.geometry("1100x760")

        # Logging -> UI queue
        self.log_q: "queue.Queue[str]" = queue.Queue()
        install_queue_logging(self.log_q, logging.INFO)

        # Session: store, gateway, orchestrator and controllers on their own loop
        self.session = (session or ConsoleSession(backend_url)).start()
        orch = self.session.orchestrator
        # Listeners fire on the loop thread; Tk is only touched from _poll_ui
        self._ui_q: "queue.Queue[tuple]" = queue.Queue()
        self.session.call(self.session.store.subscribe, lambda s, d: self._post(self._on_dirty_changed, s, d))
        self.session.call(orch.subscribe, lambda st: self._post(self._on_save_state, st))
        self.session.call(orch.on_blocked, lambda inv: self._post(self._on_save_blocked, inv))

        self._busy = False
        self._progress_running = False
        self._current: Optional[SectionId] = None
        self._panel: Optional[SectionPanel] = None
        self.nav_buttons: Dict[SectionId, ctk.CTkButton] = {}

        # Layout
        self.columnconfigure(0, weight=0, minsize=200)
        self.columnconfigure(1, weight=1)
        self.rowconfigure(0, weight=1)

        self.nav = ctk.CTkFrame(self)
        self.nav.grid(row=0, column=0, sticky="nsw", padx=(8, 4), pady=8)
        self._build_nav(self.nav)

        self.right = ctk.CTkFrame(self)
        self.right.grid(row=0, column=1, sticky="nsew", padx=(4, 8), pady=8)
        self.right.columnconfigure(0, weight=1)
        self.right.rowconfigure(1, weight=3)
        self.right.rowconfigure(3, weight=1)

        # Toolbar (row 0): Save | Reload | Reboot + status
        self.toolbar = ctk.CTkFrame(self.right)
        self.toolbar.grid(row=0, column=0, sticky="ew", padx=8, pady=(6, 4))
        self.btn_save = ctk.CTkButton(self.toolbar, text="Save", command=self._on_save_clicked, state="disabled")
        self.btn_save.pack(side="left", padx=(0, 8))
        self.btn_reload = ctk.CTkButton(self.toolbar, text="Reload Section", command=self._on_reload_clicked)
        self.btn_reload.pack(side="left", padx=(0, 8))
        self.btn_reboot = ctk.CTkButton(self.toolbar, text="Reboot", command=self._on_reboot_clicked)
        self.btn_reboot.pack(side="left", padx=(0, 8))
        self.status_lbl = ctk.CTkLabel(self.toolbar, text="")
        self.status_lbl.pack(side="right")

        # Panel host (row 1)
        self.panel_host = ctk.CTkScrollableFrame(self.right)
        self.panel_host.grid(row=1, column=0, sticky="nsew", padx=8, pady=(0, 8))

        # Info bar (row 2): backend (left) and Clear Log (right)
        self.info_bar = ctk.CTkFrame(self.right)
        self.info_bar.grid(row=2, column=0, sticky="ew", padx=8, pady=(0, 8))
        ctk.CTkLabel(self.info_bar, text=f"Backend: {self.session.backend_url}").pack(side="left")
        self.btn_clear_log = ctk.CTkButton(self.info_bar, text="Clear Log", width=100, command=self._on_clear_log)
        self.btn_clear_log.pack(side="right")

        # Log box (row 3)
        self.log_box = ctk.CTkTextbox(self.right, height=180)
        self.log_box.grid(row=3, column=0, sticky="nsew", padx=8, pady=(0, 8))
        self.log_box.configure(state="disabled")

        # Bottom progress bar under the log box
        self.progress_bar = ctk.CTkProgressBar(self.right, mode="indeterminate")
        self.progress_bar.grid(row=4, column=0, sticky="ew", padx=8, pady=(0, 8))
        self.progress_bar.grid_remove()

        self.protocol("WM_DELETE_WINDOW", self._on_close)
        self._show_section(SECTION_ORDER[0])
        self.after(150, self._poll_logs)
        self.after(50, self._poll_ui)
        self.after(200, self._load_all)

    def _build_nav(self, parent: ctk.CTkFrame):
        ctk.CTkLabel(parent, text="Sections", font=ctk.CTkFont(size=14, weight="bold")).pack(padx=8, pady=(8, 4), anchor="w")
        for section in SECTION_ORDER:
            btn = ctk.CTkButton(
                parent, text=section_label(section), anchor="w",
                command=lambda s=section: self._show_section(s),
            )
            btn.pack(fill="x", padx=8, pady=2)
            self.nav_buttons[section] = btn

    # ---------------- Navigation ----------------

    def _make_panel(self, section: SectionId) -> SectionPanel:
        cls = PANEL_CLASSES.get(section)
        if cls is None:
            return PeripheralPanel(self, self.session, section)
        return cls(self, self.session)

    def _show_section(self, section: SectionId):
        if self._panel is not None:
            self._panel.destroy()
            self._panel = None
        self._current = section
        self._panel = self._make_panel(section)
        self._panel.build(self.panel_host)
        for s, btn in self.nav_buttons.items():
            btn.configure(fg_color=("gray75", "gray30") if s == section else ctk.ThemeManager.theme["CTkButton"]["fg_color"])
        self.refresh_save_state()

    def _on_dirty_changed(self, section: SectionId, dirty: bool):
        btn = self.nav_buttons.get(section)
        if btn is not None:
            btn.configure(text=("● " if dirty else "") + section_label(section))
        self.refresh_save_state()

    # ---------------- Load ----------------

    def _load_all(self):
        self._set_busy(True, "Loading…")
        fut = self.session.load_all()
        fut.add_done_callback(lambda f: self._post(self._on_load_done, f))

    def _on_load_done(self, fut):
        self._set_busy(False, "")
        try:
            fut.result()
        except Exception:
            log.exception("Loading sections failed")
        failed = [s for s in SECTION_ORDER if self.session.controller(s).load_error is not None]
        if failed:
            self.status_lbl.configure(text="Could not load: " + ", ".join(section_label(s) for s in failed))
        if self._panel is not None:
            self._panel.refresh()
        self.refresh_save_state()

    def _on_reload_clicked(self):
        section = self._current
        if section is None:
            return
        if self.session.call(self.session.store.is_dirty, section):
            if not ConfirmationDialog.ask(
                self, "Discard changes", f"Reloading discards your unsaved changes to {section_label(section)}. Continue?"
            ):
                return
        self._set_busy(True, f"Reloading {section_label(section)}…")
        fut = self.session.load_section(section)
        fut.add_done_callback(lambda f: self._post(self._on_reload_done, section, f))

    def _on_reload_done(self, section: SectionId, fut):
        self._set_busy(False, "")
        try:
            fut.result()
        except Exception:
            log.exception("Reloading %s failed", section)
        if self._panel is not None and self._current == section:
            self._panel.refresh()
        self.refresh_save_state()

    # ---------------- Save ----------------

    def refresh_save_state(self):
        """Save is clickable iff the orchestrator would accept a save right now; Reboot unless one is running."""
        orch = self.session.orchestrator
        can, saving = self.session.call(lambda: (orch.can_save(), orch.state == SaveState.SAVING))
        self.btn_save.configure(state="normal" if can and not self._busy else "disabled")
        self.btn_reboot.configure(state="disabled" if self._busy or saving else "normal")

    def _on_save_clicked(self):
        orch = self.session.orchestrator
        gate = self.session.call(orch.request_save)
        if self.session.call(lambda: orch.state) != SaveState.CONFIRMING:
            if not gate.invalid_sections:
                self.status_lbl.configure(text=gate.reason)
            return

        labels = [section_label(s) for s in self.session.call(orch.pending_sections)]
        ok = ConfirmationDialog.ask(
            self, "Save configuration",
            "Save these sections? The device reboots afterwards.",
            labels, yes_text="Save", no_text="Cancel",
        )
        if not ok:
            self.session.call(orch.cancel)
            self.status_lbl.configure(text="Save cancelled.")
            return

        self._set_busy(True, "Saving…")
        fut = self.session.submit(orch.confirm_save())
        fut.add_done_callback(lambda f: self._post(self._on_save_done, f))

    def _on_save_done(self, fut):
        self._set_busy(False, "")
        try:
            report: Optional[SaveReport] = fut.result()
        except Exception:
            log.exception("Save failed unexpectedly")
            self.session.call(self.session.orchestrator.acknowledge)
            self.refresh_save_state()
            return

        if self._panel is not None:
            self._panel.refresh()
        if report is None:
            self.status_lbl.configure(text="Save not started.")
            self.refresh_save_state()
            return

        self.status_lbl.configure(text=RESULT_TITLES.get(report.state, ""))
        NoticeDialog.show(self, RESULT_TITLES.get(report.state, "Save"), report.summary())
        self.session.call(self.session.orchestrator.acknowledge)
        self.refresh_save_state()

    def _on_save_state(self, state: SaveState):
        log.debug("save state: %s", state.value)
        self.refresh_save_state()

    def _on_save_blocked(self, invalid):
        names = ", ".join(section_label(s) for s in invalid)
        self.status_lbl.configure(text=f"Fix validation errors in: {names}")
        log.warning("Save blocked by validation errors in: %s", names)

    # ---------------- Reboot ----------------

    def _on_reboot_clicked(self):
        ok = ConfirmationDialog.ask(
            self, "Reboot device",
            "Reboot the device now? Unsaved edits stay in this console.",
            yes_text="Reboot", no_text="Cancel",
        )
        if not ok:
            return
        self._set_busy(True, "Rebooting…")
        fut = self.session.reboot()
        fut.add_done_callback(lambda f: self._post(self._on_reboot_done, f))

    def _on_reboot_done(self, fut):
        self._set_busy(False, "")
        try:
            result: RebootResult = fut.result()
        except Exception:
            log.exception("Reboot failed unexpectedly")
            self.status_lbl.configure(text="Reboot failed.")
            return
        self.status_lbl.configure(text=result.message)
        if result.outcome == RebootOutcome.FAILED:
            NoticeDialog.show(self, "Reboot failed", result.message)

    # ---------------- Misc & Logging ----------------

    def _post(self, fn, *args):
        """Queue a call for the Tk thread. Safe from any thread."""
        self._ui_q.put((fn, args))

    def _poll_ui(self):
        try:
            while True:
                fn, args = self._ui_q.get_nowait()
                try:
                    fn(*args)
                except Exception:
                    log.exception("UI callback failed")
        except queue.Empty:
            pass
        self.after(50, self._poll_ui)

    def _poll_logs(self):
        try:
            while True:
                self._log(self.log_q.get_nowait())
        except queue.Empty:
            pass
        self.after(200, self._poll_logs)

    def _log(self, s: str):
        self.log_box.configure(state="normal")
        self.log_box.insert("end", str(s).strip() + "\n")
        self.log_box.see("end")
        self.log_box.configure(state="disabled")

    def _on_clear_log(self):
        self.log_box.configure(state="normal")
        self.log_box.delete("1.0", "end")
        self.log_box.configure(state="disabled")

    def _set_busy(self, busy: bool, status: str = ""):
        self._busy = busy
        self.status_lbl.configure(text=status)
        self.btn_reload.configure(state="disabled" if busy else "normal")
        self.refresh_save_state()
        if busy and not self._progress_running:
            self.progress_bar.grid()
            self.progress_bar.start()
            self._progress_running = True
        elif not busy and self._progress_running:
            self.progress_bar.stop()
            self.progress_bar.grid_remove()
            self._progress_running = False

    def _on_close(self):
        if self.session.call(self.session.store.dirty_sections):
            if not ConfirmationDialog.ask(self, "Unsaved changes", "Quit and discard unsaved changes?"):
                return
        if self._panel is not None:
            self._panel.destroy()
            self._panel = None
        self.session.close()
        self.destroy()


def main(argv=None):
    parser = argparse.ArgumentParser(prog="dm-configurator", description="Configure a device manager over its HTTP API.")
    parser.add_argument("--backend-url", help=f"Backend base URL (default from {AppState.ENV_BACKEND_URL} or app state)")
    parser.add_argument("--remember", action="store_true", help="Store --backend-url as the default")
    args = parser.parse_args(argv)

    if args.backend_url and args.remember:
        AppState.set_backend_url(args.backend_url)

    # Logging is routed to the UI; avoid console basicConfig
    ctk.set_appearance_mode("dark")
    app = App(backend_url=args.backend_url)
    app.mainloop()


if __name__ == "__main__":
    main()
