# dm_config/ui/panels/base_panel.py
from __future__ import annotations
import logging
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple, TYPE_CHECKING

import customtkinter as ctk

from dm_config.models.sections import FieldMap, SectionId, section_info
from dm_config.ui.common import ERROR_TEXT_COLOR, create_setting_row, make_collapsible
from dm_config.ui.validator import Validator

if TYPE_CHECKING:
    from dm_config.controllers.console_session import ConsoleSession

log = logging.getLogger(__name__)


class FieldSpec(NamedTuple):
    key: str
    label: str
    kind: str = "entry"                      # entry | checkbox | option
    options: Sequence[str] = ()
    show: Optional[str] = None
    limit: Tuple[str, ...] = ()              # ("numeric",) | ("range", lo, hi) | ("length", n)


class SectionPanel:
    """
    One section on screen. Disposable: the window destroys it on navigation and
    builds a fresh one when the operator comes back.

    - build(parent):   create widgets, then mount() from what the session store holds
    - apply_values():  push a FieldMap into the widgets without echoing edits back
    - destroy():       drop traces and widgets; the store keeps the edits
    Every widget write goes to the section controller through the session's loop.
    """
    section: SectionId
    group_title: str = "Settings"
    fields: List[FieldSpec] = []

    def __init__(self, app: "ctk.CTk", session: "ConsoleSession"):
        self.app = app
        self.session = session
        self.frame: ctk.CTkFrame | None = None
        self.vars: Dict[str, ctk.Variable] = {}
        self.widgets: Dict[str, ctk.CTkBaseClass] = {}
        self.error_labels: Dict[str, ctk.CTkLabel] = {}
        self._traces: List[tuple] = []
        self._suspend = False

    @property
    def title(self) -> str:
        return section_info(self.section).label

    @property
    def controller(self):
        return self.session.controller(self.section)

    # ---------------- Build / teardown ----------------

    def build(self, parent: ctk.CTkFrame) -> None:
        self.frame = ctk.CTkFrame(parent, fg_color="transparent")
        self.frame.pack(fill="both", expand=True)

        ctk.CTkLabel(self.frame, text=self.title, font=ctk.CTkFont(size=18, weight="bold")).pack(
            anchor="w", padx=8, pady=(6, 0)
        )
        self.status_lbl = ctk.CTkLabel(self.frame, text="", text_color=ERROR_TEXT_COLOR, wraplength=520, justify="left")
        self.status_lbl.pack(anchor="w", padx=8, pady=(0, 4))

        _, content, _ = make_collapsible(self.frame, self.group_title, open=True)
        self.build_fields(content)
        self.after_build()

        for key, var in self.vars.items():
            tid = var.trace_add("write", lambda *_a, k=key: self._on_var_written(k))
            self._traces.append((var, tid))

        self.refresh()

    def build_fields(self, parent: ctk.CTkFrame) -> None:
        # Keystroke filters; the controller still validates whatever lands in the store
        commands = {
            "numeric": parent.register(Validator.validate_is_numeric),
            "range": parent.register(Validator.validate_numeric_range),
            "length": parent.register(Validator.validate_string_length),
        }
        for row, fs in enumerate(self.fields):
            var = ctk.BooleanVar(value=False) if fs.kind == "checkbox" else ctk.StringVar(value="")
            vcmd = None
            if fs.limit:
                kind, *args = fs.limit
                vcmd = (commands[kind], *args, "%P")
            widget, err = create_setting_row(
                parent, fs.label, var, row, kind=fs.kind, options=fs.options, show=fs.show,
                validate="key" if vcmd else None, validatecommand=vcmd,
            )
            self.vars[fs.key] = var
            self.widgets[fs.key] = widget
            self.error_labels[fs.key] = err

    def after_build(self) -> None:
        """Hook for panels with dependent widgets."""

    def destroy(self) -> None:
        for var, tid in self._traces:
            try:
                var.trace_remove("write", tid)
            except Exception:
                log.debug("trace already gone", exc_info=True)
        self._traces.clear()
        if self.frame is not None:
            self.frame.destroy()
            self.frame = None

    # ---------------- Store -> widgets ----------------

    def refresh(self) -> None:
        """Re-read the store (after mount, load or save) and repaint."""
        controller = self.controller
        values, errors, loaded, load_error = self.session.call(
            lambda: (controller.mount(), controller.errors, controller.is_loaded, controller.load_error)
        )
        for widget in self.widgets.values():
            widget.configure(state="normal" if loaded else "disabled")
        self.apply_values(values)
        self.show_errors(errors)
        if load_error is not None and not loaded:
            self.status_lbl.configure(text=f"Could not load: {load_error.message}")
        elif not loaded:
            self.status_lbl.configure(text="Not loaded yet.")
        else:
            self.status_lbl.configure(text="")

    def apply_values(self, values: FieldMap) -> None:
        self._suspend = True
        try:
            for key, var in self.vars.items():
                value = values.get(key)
                if isinstance(var, ctk.BooleanVar):
                    var.set(bool(value))
                else:
                    var.set("" if value is None else str(value))
        finally:
            self._suspend = False
        self.on_values_applied()

    def on_values_applied(self) -> None:
        """Hook: values were pushed into the widgets."""

    def show_errors(self, errors: Dict[str, str]) -> None:
        for key, lbl in self.error_labels.items():
            lbl.configure(text=errors.get(key, ""))

    # ---------------- Widgets -> store ----------------

    def read_var(self, key: str) -> Any:
        var = self.vars[key]
        try:
            return var.get()
        except Exception:
            # BooleanVar holding garbage
            return False

    def _on_var_written(self, key: str) -> None:
        if self._suspend or self.frame is None:
            return
        controller = self.controller
        value = self.read_var(key)

        def _apply():
            if not controller.is_loaded:
                return None
            controller.on_field_change(key, value)
            return controller.errors

        errors = self.session.call(_apply)
        if errors is None:
            return
        self.show_errors(errors)
        self.on_field_edited(key)
        self.app.refresh_save_state()

    def on_field_edited(self, key: str) -> None:
        """Hook: the operator changed `key`."""
