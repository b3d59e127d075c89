# dm_config/ui/common.py
from __future__ import annotations
from typing import Optional, Sequence, Tuple
import customtkinter as ctk

ERROR_TEXT_COLOR = "#e06c6c"


def make_collapsible(parent: ctk.CTkFrame, title: str, open: bool = True):
    """
    Returns (header_frame, content_frame, toggle_fn).
    Uses pack() for the content and hides via pack_forget().
    """
    wrapper = ctk.CTkFrame(parent)
    wrapper.pack(fill="x", padx=6, pady=(6, 0))

    header = ctk.CTkFrame(wrapper)
    header.pack(fill="x")

    chevron = ctk.CTkLabel(header, text=("▼" if open else "▶"), width=12)
    chevron.pack(side="left", padx=(6, 6))
    title_lbl = ctk.CTkLabel(header, text=title, font=ctk.CTkFont(size=14, weight="bold"))
    title_lbl.pack(side="left", pady=4)

    content = ctk.CTkFrame(wrapper)
    pack_args = dict(fill="x", padx=6, pady=(4, 6))
    if open:
        content.pack(**pack_args)

    state = {"open": open}

    def toggle():
        state["open"] = not state["open"]
        chevron.configure(text="▼" if state["open"] else "▶")
        if state["open"]:
            content.pack(**pack_args)
        else:
            content.pack_forget()
        wrapper.update_idletasks()

    for w in (header, chevron, title_lbl):
        w.bind("<Button-1>", lambda _e: toggle())

    return header, content, toggle


def create_setting_row(
    parent: ctk.CTkFrame,
    label_text: str,
    variable: ctk.Variable,
    row_index: int,
    *,
    kind: str = "entry",
    options: Optional[Sequence[str]] = None,
    show: Optional[str] = None,
    validate: Optional[str] = None,
    validatecommand: Optional[Tuple] = None,
) -> Tuple[ctk.CTkBaseClass, ctk.CTkLabel]:
    """
    Three-column layout:
      - Column 0: Label
      - Column 1: Entry, CheckBox or OptionMenu (kind='entry'|'checkbox'|'option')
      - Column 2: inline error text, empty while the field is valid
    Returns (widget, error_label).
    """
    parent.grid_columnconfigure(0, weight=0)
    parent.grid_columnconfigure(1, weight=1)
    parent.grid_columnconfigure(2, weight=0)

    lbl = ctk.CTkLabel(parent, text=label_text)
    lbl.grid(row=row_index, column=0, padx=6, pady=4, sticky="w")

    if kind == "checkbox":
        widget = ctk.CTkCheckBox(parent, text="", variable=variable)
        widget.grid(row=row_index, column=1, padx=6, pady=4, sticky="w")
    elif kind == "option":
        widget = ctk.CTkOptionMenu(parent, values=[str(o) for o in (options or [])], variable=variable)
        widget.grid(row=row_index, column=1, padx=6, pady=4, sticky="ew")
    else:
        widget = ctk.CTkEntry(
            parent,
            textvariable=variable,
            show=show,
            validate=validate,
            validatecommand=validatecommand,
        )
        widget.grid(row=row_index, column=1, padx=6, pady=4, sticky="ew")

    err = ctk.CTkLabel(parent, text="", text_color=ERROR_TEXT_COLOR)
    err.grid(row=row_index, column=2, padx=6, pady=4, sticky="w")
    return widget, err


def set_widget_enabled(widget: ctk.CTkBaseClass, enabled: bool) -> None:
    """Grey out an entry the same way everywhere; remembers its default colours on first use."""
    if not hasattr(widget, "default_fg_color"):
        widget.default_fg_color = widget.cget("fg_color")
        widget.default_text_color = widget.cget("text_color")
    if enabled:
        widget.configure(state="normal", fg_color=widget.default_fg_color, text_color=widget.default_text_color)
    else:
        widget.configure(state="disabled", fg_color="gray25", text_color="gray50")
