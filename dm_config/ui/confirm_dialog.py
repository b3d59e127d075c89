# dm_config/ui/confirm_dialog.py
from typing import Sequence

import customtkinter as ctk


class ConfirmationDialog(ctk.CTkToplevel):
    """Modal Yes/No dialog. Optional bullet list under the message."""
    def __init__(self, parent, title: str, message: str, items: Sequence[str] = (), yes_text: str = "Yes", no_text: str = "No"):
        super().__init__(parent)
        self.title(title)
        self.transient(parent)
        self.grab_set()
        self.result = False

        ctk.CTkLabel(self, text=message, wraplength=340, justify="left").pack(padx=20, pady=(20, 8), anchor="w")
        if items:
            bullets = "\n".join(f"•  {i}" for i in items)
            ctk.CTkLabel(self, text=bullets, justify="left").pack(padx=32, pady=(0, 12), anchor="w")

        btn_frame = ctk.CTkFrame(self, fg_color="transparent")
        btn_frame.pack(padx=20, pady=(0, 20))

        ctk.CTkButton(btn_frame, text=yes_text, command=self._on_yes).pack(side="left", padx=10)
        ctk.CTkButton(btn_frame, text=no_text, command=self._on_no).pack(side="left", padx=10)
        self.protocol("WM_DELETE_WINDOW", self._on_no)

        self.after(50, self._center_window)

    def _center_window(self):
        self.update_idletasks()
        width = self.winfo_width()
        height = self.winfo_height()
        x = self.master.winfo_x() + (self.master.winfo_width() // 2) - (width // 2)
        y = self.master.winfo_y() + (self.master.winfo_height() // 2) - (height // 2)
        self.geometry(f"{width}x{height}+{x}+{y}")

    def _on_yes(self):
        self.result = True
        self.destroy()

    def _on_no(self):
        self.result = False
        self.destroy()

    @classmethod
    def ask(cls, parent, title: str, message: str, items: Sequence[str] = (), **kwargs) -> bool:
        dialog = cls(parent, title, message, items, **kwargs)
        parent.wait_window(dialog)
        return dialog.result


class NoticeDialog(ctk.CTkToplevel):
    """Modal message with a single OK button; used for save outcomes."""
    def __init__(self, parent, title: str, message: str):
        super().__init__(parent)
        self.title(title)
        self.transient(parent)
        self.grab_set()

        ctk.CTkLabel(self, text=message, wraplength=420, justify="left").pack(padx=20, pady=20, anchor="w")
        ctk.CTkButton(self, text="OK", command=self.destroy).pack(padx=20, pady=(0, 20))
        self.protocol("WM_DELETE_WINDOW", self.destroy)

    @classmethod
    def show(cls, parent, title: str, message: str) -> None:
        dialog = cls(parent, title, message)
        parent.wait_window(dialog)
