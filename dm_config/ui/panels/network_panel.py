# dm_config/ui/panels/network_panel.py
from __future__ import annotations

import customtkinter as ctk
from CTkToolTip import CTkToolTip

from dm_config.models.sections import NETWORK_METHODS, SectionId
from dm_config.ui.common import set_widget_enabled
from dm_config.ui.panels.base_panel import FieldSpec, SectionPanel

STATIC_ONLY = ("address", "netmask", "gateway")


class NetworkPanel(SectionPanel):
    section = SectionId.NETWORK
    group_title = "Interface"
    fields = [
        FieldSpec("interface", "Interface"),
        FieldSpec("method", "Method", kind="option", options=list(NETWORK_METHODS.values())),
        FieldSpec("address", "IP Address"),
        FieldSpec("netmask", "Netmask"),
        FieldSpec("gateway", "Gateway"),
    ]

    def after_build(self) -> None:
        set_widget_enabled(self.widgets["interface"], False)
        self.tooltip_method = CTkToolTip(self.widgets["method"], message="")
        ctk.CTkLabel(self.frame, text="Saving network settings restarts the device.", text_color="gray60").pack(
            anchor="w", padx=8, pady=(4, 0)
        )

    def on_values_applied(self) -> None:
        self._update_static_state()

    def on_field_edited(self, key: str) -> None:
        if key == "method":
            self._update_static_state()

    def _update_static_state(self) -> None:
        """Addressing fields only apply to a static configuration."""
        is_static = self.vars["method"].get() == NETWORK_METHODS["static"]
        self.tooltip_method.configure(
            message="Address, netmask and gateway are sent as entered" if is_static
            else "DHCP: addressing comes from the network"
        )
        for key in STATIC_ONLY:
            set_widget_enabled(self.widgets[key], is_static and self.widgets["method"].cget("state") != "disabled")
        # the interface name is fixed
        set_widget_enabled(self.widgets["interface"], False)
