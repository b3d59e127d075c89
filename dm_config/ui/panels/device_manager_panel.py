# dm_config/ui/panels/device_manager_panel.py
from __future__ import annotations

from CTkToolTip import CTkToolTip

from dm_config.models.sections import SectionId
from dm_config.ui.panels.base_panel import FieldSpec, SectionPanel
from dm_config.ui.validator import DEVICE_MANAGER_KEY_MAX_LENGTH, DEVICE_MANAGER_NAME_MAX_LENGTH


class DeviceManagerPanel(SectionPanel):
    section = SectionId.DEVICE_MANAGER
    group_title = "Identity"
    fields = [
        FieldSpec("key", "Device Manager Key", limit=("length", str(DEVICE_MANAGER_KEY_MAX_LENGTH))),
        FieldSpec("name", "Device Manager Name", limit=("length", str(DEVICE_MANAGER_NAME_MAX_LENGTH))),
    ]

    def after_build(self) -> None:
        CTkToolTip(
            self.widgets["key"],
            message=f"Used as an MQTT topic level: no '/', '#' or '+', at most {DEVICE_MANAGER_KEY_MAX_LENGTH} characters",
        )
        CTkToolTip(self.widgets["name"], message=f"At most {DEVICE_MANAGER_NAME_MAX_LENGTH} characters")
