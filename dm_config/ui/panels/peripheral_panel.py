# dm_config/ui/panels/peripheral_panel.py
from __future__ import annotations

from CTkToolTip import CTkToolTip

from dm_config.models.sections import (
    BAUD_RATES,
    DATA_BITS,
    PARITY_VALUES,
    SERIAL_PORT_TYPES,
    SERIAL_PORTS,
    STOP_BITS,
    SectionId,
    SerialDeviceFields,
    section_info,
)
from dm_config.ui.panels.base_panel import FieldSpec, SectionPanel
from dm_config.ui.validator import DEVICE_NAME_MAX_LENGTH

NAME_LIMIT = ("length", str(DEVICE_NAME_MAX_LENGTH))

SERIAL_FIELDS = [
    FieldSpec("name", "Name", limit=NAME_LIMIT),
    FieldSpec("enabled", "Enabled", kind="checkbox"),
    FieldSpec("address", "Serial Port", kind="option", options=SERIAL_PORTS),
    FieldSpec("serialPortType", "Port Type", kind="option", options=SERIAL_PORT_TYPES),
    FieldSpec("speed", "Baud Rate", kind="option", options=BAUD_RATES),
    FieldSpec("bits", "Data Bits", kind="option", options=DATA_BITS),
    FieldSpec("stopBits", "Stop Bits", kind="option", options=STOP_BITS),
    FieldSpec("parity", "Parity", kind="option", options=PARITY_VALUES),
]

NETWORK_FIELDS = [
    FieldSpec("name", "Name", limit=NAME_LIMIT),
    FieldSpec("enabled", "Enabled", kind="checkbox"),
    FieldSpec("address", "IP Address"),
    FieldSpec("portNumber", "Port", limit=("numeric",)),
]


class PeripheralPanel(SectionPanel):
    """A sensor attached to the device manager. Serial sensors get line settings, IP sensors an address."""

    def __init__(self, app, session, section: SectionId):
        super().__init__(app, session)
        self.section = SectionId(section)
        self.is_serial = section_info(self.section).fields is SerialDeviceFields
        self.group_title = "Serial Line" if self.is_serial else "Connection"
        self.fields = SERIAL_FIELDS if self.is_serial else NETWORK_FIELDS

    def after_build(self) -> None:
        self.tooltip_enabled = CTkToolTip(self.widgets["enabled"], message="")

    def on_values_applied(self) -> None:
        self._update_enabled_tooltip()

    def on_field_edited(self, key: str) -> None:
        if key == "enabled":
            self._update_enabled_tooltip()

    def _update_enabled_tooltip(self) -> None:
        enabled = bool(self.read_var("enabled"))
        self.tooltip_enabled.configure(message=f"Disable {self.title}" if enabled else f"Enable {self.title}")
