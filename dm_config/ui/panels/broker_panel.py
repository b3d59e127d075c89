# dm_config/ui/panels/broker_panel.py
from __future__ import annotations

from CTkToolTip import CTkToolTip

from dm_config.models.sections import DEFAULT_MQTT_PORT, SectionId
from dm_config.ui.panels.base_panel import FieldSpec, SectionPanel


class BrokerPanel(SectionPanel):
    section = SectionId.BROKER
    group_title = "MQTT"
    fields = [
        FieldSpec("broker", "Broker IP"),
        FieldSpec("port", "Port", limit=("range", "1", "65535")),
        FieldSpec("username", "Username"),
        FieldSpec("password", "Password", show="•"),
    ]

    def after_build(self) -> None:
        CTkToolTip(self.widgets["port"], message=f"1-65535, usually {DEFAULT_MQTT_PORT}")
