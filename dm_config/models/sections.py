# dm_config/models/sections.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Type

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

FieldMap = Dict[str, Any]


def _to_text(v: Any) -> str:
    """Backend files mix numbers and strings for the same key; the console edits text."""
    if v is None:
        return ""
    if isinstance(v, bool):
        return "true" if v else "false"
    return str(v)


Text = Annotated[str, BeforeValidator(_to_text)]


class SectionId(str, Enum):
    DEVICE_MANAGER = "device-manager"
    NETWORK = "network"
    BROKER = "broker"
    IBAC = "device:IBAC"
    S900 = "device:S900"
    ORI = "device:ORI"
    WXT = "device:WXT"

    def __str__(self) -> str:
        return self.value


# ---------- Enumerations shared by panels and validators ----------

SERIAL_PORTS = ["ttyS0", "ttyS1"]
BAUD_RATES = ["9600", "19200", "38400", "57600", "115200"]
SERIAL_PORT_TYPES = ["RS232", "RS485"]
PARITY_VALUES = ["None", "Even", "Odd"]
DATA_BITS = ["7", "8"]
STOP_BITS = ["1", "2"]

NETWORK_METHODS = {"static": "Static IP", "dhcp": "DHCP"}  # wire -> label
DEFAULT_MQTT_PORT = "1883"


# ---------- Wire schemas ----------

class SectionFields(BaseModel):
    """
    Boundary schema for one section.
    - from_wire(): backend payload -> the console's FieldMap
    - to_wire():   FieldMap -> payload the backend expects
    Shaping lives here only; FieldMaps held by the session store never carry wire encodings.
    """
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    @classmethod
    def from_wire(cls, payload: Optional[Dict[str, Any]]) -> FieldMap:
        return cls.model_validate(payload or {}).model_dump()

    @classmethod
    def to_wire(cls, fields: FieldMap) -> Dict[str, Any]:
        return cls.model_validate(fields).model_dump(by_alias=True)


class DeviceManagerFields(SectionFields):
    key: Text = Field("", alias="deviceManagerKey")
    name: Text = Field("", alias="deviceManagerName")


class BrokerFields(SectionFields):
    broker: Text = Field("", alias="mqtt.broker")
    port: Text = Field(DEFAULT_MQTT_PORT, alias="mqtt.port")
    username: Text = Field("", alias="mqtt.username")
    password: Text = Field("", alias="mqtt.password")


class NetworkFields(SectionFields):
    interface: Text = "eth0"
    method: Text = "static"
    address: Text = ""
    netmask: Text = ""
    gateway: Text = ""

    @classmethod
    def from_wire(cls, payload: Optional[Dict[str, Any]]) -> FieldMap:
        out = super().from_wire(payload)
        method = out["method"].strip().lower()
        out["method"] = NETWORK_METHODS.get(method, out["method"])
        return out

    @classmethod
    def to_wire(cls, fields: FieldMap) -> Dict[str, Any]:
        out = super().to_wire(fields)
        by_label = {label: wire for wire, label in NETWORK_METHODS.items()}
        out["method"] = by_label.get(out["method"], out["method"].strip().lower())
        if out["method"] == "dhcp":
            # interfaces(5) takes no addressing for dhcp stanzas
            out["address"] = ""
            out["netmask"] = ""
            out["gateway"] = ""
        return out


class SerialDeviceFields(SectionFields):
    name: Text = ""
    enabled: bool = True
    address: Text = ""
    speed: Text = ""
    bits: Text = ""
    stopBits: Text = ""
    parity: Text = ""
    serialPortType: Text = ""


class NetworkDeviceFields(SectionFields):
    name: Text = ""
    enabled: bool = True
    address: Text = ""
    portNumber: Text = ""

    @classmethod
    def to_wire(cls, fields: FieldMap) -> Dict[str, Any]:
        out = super().to_wire(fields)
        port = out.get("portNumber", "").strip()
        if port.isdigit():
            out["portNumber"] = int(port)
        return out


# ---------- Section catalogue ----------

@dataclass(frozen=True)
class SectionInfo:
    section: SectionId
    label: str
    read_path: str
    save_path: str
    fields: Type[SectionFields]
    config_type: Optional[str] = None  # set => payload is wrapped as {configType, data}
    implies_reboot: bool = False       # backend reboots the device on its own after saving
    device_name: Optional[str] = None


SECTIONS: Dict[SectionId, SectionInfo] = {
    SectionId.DEVICE_MANAGER: SectionInfo(
        SectionId.DEVICE_MANAGER, "Device Manager", "/api/devices", "/api/save",
        DeviceManagerFields, config_type="devices",
    ),
    SectionId.NETWORK: SectionInfo(
        SectionId.NETWORK, "Network", "/api/network", "/api/network",
        NetworkFields, implies_reboot=True,
    ),
    SectionId.BROKER: SectionInfo(
        SectionId.BROKER, "MQTT Broker", "/api/config/properties", "/api/save",
        BrokerFields, config_type="properties",
    ),
    SectionId.IBAC: SectionInfo(
        SectionId.IBAC, "IBAC", "/api/device/IBAC", "/api/device/IBAC",
        SerialDeviceFields, device_name="IBAC",
    ),
    SectionId.S900: SectionInfo(
        SectionId.S900, "S900", "/api/device/S900", "/api/device/S900",
        NetworkDeviceFields, device_name="S900",
    ),
    SectionId.ORI: SectionInfo(
        SectionId.ORI, "ORI", "/api/device/oritestgtdb", "/api/device/oritestgtdb",
        NetworkDeviceFields, device_name="oritestgtdb",
    ),
    SectionId.WXT: SectionInfo(
        SectionId.WXT, "WXT", "/api/device/wxt53x", "/api/device/wxt53x",
        SerialDeviceFields, device_name="wxt53x",
    ),
}

# Navigation and save order; network goes last since its save reboots the device.
SECTION_ORDER: List[SectionId] = [
    SectionId.DEVICE_MANAGER,
    SectionId.BROKER,
    SectionId.IBAC,
    SectionId.S900,
    SectionId.ORI,
    SectionId.WXT,
    SectionId.NETWORK,
]


def section_info(section: SectionId) -> SectionInfo:
    try:
        return SECTIONS[SectionId(section)]
    except ValueError as e:
        raise KeyError(f"unknown section: {section!r}") from e


def section_label(section: SectionId) -> str:
    return section_info(section).label
