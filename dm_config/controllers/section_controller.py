# dm_config/controllers/section_controller.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from pydantic import ValidationError

from dm_config.controllers.backend_gateway import BackendGateway, GatewayError
from dm_config.controllers.session_store import SessionStore
from dm_config.models.results import SectionLoadError
from dm_config.models.sections import (
    BAUD_RATES,
    DATA_BITS,
    NETWORK_METHODS,
    PARITY_VALUES,
    SERIAL_PORT_TYPES,
    SERIAL_PORTS,
    STOP_BITS,
    FieldMap,
    SectionId,
    section_info,
)
from dm_config.models.rules import DEVICE_MANAGER_NAME_MAX_LENGTH, DEVICE_NAME_MAX_LENGTH, FieldRules

log = logging.getLogger(__name__)

ValidityPublisher = Callable[[SectionId, bool], None]


class Snapshot(NamedTuple):
    fields: FieldMap            # what the operator had when the snapshot was taken
    payload: Dict[str, Any]     # what goes over the wire


class SectionController:
    """
    One configurable unit.

    - load():            fetch from the backend, seed current + baseline in the store
    - on_field_change(): merge one edit into current, revalidate, publish validity
    - snapshot():        backend-ready payload (wire shaping happens here, never in current)

    Holds no copy of the field values; everything goes through the SessionStore so
    edits survive the panel being torn down and rebuilt.
    """

    def __init__(
        self,
        section: SectionId,
        store: SessionStore,
        gateway: BackendGateway,
        publish_valid: Optional[ValidityPublisher] = None,
    ) -> None:
        self.section = SectionId(section)
        self.info = section_info(self.section)
        self._store = store
        self._gateway = gateway
        self._publish_valid = publish_valid
        self._errors: Dict[str, str] = {}
        self._load_error: Optional[SectionLoadError] = None

    # ---------------- Accessors ----------------

    @property
    def label(self) -> str:
        return self.info.label

    @property
    def values(self) -> FieldMap:
        return self._store.get(self.section).current

    @property
    def errors(self) -> Dict[str, str]:
        return dict(self._errors)

    @property
    def is_valid(self) -> bool:
        return not self._errors

    @property
    def is_loaded(self) -> bool:
        return self._store.is_loaded(self.section)

    @property
    def is_dirty(self) -> bool:
        return self._store.is_dirty(self.section)

    @property
    def load_error(self) -> Optional[SectionLoadError]:
        return self._load_error

    @property
    def field_names(self) -> List[str]:
        return list(self.info.fields.model_fields.keys())

    # ---------------- Contract ----------------

    async def load(self) -> Optional[FieldMap]:
        """
        Fetch this section from the backend. On failure the section keeps no
        baseline, so it can be neither dirty nor saved.
        """
        try:
            payload = await self._gateway.read_section(self.section)
            fields = self.info.fields.from_wire(payload)
        except GatewayError as e:
            return self._fail_load(e.message)
        except ValidationError as e:
            log.debug("[%s] unreadable payload: %s", self.section, e)
            return self._fail_load("Backend returned data this console cannot read.")

        self._load_error = None
        self._store.put(self.section, fields, baseline=fields)
        self._revalidate()
        log.info("[%s] loaded", self.section)
        return dict(fields)

    def on_field_change(self, key: str, value: Any) -> None:
        if key not in self.info.fields.model_fields:
            raise KeyError(f"{self.section} has no field {key!r}")
        merged = self.values
        merged[key] = value
        self._store.put(self.section, merged)
        self._revalidate()

    def snapshot(self) -> Dict[str, Any]:
        return self.capture().payload

    def capture(self) -> Snapshot:
        fields = self.values
        return Snapshot(fields=fields, payload=self.info.fields.to_wire(fields))

    def mount(self) -> FieldMap:
        """Panel (re)shown: recompute validity from what the store holds and republish it."""
        self._revalidate()
        return self.values

    def validate(self, values: FieldMap) -> Dict[str, str]:
        """Field name -> message for every field that fails. Empty dict means valid."""
        return {}

    def check(self, values: FieldMap) -> Dict[str, str]:
        """
        Every field error for `values`: what the wire schema rejects, overlaid with the
        section rules. A section without errors can always be shaped for the wire.
        """
        errors = self.schema_errors(values)
        errors.update(self.validate(values))
        return errors

    def schema_errors(self, values: FieldMap) -> Dict[str, str]:
        schema = self.info.fields
        try:
            schema.model_validate(values)
        except ValidationError as e:
            by_alias = {(f.alias or name): name for name, f in schema.model_fields.items()}
            errors: Dict[str, str] = {}
            for err in e.errors():
                loc = err.get("loc") or ("",)
                key = by_alias.get(str(loc[0]), str(loc[0]))
                errors.setdefault(key, err.get("msg") or "Invalid value")
            return errors
        return {}

    # ---------------- Internals ----------------

    def _revalidate(self) -> None:
        st = self._store.get(self.section)
        # Nothing to judge before a load; validity keeps its fail-open default
        self._errors = self.check(st.current) if st.baseline is not None else {}
        if self._publish_valid is not None:
            self._publish_valid(self.section, not self._errors)

    def _fail_load(self, message: str) -> Optional[FieldMap]:
        self._load_error = SectionLoadError(self.section, message)
        log.warning("[%s] failed to load: %s", self.section, message)
        return None


class DeviceManagerController(SectionController):
    def validate(self, values: FieldMap) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        key = values.get("key", "")
        if not FieldRules.validate_device_manager_key(key):
            errors["key"] = FieldRules.device_manager_key_error(key)
        name = values.get("name", "")
        if not FieldRules.validate_device_manager_name(name):
            if isinstance(name, str) and len(name) > DEVICE_MANAGER_NAME_MAX_LENGTH:
                errors["name"] = f"Maximum {DEVICE_MANAGER_NAME_MAX_LENGTH} characters allowed"
            else:
                errors["name"] = "Invalid device manager name"
        return errors


class BrokerController(SectionController):
    def validate(self, values: FieldMap) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        if not FieldRules.validate_ipv4(values.get("broker", "")):
            errors["broker"] = "Invalid MQTT broker IP address"
        if not FieldRules.validate_port_number(values.get("port", "")):
            errors["port"] = "Port must be between 1 and 65535"
        return errors


class NetworkController(SectionController):
    def validate(self, values: FieldMap) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        method = values.get("method", "")
        if method not in NETWORK_METHODS.values():
            errors["method"] = "Choose Static IP or DHCP"
            return errors
        if method != NETWORK_METHODS["static"]:
            return errors
        if not FieldRules.validate_ipv4(values.get("address", "")):
            errors["address"] = "Invalid IP address"
        if not FieldRules.validate_ipv4(values.get("netmask", "")):
            errors["netmask"] = "Invalid netmask"
        gateway = values.get("gateway", "")
        if gateway and not FieldRules.validate_ipv4(gateway):
            errors["gateway"] = "Invalid gateway"
        return errors


def _device_name_error(values: FieldMap) -> Optional[str]:
    name = values.get("name", "")
    if FieldRules.validate_device_name(name):
        return None
    if isinstance(name, str) and len(name) > DEVICE_NAME_MAX_LENGTH:
        return f"Maximum {DEVICE_NAME_MAX_LENGTH} characters allowed"
    return "Device name is required"


def _enabled_error(values: FieldMap) -> Optional[str]:
    if FieldRules.validate_bool(values.get("enabled")):
        return None
    return "Enabled must be on or off"


class SerialDeviceController(SectionController):
    """IBAC and WXT: RS232/RS485 line settings."""

    _ENUM_FIELDS = {
        "address": (SERIAL_PORTS, "Invalid serial port"),
        "speed": (BAUD_RATES, "Invalid baud rate"),
        "bits": (DATA_BITS, "Invalid data bits"),
        "stopBits": (STOP_BITS, "Invalid stop bits"),
        "parity": (PARITY_VALUES, "Invalid parity"),
        "serialPortType": (SERIAL_PORT_TYPES, "Invalid serial port type"),
    }

    def validate(self, values: FieldMap) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        name_err = _device_name_error(values)
        if name_err:
            errors["name"] = name_err
        enabled_err = _enabled_error(values)
        if enabled_err:
            errors["enabled"] = enabled_err
        for key, (options, message) in self._ENUM_FIELDS.items():
            if not FieldRules.validate_enum(options, values.get(key)):
                errors[key] = message
        return errors


class NetworkDeviceController(SectionController):
    """S900 and ORI: reached over IP."""

    def __init__(self, *args, port_required: bool = True, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.port_required = port_required

    def validate(self, values: FieldMap) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        name_err = _device_name_error(values)
        if name_err:
            errors["name"] = name_err
        enabled_err = _enabled_error(values)
        if enabled_err:
            errors["enabled"] = enabled_err
        if not FieldRules.validate_ipv4(values.get("address", "")):
            errors["address"] = "Invalid IP address"
        port = values.get("portNumber", "")
        if (self.port_required or port not in ("", None)) and not FieldRules.validate_port_number(port):
            errors["portNumber"] = "Port must be between 1 and 65535"
        return errors


def build_section_controllers(
    store: SessionStore,
    gateway: BackendGateway,
    publish_valid: Optional[ValidityPublisher] = None,
) -> Dict[SectionId, SectionController]:
    """One controller per section, sharing the session's store and gateway."""
    args = (store, gateway, publish_valid)
    return {
        SectionId.DEVICE_MANAGER: DeviceManagerController(SectionId.DEVICE_MANAGER, *args),
        SectionId.BROKER: BrokerController(SectionId.BROKER, *args),
        SectionId.NETWORK: NetworkController(SectionId.NETWORK, *args),
        SectionId.IBAC: SerialDeviceController(SectionId.IBAC, *args),
        SectionId.WXT: SerialDeviceController(SectionId.WXT, *args),
        SectionId.S900: NetworkDeviceController(SectionId.S900, *args),
        # ORI carries a port in its file but the device only needs the address
        SectionId.ORI: NetworkDeviceController(SectionId.ORI, *args, port_required=False),
    }
