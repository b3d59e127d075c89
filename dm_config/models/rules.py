# dm_config/models/rules.py
from __future__ import annotations

import re
from typing import Any, Iterable

from dm_config.models.sections import (
    BAUD_RATES,
    DATA_BITS,
    PARITY_VALUES,
    SERIAL_PORT_TYPES,
    SERIAL_PORTS,
    STOP_BITS,
)

_IPV4_RE = re.compile(r"^((25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$")
_MQTT_TOPIC_RE = re.compile(r"^[^/#+]+$")

DEVICE_MANAGER_KEY_MAX_LENGTH = 20
DEVICE_MANAGER_NAME_MAX_LENGTH = 50
DEVICE_NAME_MAX_LENGTH = 50


class FieldRules:
    """Stateless field predicates the section controllers use to decide validity."""

    @staticmethod
    def validate_ipv4(address: Any) -> bool:
        if not isinstance(address, str) or not address:
            return False
        return _IPV4_RE.fullmatch(address) is not None

    @staticmethod
    def validate_port_number(port: Any) -> bool:
        """1..65535; accepts an int or a string of digits."""
        if isinstance(port, bool):
            return False
        if isinstance(port, str):
            if not port.strip().isdigit():
                return False
            port = int(port)
        if not isinstance(port, int):
            return False
        return 1 <= port <= 65535

    @staticmethod
    def validate_bool(value: Any) -> bool:
        return isinstance(value, bool)

    @staticmethod
    def validate_enum(options: Iterable[str], value: Any) -> bool:
        return value is not None and str(value) in set(options)

    @staticmethod
    def validate_mqtt_topic(topic: Any) -> bool:
        if not isinstance(topic, str) or not topic:
            return False
        return _MQTT_TOPIC_RE.fullmatch(topic) is not None

    @staticmethod
    def validate_device_manager_key(key: Any) -> bool:
        """Non-empty, at most 20 chars, and usable as an MQTT topic level."""
        if not isinstance(key, str) or not key:
            return False
        if len(key) > DEVICE_MANAGER_KEY_MAX_LENGTH:
            return False
        return FieldRules.validate_mqtt_topic(key)

    @staticmethod
    def validate_device_manager_name(name: Any) -> bool:
        if not isinstance(name, str) or not name:
            return False
        return len(name) <= DEVICE_MANAGER_NAME_MAX_LENGTH

    @staticmethod
    def validate_device_name(name: Any) -> bool:
        if not isinstance(name, str) or not name:
            return False
        return len(name) <= DEVICE_NAME_MAX_LENGTH

    # Serial line settings
    @staticmethod
    def validate_serial_port(port: Any) -> bool:
        return FieldRules.validate_enum(SERIAL_PORTS, port)

    @staticmethod
    def validate_baud_rate(rate: Any) -> bool:
        return FieldRules.validate_enum(BAUD_RATES, rate)

    @staticmethod
    def validate_serial_port_type(port_type: Any) -> bool:
        return FieldRules.validate_enum(SERIAL_PORT_TYPES, port_type)

    @staticmethod
    def validate_parity(parity: Any) -> bool:
        return FieldRules.validate_enum(PARITY_VALUES, parity)

    @staticmethod
    def validate_data_bits(bits: Any) -> bool:
        return FieldRules.validate_enum(DATA_BITS, bits)

    @staticmethod
    def validate_stop_bits(stop_bits: Any) -> bool:
        return FieldRules.validate_enum(STOP_BITS, stop_bits)

    @staticmethod
    def device_manager_key_error(key: Any) -> str:
        """Human-readable reason a device manager key was rejected ("" when valid)."""
        if FieldRules.validate_device_manager_key(key):
            return ""
        key = key if isinstance(key, str) else ""
        if "/" in key:
            return "Forward slashes (/) not allowed"
        if "#" in key or "+" in key:
            return "Invalid MQTT characters (# and + not allowed)"
        if len(key) > DEVICE_MANAGER_KEY_MAX_LENGTH:
            return f"Maximum {DEVICE_MANAGER_KEY_MAX_LENGTH} characters allowed"
        return "Invalid device manager key"
