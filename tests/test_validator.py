"""Tests for field validators."""

import pytest

from dm_config.ui.validator import Validator


@pytest.mark.parametrize("address", ["192.168.1.1", "0.0.0.0", "255.255.255.255", "10.0.0.254"])
def test_ipv4_accepts_dotted_quads(address):
    assert Validator.validate_ipv4(address)


@pytest.mark.parametrize("address", ["", "256.1.1.1", "1.2.3", "1.2.3.4.5", "a.b.c.d", " 1.2.3.4", None, 1234])
def test_ipv4_rejects_everything_else(address):
    assert not Validator.validate_ipv4(address)


def test_port_number_bounds():
    assert Validator.validate_port_number("1")
    assert Validator.validate_port_number(65535)
    assert not Validator.validate_port_number("0")
    assert not Validator.validate_port_number("65536")
    assert not Validator.validate_port_number("")
    assert not Validator.validate_port_number("80a")
    assert not Validator.validate_port_number(True)


def test_device_manager_key_rules():
    assert Validator.validate_device_manager_key("DM-1")
    assert not Validator.validate_device_manager_key("")
    assert not Validator.validate_device_manager_key("bad/key")
    assert not Validator.validate_device_manager_key("a#b")
    assert not Validator.validate_device_manager_key("a+b")
    assert not Validator.validate_device_manager_key("x" * 21)
    assert Validator.validate_device_manager_key("x" * 20)


def test_device_manager_key_error_messages():
    assert Validator.device_manager_key_error("DM-1") == ""
    assert "slash" in Validator.device_manager_key_error("bad/key").lower()
    assert "#" in Validator.device_manager_key_error("a#b")
    assert "20" in Validator.device_manager_key_error("x" * 21)


def test_name_lengths():
    assert Validator.validate_device_manager_name("Station A")
    assert not Validator.validate_device_manager_name("")
    assert not Validator.validate_device_manager_name("n" * 51)
    assert Validator.validate_device_name("n" * 50)


def test_serial_enumerations():
    assert Validator.validate_serial_port("ttyS1")
    assert not Validator.validate_serial_port("ttyUSB0")
    assert Validator.validate_baud_rate("115200")
    assert Validator.validate_baud_rate(9600)
    assert not Validator.validate_baud_rate("4800")
    assert Validator.validate_serial_port_type("RS485")
    assert Validator.validate_parity("Odd")
    assert not Validator.validate_parity("Mark")
    assert Validator.validate_data_bits("7")
    assert not Validator.validate_stop_bits("3")


def test_entry_callbacks_allow_empty_field():
    assert Validator.validate_is_numeric("")
    assert not Validator.validate_is_numeric("12a")
    assert Validator.validate_numeric_range("1", "65535", "")
    assert Validator.validate_numeric_range("1", "65535", "8080")
    assert not Validator.validate_numeric_range("1", "65535", "70000")
    assert Validator.validate_string_length("5", "abc")
