"""pytest fixtures for dm-configurator tests."""

import asyncio
import copy
from typing import Any, Dict, List, Optional, Tuple

import pytest

from dm_config.controllers.backend_gateway import GatewayError
from dm_config.controllers.orchestrator import SaveOrchestrator
from dm_config.controllers.section_controller import build_section_controllers
from dm_config.controllers.session_store import SessionStore
from dm_config.models.results import GatewayResponse
from dm_config.models.sections import SectionId

WIRE_PAYLOADS: Dict[SectionId, Dict[str, Any]] = {
    SectionId.DEVICE_MANAGER: {"deviceManagerKey": "DM-1", "deviceManagerName": "Station A"},
    SectionId.BROKER: {
        "mqtt.broker": "192.168.1.10",
        "mqtt.port": "1883",
        "mqtt.username": "station",
        "mqtt.password": "secret",
    },
    SectionId.NETWORK: {
        "interface": "eth0",
        "method": "static",
        "address": "192.168.1.50",
        "netmask": "255.255.255.0",
        "gateway": "192.168.1.1",
    },
    SectionId.IBAC: {
        "name": "IBAC", "enabled": True, "address": "ttyS0", "speed": 9600,
        "bits": 8, "stopBits": 1, "parity": "None", "serialPortType": "RS232",
    },
    SectionId.WXT: {
        "name": "WXT536", "enabled": True, "address": "ttyS1", "speed": "19200",
        "bits": "8", "stopBits": "1", "parity": "None", "serialPortType": "RS485",
    },
    SectionId.S900: {"name": "S900", "enabled": True, "address": "192.168.1.60", "portNumber": 502},
    SectionId.ORI: {"name": "ORI", "enabled": False, "address": "192.168.1.61", "portNumber": ""},
}


class FakeGateway:
    """
    Stands in for BackendGateway.
    - reads:  section -> wire payload or GatewayError
    - saves:  section -> GatewayError / other exception to raise, else success
    - holds:  section -> asyncio.Event the save waits on before answering
    Every call is recorded in `calls` as (verb, section, payload).
    """

    def __init__(self):
        self.reads: Dict[SectionId, Any] = copy.deepcopy(WIRE_PAYLOADS)
        self.saves: Dict[SectionId, Exception] = {}
        self.reboot_error: Optional[Exception] = None
        self.holds: Dict[SectionId, asyncio.Event] = {}
        self.calls: List[Tuple[str, Optional[SectionId], Any]] = []

    async def read_section(self, section):
        self.calls.append(("read", section, None))
        result = self.reads[section]
        if isinstance(result, Exception):
            raise result
        return copy.deepcopy(result)

    async def save_section(self, section, payload):
        self.calls.append(("save", section, copy.deepcopy(payload)))
        hold = self.holds.get(section)
        if hold is not None:
            await hold.wait()
        err = self.saves.get(section)
        if err is not None:
            raise err
        return GatewayResponse(success=True, message=f"{section} saved")

    async def reboot(self):
        self.calls.append(("reboot", None, None))
        if self.reboot_error is not None:
            raise self.reboot_error
        return GatewayResponse(success=True, message="Reboot initiated")

    async def aclose(self):
        pass

    def saved_sections(self):
        return [s for verb, s, _ in self.calls if verb == "save"]

    def reboot_count(self):
        return sum(1 for verb, _, _ in self.calls if verb == "reboot")


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def orchestrator(store, gateway):
    return SaveOrchestrator(store, gateway)


@pytest.fixture
def controllers(store, gateway, orchestrator):
    ctrls = build_section_controllers(store, gateway, orchestrator.set_valid)
    orchestrator.attach_all(ctrls)
    return ctrls


def load_sections(controllers, *sections):
    """Load the given sections (all when none given) on a fresh event loop."""
    targets = [controllers[s] for s in sections] if sections else list(controllers.values())

    async def _run():
        for c in targets:
            await c.load()

    asyncio.run(_run())


def unreachable():
    return GatewayError("Backend unreachable; check the connection to the device and try again.")
