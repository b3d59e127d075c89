"""Tests for the HTTP gateway, with httpx's mock transport standing in for the backend."""

import asyncio
import json

import httpx
import pytest

from dm_config.controllers.backend_gateway import (
    ERR_BAD_RESPONSE,
    ERR_TIMEOUT,
    ERR_UNREACHABLE,
    BackendGateway,
    GatewayError,
)
from dm_config.models.sections import SectionId


class Backend:
    """Records requests and answers from a route table."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))
        answer = self.routes[(request.method, request.url.path)]
        if isinstance(answer, Exception):
            raise answer
        if callable(answer):
            return answer(request)
        return answer


def _run(backend, fn):
    async def _go():
        async with BackendGateway("http://dm.local:8080/", transport=httpx.MockTransport(backend)) as gw:
            return await fn(gw)
    return asyncio.run(_go())


def test_read_section_returns_body():
    backend = Backend({("GET", "/api/device/wxt53x"): httpx.Response(200, json={"name": "WXT536"})})
    assert _run(backend, lambda gw: gw.read_section(SectionId.WXT)) == {"name": "WXT536"}


def test_properties_save_is_wrapped_with_config_type():
    backend = Backend({("POST", "/api/save"): httpx.Response(200, json={"success": True, "message": "ok"})})
    resp = _run(backend, lambda gw: gw.save_section(SectionId.BROKER, {"mqtt.broker": "10.0.0.2"}))
    assert resp.success
    assert backend.requests == [
        ("POST", "/api/save", {"configType": "properties", "data": {"mqtt.broker": "10.0.0.2"}}),
    ]


def test_device_save_is_sent_bare():
    backend = Backend({("POST", "/api/device/S900"): httpx.Response(200, json={"success": True})})
    _run(backend, lambda gw: gw.save_section(SectionId.S900, {"name": "S900", "portNumber": 502}))
    assert backend.requests[0][2] == {"name": "S900", "portNumber": 502}


def test_error_body_is_surfaced_verbatim():
    backend = Backend({
        ("POST", "/api/network"): httpx.Response(400, json={"success": False, "error": "Invalid netmask"}),
    })
    with pytest.raises(GatewayError) as ei:
        _run(backend, lambda gw: gw.save_section(SectionId.NETWORK, {"method": "static"}))
    assert ei.value.message == "Invalid netmask"
    assert ei.value.status_code == 400


def test_error_without_body_uses_status_line():
    backend = Backend({("GET", "/api/network"): httpx.Response(503, text="")})
    with pytest.raises(GatewayError) as ei:
        _run(backend, lambda gw: gw.read_section(SectionId.NETWORK))
    assert ei.value.message == "HTTP 503 Service Unavailable"


def test_success_false_on_200_is_an_error():
    backend = Backend({
        ("POST", "/api/save"): httpx.Response(200, json={"success": False, "message": "Could not write file"}),
    })
    with pytest.raises(GatewayError) as ei:
        _run(backend, lambda gw: gw.save_section(SectionId.DEVICE_MANAGER, {"deviceManagerKey": "DM-1"}))
    assert ei.value.message == "Could not write file"


def test_connection_failure_is_generic():
    backend = Backend({("POST", "/api/reboot"): httpx.ConnectError("connection refused")})
    with pytest.raises(GatewayError) as ei:
        _run(backend, lambda gw: gw.reboot())
    assert ei.value.message == ERR_UNREACHABLE
    assert ei.value.status_code is None


def test_timeout_is_reported():
    backend = Backend({("GET", "/api/devices"): httpx.ReadTimeout("slow")})
    with pytest.raises(GatewayError) as ei:
        _run(backend, lambda gw: gw.read_section(SectionId.DEVICE_MANAGER))
    assert ei.value.message == ERR_TIMEOUT


def test_non_object_read_is_rejected():
    backend = Backend({("GET", "/api/config/properties"): httpx.Response(200, json=["not", "a", "map"])})
    with pytest.raises(GatewayError) as ei:
        _run(backend, lambda gw: gw.read_section(SectionId.BROKER))
    assert ei.value.message == ERR_BAD_RESPONSE


def test_reboot_posts_once():
    backend = Backend({("POST", "/api/reboot"): httpx.Response(200, json={"success": True, "message": "Reboot initiated"})})
    resp = _run(backend, lambda gw: gw.reboot())
    assert resp.text == "Reboot initiated"
    assert [r[:2] for r in backend.requests] == [("POST", "/api/reboot")]
