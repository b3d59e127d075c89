# dm_config/controllers/backend_gateway.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from dm_config.models.results import GatewayResponse
from dm_config.models.sections import SectionId, section_info

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0
ERR_UNREACHABLE = "Backend unreachable; check the connection to the device and try again."
ERR_TIMEOUT = "Backend did not respond in time."
ERR_BAD_RESPONSE = "Backend returned an unreadable response."


class GatewayError(Exception):
    """A backend call failed. `message` is safe to show the operator."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class BackendGateway:
    """
    Thin async client for the device-side configuration API.

    - One read and one write route per section (see models.sections.SECTIONS)
    - POST /api/reboot
    - Non-2xx answers surface the body's error/message verbatim
    - Transport failures surface a generic message
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout_s,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "BackendGateway":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ---------------- Sections ----------------

    async def read_section(self, section: SectionId) -> Dict[str, Any]:
        info = section_info(section)
        resp = await self._request("GET", info.read_path)
        body = self._json(resp)
        if not isinstance(body, dict):
            raise GatewayError(ERR_BAD_RESPONSE, status_code=resp.status_code)
        log.info("[gateway] loaded %s", info.label)
        return body

    async def save_section(self, section: SectionId, payload: Dict[str, Any]) -> GatewayResponse:
        info = section_info(section)
        body: Dict[str, Any] = payload
        if info.config_type:
            body = {"configType": info.config_type, "data": payload}
        resp = await self._request("POST", info.save_path, json=body)
        result = self._parse_result(resp)
        log.info("[gateway] saved %s: %s", info.label, result.text or "ok")
        return result

    async def reboot(self) -> GatewayResponse:
        resp = await self._request("POST", "/api/reboot")
        result = self._parse_result(resp)
        log.info("[gateway] reboot: %s", result.text or "ok")
        return result

    # ---------------- Internals ----------------

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            log.warning("[gateway] %s %s timed out: %s", method, path, e)
            raise GatewayError(ERR_TIMEOUT) from e
        except httpx.TransportError as e:
            log.warning("[gateway] %s %s failed: %s", method, path, e)
            raise GatewayError(ERR_UNREACHABLE) from e

        if resp.is_success:
            return resp

        detail = self._error_text(resp)
        log.warning("[gateway] %s %s -> HTTP %s: %s", method, path, resp.status_code, detail)
        raise GatewayError(detail, status_code=resp.status_code)

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise GatewayError(ERR_BAD_RESPONSE, status_code=resp.status_code) from e

    def _parse_result(self, resp: httpx.Response) -> GatewayResponse:
        try:
            result = GatewayResponse.model_validate(self._json(resp))
        except ValidationError as e:
            raise GatewayError(ERR_BAD_RESPONSE, status_code=resp.status_code) from e
        if not result.success:
            raise GatewayError(result.error or result.message or "Request was rejected", status_code=resp.status_code)
        return result

    @staticmethod
    def _error_text(resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            text = body.get("error") or body.get("message")
            if text:
                return str(text)
        return f"HTTP {resp.status_code} {resp.reason_phrase}".strip()
