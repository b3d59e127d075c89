from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional, Dict, Any

log = logging.getLogger(__name__)

DEFAULT_BACKEND_URL = "http://localhost:8080"
DEFAULT_TIMEOUT_S = 10.0


class AppState:
    """Tiny JSON-backed console settings.

    Stored in ~/.dm_configurator/app_state.json
    Currently tracks: backend_url, request_timeout_s
    Environment overrides win over the file: DM_CONFIG_BACKEND_URL, DM_CONFIG_TIMEOUT_S

    Only console settings live here; section edits are never written to disk.
    """

    DIR_NAME = ".dm_configurator"
    FILENAME = "app_state.json"
    ENV_BACKEND_URL = "DM_CONFIG_BACKEND_URL"
    ENV_TIMEOUT = "DM_CONFIG_TIMEOUT_S"

    @classmethod
    def _state_path(cls) -> Optional[Path]:
        d = Path.home() / cls.DIR_NAME
        try:
            d.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.warning("[app-state] cannot create %s: %s", d, e)
            return None
        return d / cls.FILENAME

    @classmethod
    def load(cls) -> Dict[str, Any]:
        p = cls._state_path()
        if p is None or not p.exists():
            return {}
        try:
            return json.loads(p.read_text(encoding="utf-8")) or {}
        except Exception as e:
            log.warning("[app-state] failed to read %s: %s", p, e)
            return {}

    @classmethod
    def save(cls, data: Dict[str, Any]) -> bool:
        p = cls._state_path()
        if p is None:
            return False
        try:
            p.write_text(json.dumps(data or {}, indent=2), encoding="utf-8")
            return True
        except Exception as e:
            log.warning("[app-state] failed to write %s: %s", p, e)
            return False

    # Convenience helpers
    @classmethod
    def get_backend_url(cls) -> str:
        env = os.getenv(cls.ENV_BACKEND_URL)
        if env:
            return env.rstrip("/")
        return ((cls.load() or {}).get("backend_url") or DEFAULT_BACKEND_URL).rstrip("/")

    @classmethod
    def set_backend_url(cls, url: str) -> bool:
        d = cls.load() or {}
        d["backend_url"] = url.strip().rstrip("/")
        return cls.save(d)

    @classmethod
    def get_request_timeout(cls) -> float:
        raw = os.getenv(cls.ENV_TIMEOUT) or (cls.load() or {}).get("request_timeout_s")
        if raw in (None, ""):
            return DEFAULT_TIMEOUT_S
        try:
            value = float(raw)
        except (TypeError, ValueError):
            log.warning("[app-state] ignoring bad request timeout %r", raw)
            return DEFAULT_TIMEOUT_S
        return value if value > 0 else DEFAULT_TIMEOUT_S
