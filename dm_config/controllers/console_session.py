# dm_config/controllers/console_session.py
from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from dm_config.controllers.app_state import AppState
from dm_config.controllers.backend_gateway import BackendGateway, GatewayError
from dm_config.controllers.orchestrator import SaveOrchestrator
from dm_config.controllers.section_controller import SectionController, build_section_controllers
from dm_config.controllers.session_store import SessionStore
from dm_config.models.results import RebootOutcome, RebootResult, SaveState
from dm_config.models.sections import FieldMap, SectionId

log = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncLoopThread:
    """
    An asyncio event loop on a daemon thread.

    Every store write, flag recomputation and orchestrator transition runs here, so the
    core stays single-threaded while the Tk main loop keeps the window responsive.
    """

    def __init__(self, name: str = "dm-config-loop") -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._started = threading.Event()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def start(self) -> None:
        if self._thread.is_alive():
            return
        self._thread.start()
        self._started.wait()

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._started.set)
        self._loop.run_forever()

    def submit(self, coro: Awaitable[T]) -> "concurrent.futures.Future[T]":
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def call(self, fn: Callable[..., T], *args: Any, timeout: Optional[float] = 5.0) -> T:
        """Run a plain callable on the loop and wait for its result."""
        async def _wrap() -> T:
            return fn(*args)
        return self.submit(_wrap()).result(timeout=timeout)

    def stop(self, timeout: float = 2.0) -> None:
        if not self._thread.is_alive():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=timeout)
        try:
            self._loop.close()
        except RuntimeError:
            log.debug("event loop close suppressed", exc_info=True)


class ConsoleSession:
    """
    Pragmatic integrator for one operator session:
      - Own the SessionStore (created here, discarded in close())
      - Own the BackendGateway, SaveOrchestrator and one SectionController per section
      - Run all of them on a single event loop thread
      - Expose thread-safe entry points for the window
    """

    def __init__(
        self,
        backend_url: Optional[str] = None,
        *,
        timeout_s: Optional[float] = None,
        gateway: Optional[BackendGateway] = None,
    ) -> None:
        self.backend_url = (backend_url or AppState.get_backend_url()).rstrip("/")
        self._timeout_s = timeout_s if timeout_s is not None else AppState.get_request_timeout()
        self._gateway_override = gateway
        self._runner = AsyncLoopThread()

        self.store: Optional[SessionStore] = None
        self.gateway: Optional[BackendGateway] = None
        self.orchestrator: Optional[SaveOrchestrator] = None
        self.controllers: Dict[SectionId, SectionController] = {}

    # ---------------- Lifecycle ----------------

    def start(self) -> "ConsoleSession":
        self._runner.start()
        self._runner.call(self._build)
        log.info("Session started against %s", self.backend_url)
        return self

    def _build(self) -> None:
        # httpx clients must be created on the loop that uses them
        self.store = SessionStore()
        self.gateway = self._gateway_override or BackendGateway(self.backend_url, timeout_s=self._timeout_s)
        self.orchestrator = SaveOrchestrator(self.store, self.gateway)
        self.controllers = build_section_controllers(self.store, self.gateway, self.orchestrator.set_valid)
        self.orchestrator.attach_all(self.controllers)

    def close(self) -> None:
        if self.store is None:
            self._runner.stop()
            return
        try:
            self._runner.submit(self._teardown()).result(timeout=5.0)
        except Exception:
            log.debug("session teardown suppressed", exc_info=True)
        finally:
            self._runner.stop()
            self.store = None
            self.gateway = None
            self.orchestrator = None
            self.controllers = {}

    async def _teardown(self) -> None:
        if self.store is not None:
            self.store.close()
        if self.gateway is not None:
            await self.gateway.aclose()

    # ---------------- Thread-safe entry points ----------------

    def submit(self, coro: Awaitable[T]) -> "concurrent.futures.Future[T]":
        return self._runner.submit(coro)

    def call(self, fn: Callable[..., T], *args: Any) -> T:
        return self._runner.call(fn, *args)

    def controller(self, section: SectionId) -> SectionController:
        try:
            return self.controllers[SectionId(section)]
        except (KeyError, ValueError) as e:
            raise KeyError(f"unknown section: {section!r}") from e

    def load_all(self) -> "concurrent.futures.Future[list]":
        """Fetch every section concurrently; each controller records its own failure."""
        async def _load() -> list:
            return await asyncio.gather(*(c.load() for c in self.controllers.values()))
        return self.submit(_load())

    def load_section(self, section: SectionId) -> "concurrent.futures.Future[Optional[FieldMap]]":
        return self.submit(self.controller(section).load())

    def edit(self, section: SectionId, key: str, value: Any) -> None:
        self.call(self.controller(section).on_field_change, key, value)

    def reboot(self) -> "concurrent.futures.Future[RebootResult]":
        """Operator-requested reboot, outside any save. Refused while a save is running."""
        async def _reboot() -> RebootResult:
            if self.orchestrator.state == SaveState.SAVING:
                return RebootResult(RebootOutcome.NOT_REQUIRED, "A save is in progress; reboot not sent.")
            try:
                resp = await self.gateway.reboot()
            except GatewayError as e:
                log.error("Reboot failed: %s", e.message)
                return RebootResult(RebootOutcome.FAILED, e.message)
            log.info("Reboot requested by operator")
            return RebootResult(RebootOutcome.REQUESTED, resp.message or "Reboot initiated")
        return self.submit(_reboot())
