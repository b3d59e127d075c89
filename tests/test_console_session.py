"""Tests for the session integrator and its event loop thread."""

import asyncio

import pytest

from conftest import FakeGateway, unreachable
from dm_config.controllers.console_session import AsyncLoopThread, ConsoleSession
from dm_config.models.results import RebootOutcome, SaveState
from dm_config.models.sections import SectionId


@pytest.fixture
def session():
    s = ConsoleSession("http://dm.local:8080", timeout_s=1.0, gateway=FakeGateway()).start()
    yield s
    s.close()


def test_loop_thread_runs_callables_and_coroutines():
    runner = AsyncLoopThread()
    runner.start()
    try:
        assert runner.call(lambda a, b: a + b, 2, 3) == 5

        async def _answer():
            return 42

        assert runner.submit(_answer()).result(timeout=2) == 42
    finally:
        runner.stop()


def test_session_loads_edits_and_saves(session):
    session.load_all().result(timeout=5)
    assert session.call(session.store.is_loaded, SectionId.BROKER)

    session.edit(SectionId.BROKER, "username", "ops")
    assert session.call(session.orchestrator.can_save)

    session.call(session.orchestrator.request_save)
    report = session.submit(session.orchestrator.confirm_save()).result(timeout=5)
    assert report.state == SaveState.SUCCEEDED
    assert session.gateway.reboot_count() == 1
    assert not session.call(session.store.is_dirty, SectionId.BROKER)


def test_unknown_section_is_a_key_error(session):
    with pytest.raises(KeyError):
        session.controller("device:NOPE")


def test_close_discards_store():
    gw = FakeGateway()
    s = ConsoleSession("http://dm.local:8080", timeout_s=1.0, gateway=gw).start()
    store = s.store
    s.load_all().result(timeout=5)
    s.edit(SectionId.DEVICE_MANAGER, "name", "Station B")
    s.close()
    assert store.closed
    assert s.store is None


def test_operator_reboot_reports_backend_message(session):
    result = session.reboot().result(timeout=5)
    assert result.outcome == RebootOutcome.REQUESTED
    assert result.message == "Reboot initiated"
    assert session.gateway.reboot_count() == 1


def test_operator_reboot_failure_carries_gateway_message(session):
    session.gateway.reboot_error = unreachable()
    result = session.reboot().result(timeout=5)
    assert result.outcome == RebootOutcome.FAILED
    assert "unreachable" in result.message


def test_operator_reboot_refused_while_saving(session):
    session.load_all().result(timeout=5)
    session.edit(SectionId.BROKER, "username", "ops")
    hold = session.call(asyncio.Event)
    session.gateway.holds[SectionId.BROKER] = hold
    session.call(session.orchestrator.request_save)
    saving = session.submit(session.orchestrator.confirm_save())
    try:
        while session.call(lambda: session.orchestrator.state) != SaveState.SAVING:
            pass
        result = session.reboot().result(timeout=5)
        assert result.outcome == RebootOutcome.NOT_REQUIRED
        assert session.gateway.reboot_count() == 0
    finally:
        session.call(hold.set)
    assert saving.result(timeout=5).state == SaveState.SUCCEEDED
    assert session.gateway.reboot_count() == 1
