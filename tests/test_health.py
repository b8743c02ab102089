"""Tests for the periodic health supervisor."""

from __future__ import annotations

import asyncio
import time
from types import SimpleNamespace

import psutil
import pytest

from shopbot.logging import configure_logging
from shopbot.services.health import HealthSupervisor


class ProbeBot:
    def __init__(self, *, error: Exception | None = None, delay: float = 0.0) -> None:
        self.error = error
        self.delay = delay
        self.calls = 0

    async def get_me(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return {"id": 1, "username": "shop_bot"}


class FakeProcess:
    def __init__(self, started: float | None) -> None:
        self.started = started

    def create_time(self) -> float:
        if self.started is None:
            raise psutil.AccessDenied()
        return self.started

    def memory_info(self):
        return SimpleNamespace(rss=64 * 1024 * 1024, vms=128 * 1024 * 1024)

    def memory_percent(self) -> float:
        return 1.5


@pytest.fixture
def captured_logs(log_buffer):
    configure_logging("debug", buffer=log_buffer)
    yield log_buffer
    configure_logging("info")


@pytest.mark.asyncio
async def test_successful_probe_marks_connected(captured_logs):
    supervisor = HealthSupervisor()
    supervisor.attach(ProbeBot())

    status = await supervisor.run_check()

    assert status.telegram_api_connected is True
    assert status.bot_running is True
    assert status.last_error is None
    assert status.memory is not None and status.memory.rss_mb > 0
    assert supervisor.status is status
    assert any(entry.message == "health_check_passed" for entry in captured_logs.list())


@pytest.mark.asyncio
async def test_failed_probe_records_error_and_recovery(captured_logs):
    supervisor = HealthSupervisor()
    supervisor.attach(ProbeBot(error=ConnectionError("network unreachable")))

    status = await supervisor.run_check()

    assert status.telegram_api_connected is False
    assert status.last_error == "network unreachable"
    assert supervisor.recovery_attempts == 1
    errors = captured_logs.list(level="error")
    assert errors[0].message == "health_check_failed"
    assert errors[0].metadata["error"] == "network unreachable"
    assert captured_logs.list(level="warn")[0].message == "bot_recovery_attempted"


@pytest.mark.asyncio
async def test_liveness_recovers_after_failed_probe():
    bot = ProbeBot(error=ConnectionError("network unreachable"))
    supervisor = HealthSupervisor()
    supervisor.attach(bot)

    assert (await supervisor.run_check()).telegram_api_connected is False
    bot.error = None
    status = await supervisor.run_check()

    assert status.telegram_api_connected is True
    assert status.last_error is None


@pytest.mark.asyncio
async def test_probe_timeout_counts_as_failure(captured_logs):
    supervisor = HealthSupervisor(probe_timeout=0.01)
    supervisor.attach(ProbeBot(delay=1.0))

    status = await supervisor.run_check()

    assert status.telegram_api_connected is False
    assert status.last_error == "TimeoutError"
    assert supervisor.recovery_attempts == 1


@pytest.mark.asyncio
async def test_check_without_bot_reports_not_running(captured_logs):
    supervisor = HealthSupervisor()

    status = await supervisor.run_check()

    assert status.bot_running is False
    assert status.telegram_api_connected is False
    assert supervisor.recovery_attempts == 0
    assert captured_logs.list(level="warn")[0].message == "health_check_bot_not_initialized"


@pytest.mark.asyncio
async def test_start_runs_immediate_check_and_stop_is_idempotent():
    bot = ProbeBot()
    supervisor = HealthSupervisor(interval_minutes=5)
    supervisor.attach(bot)

    interval = await supervisor.start(10)

    assert interval == 10
    assert bot.calls == 1
    assert supervisor.is_running
    assert supervisor.status.health_check_interval == 10

    await supervisor.stop()
    await supervisor.stop()
    assert not supervisor.is_running


@pytest.mark.asyncio
async def test_restart_replaces_existing_timer():
    supervisor = HealthSupervisor()
    supervisor.attach(ProbeBot())

    await supervisor.start()
    first_task = supervisor._task
    await supervisor.start()
    await asyncio.gather(first_task, return_exceptions=True)

    assert first_task.cancelled()
    assert supervisor._task is not first_task
    await supervisor.stop()


@pytest.mark.asyncio
async def test_set_interval_rearms_running_timer():
    supervisor = HealthSupervisor()
    supervisor.attach(ProbeBot())
    await supervisor.start(5)
    task = supervisor._task

    supervisor.set_interval(1)
    await asyncio.gather(task, return_exceptions=True)

    assert supervisor.interval_minutes == 1
    assert supervisor.status.health_check_interval == 1
    assert supervisor._task is not task
    assert task.cancelled()
    await supervisor.stop()


def test_set_interval_when_stopped_does_not_arm():
    supervisor = HealthSupervisor()

    supervisor.set_interval(15)

    assert supervisor.interval_minutes == 15
    assert not supervisor.is_running


@pytest.mark.asyncio
async def test_periodic_loop_keeps_running_after_failures(monkeypatch):
    supervisor = HealthSupervisor()
    calls = []

    async def flaky_check():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("transient")
        return supervisor.status

    monkeypatch.setattr(supervisor, "run_check", flaky_check)
    task = asyncio.create_task(supervisor._run_periodically(0.001))
    while len(calls) < 3:
        await asyncio.sleep(0.005)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(calls) >= 3


@pytest.mark.asyncio
async def test_uptime_counts_from_process_start():
    supervisor = HealthSupervisor()
    supervisor._process = FakeProcess(started=time.time() - 3600)
    supervisor.attach(ProbeBot())

    status = await supervisor.run_check()

    assert 3600 <= status.uptime_seconds < 3660
    assert status.memory.rss_mb == 64.0


@pytest.mark.asyncio
async def test_uptime_unavailable_reports_zero(captured_logs):
    supervisor = HealthSupervisor()
    supervisor._process = FakeProcess(started=None)
    supervisor.attach(ProbeBot())

    status = await supervisor.run_check()

    assert status.uptime_seconds == 0.0
    assert any(e.message == "health_uptime_unavailable" for e in captured_logs.list(level="warn"))
