"""Periodic Telegram reachability checks."""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import Any, Protocol

import psutil

from shopbot.domain.models import HealthStatus, MemorySnapshot
from shopbot.logging import logger
from shopbot.utils.datetime import utc_now

DEFAULT_INTERVAL_MINUTES = 5
DEFAULT_PROBE_TIMEOUT = 10.0
_MB = 1024 * 1024


class ProbeTarget(Protocol):
    async def get_me(self) -> Any: ...


class HealthSupervisor:
    """Run ``get_me`` on a timer and keep the last liveness snapshot.

    A failed probe only records a recovery attempt; restarting the transport
    is left to whatever supervises the process.
    """

    def __init__(
        self,
        *,
        interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
    ) -> None:
        self.interval_minutes = interval_minutes
        self.probe_timeout = probe_timeout
        self.recovery_attempts = 0
        self._bot: ProbeTarget | None = None
        self._task: asyncio.Task[None] | None = None
        self._process = psutil.Process()
        self._status = HealthStatus(
            timestamp=utc_now(),
            uptime_seconds=0.0,
            health_check_interval=interval_minutes,
        )

    @property
    def status(self) -> HealthStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def attach(self, bot: ProbeTarget | None) -> None:
        self._bot = bot
        logger.info("health_monitor_bot_attached", attached=bot is not None)

    async def start(self, interval_minutes: int | None = None) -> int:
        """Arm the timer (replacing any running one) and run an immediate check."""

        if interval_minutes is not None:
            self.interval_minutes = interval_minutes
        self._arm()
        await self.run_check()
        return self.interval_minutes

    def set_interval(self, minutes: int) -> None:
        self.interval_minutes = minutes
        self._status = self._status.model_copy(update={"health_check_interval": minutes})
        if self.is_running:
            self._arm()
        logger.info("health_check_interval_set", minutes=minutes)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("health_checks_stopped")

    def _arm(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = asyncio.get_running_loop().create_task(
            self._run_periodically(self.interval_minutes * 60),
            name="health-supervisor",
        )
        logger.info("health_checks_started", interval_minutes=self.interval_minutes)

    async def _run_periodically(self, period_seconds: float) -> None:
        while True:
            await asyncio.sleep(period_seconds)
            try:
                await self.run_check()
                logger.debug("periodic_health_check_completed")
            except Exception as exc:
                logger.error("periodic_health_check_failed", error=str(exc), exc_info=True)

    async def run_check(self) -> HealthStatus:
        bot = self._bot
        connected = False
        last_error: str | None = None

        if bot is None:
            logger.warning("health_check_bot_not_initialized")
        else:
            try:
                await asyncio.wait_for(bot.get_me(), timeout=self.probe_timeout)
                connected = True
            except Exception as exc:
                last_error = str(exc) or exc.__class__.__name__
                logger.error(
                    "health_check_failed",
                    error=last_error,
                    error_type=exc.__class__.__name__,
                )
                await self.attempt_recovery(exc)

        status = HealthStatus(
            timestamp=utc_now(),
            uptime_seconds=self._uptime_seconds(),
            bot_running=bot is not None,
            telegram_api_connected=connected,
            memory=self._memory_snapshot(),
            health_check_interval=self.interval_minutes,
            last_error=last_error,
        )
        self._status = status

        if connected:
            logger.info(
                "health_check_passed",
                rss_mb=status.memory.rss_mb if status.memory else None,
                uptime_minutes=round(status.uptime_seconds / 60),
            )
        return status

    async def attempt_recovery(self, error: BaseException) -> None:
        self.recovery_attempts += 1
        logger.warning(
            "bot_recovery_attempted",
            error=str(error),
            attempts=self.recovery_attempts,
        )

    def _uptime_seconds(self) -> float:
        """Seconds since the process started, not since this supervisor was built."""

        try:
            started = self._process.create_time()
        except psutil.Error as exc:
            logger.warning("health_uptime_unavailable", error=str(exc))
            return 0.0
        return round(max(0.0, time.time() - started), 1)

    def _memory_snapshot(self) -> MemorySnapshot | None:
        try:
            info = self._process.memory_info()
            percent = self._process.memory_percent()
        except psutil.Error as exc:
            logger.warning("health_memory_snapshot_failed", error=str(exc))
            return None
        return MemorySnapshot(
            rss_mb=round(info.rss / _MB, 1),
            vms_mb=round(info.vms / _MB, 1),
            percent=round(percent, 2),
        )


__all__ = ["HealthSupervisor", "ProbeTarget"]
