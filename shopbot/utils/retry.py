"""Retry policy for outbound calls that may hit transient transport errors."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from shopbot.logging import logger

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Linear backoff: the n-th retry waits ``base_delay * n`` seconds."""

    max_attempts: int = 3
    base_delay: float = 0.5
    retry_on: tuple[type[BaseException], ...] = (Exception,)
    give_up_on: tuple[type[BaseException], ...] = ()

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * attempt

    def should_retry(self, exc: BaseException, attempt: int) -> bool:
        if isinstance(exc, self.give_up_on):
            return False
        return isinstance(exc, self.retry_on) and attempt < self.max_attempts


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    operation_name: str = "operation",
) -> T:
    """Run ``operation`` until it succeeds or ``policy`` says to stop.

    The last exception is re-raised unchanged.
    """

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            if not policy.should_retry(exc, attempt):
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                "retrying_operation",
                operation=operation_name,
                attempt=attempt,
                max_attempts=policy.max_attempts,
                delay=delay,
                error=str(exc),
            )
            await asyncio.sleep(delay)
            attempt += 1


__all__ = ["RetryPolicy", "retry_async"]
