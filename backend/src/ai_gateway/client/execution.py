"""Client-side execution: quota pre-check, retry with linear backoff, bulk fan-out."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from ai_gateway.client.quota import QuotaGuard
from ai_gateway.domain.enums import UsageClass
from ai_gateway.domain.exceptions import QuotaExceededError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "ai_operation_retry",
        attempt=state.attempt_number,
        error=str(exc),
        wait_s=state.next_action.sleep if state.next_action else None,
    )


class AIExecutor:
    """Runs gateway-backed operations on behalf of application code.

    Usage::

        executor = AIExecutor(QuotaGuard(usage), max_retries=1, retry_delay=1.0)
        text = await executor.execute(lambda: client.complete(messages), UsageClass.STUDENT)
    """

    def __init__(
        self,
        quota: QuotaGuard,
        *,
        max_retries: int = 1,
        retry_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._quota = quota
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._sleep = sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        usage_class: UsageClass = UsageClass.STUDENT,
    ) -> T:
        """Run ``operation`` with a quota pre-check and bounded retries.

        Attempt ``n`` failing waits ``retry_delay * n`` before the next one.
        ``QuotaExceededError`` is never retried; the last error is re-raised
        once retries are exhausted.
        """
        await self._quota.check(usage_class)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_retries + 1),
            wait=wait_incrementing(start=self._retry_delay, increment=self._retry_delay),
            retry=retry_if_not_exception_type(QuotaExceededError),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                result = await operation()

        await self._quota.record(usage_class)
        return result

    async def run_bulk(
        self,
        tasks: Sequence[Callable[[], Awaitable[T | None]]],
        *,
        concurrency: int = 20,
        usage_class: UsageClass | None = None,
    ) -> list[T]:
        """Run independent tasks with at most ``concurrency`` in flight.

        Failed tasks are logged and dropped.  Successful results keep the
        order of ``tasks``; tasks yielding ``None`` contribute nothing.
        """
        if not tasks:
            return []
        if usage_class is not None:
            await self._quota.check(usage_class)

        results: list[T | None] = [None] * len(tasks)
        next_index = 0

        async def worker(worker_id: int) -> None:
            nonlocal next_index
            while next_index < len(tasks):
                idx = next_index
                next_index += 1
                try:
                    results[idx] = await tasks[idx]()
                except Exception as exc:
                    logger.error("bulk_task_failed", task=idx, worker=worker_id, error=str(exc))
                    continue
                if usage_class is not None:
                    await self._quota.record(usage_class)

        workers = min(concurrency, len(tasks))
        logger.info("bulk_execution_started", tasks=len(tasks), workers=workers)
        await asyncio.gather(*(worker(i) for i in range(workers)))
        return [r for r in results if r is not None]
