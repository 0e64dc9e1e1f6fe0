"""Daily usage counters implementing UsageCounterPort.

Counters are keyed by UTC day, so yesterday's consumption never counts
against today's capacity.
"""

from __future__ import annotations

from datetime import datetime, timezone

import redis.asyncio as redis
import structlog

from ai_gateway.domain.entities import ApiUsage
from ai_gateway.domain.enums import UsageClass
from ai_gateway.ports.outbound import UsageCounterPort

logger = structlog.get_logger(__name__)

_DAY_SECONDS = 86_400


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


class MemoryUsageCounter(UsageCounterPort):
    def __init__(self) -> None:
        self._counts: dict[tuple[str, UsageClass], int] = {}

    async def get_usage(self) -> ApiUsage | None:
        day = _today()
        return ApiUsage(
            pilot_count=self._counts.get((day, UsageClass.PILOT), 0),
            student_count=self._counts.get((day, UsageClass.STUDENT), 0),
        )

    async def increment(self, usage_class: UsageClass) -> int:
        key = (_today(), usage_class)
        self._counts[key] = self._counts.get(key, 0) + 1
        return self._counts[key]

    async def close(self) -> None:
        pass


class RedisUsageCounter(UsageCounterPort):
    """Shared counters: ``{prefix}:{YYYY-MM-DD}:{class}`` with a two-day TTL."""

    def __init__(
        self,
        url: str,
        *,
        prefix: str = "api_usage",
        client: redis.Redis | None = None,
    ) -> None:
        self._prefix = prefix
        self._client = client or redis.Redis.from_url(url, decode_responses=True)

    def _key(self, day: str, usage_class: UsageClass) -> str:
        return f"{self._prefix}:{day}:{usage_class.value}"

    async def get_usage(self) -> ApiUsage | None:
        day = _today()
        try:
            pilot, student = await self._client.mget(
                self._key(day, UsageClass.PILOT),
                self._key(day, UsageClass.STUDENT),
            )
        except redis.RedisError as exc:
            logger.error("usage_read_error", error=str(exc))
            return None
        return ApiUsage(pilot_count=int(pilot or 0), student_count=int(student or 0))

    async def increment(self, usage_class: UsageClass) -> int:
        key = self._key(_today(), usage_class)
        try:
            val = await self._client.incr(key)
            if val == 1:
                await self._client.expire(key, 2 * _DAY_SECONDS)
            return val
        except redis.RedisError as exc:
            logger.error("usage_incr_error", key=key, error=str(exc))
            return 0

    async def close(self) -> None:
        await self._client.aclose()


def create_usage_counter(url: str, *, prefix: str = "api_usage") -> UsageCounterPort:
    if not url:
        logger.warning("redis_url_missing_falling_back_to_memory", store="usage")
        return MemoryUsageCounter()
    return RedisUsageCounter(url, prefix=prefix)
