"""Advisory daily quota shared between pilot (admin) and student callers."""

from __future__ import annotations

import math

import structlog

from ai_gateway.domain.enums import UsageClass
from ai_gateway.domain.exceptions import QuotaExceededError
from ai_gateway.ports.outbound import UsageCounterPort

logger = structlog.get_logger(__name__)

TOTAL_CAPACITY = 50_000


def quota_limits(pilot_ratio: int, total_capacity: int = TOTAL_CAPACITY) -> tuple[int, int]:
    """(pilot_limit, student_limit) for a pilot share given in percent."""
    pilot_limit = math.floor(total_capacity * pilot_ratio / 100)
    return pilot_limit, total_capacity - pilot_limit


class QuotaGuard:
    """Pre-flight capacity check.

    Only an exhausted share is an error.  An unreachable or empty usage
    store skips the check; the gateway itself is the hard limit.
    """

    def __init__(
        self,
        usage: UsageCounterPort,
        *,
        pilot_ratio: int = 80,
        total_capacity: int = TOTAL_CAPACITY,
    ) -> None:
        self._usage = usage
        self.pilot_limit, self.student_limit = quota_limits(pilot_ratio, total_capacity)

    async def check(self, usage_class: UsageClass) -> None:
        try:
            usage = await self._usage.get_usage()
        except Exception as exc:
            logger.warning("quota_check_skipped", usage_class=usage_class.value, error=str(exc))
            return
        if usage is None:
            return

        if usage_class == UsageClass.PILOT:
            used, limit = usage.pilot_count, self.pilot_limit
        else:
            used, limit = usage.student_count, self.student_limit

        if used >= limit:
            logger.warning("quota_exceeded", usage_class=usage_class.value, used=used, limit=limit)
            raise QuotaExceededError(usage_class.value, used, limit)

    async def record(self, usage_class: UsageClass) -> None:
        try:
            await self._usage.increment(usage_class)
        except Exception as exc:
            logger.warning("usage_record_failed", usage_class=usage_class.value, error=str(exc))
