"""Traffic-light health policy.

Pure functions producing the field updates to persist after an attempt.
Live traffic and the prober share the same shape but use different
thresholds: live traffic turns an entry red once the failure count goes
*over* its threshold, the prober once the count *reaches* its own.
"""

from __future__ import annotations

from typing import Any

from ai_gateway.domain.entities import ModelEntry
from ai_gateway.domain.enums import HealthStatus


def status_after_failure(error_count: int, threshold: int, *, inclusive: bool) -> HealthStatus:
    over = error_count >= threshold if inclusive else error_count > threshold
    return HealthStatus.RED if over else HealthStatus.YELLOW


def live_success_updates(entry: ModelEntry) -> dict[str, Any]:
    """Advance the key cursor, count usage and reset health."""
    return {
        "current_key_index": (entry.key_position + 1) % len(entry.api_keys),
        "used_today": entry.used_today + 1,
        "status": HealthStatus.GREEN,
        "error_count": 0,
    }


def live_failure_updates(entry: ModelEntry, error: str, *, threshold: int) -> dict[str, Any]:
    new_count = entry.error_count + 1
    return {
        "error_count": new_count,
        "last_error": error,
        "status": status_after_failure(new_count, threshold, inclusive=False),
    }


def probe_success_updates(entry: ModelEntry) -> dict[str, Any]:
    """Reset health, or nothing when the entry is already clean."""
    if entry.status == HealthStatus.GREEN and entry.error_count == 0:
        return {}
    return {"status": HealthStatus.GREEN, "error_count": 0}


def probe_failure_updates(entry: ModelEntry, error: str, *, threshold: int) -> dict[str, Any]:
    new_count = entry.error_count + 1
    return {
        "error_count": new_count,
        "last_error": f"Health Check: {error}",
        "status": status_after_failure(new_count, threshold, inclusive=True),
    }
