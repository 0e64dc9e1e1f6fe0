"""Application services — routing, health probing and seeding."""

from ai_gateway.application.services.prober import PING_MESSAGES, HealthProber
from ai_gateway.application.services.router import FailoverRouter, select_candidates
from ai_gateway.application.services.seed import STARTER_CATALOG, seed_registry, starter_entries

__all__ = [
    "FailoverRouter",
    "HealthProber",
    "PING_MESSAGES",
    "STARTER_CATALOG",
    "seed_registry",
    "select_candidates",
    "starter_entries",
]
