"""Domain entities — model registry entries and daily usage snapshots.

A ``ModelEntry`` is persisted as a camelCase document.  The mapping between
attribute names and document keys lives here so every store adapter shares
the same wire shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any

from ai_gateway.domain.enums import HealthStatus, Provider


# ═══════════════════════════════════════════════════════════════
#  Model entry
# ═══════════════════════════════════════════════════════════════
DOCUMENT_KEYS: dict[str, str] = {
    "id": "id",
    "name": "name",
    "provider": "provider",
    "model_id": "modelId",
    "api_keys": "apiKeys",
    "current_key_index": "currentKeyIndex",
    "enabled": "enabled",
    "priority": "priority",
    "daily_limit": "dailyLimit",
    "used_today": "usedToday",
    "status": "status",
    "error_count": "errorCount",
    "last_error": "lastError",
    "base_url": "baseUrl",
}


def to_document_fields(updates: dict[str, Any]) -> dict[str, Any]:
    """Translate attribute-named updates into document keys."""
    doc: dict[str, Any] = {}
    for attr, value in updates.items():
        key = DOCUMENT_KEYS.get(attr)
        if key is None:
            raise KeyError(f"Unknown model entry field {attr!r}")
        if isinstance(value, HealthStatus):
            value = value.value
        doc[key] = value
    return doc


@dataclass(slots=True)
class ModelEntry:
    """One configured (provider, model) pair with its credentials and health."""

    id: str
    name: str = ""
    provider: str = Provider.OPENAI.value
    model_id: str = ""
    api_keys: list[str] = field(default_factory=list)
    current_key_index: int = 0
    enabled: bool = True
    priority: int = 10
    daily_limit: int = 0
    used_today: int = 0
    status: HealthStatus = HealthStatus.GREEN
    error_count: int = 0
    last_error: str | None = None
    base_url: str | None = None

    @property
    def has_keys(self) -> bool:
        return bool(self.api_keys)

    @property
    def key_position(self) -> int:
        """Current key index reduced into range; 0 when there are no keys."""
        if not self.api_keys:
            return 0
        return self.current_key_index % len(self.api_keys)

    @property
    def current_key(self) -> str:
        return self.api_keys[self.key_position]

    @property
    def is_routable(self) -> bool:
        return self.enabled and self.status != HealthStatus.RED

    # ── Serialisation ────────────────────────────────────────
    def to_document(self) -> dict[str, Any]:
        doc = to_document_fields({f.name: getattr(self, f.name) for f in fields(self)})
        if doc.get("baseUrl") is None:
            doc.pop("baseUrl", None)
        return doc

    def to_public(self) -> dict[str, Any]:
        """Document without credentials, for read-only listings."""
        doc = self.to_document()
        doc.pop("apiKeys", None)
        doc["keyCount"] = len(self.api_keys)
        return doc

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> ModelEntry:
        keys = doc.get("apiKeys") or []
        return cls(
            id=str(doc["id"]),
            name=str(doc.get("name", "")),
            provider=str(doc.get("provider", Provider.OPENAI.value)),
            model_id=str(doc.get("modelId", "")),
            api_keys=[str(k) for k in keys if k],
            current_key_index=int(doc.get("currentKeyIndex") or 0),
            enabled=bool(doc.get("enabled", True)),
            priority=int(doc.get("priority", 10)),
            daily_limit=int(doc.get("dailyLimit") or 0),
            used_today=int(doc.get("usedToday") or 0),
            status=HealthStatus.parse(doc.get("status")),
            error_count=int(doc.get("errorCount") or 0),
            last_error=doc.get("lastError"),
            base_url=doc.get("baseUrl") or None,
        )


# ═══════════════════════════════════════════════════════════════
#  Usage
# ═══════════════════════════════════════════════════════════════
@dataclass(slots=True)
class ApiUsage:
    """Today's consumption counters, split by caller class."""

    pilot_count: int = 0
    student_count: int = 0
