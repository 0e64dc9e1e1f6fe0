"""Unit tests for model entries and the health policy."""

from __future__ import annotations

import pytest

from ai_gateway.domain.entities import ModelEntry, to_document_fields
from ai_gateway.domain.enums import HealthStatus
from ai_gateway.domain.services.health_policy import (
    live_failure_updates,
    live_success_updates,
    probe_failure_updates,
    probe_success_updates,
    status_after_failure,
)


# ═══════════════════════════════════════════════════════════════
#  ModelEntry
# ═══════════════════════════════════════════════════════════════
class TestModelEntry:
    def test_document_keys_are_camel_case(self, make_entry) -> None:
        doc = make_entry("m", current_key_index=2, used_today=3).to_document()
        assert doc["modelId"] == "m-model"
        assert doc["apiKeys"] == ["key-1"]
        assert doc["currentKeyIndex"] == 2
        assert doc["usedToday"] == 3
        assert doc["status"] == "green"
        assert "baseUrl" not in doc

    def test_from_document_tolerates_missing_fields(self) -> None:
        entry = ModelEntry.from_document({"id": "bare", "provider": "Groq", "modelId": "x"})
        assert entry.api_keys == []
        assert entry.current_key_index == 0
        assert entry.enabled is True
        assert entry.status == HealthStatus.GREEN
        assert entry.last_error is None

    def test_unknown_status_degrades_to_yellow(self) -> None:
        entry = ModelEntry.from_document({"id": "odd", "status": "purple"})
        assert entry.status == HealthStatus.YELLOW

    def test_current_key_reduced_modulo(self, make_entry) -> None:
        entry = make_entry("m", api_keys=["a", "b", "c"], current_key_index=7)
        assert entry.key_position == 1
        assert entry.current_key == "b"

    def test_keyless_entry(self, make_entry) -> None:
        entry = make_entry("m", api_keys=[])
        assert entry.has_keys is False
        assert entry.key_position == 0

    def test_public_view_hides_keys(self, make_entry) -> None:
        public = make_entry("m", api_keys=["secret-1", "secret-2"]).to_public()
        assert "apiKeys" not in public
        assert public["keyCount"] == 2
        assert "secret-1" not in str(public)

    def test_to_document_fields_rejects_unknown(self) -> None:
        with pytest.raises(KeyError):
            to_document_fields({"colour": "blue"})


# ═══════════════════════════════════════════════════════════════
#  Health policy
# ═══════════════════════════════════════════════════════════════
class TestHealthPolicy:
    @pytest.mark.parametrize(
        ("count", "inclusive", "expected"),
        [
            (5, False, HealthStatus.YELLOW),
            (6, False, HealthStatus.RED),
            (2, True, HealthStatus.YELLOW),
            (3, True, HealthStatus.RED),
        ],
    )
    def test_status_after_failure(self, count, inclusive, expected) -> None:
        threshold = 3 if inclusive else 5
        assert status_after_failure(count, threshold, inclusive=inclusive) == expected

    def test_live_success_advances_cursor(self, make_entry) -> None:
        entry = make_entry("m", api_keys=["a", "b"], current_key_index=1, used_today=4, error_count=2)
        assert live_success_updates(entry) == {
            "current_key_index": 0,
            "used_today": 5,
            "status": HealthStatus.GREEN,
            "error_count": 0,
        }

    def test_live_failure(self, make_entry) -> None:
        updates = live_failure_updates(make_entry("m", error_count=5), "boom", threshold=5)
        assert updates == {"error_count": 6, "last_error": "boom", "status": HealthStatus.RED}

    def test_probe_success_noop_when_clean(self, make_entry) -> None:
        assert probe_success_updates(make_entry("m")) == {}
        assert probe_success_updates(make_entry("m", error_count=1)) == {
            "status": HealthStatus.GREEN,
            "error_count": 0,
        }

    def test_probe_failure_prefixes_error(self, make_entry) -> None:
        updates = probe_failure_updates(make_entry("m", error_count=1), "timeout", threshold=3)
        assert updates["last_error"] == "Health Check: timeout"
        assert updates["status"] == HealthStatus.YELLOW
