"""Tests for model-output parsing helpers."""

from __future__ import annotations

import pytest

from ai_gateway.client.parsing import (
    MISSING_SUMMARY,
    clean_json,
    parse_json_or_default,
    parse_json_payload,
    split_dual_sections,
)
from ai_gateway.domain.exceptions import ParseError


class TestJsonParsing:
    def test_clean_json_strips_fences(self) -> None:
        assert clean_json('```json\n[{"a": 1}]\n```  ') == '[{"a": 1}]'

    def test_parse_fenced_array(self) -> None:
        assert parse_json_payload('```json\n[1, 2]\n```', expected=list) == [1, 2]

    def test_empty_output_is_empty_container(self) -> None:
        assert parse_json_payload("", expected=list) == []
        assert parse_json_payload(None, expected=dict) == {}

    def test_invalid_json_raises_parse_error(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_json_payload("Sure! Here are your questions:", expected=list)
        assert exc_info.value.text == "Sure! Here are your questions:"

    def test_wrong_container_type(self) -> None:
        with pytest.raises(ParseError, match="Expected a JSON list"):
            parse_json_payload('{"a": 1}', expected=list)

    def test_default_on_failure(self) -> None:
        assert parse_json_or_default("nope", [], expected=list) == []


class TestDualSections:
    def test_both_markers(self) -> None:
        text = "preamble <<<PREMIUM>>>\n Deep notes \n<<<SUMMARY>>>\n Short one \n"
        assert split_dual_sections(text) == ("Deep notes", "Short one")

    def test_premium_only(self) -> None:
        assert split_dual_sections("<<<PREMIUM>>> Only deep") == ("Only deep", "")

    def test_no_markers_whole_text_is_premium(self) -> None:
        assert split_dual_sections("Just notes") == ("Just notes", MISSING_SUMMARY)
