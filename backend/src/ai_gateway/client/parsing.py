"""Model-output parsing helpers.

Models are asked for raw JSON but frequently wrap it in markdown fences;
every structured response goes through ``parse_json_payload`` so the
failure mode is always a ``ParseError``.
"""

from __future__ import annotations

from typing import Any

import orjson

from ai_gateway.domain.exceptions import ParseError

PREMIUM_MARKER = "<<<PREMIUM>>>"
SUMMARY_MARKER = "<<<SUMMARY>>>"
MISSING_SUMMARY = "Summary not generated."


def clean_json(text: str) -> str:
    """Strip ```json / ``` fences and surrounding whitespace."""
    return text.replace("```json", "").replace("```", "").strip()


def parse_json_payload(text: str | None, *, expected: type[list] | type[dict] | None = None) -> Any:
    """Decode model output as JSON.

    Empty output decodes to an empty ``expected`` container.  When
    ``expected`` is given the decoded value must be of that type.
    """
    cleaned = clean_json(text or "")
    if not cleaned:
        if expected is None:
            raise ParseError("Empty model output", text=text or "")
        return expected()
    try:
        value = orjson.loads(cleaned)
    except orjson.JSONDecodeError as exc:
        raise ParseError(f"Model output is not valid JSON: {exc}", text=cleaned) from exc
    if expected is not None and not isinstance(value, expected):
        raise ParseError(
            f"Expected a JSON {expected.__name__}, got {type(value).__name__}",
            text=cleaned,
        )
    return value


def parse_json_or_default(
    text: str | None,
    default: Any,
    *,
    expected: type[list] | type[dict] | None = None,
) -> Any:
    try:
        return parse_json_payload(text, expected=expected)
    except ParseError:
        return default


def split_dual_sections(text: str) -> tuple[str, str]:
    """Split ``<<<PREMIUM>>> ... <<<SUMMARY>>> ...`` output into (premium, summary).

    Output without the premium marker is treated as one premium section.
    """
    if PREMIUM_MARKER not in text:
        return text, MISSING_SUMMARY
    after = text.split(PREMIUM_MARKER)[1]
    premium, _, summary = after.partition(SUMMARY_MARKER)
    return premium.strip(), summary.strip()
