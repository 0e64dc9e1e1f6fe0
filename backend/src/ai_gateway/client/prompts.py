"""Admin-configurable prompt templates.

Templates use ``{placeholder}`` markers (matched case-insensitively):
``board``, ``class``, ``stream``, ``subject``, ``chapter``, ``language``,
``instruction`` and, for MCQ templates, ``count``.  An empty template means
the built-in prompt is used.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ai_gateway.config import Settings

CBSE_BOARD = "CBSE"


def render_template(template: str, replacements: dict[str, str]) -> str:
    result = template
    for key, value in replacements.items():
        pattern = re.compile(r"\{" + re.escape(key) + r"\}", re.IGNORECASE)
        result = pattern.sub(lambda _m, v=value: v, result)
    return result


@dataclass(frozen=True, slots=True)
class PromptSet:
    mcq: str = ""
    notes: str = ""
    notes_premium: str = ""

    def fill_from(self, fallback: PromptSet) -> PromptSet:
        return PromptSet(
            mcq=self.mcq or fallback.mcq,
            notes=self.notes or fallback.notes,
            notes_premium=self.notes_premium or fallback.notes_premium,
        )


@dataclass(frozen=True, slots=True)
class PromptTemplates:
    """Template overrides per syllabus mode, with CBSE-specific variants.

    A CBSE-specific template wins over the general one of the same mode;
    school and competition templates never stand in for each other.
    """

    school: PromptSet = field(default_factory=PromptSet)
    school_cbse: PromptSet = field(default_factory=PromptSet)
    competition: PromptSet = field(default_factory=PromptSet)
    competition_cbse: PromptSet = field(default_factory=PromptSet)

    def resolve(self, *, board: str, competition: bool) -> PromptSet:
        general = self.competition if competition else self.school
        if board != CBSE_BOARD:
            return general
        specific = self.competition_cbse if competition else self.school_cbse
        return specific.fill_from(general)

    @classmethod
    def from_settings(cls, settings: Settings) -> PromptTemplates:
        def _set(suffix: str) -> PromptSet:
            return PromptSet(
                mcq=getattr(settings, f"ai_prompt_mcq{suffix}"),
                notes=getattr(settings, f"ai_prompt_notes{suffix}"),
                notes_premium=getattr(settings, f"ai_prompt_notes_premium{suffix}"),
            )

        return cls(
            school=_set(""),
            school_cbse=_set("_cbse"),
            competition=_set("_competition"),
            competition_cbse=_set("_competition_cbse"),
        )
