"""Domain enumerations for the AI gateway."""

from __future__ import annotations

import enum


class Provider(str, enum.Enum):
    """Known provider labels as stored on a model entry.

    Labels outside this set are still routable; they are treated as generic
    OpenAI-compatible providers.
    """

    GROQ = "Groq"
    GEMINI = "Gemini"
    OPENAI = "OpenAI"
    DEEPSEEK = "DeepSeek"
    MISTRAL = "Mistral"
    OPENROUTER = "OpenRouter"
    PERPLEXITY = "Perplexity"
    TOGETHER = "Together"
    FIREWORKS = "Fireworks"
    COHERE = "Cohere"
    HUGGINGFACE = "HuggingFace"
    CLAUDE = "Claude"


class HealthStatus(str, enum.Enum):
    """Traffic-light health of a model entry."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"

    @classmethod
    def parse(cls, raw: object) -> HealthStatus:
        if raw is None:
            return cls.GREEN
        try:
            return cls(str(raw).lower())
        except ValueError:
            return cls.YELLOW


class UsageClass(str, enum.Enum):
    """Caller class sharing the global daily capacity."""

    PILOT = "PILOT"
    STUDENT = "STUDENT"


class ProbeOutcome(str, enum.Enum):
    OK = "ok"
    FAILED = "failed"
