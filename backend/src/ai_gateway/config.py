"""AI Gateway — Application Configuration."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, enum.Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


def parse_keys(raw: str) -> list[str]:
    """Split a comma-separated key list, dropping blanks and duplicates."""
    keys: list[str] = []
    for part in raw.split(","):
        key = part.strip()
        if key and key not in keys:
            keys.append(key)
    return keys


class Settings(BaseSettings):
    """Centralised, validated configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────
    app_name: str = "ai-gateway"
    app_env: Environment = Environment.DEVELOPMENT
    app_debug: bool = False
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # ── Registry store ───────────────────────────────────────
    # Empty URL keeps the registry and usage counters in process memory.
    redis_url: str = ""
    redis_max_connections: int = 50
    registry_key_prefix: str = "ai_models"
    usage_key_prefix: str = "api_usage"

    # ── Providers ────────────────────────────────────────────
    provider_timeout_seconds: float = 60.0
    openrouter_referer: str = "https://ai-gateway.local"
    openrouter_title: str = "AI Gateway"

    # ── Health policy ────────────────────────────────────────
    live_red_threshold: int = Field(5, ge=1)
    probe_red_threshold: int = Field(3, ge=1)
    probe_interval_seconds: float = 0.0  # 0 = rely on external cron

    # ── Seed keys (comma-separated, used by POST /api/seed) ──
    groq_api_keys: str = ""
    gemini_api_keys: str = ""
    claude_api_keys: str = ""
    openai_api_keys: str = ""
    deepseek_api_keys: str = ""
    mistral_api_keys: str = ""

    # ── Client-side orchestration ────────────────────────────
    gateway_url: str = "http://localhost:8000"
    client_timeout_seconds: float = 120.0
    ai_pilot_ratio: int = Field(80, ge=0, le=100)
    client_max_retries: int = Field(1, ge=0)
    client_retry_delay_seconds: float = 1.0
    bulk_concurrency: int = Field(50, ge=1)

    # ── Content prompts (empty = built-in prompt) ────────────
    ai_instruction: str = ""
    ai_prompt_mcq: str = ""
    ai_prompt_notes: str = ""
    ai_prompt_notes_premium: str = ""
    ai_prompt_mcq_cbse: str = ""
    ai_prompt_notes_cbse: str = ""
    ai_prompt_notes_premium_cbse: str = ""
    ai_prompt_mcq_competition: str = ""
    ai_prompt_notes_competition: str = ""
    ai_prompt_notes_premium_competition: str = ""
    ai_prompt_mcq_competition_cbse: str = ""
    ai_prompt_notes_competition_cbse: str = ""
    ai_prompt_notes_premium_competition_cbse: str = ""

    # ── Observability ────────────────────────────────────────
    prometheus_enabled: bool = True

    # ── Derived helpers ──────────────────────────────────────
    @property
    def is_production(self) -> bool:
        return self.app_env == Environment.PRODUCTION

    def seed_keys_for(self, provider: str) -> list[str]:
        """Configured seed keys for a provider label (``"Groq"``, ``"Gemini"``...)."""
        raw = getattr(self, f"{provider.lower()}_api_keys", "")
        return parse_keys(raw) if isinstance(raw, str) else []

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("gateway_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


def get_settings(**overrides: Any) -> Settings:
    """Factory that allows test-time overrides."""
    return Settings(**overrides)
