"""Pydantic Settings — typed configuration with .env auto-loading."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from config.llm_config import LLMConfig


class Settings(BaseSettings):
    """Application configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    service_name: str = "explain-anything-relay"
    service_port: int = 5000
    cors_origins: list[str] = ["*"]
    debug: bool = False
    log_level: str = "INFO"

    # ── LLM ──────────────────────────────────────────────────
    default_model: str = "openai/gpt-4.1-mini"
    max_tokens: int = 4096
    llm_request_timeout: int = 60  # LiteLLM per-request timeout (seconds)

    # ── LLM Generation Defaults (all optional, None = model default) ──
    temperature: float | None = None
    top_p: float | None = None
    seed: int | None = None
    frequency_penalty: float | None = None
    stop: list[str] | None = None

    # Provider API keys (read by LiteLLM automatically via env)
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    dashscope_api_key: str = ""

    # ── Streaming relay ──────────────────────────────────────
    # None = no relay-level timeout on the upstream call.
    relay_upstream_timeout: float | None = None
    # Cancel the upstream call when the browser disconnects mid-stream.
    relay_cancel_on_disconnect: bool = False
    relay_heartbeat_interval: float = 15.0  # seconds between SSE comments while idle

    # ── Concurrency ──────────────────────────────────────────
    max_concurrent_llm: int = 10  # per worker
    max_concurrent_streams: int = 15  # per worker

    # ── Helpers ───────────────────────────────────────────────

    def get_default_llm_config(self) -> LLMConfig:
        """Build an :class:`LLMConfig` from global .env defaults."""
        return LLMConfig(
            model=self.default_model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            top_p=self.top_p,
            seed=self.seed,
            frequency_penalty=self.frequency_penalty,
            stop=self.stop,
        )

    def provider_key_for(self, model: str) -> str:
        """Return the configured API key for *model*'s provider prefix."""
        provider = model.split("/", 1)[0] if "/" in model else "openai"
        return {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "dashscope": self.dashscope_api_key,
        }.get(provider, "")


@lru_cache
def get_settings() -> Settings:
    """Singleton accessor for application settings."""
    return Settings()
