"""Tests for config.llm_config and config.settings — LLM defaults and relay settings."""

import pytest

from config.llm_config import LLMConfig
from config.settings import Settings


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


# ── LLMConfig ─────────────────────────────────────────────────


def test_default_all_none():
    cfg = LLMConfig()
    assert cfg.model is None
    assert cfg.temperature is None
    assert cfg.stop is None


def test_validation_temperature_range():
    with pytest.raises(ValueError):
        LLMConfig(temperature=3.0)  # max 2.0


def test_merge_override_non_none():
    base = LLMConfig(model="openai/gpt-4.1-mini", temperature=0.7, max_tokens=4096)
    merged = base.merge(LLMConfig(temperature=0.2))

    assert merged.model == "openai/gpt-4.1-mini"
    assert merged.temperature == 0.2
    assert merged.max_tokens == 4096
    assert base.temperature == 0.7  # base untouched


def test_merge_empty_override():
    base = LLMConfig(model="a", temperature=0.5)
    merged = base.merge(LLMConfig())

    assert merged.model == "a"
    assert merged.temperature == 0.5


def test_to_litellm_kwargs_excludes_model_and_none():
    cfg = LLMConfig(model="openai/gpt-4o", max_tokens=2048, temperature=0.3)
    assert cfg.to_litellm_kwargs() == {"max_tokens": 2048, "temperature": 0.3}


def test_to_litellm_kwargs_all_fields():
    cfg = LLMConfig(
        max_tokens=1024,
        temperature=0.2,
        top_p=0.8,
        seed=123,
        frequency_penalty=0.5,
        stop=["<|end|>"],
    )
    assert cfg.to_litellm_kwargs() == {
        "max_tokens": 1024,
        "temperature": 0.2,
        "top_p": 0.8,
        "seed": 123,
        "frequency_penalty": 0.5,
        "stop": ["<|end|>"],
    }


# ── Settings ──────────────────────────────────────────────────


def test_settings_get_default_llm_config():
    s = _settings(default_model="anthropic/claude-3-5-haiku-20241022", max_tokens=2048, temperature=0.6)
    cfg = s.get_default_llm_config()

    assert cfg.model == "anthropic/claude-3-5-haiku-20241022"
    assert cfg.max_tokens == 2048
    assert cfg.temperature == 0.6
    assert cfg.seed is None


def test_relay_defaults_are_faithful():
    s = _settings()
    assert s.relay_upstream_timeout is None
    assert s.relay_cancel_on_disconnect is False
    assert s.relay_heartbeat_interval > 0


def test_relay_settings_from_env(monkeypatch):
    monkeypatch.setenv("RELAY_UPSTREAM_TIMEOUT", "30")
    monkeypatch.setenv("RELAY_CANCEL_ON_DISCONNECT", "true")
    s = _settings()
    assert s.relay_upstream_timeout == 30.0
    assert s.relay_cancel_on_disconnect is True


@pytest.mark.parametrize(
    "model,expected",
    [
        ("openai/gpt-4o", "sk-openai"),
        ("gpt-4o-mini", "sk-openai"),  # no prefix → openai
        ("anthropic/claude-3-haiku-20240307", "sk-ant"),
        ("mistral/mistral-large", ""),
    ],
)
def test_provider_key_for(model, expected):
    s = _settings(openai_api_key="sk-openai", anthropic_api_key="sk-ant")
    assert s.provider_key_for(model) == expected
