"""Tests for npc_dialogue.config."""

import pytest
from pydantic import ValidationError

from npc_dialogue.config import Settings, load_settings
from npc_dialogue.models import DEFAULT_GREETING


def test_defaults():
    settings = load_settings({})
    assert settings == Settings()
    assert settings.provider_format == "gemini"
    assert settings.model == "gemini-2.5-flash"
    assert settings.action_delay_ms == 500
    assert settings.chars_per_tick == 1
    assert settings.greeting == DEFAULT_GREETING


def test_values_from_env():
    settings = load_settings({
        "LLM_PROVIDER_URL": "http://localhost:5001",
        "LLM_PROVIDER_FORMAT": "KoboldCpp",
        "LLM_API_KEY": "secret",
        "LLM_TIMEOUT": "12.5",
        "NPC_ACTION_DELAY_MS": "250",
        "NPC_CHARS_PER_TICK": "3",
        "NPC_TICK_INTERVAL_MS": "10",
        "NPC_GREETING": "Hi!",
    })
    assert settings.provider_url == "http://localhost:5001"
    assert settings.provider_format == "koboldcpp"
    assert settings.api_key == "secret"
    assert settings.timeout == 12.5
    assert settings.action_delay_ms == 250
    assert settings.chars_per_tick == 3
    assert settings.tick_interval_ms == 10
    assert settings.greeting == "Hi!"


def test_blank_values_use_defaults():
    settings = load_settings({"LLM_MODEL": "   ", "NPC_ACTION_DELAY_MS": ""})
    assert settings.model == "gemini-2.5-flash"
    assert settings.action_delay_ms == 500


def test_offline_format_accepted():
    assert load_settings({"LLM_PROVIDER_FORMAT": "offline"}).provider_format == "offline"


def test_unknown_format_rejected():
    with pytest.raises(ValidationError):
        load_settings({"LLM_PROVIDER_FORMAT": "carrier-pigeon"})


def test_non_numeric_delay_rejected():
    with pytest.raises(ValidationError):
        load_settings({"NPC_ACTION_DELAY_MS": "soon"})


def test_zero_chars_per_tick_rejected():
    with pytest.raises(ValidationError):
        load_settings({"NPC_CHARS_PER_TICK": "0"})


def test_import_leaves_environment_alone(monkeypatch):
    import importlib.util

    import dotenv

    import npc_dialogue.config as config

    calls = []
    monkeypatch.setattr(dotenv, "load_dotenv", lambda *a, **kw: calls.append(a))
    spec = importlib.util.spec_from_file_location("_fresh_config", config.__file__)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    assert calls == []
    assert module.load_settings({}).greeting == DEFAULT_GREETING
