"""Runtime settings, read from the environment (main.py loads a local .env into it).

    LLM_PROVIDER_URL      backend base URL
    LLM_PROVIDER_FORMAT   gemini | openai | koboldcpp | offline
    LLM_API_KEY           API key, empty if the backend needs none
    LLM_MODEL             model identifier (gemini / openai formats)
    LLM_TIMEOUT           HTTP timeout in seconds
    NPC_ACTION_DELAY_MS   pause between a reply and its game action
    NPC_CHARS_PER_TICK    typewriter speed: characters revealed per tick
    NPC_TICK_INTERVAL_MS  typewriter speed: milliseconds between ticks
    NPC_GREETING          line sent on the player's behalf on first contact
"""

import os
from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, Field

from npc_dialogue.models import DEFAULT_GREETING

_ENV_FIELDS: dict[str, str] = {
    "LLM_PROVIDER_URL": "provider_url",
    "LLM_PROVIDER_FORMAT": "provider_format",
    "LLM_API_KEY": "api_key",
    "LLM_MODEL": "model",
    "LLM_TIMEOUT": "timeout",
    "NPC_ACTION_DELAY_MS": "action_delay_ms",
    "NPC_CHARS_PER_TICK": "chars_per_tick",
    "NPC_TICK_INTERVAL_MS": "tick_interval_ms",
    "NPC_GREETING": "greeting",
}


class Settings(BaseModel):
    provider_url: str = "https://generativelanguage.googleapis.com"
    provider_format: Literal["gemini", "openai", "koboldcpp", "offline"] = "gemini"
    api_key: str = ""
    model: str = "gemini-2.5-flash"
    timeout: float = Field(default=60.0, gt=0)
    action_delay_ms: int = Field(default=500, ge=0)
    chars_per_tick: int = Field(default=1, ge=1)
    tick_interval_ms: int = Field(default=30, ge=0)
    greeting: str = DEFAULT_GREETING


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from environment variables, defaults for anything unset.

    Raises pydantic.ValidationError on values of the wrong type or range.
    """
    source = os.environ if env is None else env
    fields = {
        field: source[name].strip()
        for name, field in _ENV_FIELDS.items()
        if source.get(name, "").strip()
    }
    if "provider_format" in fields:
        fields["provider_format"] = fields["provider_format"].lower()
    return Settings.model_validate(fields)
