"""Handlebars prompt rendering for NPC dialogue."""

from collections.abc import Callable
from typing import Any

import pybars

from npc_dialogue.models import Persona

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


MASTER_PROMPT = """You are a helpful and friendly NPC in a 2D top-down RPG game. Your answers should be concise and short.

Your response should be in a JSON format. That should follow this structure:
{
    "response": "Your dialogue response to the player goes here.",
    "action": {
        "type": "none", // or "give_item" or "start_battle"
        "item": "Name of the item to give (only if type is give_item)"
    }
}"""

# Triple-stash everywhere: prompts are plain text, not HTML.
DIALOGUE_TEMPLATE = "{{{master}}}\n\n{{{persona.setup}}}\n\nPlayer: {{{utterance}}}"


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def build_context(persona: Persona, utterance: str) -> dict[str, Any]:
    """Assemble template variables for one generation request."""
    return {
        "master": MASTER_PROMPT,
        "persona": {"id": persona.id, "name": persona.name, "setup": persona.setup},
        "utterance": utterance,
    }
