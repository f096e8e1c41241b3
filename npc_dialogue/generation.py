"""Generation client, the one async boundary between a session and the model.

    result = await client.generate(utterance, persona)

Returns a GenerationResult for every expected failure mode:

  - model output wrapped in ```json fences → fences stripped, then parsed
  - output that is not the {"response", "action"} shape → the raw text is
    used as the reply with a "none" action
  - backend unreachable / HTTP error / timeout → an apology line with a
    "none" action

Anything else (a broken template, a bug) propagates to the caller.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from npc_dialogue.llm import LLM, LLMError
from npc_dialogue.models import Action, GenerationResult, Persona
from npc_dialogue.personas import DEFAULT_PERSONA
from npc_dialogue.prompts import DIALOGUE_TEMPLATE, build_context, render_prompt

logger = logging.getLogger(__name__)

APOLOGY_TEXT = "Sorry, I encountered an error processing your request."


class GenerationClient:
    def __init__(
        self,
        llm: LLM,
        default_persona: Persona = DEFAULT_PERSONA,
        template: str = DIALOGUE_TEMPLATE,
    ) -> None:
        self._llm = llm
        self._default_persona = default_persona
        self._template = template

    async def generate(
        self,
        utterance: str,
        persona: Persona | None = None,
        *,
        stage: str = "dialogue",
    ) -> GenerationResult:
        persona = persona or self._default_persona
        prompt = render_prompt(self._template, build_context(persona, utterance))
        try:
            raw = await self._llm(stage, prompt)
        except LLMError as e:
            logger.warning("generation failed stage=%s persona=%s: %s", stage, persona.id, e)
            return GenerationResult(response_text=APOLOGY_TEXT, action=Action())
        return parse_generation_output(raw)


# ---------------------------------------------------------------------------
# Output parsing
# ---------------------------------------------------------------------------

def strip_code_fences(text: str) -> str:
    return text.replace("```json", "").replace("```", "").strip()


def parse_generation_output(raw: str) -> GenerationResult:
    """Parse model output into a GenerationResult, falling back to raw text."""
    cleaned = strip_code_fences(raw)
    try:
        return GenerationResult.model_validate(json.loads(cleaned))
    except (json.JSONDecodeError, ValidationError):
        logger.warning("Model output is not a dialogue payload: %r", cleaned[:200])
        return GenerationResult(response_text=raw, action=Action())
