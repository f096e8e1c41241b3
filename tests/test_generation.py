"""Tests for npc_dialogue.generation: output parsing and the client adapter."""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from conftest import OAK, ScriptedLLM, reply
from npc_dialogue.generation import (
    APOLOGY_TEXT,
    GenerationClient,
    parse_generation_output,
    strip_code_fences,
)
from npc_dialogue.llm import HttpLLM, LLMError
from npc_dialogue.personas import ELDER_OAK, MYSTIC_SAGE


# ---------------------------------------------------------------------------
# parse_generation_output
# ---------------------------------------------------------------------------

class TestParseGenerationOutput:
    def test_plain_json(self) -> None:
        result = parse_generation_output(reply("Hello"))
        assert result.response_text == "Hello"
        assert result.action.is_noop

    def test_code_fenced_json(self) -> None:
        raw = '```json\n{"response":"Hello","action":{"type":"none"}}\n```'
        result = parse_generation_output(raw)
        assert result.response_text == "Hello"
        assert result.action.type == "none"

    def test_bare_fences(self) -> None:
        raw = '```\n{"response":"Hello"}\n```'
        assert parse_generation_output(raw).response_text == "Hello"

    def test_action_fields(self) -> None:
        result = parse_generation_output(reply("Take this.", type="give_item", item="Sword"))
        assert result.action.type == "give_item"
        assert result.action.item == "Sword"

    def test_not_json_falls_back_to_raw_text(self) -> None:
        result = parse_generation_output("not json at all")
        assert result.response_text == "not json at all"
        assert result.action.type == "none"

    def test_wrong_shape_falls_back_to_raw_text(self) -> None:
        raw = json.dumps({"message": "Hello"})
        result = parse_generation_output(raw)
        assert result.response_text == raw
        assert result.action.is_noop

    def test_fallback_keeps_fences(self) -> None:
        raw = "```json\nnot json\n```"
        assert parse_generation_output(raw).response_text == raw

    def test_json_array_falls_back(self) -> None:
        assert parse_generation_output('["Hello"]').response_text == '["Hello"]'

    def test_strip_code_fences(self) -> None:
        assert strip_code_fences('  ```json\n{"a": 1}\n```  ') == '{"a": 1}'


# ---------------------------------------------------------------------------
# GenerationClient
# ---------------------------------------------------------------------------

class TestGenerationClient:
    async def test_returns_parsed_result(self) -> None:
        client = GenerationClient(ScriptedLLM(reply("Welcome.")))
        result = await client.generate("Hello", OAK)
        assert result.response_text == "Welcome."

    async def test_prompt_includes_persona_and_utterance(self) -> None:
        llm = ScriptedLLM(reply("ok"))
        await GenerationClient(llm).generate("Any riddles?", OAK)
        stage, prompt = llm.calls[0]
        assert stage == "dialogue"
        assert OAK.setup in prompt
        assert prompt.endswith("Player: Any riddles?")

    async def test_stage_passed_through(self) -> None:
        llm = ScriptedLLM(reply("ok"))
        await GenerationClient(llm).generate("Hello", OAK, stage="greeting")
        assert llm.calls[0][0] == "greeting"

    async def test_missing_persona_uses_default(self) -> None:
        llm = ScriptedLLM(reply("ok"))
        await GenerationClient(llm).generate("Hello", None)
        assert ELDER_OAK.setup in llm.calls[0][1]

    async def test_custom_default_persona(self) -> None:
        llm = ScriptedLLM(reply("ok"))
        await GenerationClient(llm, default_persona=MYSTIC_SAGE).generate("Hello")
        assert MYSTIC_SAGE.setup in llm.calls[0][1]

    async def test_llm_error_becomes_apology(self) -> None:
        async def broken(stage: str, prompt: str) -> str:
            raise LLMError("Cannot connect to LLM backend")

        result = await GenerationClient(broken).generate("Hello", OAK)
        assert result.response_text == APOLOGY_TEXT
        assert result.action.is_noop

    async def test_unexpected_error_propagates(self) -> None:
        async def broken(stage: str, prompt: str) -> str:
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError, match="bug"):
            await GenerationClient(broken).generate("Hello", OAK)

    async def test_connection_reset_becomes_apology(self) -> None:
        llm = HttpLLM(provider_url="http://localhost:5001", provider_format="koboldcpp")
        mock_post = AsyncMock(side_effect=httpx.ReadError("connection reset"))
        with patch("httpx.AsyncClient.post", mock_post):
            result = await GenerationClient(llm).generate("hi", OAK, stage="greeting")
        assert result.response_text == APOLOGY_TEXT
        assert result.action.is_noop
