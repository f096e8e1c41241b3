import asyncio
import json

import pytest

from npc_dialogue.generation import GenerationClient
from npc_dialogue.models import Persona
from npc_dialogue.render import MemorySurface
from npc_dialogue.session import SessionController

OAK = Persona(id="oak", name="Elder Oak", setup="You are a wise old tree.")
SAGE = Persona(id="sage", name="Mystic Sage", setup="You speak only in riddles.")


def reply(text: str, **action) -> str:
    """Model output in the wire format, action defaulting to none."""
    return json.dumps({"response": text, "action": action or {"type": "none"}})


class GatedLLM:
    """LLM fake whose calls stay pending until the test resolves them.

    calls[i] is (stage, prompt, future); resolve(i, text) / fail(i, exc)
    complete the i-th call.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, asyncio.Future]] = []

    async def __call__(self, stage: str, prompt: str) -> str:
        fut = asyncio.get_running_loop().create_future()
        self.calls.append((stage, prompt, fut))
        return await fut

    async def wait_for_calls(self, n: int) -> None:
        for _ in range(100):
            if len(self.calls) >= n:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"expected {n} LLM calls, got {len(self.calls)}")

    def resolve(self, i: int, text: str) -> None:
        self.calls[i][2].set_result(text)

    def fail(self, i: int, exc: BaseException) -> None:
        self.calls[i][2].set_exception(exc)


class ScriptedLLM:
    """LLM fake that answers immediately from a list of canned outputs."""

    def __init__(self, *responses: str) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, stage: str, prompt: str) -> str:
        self.calls.append((stage, prompt))
        return self._responses.pop(0)


class RecordingDispatcher:
    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def __call__(self, npc_id, action) -> None:
        self.calls.append((npc_id, action))


@pytest.fixture
def llm() -> GatedLLM:
    return GatedLLM()


@pytest.fixture
def surface() -> MemorySurface:
    return MemorySurface()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
async def controller(llm, surface, dispatcher):
    ctrl = SessionController(
        GenerationClient(llm),
        surface,
        dispatch_action=dispatcher,
        action_delay_ms=20,
        chars_per_tick=4,
        tick_interval_ms=1,
    )
    yield ctrl
    await ctrl.close()
