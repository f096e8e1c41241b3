from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from npc_dialogue.config import Settings, load_settings
from npc_dialogue.generation import GenerationClient
from npc_dialogue.llm import LLM, HttpLLM, OfflineLLM
from npc_dialogue.models import Action, NpcId
from npc_dialogue.render import MemorySurface
from npc_dialogue.routes import router
from npc_dialogue.session import SessionController, log_action


class ActionFeed:
    """Holds dispatched game actions until the game client polls for them."""

    def __init__(self) -> None:
        self._pending: list[dict[str, Any]] = []

    def __call__(self, npc_id: NpcId, action: Action) -> None:
        log_action(npc_id, action)
        self._pending.append({"npc_id": npc_id, **action.model_dump(exclude_none=True)})

    def drain(self) -> list[dict[str, Any]]:
        drained, self._pending = self._pending, []
        return drained


def build_llm(settings: Settings) -> LLM:
    if settings.provider_format == "offline":
        return OfflineLLM()
    return HttpLLM(
        provider_url=settings.provider_url,
        api_key=settings.api_key,
        provider_format=settings.provider_format,
        model=settings.model,
        timeout=settings.timeout,
    )


@asynccontextmanager
async def _lifespan(app: FastAPI):
    yield
    await app.state.controller.close()


def create_app(settings: Settings | None = None, llm: LLM | None = None) -> FastAPI:
    resolved = settings or load_settings()
    surface = MemorySurface()
    actions = ActionFeed()
    controller = SessionController(
        GenerationClient(llm or build_llm(resolved)),
        surface,
        dispatch_action=actions,
        greeting=resolved.greeting,
        action_delay_ms=resolved.action_delay_ms,
        chars_per_tick=resolved.chars_per_tick,
        tick_interval_ms=resolved.tick_interval_ms,
    )

    app = FastAPI(title="NPC Dialogue", lifespan=_lifespan)
    app.state.settings = resolved
    app.state.surface = surface
    app.state.actions = actions
    app.state.controller = controller
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (configured from the environment)
app = create_app()
