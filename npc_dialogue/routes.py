"""FastAPI endpoints under /api.

The game client drives the session over HTTP: it binds when the player
walks up to an NPC, shows/hides the dialogue box on proximity changes,
posts typed lines, polls the session snapshot for rendered messages and
drains dispatched game actions.

Requests that set "wait": true only return once every in-flight request,
action dispatch and text reveal has finished.
"""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from npc_dialogue.personas import get_persona, list_personas
from npc_dialogue.session import SessionController

router = APIRouter()


class BindBody(BaseModel):
    persona_id: str
    npc_id: str | None = None  # defaults to persona_id
    wait: bool = False


class ChatBody(BaseModel):
    message: str
    wait: bool = False


def _controller(request: Request) -> SessionController:
    return request.app.state.controller


def _session_state(request: Request) -> dict:
    session = _controller(request).active_session
    return {
        "npc_id": session.npc_id,
        "persona_id": session.persona.id if session.persona else None,
        **request.app.state.surface.snapshot(),
    }


async def _settle(request: Request) -> None:
    await _controller(request).wait_idle()
    await request.app.state.surface.wait_revealed()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/personas")
async def personas():
    """List the built-in NPC personas."""
    return [p.model_dump() for p in list_personas()]


@router.get("/session")
async def get_session(request: Request):
    """Active NPC plus everything currently on the dialogue surface."""
    return _session_state(request)


@router.post("/session/bind")
async def bind(request: Request, body: BindBody):
    """Start (or resume) talking to an NPC."""
    persona = get_persona(body.persona_id)
    if persona is None:
        raise HTTPException(404, "Persona not found")
    _controller(request).bind(persona, body.npc_id or persona.id)
    if body.wait:
        await _settle(request)
    return _session_state(request)


@router.post("/session/messages")
async def send_message(request: Request, body: ChatBody):
    """Send a player line to the active NPC."""
    controller = _controller(request)
    if controller.active_session.npc_id is None:
        raise HTTPException(409, "No NPC bound")
    controller.send_message(body.message)
    if body.wait:
        await _settle(request)
    return _session_state(request)


@router.post("/session/show")
async def show(request: Request):
    _controller(request).show()
    return _session_state(request)


@router.post("/session/hide")
async def hide(request: Request):
    _controller(request).hide()
    return _session_state(request)


@router.post("/session/focus")
async def focus(request: Request):
    """Text box gained focus; the game should stop reading movement keys."""
    request.app.state.surface.focus_input()
    return {"input_active": _controller(request).is_input_active()}


@router.post("/session/blur")
async def blur(request: Request):
    request.app.state.surface.blur_input()
    return {"input_active": _controller(request).is_input_active()}


@router.get("/npcs/{npc_id}/messages")
async def npc_messages(request: Request, npc_id: str):
    """Full conversation log for one NPC ([] if never spoken to)."""
    return [m.model_dump() for m in _controller(request).history(npc_id)]


@router.get("/actions")
async def actions(request: Request):
    """Drain game actions dispatched since the last poll."""
    return request.app.state.actions.drain()
