"""Session controller: one conversation at a time, many NPCs remembered.

Flow:
  1. The host walks the player up to an NPC and calls bind(persona, npc_id).
     Re-binding the NPC that is already active does nothing.
  2. bind() clears the surface. If the NPC has history it is replayed
     instantly; otherwise greet() asks the model for an opening line.
  3. Each submitted line goes through send_message(): the player message is
     logged and shown, a pending indicator appears, and the request runs as a
     tracked background task.
  4. When a request finishes, the NPC id captured at request time is compared
     with the active one (greetings compare the bind token instead, so a
     greeting from an earlier visit to the same NPC is also stale):
       current  → indicator removed, reply revealed incrementally, any game
                  action dispatched after action_delay_ms
       stale    → greeting replies are dropped; send replies are filed into
                  the requesting NPC's log (shown on return), never rendered,
                  and their actions are not dispatched
  5. A failed greeting shows nothing. A failed send shows a System message.

Everything runs on one event loop; no locks are taken.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from npc_dialogue.conversation import ConversationLog
from npc_dialogue.generation import GenerationClient
from npc_dialogue.models import (
    DEFAULT_GREETING,
    Action,
    GenerationResult,
    Message,
    NpcId,
    Persona,
)
from npc_dialogue.render import RenderSurface

logger = logging.getLogger(__name__)

ActionDispatcher = Callable[[NpcId, Action], Awaitable[None] | None]

ERROR_TEXT = "Error communicating with AI."


def log_action(npc_id: NpcId, action: Action) -> None:
    logger.info("npc=%s action=%s", npc_id, action.model_dump(exclude_none=True))


@dataclass(frozen=True)
class ActiveSession:
    persona: Persona | None = None
    npc_id: NpcId | None = None
    token: int = 0  # bumped on every bind


class SessionController:
    """Owns the active NPC binding, the conversation logs and the surface.

    Args:
        generator:        Generation client used for greetings and replies.
        surface:          Where messages are rendered.
        log:              Conversation store; a fresh one if omitted.
        dispatch_action:  Called with (npc_id, action) for non-"none" actions.
                          May be sync or async. Defaults to logging the action.
        greeting:         Utterance sent on the player's behalf on first contact.
        action_delay_ms:  Pause between showing a reply and dispatching its action.
        chars_per_tick:   Incremental reveal speed.
        tick_interval_ms: Incremental reveal speed.
    """

    def __init__(
        self,
        generator: GenerationClient,
        surface: RenderSurface,
        *,
        log: ConversationLog | None = None,
        dispatch_action: ActionDispatcher = log_action,
        greeting: str = DEFAULT_GREETING,
        action_delay_ms: int = 500,
        chars_per_tick: int = 1,
        tick_interval_ms: int = 30,
    ) -> None:
        self._generator = generator
        self._surface = surface
        self._log = log if log is not None else ConversationLog()
        self._dispatch_action = dispatch_action
        self._greeting = greeting
        self._action_delay = action_delay_ms / 1000
        self._chars_per_tick = chars_per_tick
        self._tick_interval_ms = tick_interval_ms
        self._session = ActiveSession()
        self._binds = itertools.count(1)
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

        self._surface.set_submit_handler(self.send_message)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def active_session(self) -> ActiveSession:
        return self._session

    @property
    def surface(self) -> RenderSurface:
        return self._surface

    @property
    def log(self) -> ConversationLog:
        return self._log

    def history(self, npc_id: NpcId) -> list[Message]:
        return self._log.get(npc_id)

    def _is_current(self, npc_id: NpcId) -> bool:
        return self._session.npc_id == npc_id

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def bind(self, persona: Persona, npc_id: NpcId) -> None:
        """Make npc_id the active conversation, replaying or greeting."""
        if self._is_current(npc_id):
            logger.debug("bind ignored, npc=%s already active", npc_id)
            return

        logger.info("session switch %s -> %s", self._session.npc_id, npc_id)
        self._session = ActiveSession(persona=persona, npc_id=npc_id, token=next(self._binds))
        self._surface.clear()

        history = self._log.get(npc_id)
        if history:
            for message in history:
                self._surface.render_instant(message)
        else:
            self.greet(persona, npc_id)

    def greet(self, persona: Persona, npc_id: NpcId) -> asyncio.Task:
        """Ask for an opening line. Returns the tracked request task."""
        handle = self._surface.show_pending()
        token = self._session.token
        return self._spawn(self._greet(persona, npc_id, token, handle), f"greet:{npc_id}")

    async def _greet(self, persona: Persona, npc_id: NpcId, token: int, handle: int) -> None:
        # Stale once the NPC has been re-bound, even to the same id.
        try:
            result = await self._generator.generate(self._greeting, persona, stage="greeting")
        except Exception:
            logger.warning("greeting failed npc=%s", npc_id, exc_info=True)
            if self._session.token == token:
                self._surface.remove_pending(handle)
            return

        if self._session.token != token:
            logger.info("dropping stale greeting npc=%s", npc_id)
            return

        self._surface.remove_pending(handle)
        self._deliver(npc_id, result)

    # ------------------------------------------------------------------
    # Player input
    # ------------------------------------------------------------------

    def send_message(self, utterance: str) -> asyncio.Task | None:
        """Log and show a player line, then request the NPC's reply.

        Returns the tracked request task, or None when nothing was sent
        (blank input, or no NPC bound).
        """
        text = utterance.strip()
        if not text:
            return None
        npc_id = self._session.npc_id
        if npc_id is None:
            logger.warning("send_message ignored, no NPC bound")
            return None

        message = Message.player(text)
        self._log.append(npc_id, message)
        self._surface.render_instant(message)
        self._surface.clear_input()
        handle = self._surface.show_pending()
        return self._spawn(
            self._reply(text, self._session.persona, npc_id, handle), f"reply:{npc_id}"
        )

    async def _reply(
        self, text: str, persona: Persona | None, npc_id: NpcId, handle: int
    ) -> None:
        try:
            result = await self._generator.generate(text, persona)
        except Exception:
            logger.warning("reply failed npc=%s", npc_id, exc_info=True)
            error = Message.system(ERROR_TEXT)
            self._log.append(npc_id, error)
            if self._is_current(npc_id):
                self._surface.remove_pending(handle)
                self._surface.render_instant(error)
            return

        if not self._is_current(npc_id):
            logger.warning("filing stale reply into history npc=%s", npc_id)
            self._log.append(npc_id, Message.npc(result.response_text))
            if not result.action.is_noop:
                logger.warning("dropping action %s from stale reply npc=%s", result.action.type, npc_id)
            return

        self._surface.remove_pending(handle)
        self._deliver(npc_id, result)

    def _deliver(self, npc_id: NpcId, result: GenerationResult) -> None:
        message = Message.npc(result.response_text)
        self._log.append(npc_id, message)
        self._surface.render_incremental(message, self._chars_per_tick, self._tick_interval_ms)
        if not result.action.is_noop:
            self._spawn(self._dispatch_later(npc_id, result.action), f"action:{npc_id}")

    async def _dispatch_later(self, npc_id: NpcId, action: Action) -> None:
        await asyncio.sleep(self._action_delay)
        outcome = self._dispatch_action(npc_id, action)
        if inspect.isawaitable(outcome):
            await outcome

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    def show(self) -> None:
        self._surface.show()

    def hide(self) -> None:
        """Hide the dialogue and give keyboard control back to the game."""
        self._surface.hide()
        self._surface.blur_input()

    def is_input_active(self) -> bool:
        return self._surface.is_input_active()

    # ------------------------------------------------------------------
    # Background tasks
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)

        def _done(t: asyncio.Task) -> None:
            self._tasks.discard(t)
            if t.cancelled():
                logger.debug("task %s cancelled", name)
            elif t.exception() is not None:
                logger.error("task %s failed", name, exc_info=t.exception())

        task.add_done_callback(_done)
        return task

    async def wait_idle(self) -> None:
        """Wait for every in-flight request and pending action dispatch."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel outstanding work and tear the surface down."""
        if self._closed:
            return
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
        self._surface.dispose()
