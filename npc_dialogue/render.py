"""Render surfaces: where a conversation becomes visible.

The session controller never touches a concrete UI. It drives a
RenderSurface, which knows how to:

    render_instant      append a whole message at once (history replay,
                        player lines, system errors)
    render_incremental  reveal an NPC line a few characters per tick
    show_pending        add a "thinking" placeholder; returns a handle
    remove_pending      drop that placeholder again

plus the visibility and text-input state the host polls every frame.

MemorySurface is the headless implementation used by the HTTP host and the
tests. Each incremental reveal runs as its own asyncio task; clearing the
surface or disposing it cancels every reveal still in flight.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal, Protocol

from npc_dialogue.models import Message

logger = logging.getLogger(__name__)

SubmitHandler = Callable[[str], Any]
EntryKind = Literal["message", "pending"]

PENDING_TEXT = "..."


# ---------------------------------------------------------------------------
# Protocol — what the session controller needs from a UI
# ---------------------------------------------------------------------------

class RenderSurface(Protocol):
    def clear(self) -> None: ...

    def render_instant(self, message: Message) -> None: ...

    def render_incremental(
        self, message: Message, chars_per_tick: int, tick_interval_ms: int
    ) -> None: ...

    def show_pending(self) -> int: ...

    def remove_pending(self, handle: int) -> None: ...

    def show(self) -> None: ...

    def hide(self) -> None: ...

    def clear_input(self) -> None: ...

    def blur_input(self) -> None: ...

    def is_input_active(self) -> bool: ...

    def set_submit_handler(self, handler: SubmitHandler) -> None: ...

    def dispose(self) -> None: ...


# ---------------------------------------------------------------------------
# MemorySurface — headless, inspectable surface
# ---------------------------------------------------------------------------

@dataclass
class RenderEntry:
    """One visible row: a (possibly half-revealed) message or a placeholder."""

    id: int
    kind: EntryKind
    message: Message | None = None
    revealed: str = ""

    @property
    def complete(self) -> bool:
        return self.message is None or self.revealed == self.message.text

    def to_dict(self) -> dict[str, Any]:
        if self.message is None:
            return {"id": self.id, "kind": self.kind, "text": PENDING_TEXT}
        return {
            "id": self.id,
            "kind": self.kind,
            "sender": self.message.sender,
            "label": self.message.label,
            "render_class": self.message.render_class,
            "text": self.revealed,
            "complete": self.complete,
        }


class MemorySurface:
    def __init__(self) -> None:
        self._entries: list[RenderEntry] = []
        self._ids = itertools.count(1)
        self._reveals: dict[int, asyncio.Task] = {}
        self._submit_handler: SubmitHandler | None = None
        self._disposed = False
        self.visible = False
        self.input_text = ""
        self.input_focused = False
        self.scroll_anchor: int | None = None  # id of the entry scrolled into view

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def entries(self) -> list[RenderEntry]:
        return list(self._entries)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def rendered_messages(self) -> list[Message]:
        """Messages currently on screen, in display order."""
        return [e.message for e in self._entries if e.message is not None]

    def pending_count(self) -> int:
        return sum(1 for e in self._entries if e.kind == "pending")

    def snapshot(self) -> dict[str, Any]:
        return {
            "visible": self.visible,
            "input_active": self.is_input_active(),
            "input_text": self.input_text,
            "entries": [e.to_dict() for e in self._entries],
        }

    async def wait_revealed(self) -> None:
        """Wait until every incremental reveal still running has finished."""
        while self._reveals:
            await asyncio.gather(*list(self._reveals.values()), return_exceptions=True)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def clear(self) -> None:
        if self._disposed:
            return
        self._cancel_reveals()
        self._entries.clear()
        self.scroll_anchor = None

    def render_instant(self, message: Message) -> None:
        if self._disposed:
            return
        self._append(RenderEntry(next(self._ids), "message", message, message.text))

    def render_incremental(
        self, message: Message, chars_per_tick: int, tick_interval_ms: int
    ) -> None:
        if self._disposed:
            return
        if chars_per_tick < 1 or not message.text:
            self.render_instant(message)
            return
        entry = RenderEntry(next(self._ids), "message", message, "")
        self._append(entry)
        self._reveals[entry.id] = asyncio.get_running_loop().create_task(
            self._reveal(entry, chars_per_tick, tick_interval_ms / 1000)
        )

    async def _reveal(self, entry: RenderEntry, chars_per_tick: int, interval: float) -> None:
        text = entry.message.text
        shown = 0
        try:
            while shown < len(text):
                await asyncio.sleep(interval)
                if self._disposed:
                    return
                shown = min(shown + chars_per_tick, len(text))
                entry.revealed = text[:shown]
                self.scroll_anchor = self._entries[-1].id if self._entries else None
        finally:
            self._reveals.pop(entry.id, None)

    # ------------------------------------------------------------------
    # Pending indicator
    # ------------------------------------------------------------------

    def show_pending(self) -> int:
        handle = next(self._ids)
        if not self._disposed:
            self._append(RenderEntry(handle, "pending"))
        return handle

    def remove_pending(self, handle: int) -> None:
        """Remove a placeholder. Unknown or already-cleared handles are ignored."""
        self._entries = [
            e for e in self._entries if not (e.kind == "pending" and e.id == handle)
        ]

    # ------------------------------------------------------------------
    # Visibility & input
    # ------------------------------------------------------------------

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False
        self.blur_input()

    def focus_input(self) -> None:
        if self.visible:
            self.input_focused = True

    def blur_input(self) -> None:
        self.input_focused = False

    def is_input_active(self) -> bool:
        return self.input_focused

    def type_input(self, text: str) -> None:
        self.input_text = text

    def clear_input(self) -> None:
        self.input_text = ""

    def set_submit_handler(self, handler: SubmitHandler) -> None:
        """Install the Enter/Send handler. A second call replaces the first."""
        self._submit_handler = handler

    def submit(self) -> Any:
        """Hand the current input buffer to the submit handler."""
        if self._submit_handler is None or self._disposed:
            return None
        return self._submit_handler(self.input_text)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._cancel_reveals()
        self.blur_input()

    def _append(self, entry: RenderEntry) -> None:
        self._entries.append(entry)
        self.scroll_anchor = entry.id

    def _cancel_reveals(self) -> None:
        for task in self._reveals.values():
            task.cancel()
        if self._reveals:
            logger.debug("cancelled %d running reveal(s)", len(self._reveals))
        self._reveals.clear()
