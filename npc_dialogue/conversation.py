"""In-memory conversation logs, one per NPC.

History lives for the lifetime of the owning controller and is never
written to disk; a reload starts every NPC from a blank slate.

Layout:

    {npc_id: [Message, Message, ...]}   ← insertion order == display order
"""

from __future__ import annotations

from npc_dialogue.models import Message, NpcId


class ConversationLog:
    def __init__(self) -> None:
        self._logs: dict[NpcId, list[Message]] = {}

    # ------------------------------------------------------------------
    # Messages (append-only)
    # ------------------------------------------------------------------

    def append(self, npc_id: NpcId, message: Message) -> None:
        """Append a message, creating the NPC's log on first contact."""
        self._logs.setdefault(npc_id, []).append(message)

    def get(self, npc_id: NpcId) -> list[Message]:
        """Return a copy of the NPC's messages. Returns [] if none exist."""
        return list(self._logs.get(npc_id, ()))

    def has_history(self, npc_id: NpcId) -> bool:
        return bool(self._logs.get(npc_id))

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def npc_ids(self) -> list[NpcId]:
        """NPCs that have been spoken to, in order of first contact."""
        return list(self._logs)

    def clear(self) -> None:
        self._logs.clear()
