"""Core domain models.

The session controller, the message store and the render surface all operate
on these types. Pydantic validates the generation service's payload at the
boundary; everything stored in a conversation log is frozen.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

NpcId = str

Sender = Literal["player", "npc", "system"]

DEFAULT_GREETING = "Hello! (The player has approached you.)"

_LABELS: dict[str, str] = {"player": "You", "npc": "NPC", "system": "System"}
_RENDER_CLASSES: dict[str, str] = {
    "player": "user-message",
    "npc": "npc-message",
    "system": "system-message",
}


class Message(BaseModel):
    """A single entry in an NPC's append-only conversation log."""

    model_config = ConfigDict(frozen=True)

    sender: Sender
    text: str
    render_class: str

    @classmethod
    def player(cls, text: str) -> Message:
        return cls(sender="player", text=text, render_class=_RENDER_CLASSES["player"])

    @classmethod
    def npc(cls, text: str) -> Message:
        return cls(sender="npc", text=text, render_class=_RENDER_CLASSES["npc"])

    @classmethod
    def system(cls, text: str) -> Message:
        return cls(sender="system", text=text, render_class=_RENDER_CLASSES["system"])

    @property
    def label(self) -> str:
        return _LABELS[self.sender]


class Persona(BaseModel):
    """The character an NPC plays. `setup` is handed verbatim to the model."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    setup: str


class Action(BaseModel):
    """A game side effect requested by the model alongside its dialogue.

    The prompt asks for "none", "give_item" or "start_battle". Unknown action
    types and extra fields are kept so the host can decide what to do with
    them.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str = "none"
    item: str | None = None  # present on give_item only

    @property
    def is_noop(self) -> bool:
        return self.type == "none"


class GenerationResult(BaseModel):
    """Parsed reply from the generation service.

    Wire format: {"response": "...", "action": {"type": "...", ...}}
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    response_text: str = Field(alias="response")
    action: Action = Field(default_factory=Action)

    @field_validator("action", mode="before")
    @classmethod
    def _null_action_is_none(cls, value: object) -> object:
        return {"type": "none"} if value is None else value
