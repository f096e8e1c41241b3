"""Conversational session layer for NPCs.

A SessionController binds the player to one NPC at a time, keeps every
NPC's conversation in a ConversationLog, asks a GenerationClient for
replies and renders them onto a RenderSurface.
"""

from npc_dialogue.conversation import ConversationLog  # noqa: F401
from npc_dialogue.generation import GenerationClient  # noqa: F401
from npc_dialogue.models import Action, GenerationResult, Message, Persona  # noqa: F401
from npc_dialogue.render import MemorySurface, RenderSurface  # noqa: F401
from npc_dialogue.session import ActiveSession, SessionController  # noqa: F401
