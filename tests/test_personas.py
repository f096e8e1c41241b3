"""Tests for the built-in persona roster."""

from npc_dialogue.personas import (
    DEFAULT_PERSONA,
    ELDER_OAK,
    get_persona,
    list_personas,
)


def test_roster_ids():
    assert [p.id for p in list_personas()] == ["red_square", "purple_triangle", "green_circle"]


def test_roster_names():
    assert [p.name for p in list_personas()] == ["Elder Oak", "Mystic Sage", "Luna the Merchant"]


def test_get_persona():
    assert get_persona("red_square") is ELDER_OAK


def test_get_unknown_persona():
    assert get_persona("blue_hexagon") is None


def test_default_is_elder_oak():
    assert DEFAULT_PERSONA is ELDER_OAK


def test_every_setup_names_its_character():
    for persona in list_personas():
        assert f'"{persona.name}"' in persona.setup
