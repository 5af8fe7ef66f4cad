from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

import pytest

import worldforge.llm.client as llm_client
from worldforge.config.schema import AppConfigRoot
from worldforge.domain.models import World
from worldforge.enhancement.service import EnhancementEngine
from worldforge.generation.assembler import WorldAssembler

ANALYSIS = "break it down into specific update instructions"
RUNE = "Create a detailed magical rune"
EVENT = "Create a detailed world event"
THEMES = "suggest 3-5 active themes"
PROPERTIES = "suggest specific property changes"
REWRITE = "Update the world description"


class _ScriptedModel:
    """Answers by the first rule whose marker appears in the user prompt."""

    def __init__(self, rules: list[tuple[str, str]] | None = None, *, default: str = "Generated narrative.") -> None:
        self.rules = rules or []
        self.default = default
        self.prompts: list[str] = []

    def invoke(self, messages):
        prompt = str(messages[-1].content)
        self.prompts.append(prompt)
        for marker, reply in self.rules:
            if marker in prompt:
                return SimpleNamespace(content=reply)
        return SimpleNamespace(content=self.default)


class _DownModel:
    def invoke(self, messages):
        raise ConnectionError("connection refused")


def _engine(monkeypatch: pytest.MonkeyPatch, model: Any) -> EnhancementEngine:
    monkeypatch.setattr(llm_client, "_build_chat_model", lambda settings: model)
    config = AppConfigRoot.model_validate({"llm": {"api_key_env": None, "retries": 0}})
    return EnhancementEngine(llm_client.TextGenerationClient(config), WorldAssembler())


def _world() -> World:
    return WorldAssembler().generate_world("Aeloria", seed=21)


def test_enhance_with_unreachable_collaborator_returns_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    engine = _engine(monkeypatch, _DownModel())
    world = _world()

    result = asyncio.run(engine.enhance(world, "Add a floating city"))

    assert result.generated_narrative == llm_client.FALLBACK_TEXT
    assert result.changes_applied == [f"modify worldinfo: {llm_client.FALLBACK_TEXT}"]
    assert result.section_narratives == {
        "places": llm_client.FALLBACK_TEXT,
        "characters": llm_client.FALLBACK_TEXT,
        "events": llm_client.FALLBACK_TEXT,
    }
    assert result.updated_world.to_json_dict() == world.to_json_dict()


def test_enhance_applies_instructions_to_a_copy(monkeypatch: pytest.MonkeyPatch) -> None:
    model = _ScriptedModel(
        [
            (
                ANALYSIS,
                '```json\n[{"action": "add", "target": "places", "description": "a harbor town"},'
                ' {"action": "add", "target": "magic", "description": "a warding rune"},'
                ' {"action": "remove", "target": "characters", "description": "the tyrant"}]\n```',
            ),
            (RUNE, '{"name": "Rune of Tides", "powerLevel": "15", "effects": ["calm seas"]}'),
        ]
    )
    engine = _engine(monkeypatch, model)
    world = _world()

    result = asyncio.run(engine.enhance(world, "Add a harbor and a rune", "places"))
    updated = result.updated_world

    assert len(updated.places) == len(world.places) + 1
    assert len(updated.runes_of_power) == len(world.runes_of_power) + 1
    assert len(updated.historic_figures) == len(world.historic_figures)
    rune = updated.runes_of_power[-1]
    assert rune.name == "Rune of Tides"
    assert rune.power_level == 10
    assert rune.effects == ["calm seas"]
    assert result.changes_applied == [
        "add places: a harbor town",
        "add magic: a warding rune",
        "remove characters: the tyrant",
    ]
    assert set(result.section_narratives) == {"places"}
    assert result.generated_narrative == "Generated narrative."
    assert len(world.places) == 25


def test_enhance_theme_instruction_replaces_active_themes(monkeypatch: pytest.MonkeyPatch) -> None:
    model = _ScriptedModel(
        [
            (
                ANALYSIS,
                '[{"action": "modify", "target": "worldinfo", "description": "Make the themes darker",'
                ' "properties": {"Genre": "Dark Fantasy"}}]',
            ),
            (THEMES, '["Dread", "Ruin", "Hope"]'),
        ]
    )
    engine = _engine(monkeypatch, model)

    result = asyncio.run(engine.enhance(_world(), "darker please"))

    assert result.updated_world.world_info.genre == "Dark Fantasy"
    assert result.updated_world.world_info.active_themes == ["Dread", "Ruin", "Hope"]


def test_regenerate_missing_section_leaves_world_unchanged(monkeypatch: pytest.MonkeyPatch) -> None:
    engine = _engine(monkeypatch, _ScriptedModel())
    world = _world()

    result = asyncio.run(engine.regenerate_section(world, "places", "nonexistent-id", "make it bigger"))

    assert result.updated_world.to_json_dict() == world.to_json_dict()
    assert result.changes_applied == []


def test_regenerate_unknown_section_type_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    engine = _engine(monkeypatch, _ScriptedModel())

    with pytest.raises(ValueError, match="Unknown section type"):
        asyncio.run(engine.regenerate_section(_world(), "weather", "any", "sunnier"))


def test_regenerate_place_rewrites_description(monkeypatch: pytest.MonkeyPatch) -> None:
    engine = _engine(monkeypatch, _ScriptedModel(default="A towering citadel of glass."))
    world = _world()
    place = world.places[0]
    original_description = place.description

    result = asyncio.run(engine.regenerate_section(world, "places", place.id, "make it bigger"))

    assert result.updated_world.find_place(place.id).description == "A towering citadel of glass."
    assert world.places[0].description == original_description
    assert result.changes_applied == [f"Regenerated places section '{place.id}' based on user feedback"]


def test_regenerate_keeps_description_when_collaborator_is_down(monkeypatch: pytest.MonkeyPatch) -> None:
    engine = _engine(monkeypatch, _DownModel())
    world = _world()
    figure = world.historic_figures[0]

    result = asyncio.run(engine.regenerate_section(world, "characters", figure.id, "more tragic"))

    assert result.updated_world.find_figure(figure.id).description == figure.description


def test_add_content_event_overlays_fields_and_links_participants(monkeypatch: pytest.MonkeyPatch) -> None:
    model = _ScriptedModel(
        [
            (
                EVENT,
                '{"name": "The Great Flood", "description": "Waters rose.",'
                ' "startDate": "1200-03-01T00:00:00Z", "consequences": {"social": "Exodus"}}',
            )
        ]
    )
    engine = _engine(monkeypatch, model)
    world = _world()

    result = asyncio.run(engine.add_content(world, "event", "a great flood"))
    event = result.updated_world.world_events[-1]

    assert event.name == "The Great Flood"
    assert event.description == "Waters rose."
    assert event.start_date is not None and event.start_date.year == 1200
    assert event.consequences == {"social": "Exodus"}
    for participant_id in event.participant_ids:
        assert event.id in result.updated_world.find_figure(participant_id).related_event_ids
    assert result.changes_applied == ["Added new event content: a great flood"]
    assert len(world.world_events) == len(result.updated_world.world_events) - 1


def test_add_content_with_unparseable_overlay_keeps_generated_entity(monkeypatch: pytest.MonkeyPatch) -> None:
    engine = _engine(monkeypatch, _ScriptedModel(default="no json here"))
    world = _world()

    result = asyncio.run(engine.add_content(world, "technology", "a steam computer"))

    assert len(result.updated_world.technical_specs) == len(world.technical_specs) + 1


def test_add_content_unknown_type_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    engine = _engine(monkeypatch, _ScriptedModel())

    with pytest.raises(ValueError, match="Unknown content type"):
        asyncio.run(engine.add_content(_world(), "weather", "storms"))


def test_update_properties_applies_suggested_changes(monkeypatch: pytest.MonkeyPatch) -> None:
    model = _ScriptedModel(
        [
            (
                PROPERTIES,
                'Here you go: {"description": "darker", "genre": "Grimdark",'
                ' "activeThemes": ["Decay", "War"], "customSettings": {"Moons": 2}}',
            ),
            (REWRITE, "A darker, war-torn world."),
        ]
    )
    engine = _engine(monkeypatch, model)
    world = _world()

    updated = asyncio.run(engine.update_properties(world, "make it grim"))

    assert updated is not world
    assert updated.description == "A darker, war-torn world."
    assert updated.world_info.genre == "Grimdark"
    assert updated.world_info.active_themes == ["Decay", "War"]
    assert updated.world_info.custom_settings["Moons"] == "2"
    assert world.world_info.genre == "Fantasy-SciFi"


def test_update_properties_with_unparseable_reply_returns_input(monkeypatch: pytest.MonkeyPatch) -> None:
    engine = _engine(monkeypatch, _ScriptedModel(default="I would rather not."))
    world = _world()

    assert asyncio.run(engine.update_properties(world, "anything")) is world
