from __future__ import annotations

import pytest

from worldforge.domain.models import HistoricFigure, MagicalArtifact, Place, SciFiArtifact, Weapon, World
from worldforge.generation import tables
from worldforge.generation.factories import EntityFactory, alchemy_difficulty, event_status_for
from worldforge.generation.parameters import GenerationParameters
from worldforge.generation.random_source import RandomProvider


def _factory(seed: int = 5, **overrides) -> EntityFactory:
    parameters = GenerationParameters(world_name="Testland", **overrides)
    return EntityFactory(parameters, RandomProvider(seed))


def _populated_world(factory: EntityFactory) -> World:
    world = World(name="Testland")
    for _ in range(4):
        world.places.append(factory.create_place(world))
    for _ in range(3):
        world.historic_figures.append(factory.create_historic_figure(world))
    return world


@pytest.mark.parametrize(
    ("start_years_ago", "has_end", "expected"),
    [
        (10, False, "Ongoing"),
        (50, False, "Ongoing"),
        (10, True, "Historical"),
        (400, False, "Historical"),
        (700, True, "Legendary"),
        (950, False, "Mythical"),
    ],
)
def test_event_status_for(start_years_ago: int, has_end: bool, expected: str) -> None:
    assert event_status_for(start_years_ago, has_end) == expected


def test_alchemy_difficulty_maps_tiers_and_clamps() -> None:
    assert alchemy_difficulty("novice") == 1
    assert alchemy_difficulty("Master") == 10
    assert alchemy_difficulty("unheard-of") == tables.DEFAULT_ALCHEMY_DIFFICULTY
    assert alchemy_difficulty(42) == 10
    assert alchemy_difficulty(-3) == 1


def test_create_place_links_parent_without_touching_children() -> None:
    factory = _factory()
    world = World(name="Testland")
    parent = factory.create_place(world, place_type="Country")
    child = factory.create_place(world, place_type="Region", parent=parent)

    assert child.type == "Region"
    assert child.parent_place_id == parent.id
    assert parent.child_place_ids == []
    assert child.custom_properties["Theme"] == "Fantasy-SciFi"
    assert 1 <= int(child.custom_properties["DangerLevel"]) < 10


def test_create_place_uses_preferred_biomes_and_races() -> None:
    factory = _factory(preferred_biomes=["Glass Dunes"], preferred_races=["Sprite"])
    place = factory.create_place(World())

    assert place.geography.terrain == "Glass Dunes"
    assert set(place.population.race_distribution) == {"Sprite"}


def test_historic_figure_references_existing_places() -> None:
    factory = _factory()
    world = _populated_world(factory)
    place_ids = {place.id for place in world.places}

    for figure in world.historic_figures:
        assert figure.birth_place_id in place_ids
        assert set(figure.associated_place_ids) <= place_ids
        assert set(figure.attributes) == set(tables.CHARACTER_ATTRIBUTES)


def test_historic_figure_without_places_has_empty_birthplace() -> None:
    figure = _factory().create_historic_figure(World())

    assert figure.birth_place_id == ""
    assert figure.associated_place_ids == []


def test_is_alive_is_not_derived_from_death_date() -> None:
    # Alive flag and death date are independent; both inconsistent pairings show up.
    factory = _factory(seed=1)
    world = World()
    figures = [factory.create_historic_figure(world) for _ in range(400)]

    assert any(figure.is_alive and figure.death_date is not None for figure in figures)
    assert any(not figure.is_alive and figure.death_date is None for figure in figures)


def test_world_event_fields_are_in_range() -> None:
    factory = _factory()
    world = _populated_world(factory)
    figure_ids = {figure.id for figure in world.historic_figures}

    for _ in range(30):
        event = factory.create_world_event(world)
        assert 1 <= event.global_impact_level <= 10
        assert set(event.participant_ids) <= figure_ids
        assert event.consequences == dict(tables.EVENT_CONSEQUENCES)
        if event.end_date is not None:
            assert event.start_date is not None
            assert event.end_date >= event.start_date


def test_weapon_enchantments_follow_magic_level() -> None:
    world = World()
    low_magic = _factory(magic_level=2).create_weapon(world)
    high_magic = _factory(magic_level=9).create_weapon(world)

    assert isinstance(low_magic, Weapon)
    assert low_magic.is_magical is False
    assert low_magic.enchantments == []
    assert high_magic.is_magical is True
    assert high_magic.enchantments


def test_equipment_without_figures_has_no_creator() -> None:
    factory = _factory()
    item = factory.create_magical_artifact(World())

    assert isinstance(item, MagicalArtifact)
    assert item.creator_id is None
    assert item.max_charges >= item.charges


def test_scifi_artifact_tech_level_respects_world_level() -> None:
    factory = _factory(tech_level=3)
    for _ in range(50):
        artifact = factory.create_scifi_artifact(World())
        assert isinstance(artifact, SciFiArtifact)
        assert 1 <= artifact.tech_level <= 3


def test_create_equipment_is_weapon_or_magical_artifact() -> None:
    factory = _factory()
    kinds = {factory.create_equipment(World()).kind for _ in range(60)}

    assert kinds == {"Weapon", "MagicalArtifact"}


def test_spell_levels_do_not_exceed_required_level() -> None:
    factory = _factory()
    world = _populated_world(factory)
    for _ in range(20):
        book = factory.create_spell_book(world)
        assert book.spells
        assert all(1 <= spell.level <= book.required_level for spell in book.spells)
        assert book.is_complete == (book.missing_pages == [])


def test_spell_book_respects_preferred_schools() -> None:
    book = _factory(preferred_magic_schools=["necromantic"]).create_spell_book(World())

    assert book.magic_school == "Necromantic"


def test_rune_power_capped_by_magic_level() -> None:
    factory = _factory(magic_level=2)
    world = World()
    runes = [factory.create_rune(world) for _ in range(40)]

    assert all(1 <= rune.power_level <= 2 for rune in runes)
    assert all(rune.location == "Unknown" for rune in runes)


def test_alchemy_recipe_shape() -> None:
    recipe = _factory().create_alchemy_recipe(World())

    assert 3 <= len(recipe.ingredients) <= 5
    assert recipe.difficulty in set(tables.ALCHEMY_DIFFICULTY_TIERS.values())
    assert recipe.preparation_time.total_seconds() >= 3600


def test_technical_specification_uses_preferred_technologies() -> None:
    spec = _factory(preferred_technologies=["Aether"]).create_technical_specification(World())

    assert spec.name.startswith("Aether-")


def test_connection_summary_never_links_place_to_itself() -> None:
    factory = _factory()
    places = [Place(name=f"P{index}", type="City") for index in range(5)]

    for place in places:
        summary = factory.connection_summary(place, places)
        assert f"{place.name} (" not in summary


def test_economy_and_politics_properties_keys() -> None:
    factory = _factory()

    assert set(factory.economy_properties()) == {"EconomicSystem", "MainIndustries", "TradeGoods", "Currency"}
    assert set(factory.politics_properties()) == {"PoliticalSystem", "Ruler", "Laws", "Diplomacy"}


def test_figure_relationships_point_at_earlier_figures() -> None:
    factory = _factory()
    world = World()
    for _ in range(6):
        figure: HistoricFigure = factory.create_historic_figure(world)
        known = {existing.id for existing in world.historic_figures}
        assert set(figure.relationships) <= known
        world.historic_figures.append(figure)
