from __future__ import annotations

from pathlib import Path

import orjson

from worldforge.domain.models import HistoricFigure, Place, Weapon, World, WorldEvent
from worldforge.export.wiki import (
    build_export_package,
    export_world_wiki,
    file_links,
    render_entity_page,
    render_not_found_page,
    render_world_page,
    web_links,
)
from worldforge.generation.assembler import WorldAssembler


def _small_world() -> World:
    capital = Place(id="p-capital", name="Highspire", type="City", description="A city of towers.")
    keep = Place(id="p-keep", name="Old Keep", type="Town", parent_place_id="p-capital")
    capital.child_place_ids.append("p-keep")
    hero = HistoricFigure(
        id="h-hero",
        name="<script>alert(1)</script>",
        title="Warden",
        birth_place_id="p-capital",
        related_event_ids=["e-siege"],
    )
    siege = WorldEvent(
        id="e-siege",
        name="Siege of Highspire",
        participant_ids=["h-hero"],
        affected_place_ids=["p-capital"],
    )
    blade = Weapon(id="i-blade", name="Dawnedge", weapon_type="Sword", damage=12, current_owner_id="h-hero")
    return World(
        id="w-small",
        name="Smallworld",
        description="Tiny & cozy",
        places=[capital, keep],
        historic_figures=[hero],
        world_events=[siege],
        equipment=[blade],
    )


def test_world_page_escapes_and_links_entities() -> None:
    html = render_world_page(_small_world())

    assert "<h1>Smallworld</h1>" in html
    assert "Tiny &amp; cozy" in html
    assert "<script>" not in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
    assert 'href="/wiki/w-small/place/p-capital"' in html
    assert 'href="/wiki/w-small/character/h-hero"' in html
    assert 'href="/wiki/w-small/item/i-blade"' in html
    assert 'href="/wiki/w-small/event/e-siege"' in html
    assert "Places (2)" in html


def test_place_page_shows_children_figures_and_events() -> None:
    world = _small_world()

    html = render_entity_page(world, "place", "p-capital")

    assert html is not None
    assert 'href="/wiki/w-small/place/p-keep"' in html
    assert 'href="/wiki/w-small/character/h-hero"' in html
    assert 'href="/wiki/w-small/event/e-siege"' in html
    assert 'href="/wiki/w-small"' in html


def test_child_place_links_back_to_parent() -> None:
    html = render_entity_page(_small_world(), "place", "p-keep")

    assert html is not None
    assert "Part of" in html
    assert 'href="/wiki/w-small/place/p-capital"' in html


def test_character_page_lists_possessions() -> None:
    html = render_entity_page(_small_world(), "character", "h-hero")

    assert html is not None
    assert 'href="/wiki/w-small/item/i-blade"' in html
    assert "Born in" in html
    assert "<script>" not in html


def test_item_page_shows_weapon_facts() -> None:
    html = render_entity_page(_small_world(), "item", "i-blade")

    assert html is not None
    assert "Weapon type" in html
    assert "Sword" in html
    assert "Owner:" in html


def test_unknown_entity_or_kind_is_none() -> None:
    world = _small_world()

    assert render_entity_page(world, "place", "missing") is None
    assert render_entity_page(world, "dragon", "p-capital") is None


def test_not_found_page_links_back_to_world() -> None:
    html = render_not_found_page("place", "<missing>", _small_world())

    assert "Not Found" in html
    assert "&lt;missing&gt;" in html
    assert 'href="/wiki/w-small"' in html


def test_link_builders() -> None:
    links = web_links("w1")

    assert links("world", "") == "/wiki/w1"
    assert links("event", "e1") == "/wiki/w1/event/e1"
    assert file_links("world", "") == "index.html"
    assert file_links("item", "a/b c") == "item-a_b_c.html"


def test_export_world_wiki_writes_static_site(tmp_path: Path) -> None:
    world = _small_world()

    result = export_world_wiki(world, tmp_path / "wiki")

    assert result.index_path == tmp_path / "wiki" / "index.html"
    assert result.index_path.exists()
    index = result.index_path.read_text(encoding="utf-8")
    assert 'href="place-p-capital.html"' in index
    assert len(result.page_paths) == 5
    assert (tmp_path / "wiki" / "character-h-hero.html").exists()
    payload = orjson.loads(result.world_json_path.read_bytes())
    assert payload["id"] == "w-small"
    assert payload["historicFigures"][0]["name"] == "<script>alert(1)</script>"


def test_build_export_package_summary_counts() -> None:
    world = WorldAssembler().generate_world("Packaged", seed=31)

    package = build_export_package(world, "Once upon a time.")

    assert package["worldId"] == world.id
    assert package["narrative"] == "Once upon a time."
    assert package["worldData"]["name"] == "Packaged"
    assert package["summary"] == {
        "places": 25,
        "characters": 12,
        "events": 8,
        "technicalSpecs": 5,
        "magicItems": len(world.runes_of_power) + len(world.spell_books) + len(world.alchemy_recipes),
    }
