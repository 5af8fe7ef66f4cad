from __future__ import annotations

from dataclasses import dataclass, field
from html import escape
from pathlib import Path
from typing import Any, Callable, Iterable
import re

import orjson

from worldforge.domain.ids import utc_now
from worldforge.domain.models import (
    Equipment,
    HistoricFigure,
    MagicalArtifact,
    Place,
    SciFiArtifact,
    SpellBook,
    Weapon,
    World,
    WorldEvent,
)

ENTITY_KINDS = ("place", "character", "item", "spellbook", "event")

# (kind, entity_id) -> href; kind "world" with an empty id points at the index.
LinkBuilder = Callable[[str, str], str]

_STYLE = """
body { font-family: Georgia, serif; max-width: 960px; margin: 2rem auto; padding: 0 1rem; color: #222; }
nav.breadcrumbs { font-size: 0.9rem; margin-bottom: 1rem; }
h1 { border-bottom: 2px solid #8a6d3b; padding-bottom: 0.3rem; }
section { margin-bottom: 2rem; }
table.facts th { text-align: left; padding-right: 1rem; vertical-align: top; }
ul.entities li { margin: 0.2rem 0; }
""".strip()


def web_links(world_id: str) -> LinkBuilder:
    def build(kind: str, entity_id: str) -> str:
        if kind == "world" or not entity_id:
            return f"/wiki/{world_id}"
        return f"/wiki/{world_id}/{kind}/{entity_id}"

    return build


def _safe_filename(text: str) -> str:
    sanitized = re.sub(r"[\\/:*?\"<>|]+", "_", text).strip()
    sanitized = re.sub(r"\s+", "_", sanitized)
    return sanitized or "untitled"


def file_links(kind: str, entity_id: str) -> str:
    if kind == "world" or not entity_id:
        return "index.html"
    return f"{kind}-{_safe_filename(entity_id)}.html"


def _page(title: str, body: str, breadcrumbs: str = "") -> str:
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n<head>\n<meta charset="utf-8">\n'
        f"<title>{escape(title)}</title>\n<style>\n{_STYLE}\n</style>\n</head>\n<body>\n"
        f"{breadcrumbs}{body}\n</body>\n</html>\n"
    )


def _breadcrumbs(world: World, links: LinkBuilder, section: str, name: str) -> str:
    return (
        '<nav class="breadcrumbs">'
        f'<a href="{escape(links("world", ""))}">{escape(world.name or "World")}</a>'
        f" &raquo; {escape(section)} &raquo; {escape(name)}"
        "</nav>\n"
    )


def _link(links: LinkBuilder, kind: str, entity_id: str, label: str) -> str:
    return f'<a href="{escape(links(kind, entity_id))}">{escape(label or entity_id)}</a>'


def _facts(rows: Iterable[tuple[str, Any]]) -> str:
    cells = []
    for label, value in rows:
        if value is None or value == "" or value == [] or value == {}:
            continue
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(item) for item in value)
        elif isinstance(value, dict):
            value = ", ".join(f"{key}: {item}" for key, item in value.items())
        cells.append(f"<tr><th>{escape(label)}</th><td>{escape(str(value))}</td></tr>")
    if not cells:
        return ""
    return '<table class="facts">' + "".join(cells) + "</table>\n"


def _list(items: list[str], empty: str = "None recorded.") -> str:
    if not items:
        return f"<p><em>{escape(empty)}</em></p>\n"
    return '<ul class="entities">' + "".join(f"<li>{item}</li>" for item in items) + "</ul>\n"


def _text_list(values: Iterable[str]) -> list[str]:
    return [escape(str(value)) for value in values if str(value).strip()]


def _section(heading: str, content: str, anchor: str = "") -> str:
    anchor_attr = f' id="{escape(anchor)}"' if anchor else ""
    return f"<section{anchor_attr}>\n<h2>{escape(heading)}</h2>\n{content}</section>\n"


def _place_links(world: World, links: LinkBuilder, place_ids: Iterable[str]) -> list[str]:
    rendered = []
    for place_id in place_ids:
        place = world.find_place(place_id)
        if place is not None:
            rendered.append(_link(links, "place", place.id, place.name))
    return rendered


def _figure_links(world: World, links: LinkBuilder, figure_ids: Iterable[str]) -> list[str]:
    rendered = []
    for figure_id in figure_ids:
        figure = world.find_figure(figure_id)
        if figure is not None:
            rendered.append(_link(links, "character", figure.id, figure.name))
    return rendered


def _event_links(world: World, links: LinkBuilder, event_ids: Iterable[str]) -> list[str]:
    rendered = []
    for event_id in event_ids:
        event = world.find_event(event_id)
        if event is not None:
            rendered.append(_link(links, "event", event.id, event.name))
    return rendered


def _date(value: Any) -> str:
    return value.date().isoformat() if value is not None else ""


def render_world_page(world: World, links: LinkBuilder | None = None) -> str:
    links = links or web_links(world.id)
    info = world.world_info
    overview = f"<p>{escape(world.description)}</p>\n" + _facts(
        [
            ("Genre", info.genre),
            ("Era", info.time_era),
            ("Magic", info.magic_level),
            ("Technology", info.technology_level),
            ("Themes", info.active_themes),
            ("Magic exists", "Yes" if info.laws.magic_exists else "No"),
            ("Death is permanent", "Yes" if info.laws.death_is_permanent else "No"),
            ("Time travel", "Yes" if info.laws.time_travel else "No"),
            ("Multiverse", "Yes" if info.laws.multiverse else "No"),
        ]
    )

    places = [
        f"{_link(links, 'place', place.id, place.name)} <small>({escape(place.type)})</small>"
        for place in world.places
    ]
    characters = [
        f"{_link(links, 'character', figure.id, figure.name)} <small>{escape(figure.title)}</small>"
        for figure in world.historic_figures
    ]
    items = [
        f"{_link(links, 'item', item.id, item.name)} <small>({escape(item.rarity)} {escape(item.type)})</small>"
        for item in world.equipment
    ]
    magic = [_link(links, "spellbook", book.id, book.name) for book in world.spell_books]
    magic.extend(
        f"{escape(rune.name)} <small>(rune, power {rune.power_level})</small>" for rune in world.runes_of_power
    )
    magic.extend(
        f"{escape(recipe.name)} <small>(recipe, difficulty {recipe.difficulty})</small>"
        for recipe in world.alchemy_recipes
    )
    technology = [
        f"{escape(spec.name)} <small>({escape(spec.type)}, level {spec.tech_level})</small>"
        for spec in world.technical_specs
    ]
    events = [
        f"{_link(links, 'event', event.id, event.name)} <small>({escape(event.status)})</small>"
        for event in world.world_events
    ]

    body = (
        f"<h1>{escape(world.name or 'Unnamed World')}</h1>\n"
        + _section("Overview", overview, "overview")
        + _section(f"Places ({len(world.places)})", _list(places), "places")
        + _section(f"Characters ({len(world.historic_figures)})", _list(characters), "characters")
        + _section(f"Items ({len(world.equipment)})", _list(items), "items")
        + _section("Magic", _list(magic), "magic")
        + _section("Technology", _list(technology), "technology")
        + _section(f"Events ({len(world.world_events)})", _list(events), "events")
    )
    return _page(world.name or "World", body)


def render_place_page(world: World, place: Place, links: LinkBuilder | None = None) -> str:
    links = links or web_links(world.id)
    parent = world.find_place(place.parent_place_id) if place.parent_place_id else None
    residents = [
        _link(links, "character", figure.id, figure.name)
        for figure in world.historic_figures
        if figure.birth_place_id == place.id or place.id in figure.associated_place_ids
    ]
    events = [
        _link(links, "event", event.id, event.name) for event in world.world_events if place.id in event.affected_place_ids
    ]

    body = (
        f"<h1>{escape(place.name)}</h1>\n"
        f"<p>{escape(place.description)}</p>\n"
        + _facts(
            [
                ("Type", place.type),
                ("Climate", place.geography.climate),
                ("Terrain", place.geography.terrain),
                ("Resources", place.geography.natural_resources),
                ("Population", place.population.total_count),
                ("Government", place.population.government_type),
                ("Languages", place.population.languages),
                ("Religions", place.population.religions),
                ("Features", place.notable_features),
                ("Properties", place.custom_properties),
            ]
        )
    )
    if parent is not None:
        body += f"<p>Part of {_link(links, 'place', parent.id, parent.name)}</p>\n"
    body += _section("Contains", _list(_place_links(world, links, place.child_place_ids)))
    body += _section("Notable Figures", _list(residents))
    body += _section("Events", _list(events))
    return _page(place.name, body, _breadcrumbs(world, links, "Places", place.name))


def render_character_page(world: World, figure: HistoricFigure, links: LinkBuilder | None = None) -> str:
    links = links or web_links(world.id)
    birth_place = world.find_place(figure.birth_place_id) if figure.birth_place_id else None
    owned = [_link(links, "item", item.id, item.name) for item in world.equipment if item.current_owner_id == figure.id]
    authored = [_link(links, "spellbook", book.id, book.name) for book in world.spell_books if book.author_id == figure.id]

    body = (
        f"<h1>{escape(figure.name)}</h1>\n"
        f"<p><strong>{escape(figure.title)}</strong></p>\n"
        f"<p>{escape(figure.description)}</p>\n"
        + _facts(
            [
                ("Race", figure.race),
                ("Class", figure.class_),
                ("Born", _date(figure.birth_date)),
                ("Died", _date(figure.death_date)),
                ("Alive", "Yes" if figure.is_alive else "No"),
                ("Attributes", figure.attributes),
            ]
        )
    )
    if birth_place is not None:
        body += f"<p>Born in {_link(links, 'place', birth_place.id, birth_place.name)}</p>\n"
    body += _section("Achievements", _list(_text_list(figure.achievements)))
    body += _section("Associated Places", _list(_place_links(world, links, figure.associated_place_ids)))
    body += _section("Events", _list(_event_links(world, links, figure.related_event_ids)))
    body += _section("Possessions", _list(owned + authored))
    return _page(figure.name, body, _breadcrumbs(world, links, "Characters", figure.name))


def _item_facts(item: Equipment) -> list[tuple[str, Any]]:
    rows: list[tuple[str, Any]] = [
        ("Kind", item.kind),
        ("Type", item.type),
        ("Rarity", item.rarity),
        ("Material", item.material),
        ("Condition", item.condition),
        ("Weight", item.weight),
        ("Value", item.value),
    ]
    if isinstance(item, Weapon):
        rows += [
            ("Weapon type", item.weapon_type),
            ("Damage", f"{item.damage} {item.damage_type}".strip()),
            ("Range", item.range),
            ("Enchantments", item.enchantments),
        ]
    elif isinstance(item, MagicalArtifact):
        rows += [
            ("Magic", item.magic_type),
            ("Power", item.magic_power),
            ("Spells", item.spells),
            ("Charges", f"{item.charges}/{item.max_charges}"),
            ("Activation", item.activation_method),
        ]
    elif isinstance(item, SciFiArtifact):
        rows += [
            ("Technology", item.technology_type),
            ("Tech level", item.tech_level),
            ("Power source", item.power_source),
            ("Functions", item.functions),
            ("Operational", "Yes" if item.is_operational else "No"),
        ]
    return rows


def render_item_page(world: World, item: Equipment, links: LinkBuilder | None = None) -> str:
    links = links or web_links(world.id)
    people = []
    for label, figure_id in (("Creator", item.creator_id), ("Owner", item.current_owner_id)):
        figure = world.find_figure(figure_id) if figure_id else None
        if figure is not None:
            people.append(f"{escape(label)}: {_link(links, 'character', figure.id, figure.name)}")

    body = (
        f"<h1>{escape(item.name)}</h1>\n"
        f"<p>{escape(item.description)}</p>\n"
        + _facts(_item_facts(item))
        + _section("People", _list(people))
        + _section("History", _list(_text_list(item.history)))
    )
    return _page(item.name, body, _breadcrumbs(world, links, "Items", item.name))


def render_spell_book_page(world: World, book: SpellBook, links: LinkBuilder | None = None) -> str:
    links = links or web_links(world.id)
    author = world.find_figure(book.author_id) if book.author_id else None
    spells = [
        f"<strong>{escape(spell.name)}</strong> (level {spell.level}, {escape(spell.school)}): {escape(spell.description)}"
        for spell in book.spells
    ]

    body = (
        f"<h1>{escape(book.name)}</h1>\n"
        f"<p>{escape(book.description)}</p>\n"
        + _facts(
            [
                ("School", book.magic_school),
                ("Required level", book.required_level),
                ("Language", book.language),
                ("Complete", "Yes" if book.is_complete else "No"),
                ("Missing pages", book.missing_pages),
            ]
        )
    )
    if author is not None:
        body += f"<p>Written by {_link(links, 'character', author.id, author.name)}</p>\n"
    body += _section("Spells", _list(spells))
    return _page(book.name, body, _breadcrumbs(world, links, "Magic", book.name))


def render_event_page(world: World, event: WorldEvent, links: LinkBuilder | None = None) -> str:
    links = links or web_links(world.id)
    body = (
        f"<h1>{escape(event.name)}</h1>\n"
        f"<p>{escape(event.description)}</p>\n"
        + _facts(
            [
                ("Type", event.type),
                ("Status", event.status),
                ("Began", _date(event.start_date)),
                ("Ended", _date(event.end_date)),
                ("Impact", event.global_impact_level),
                ("Consequences", event.consequences),
            ]
        )
        + _section("Participants", _list(_figure_links(world, links, event.participant_ids)))
        + _section("Affected Places", _list(_place_links(world, links, event.affected_place_ids)))
    )
    return _page(event.name, body, _breadcrumbs(world, links, "Events", event.name))


def render_not_found_page(kind: str, entity_id: str, world: World | None = None) -> str:
    back = ""
    if world is not None:
        back = f'<p><a href="{escape(web_links(world.id)("world", ""))}">Back to {escape(world.name)}</a></p>\n'
    body = f"<h1>Not Found</h1>\n<p>No {escape(kind)} with id {escape(entity_id)} exists.</p>\n{back}"
    return _page("Not Found", body)


def render_entity_page(world: World, kind: str, entity_id: str, links: LinkBuilder | None = None) -> str | None:
    """Render one entity page, or ``None`` when ``kind``/``entity_id`` do not resolve."""
    if kind == "place":
        place = world.find_place(entity_id)
        return render_place_page(world, place, links) if place else None
    if kind == "character":
        figure = world.find_figure(entity_id)
        return render_character_page(world, figure, links) if figure else None
    if kind == "item":
        item = world.find_equipment(entity_id)
        return render_item_page(world, item, links) if item else None
    if kind == "spellbook":
        book = world.find_spell_book(entity_id)
        return render_spell_book_page(world, book, links) if book else None
    if kind == "event":
        event = world.find_event(entity_id)
        return render_event_page(world, event, links) if event else None
    return None


@dataclass
class WikiExportResult:
    output_dir: Path
    index_path: Path
    world_json_path: Path
    page_paths: list[Path] = field(default_factory=list)


def _entity_ids(world: World) -> list[tuple[str, str]]:
    pairs = [("place", place.id) for place in world.places]
    pairs += [("character", figure.id) for figure in world.historic_figures]
    pairs += [("item", item.id) for item in world.equipment]
    pairs += [("spellbook", book.id) for book in world.spell_books]
    pairs += [("event", event.id) for event in world.world_events]
    return pairs


def export_world_wiki(world: World, output_dir: Path) -> WikiExportResult:
    """Write a static wiki for ``world``: ``index.html``, one page per entity and ``world.json``."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    index_path = output_dir / file_links("world", "")
    index_path.write_text(render_world_page(world, file_links), encoding="utf-8")

    page_paths: list[Path] = []
    for kind, entity_id in _entity_ids(world):
        html = render_entity_page(world, kind, entity_id, file_links)
        if html is None:
            continue
        path = output_dir / file_links(kind, entity_id)
        path.write_text(html, encoding="utf-8")
        page_paths.append(path)

    world_json_path = output_dir / "world.json"
    world_json_path.write_bytes(orjson.dumps(world.to_json_dict(), option=orjson.OPT_INDENT_2))

    return WikiExportResult(
        output_dir=output_dir,
        index_path=index_path,
        world_json_path=world_json_path,
        page_paths=page_paths,
    )


def build_export_package(world: World, narrative: str) -> dict[str, Any]:
    return {
        "worldId": world.id,
        "exportedAt": utc_now().isoformat(),
        "worldData": world.to_json_dict(),
        "narrative": narrative,
        "summary": {
            "places": len(world.places),
            "characters": len(world.historic_figures),
            "events": len(world.world_events),
            "technicalSpecs": len(world.technical_specs),
            "magicItems": len(world.runes_of_power) + len(world.spell_books) + len(world.alchemy_recipes),
        },
    }
