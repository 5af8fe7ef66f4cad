from __future__ import annotations

from datetime import timedelta
from typing import Protocol, Sequence

from worldforge.domain.ids import years_ago
from worldforge.domain.models import (
    AlchemyRecipe,
    Coordinates,
    Equipment,
    GeographicInfo,
    HistoricFigure,
    Ingredient,
    MagicalArtifact,
    Place,
    Population,
    RuneOfPower,
    SciFiArtifact,
    Spell,
    SpellBook,
    TechnicalSpecification,
    Weapon,
    World,
    WorldEvent,
)
from worldforge.domain.types import (
    ALCHEMY_TYPES,
    EQUIPMENT_RARITIES,
    INGREDIENT_RARITIES,
    MAGIC_TYPES,
    RUNE_TYPES,
    TECH_SPEC_TYPES,
    TECHNOLOGY_TYPES,
    WEAPON_TYPES,
    match_literal,
)
from worldforge.generation import tables
from worldforge.generation.parameters import GenerationParameters
from worldforge.generation.random_source import RandomProvider


class _HasId(Protocol):
    id: str


_POPULATION_RANGES: dict[str, tuple[int, int]] = {
    "Continent": (1_000_000, 50_000_000),
    "Country": (100_000, 10_000_000),
    "Region": (10_000, 1_000_000),
    "City": (10_000, 500_000),
    "Town": (1_000, 20_000),
    "Village": (50, 1_000),
    "Dungeon": (0, 200),
    "NaturalFeature": (0, 500),
}
_DEFAULT_POPULATION_RANGE = (100, 100_000)


def event_status_for(start_years_ago: int, has_end: bool) -> str:
    if not has_end and start_years_ago <= 50:
        return "Ongoing"
    if start_years_ago > 900:
        return "Mythical"
    if start_years_ago > 600:
        return "Legendary"
    return "Historical"


def alchemy_difficulty(label: object) -> int:
    """Map a five-tier skill label (novice..master) onto the 1-10 difficulty scale."""
    if isinstance(label, int) and not isinstance(label, bool):
        return min(10, max(1, label))
    key = str(label or "").strip().lower()
    return tables.ALCHEMY_DIFFICULTY_TIERS.get(key, tables.DEFAULT_ALCHEMY_DIFFICULTY)


class EntityFactory:
    """Builds single randomized entities for one world.

    Every method reads the world in progress for cross references and returns a
    new value; appending it to the world is the caller's job.
    """

    def __init__(self, parameters: GenerationParameters, rng: RandomProvider) -> None:
        self.parameters = parameters
        self.rng = rng

    # Cross-reference helpers

    def _pick_id(self, entities: Sequence[_HasId]) -> str:
        if not entities:
            return ""
        return self.rng.choice(entities).id

    def _sample_ids(self, entities: Sequence[_HasId], low: int, high: int) -> list[str]:
        return [entity.id for entity in self.rng.sample(entities, self.rng.next_int(low, high))]

    def _subset(self, pool: Sequence[str], low: int, high: int) -> list[str]:
        return self.rng.sample(pool, self.rng.next_int(low, high))

    def _magic_schools(self) -> tuple[str, ...]:
        preferred = tuple(
            school
            for school in (match_literal(item, MAGIC_TYPES) for item in self.parameters.preferred_magic_schools)
            if school is not None
        )
        return preferred or MAGIC_TYPES

    # Places

    def create_place(self, world: World, *, place_type: str | None = None, parent: Place | None = None) -> Place:
        params = self.parameters
        rng = self.rng
        resolved_type = place_type or rng.choice(tables.RANDOM_PLACE_TYPES)
        elevation = rng.next_int(-1000, 5000) if params.include_space_travel else rng.next_int(0, 3000)

        return Place(
            id=rng.new_id(),
            name=f"{rng.choice(tables.PLACE_PREFIXES)}{rng.choice(tables.PLACE_SUFFIXES)}",
            description=rng.choice(tables.PLACE_DESCRIPTIONS),
            type=resolved_type,
            parent_place_id=parent.id if parent is not None else None,
            geography=GeographicInfo(
                climate=rng.choice(tables.CLIMATES),
                terrain=rng.choice(params.preferred_biomes or tables.BIOMES),
                natural_resources=rng.distinct_choices(tables.RESOURCES, 1, 4),
                coordinates=Coordinates(
                    latitude=round(rng.uniform(-90.0, 90.0), 4),
                    longitude=round(rng.uniform(-180.0, 180.0), 4),
                    elevation=float(elevation),
                ),
                area=float(rng.next_int(1, 1_000_000)),
                borders=list(tables.BORDERS[: rng.next_int(0, 3)]),
            ),
            population=self._population(resolved_type),
            notable_features=self._notable_features(),
            custom_properties={
                "Theme": params.theme,
                "DangerLevel": str(rng.next_int(1, 10)),
            },
        )

    def _population(self, place_type: str) -> Population:
        rng = self.rng
        low, high = _POPULATION_RANGES.get(place_type, _DEFAULT_POPULATION_RANGE)
        races = rng.sample(self.parameters.preferred_races or tables.RACES, 3)
        return Population(
            total_count=rng.next_int(low, high),
            race_distribution={race: rng.next_int(10, 50) for race in races},
            class_distribution={name: rng.next_int(5, 40) for name in rng.sample(tables.CHARACTER_CLASSES, 3)},
            age_distribution={bracket: rng.next_int(10, 50) for bracket in tables.AGE_BRACKETS},
            government_type=rng.choice(tables.GOVERNMENTS),
            languages=list(tables.LANGUAGES),
            religions=list(tables.RELIGIONS),
        )

    def _notable_features(self) -> list[str]:
        features = self._subset(tables.NOTABLE_FEATURES, 2, 5)
        if self.parameters.include_ancient_ruins and self.rng.chance(3):
            features.append(tables.ANCIENT_RUINS)
        return features

    # Historic figures

    def create_historic_figure(self, world: World) -> HistoricFigure:
        rng = self.rng
        return HistoricFigure(
            id=rng.new_id(),
            name=f"{rng.choice(tables.FIRST_NAMES)} {rng.choice(tables.LAST_NAMES)}",
            title=rng.choice(tables.TITLES),
            description=rng.choice(tables.CHARACTER_DESCRIPTIONS),
            race=rng.choice(self.parameters.preferred_races or tables.RACES),
            class_=rng.choice(tables.CHARACTER_CLASSES),
            birth_date=years_ago(rng.next_int(50, 500)),
            death_date=years_ago(rng.next_int(1, 50)) if rng.chance(4) else None,
            # Drawn independently of death_date.
            is_alive=not rng.chance(4),
            birth_place_id=self._pick_id(world.places),
            associated_place_ids=self._sample_ids(world.places, 1, 3),
            achievements=rng.distinct_choices(tables.ACHIEVEMENTS, 1, 4),
            related_event_ids=[],
            attributes={name: rng.next_int(8, 18) for name in tables.CHARACTER_ATTRIBUTES},
            relationships=self._sample_ids(world.historic_figures, 0, 3),
        )

    # Events

    def create_world_event(self, world: World) -> WorldEvent:
        rng = self.rng
        start_years = rng.next_int(1, 1000)
        has_end = rng.chance(2)
        return WorldEvent(
            id=rng.new_id(),
            name=f"The {rng.choice(tables.THEMES)} Incident",
            description=tables.EVENT_DESCRIPTION,
            type=rng.choice(tables.GENERATED_EVENT_TYPES),
            start_date=years_ago(start_years),
            end_date=years_ago(rng.next_int(0, start_years)) if has_end else None,
            status=event_status_for(start_years, has_end),
            participant_ids=self._sample_ids(world.historic_figures, 1, 4),
            affected_place_ids=self._sample_ids(world.places, 1, 3),
            consequences=dict(tables.EVENT_CONSEQUENCES),
            global_impact_level=rng.next_int(1, 11),
        )

    # Equipment

    def _equipment_common(self, world: World) -> dict[str, object]:
        rng = self.rng
        creator_id = self._pick_id(world.historic_figures) or None
        return {
            "id": rng.new_id(),
            "description": tables.EQUIPMENT_DESCRIPTION,
            "rarity": rng.choice(EQUIPMENT_RARITIES),
            "material": rng.choice(tables.MATERIALS),
            "condition": "Good",
            "creator_id": creator_id,
            "history": self._subset(tables.EQUIPMENT_HISTORY, 1, 4),
            "properties": {
                "Durability": rng.next_int(50, 100),
                "Power": rng.next_int(1, 20),
                "Efficiency": rng.next_int(70, 100),
            },
        }

    def create_weapon(self, world: World) -> Weapon:
        rng = self.rng
        params = self.parameters
        is_magical = params.magic_level > 3
        return Weapon(
            **self._equipment_common(world),
            name=f"{rng.choice(tables.WEAPON_PREFIXES)} {rng.choice(tables.WEAPON_FORMS)}",
            value=float(rng.next_int(10, 10_000)),
            weight=float(rng.next_int(1, 50)),
            weapon_type=rng.choice(WEAPON_TYPES),
            damage=rng.next_int(1, 10 + 2 * params.tech_level),
            range=rng.next_int(5, 100),
            damage_type=rng.choice(tables.DAMAGE_TYPES),
            is_magical=is_magical,
            enchantments=self._subset(tables.ENCHANTMENTS, 1, 4) if is_magical else [],
        )

    def create_magical_artifact(self, world: World) -> MagicalArtifact:
        rng = self.rng
        charges = rng.next_int(1, 10)
        return MagicalArtifact(
            **self._equipment_common(world),
            name=f"{rng.choice(tables.ARTIFACT_FORMS)} of {rng.choice(tables.THEMES)}",
            value=float(rng.next_int(100, 50_000)),
            weight=float(rng.next_int(1, 20)),
            magic_type=rng.choice(self._magic_schools()),
            magic_power=rng.next_int(1, 10 + self.parameters.magic_level),
            spells=self._subset(tables.ARTIFACT_SPELLS, 1, 5),
            charges=charges,
            max_charges=max(charges, rng.next_int(5, 15)),
            requires_attunement=rng.chance(2),
            activation_method=rng.choice(tables.ACTIVATION_METHODS),
        )

    def create_scifi_artifact(self, world: World) -> SciFiArtifact:
        rng = self.rng
        tech_level = self.parameters.tech_level
        return SciFiArtifact(
            **self._equipment_common(world),
            name=f"{rng.choice(tables.TECH_PREFIXES)} {rng.choice(tables.SCIFI_ARTIFACT_FORMS)}",
            value=float(rng.next_int(500, 75_000)),
            weight=float(rng.next_int(1, 30)),
            technology_type=rng.choice(TECHNOLOGY_TYPES),
            tech_level=rng.next_int(1, max(2, tech_level + 1)),
            power_source=rng.choice(tables.POWER_SOURCES),
            power_level=rng.next_int(1, max(2, tech_level * 10 + 1)),
            functions=self._subset(tables.ARTIFACT_FUNCTIONS, 1, 4),
            is_operational=not rng.chance(5),
            operating_system=rng.choice(tables.OPERATING_SYSTEMS),
        )

    def create_equipment(self, world: World) -> Equipment:
        if self.rng.chance(2):
            return self.create_weapon(world)
        return self.create_magical_artifact(world)

    # Magic

    def create_spell_book(self, world: World) -> SpellBook:
        rng = self.rng
        name = f"The {rng.choice(tables.THEMES)} Codex"
        school = rng.choice(self._magic_schools())
        required_level = rng.next_int(1, 15)
        is_complete = not rng.chance(3)
        missing_pages: list[str] = []
        if not is_complete:
            missing_pages = [f"Page {page}" for page in sorted(rng.sample(range(1, 200), rng.next_int(1, 4)))]

        spell_count = rng.next_int(1, 4 + self.parameters.magic_level // 3)
        return SpellBook(
            id=rng.new_id(),
            name=name,
            description=tables.SPELL_BOOK_DESCRIPTION,
            author_id=self._pick_id(world.historic_figures),
            magic_school=school,
            required_level=required_level,
            spells=[self._spell(name, school, required_level) for _ in range(spell_count)],
            language=rng.choice(tables.ANCIENT_LANGUAGES),
            is_complete=is_complete,
            missing_pages=missing_pages,
        )

    def _spell(self, book_name: str, school: str, max_level: int) -> Spell:
        rng = self.rng
        return Spell(
            id=rng.new_id(),
            name=f"{rng.choice(tables.SPELL_PREFIXES)} {rng.choice(tables.SPELL_NOUNS)}",
            description=f"A {school.lower()} working recorded in {book_name}.",
            level=rng.next_int(1, max_level + 1),
            school=school,
            components=rng.choice(tables.SPELL_COMPONENTS),
            casting_time=rng.choice(tables.CASTING_TIMES),
            range=rng.choice(tables.SPELL_RANGES),
            duration=rng.choice(tables.SPELL_DURATIONS),
            effects=self._subset(tables.SPELL_EFFECTS, 1, 3),
            is_ritual=rng.chance(5),
        )

    def create_rune(self, world: World) -> RuneOfPower:
        rng = self.rng
        power_cap = min(10, max(1, self.parameters.magic_level))
        location = rng.choice(world.places).name if world.places else "Unknown"
        return RuneOfPower(
            id=rng.new_id(),
            name=f"Rune of {rng.choice(tables.RUNE_PREFIXES)} {rng.choice(tables.RUNE_NOUNS)}",
            symbol=rng.choice(tables.RUNE_SYMBOLS),
            description=tables.RUNE_DESCRIPTION,
            type=rng.choice(RUNE_TYPES),
            power_level=rng.next_int(1, power_cap + 1),
            element=rng.choice(tables.RUNE_ELEMENTS),
            effects=self._subset(tables.RUNE_EFFECTS, 1, 4),
            activation_condition=rng.choice(tables.ACTIVATION_METHODS),
            is_active=rng.chance(2),
            location=location,
            creator_id=self._pick_id(world.historic_figures),
        )

    def create_alchemy_recipe(self, world: World) -> AlchemyRecipe:
        rng = self.rng
        tier = rng.choice(tuple(tables.ALCHEMY_DIFFICULTY_TIERS))
        return AlchemyRecipe(
            id=rng.new_id(),
            name=f"Potion of {rng.choice(tables.ALCHEMY_PREFIXES)} {rng.choice(tables.ALCHEMY_NOUNS)}",
            description=tables.ALCHEMY_DESCRIPTION,
            type=rng.choice(ALCHEMY_TYPES),
            difficulty=alchemy_difficulty(tier),
            ingredients=[self._ingredient() for _ in range(rng.next_int(3, 6))],
            steps=list(tables.ALCHEMY_STEPS),
            preparation_time=timedelta(hours=rng.next_int(1, 24)),
            effects=self._subset(tables.ALCHEMY_EFFECTS, 1, 4),
            side_effects=self._subset(tables.ALCHEMY_SIDE_EFFECTS, 0, 3),
            creator_id=self._pick_id(world.historic_figures),
            is_secret=rng.chance(3),
        )

    def _ingredient(self) -> Ingredient:
        rng = self.rng
        return Ingredient(
            name=rng.choice(tables.INGREDIENT_NAMES),
            quantity=rng.next_int(1, 10),
            unit=rng.choice(tables.INGREDIENT_UNITS),
            rarity=rng.choice(INGREDIENT_RARITIES),
            source=rng.choice(tables.INGREDIENT_SOURCES),
            properties=self._subset(tables.INGREDIENT_PROPERTIES, 1, 4),
        )

    # Technology

    def create_technical_specification(self, world: World) -> TechnicalSpecification:
        rng = self.rng
        tech_level = self.parameters.tech_level
        prefixes = self.parameters.preferred_technologies or tables.TECH_PREFIXES
        return TechnicalSpecification(
            id=rng.new_id(),
            name=f"{rng.choice(prefixes)}-{rng.choice(tables.TECH_NOUNS)}",
            description=tables.TECH_DESCRIPTION,
            type=rng.choice(TECH_SPEC_TYPES),
            tech_level=rng.next_int(1, max(2, tech_level + 1)),
            manufacturer=f"{rng.choice(tables.MANUFACTURER_PREFIXES)} {rng.choice(tables.MANUFACTURER_SUFFIXES)}",
            model_number=f"{rng.choice(tables.MODEL_PREFIXES)}-{rng.next_int(1000, 10_000)}",
            specifications={
                "Processing Power": f"{rng.next_int(1, 100)} TeraFLOPS",
                "Mana Capacity": f"{rng.next_int(100, 1000)} MP",
                "Quantum Coherence": f"{rng.next_int(50, 100)}%",
            },
            requirements=list(tables.TECH_REQUIREMENTS),
            capabilities=list(tables.TECH_CAPABILITIES),
            power_consumption=f"{rng.next_int(10, 500)} Watts + {rng.next_int(5, 50)} MP/hour",
            maintenance_schedule=f"Every {rng.next_int(30, 365)} days or {rng.next_int(100, 1000)} operating hours",
            is_classified=rng.chance(9),
        )

    # Post-processing properties

    def connection_summary(self, place: Place, places: Sequence[Place]) -> str:
        rng = self.rng
        links: list[str] = []
        for _ in range(min(rng.next_int(1, 5), len(places) - 1)):
            other = rng.choice(places)
            if other.id != place.id:
                links.append(f"{other.name} ({rng.choice(tables.CONNECTION_TYPES)})")
        return ", ".join(links)

    def economy_properties(self) -> dict[str, str]:
        rng = self.rng
        return {
            "EconomicSystem": rng.choice(tables.ECONOMIC_SYSTEMS),
            "MainIndustries": ", ".join(self._subset(tables.INDUSTRIES, 1, 4)),
            "TradeGoods": ", ".join(self._subset(tables.TRADE_GOODS, 1, 4)),
            "Currency": rng.choice(tables.CURRENCIES),
        }

    def politics_properties(self) -> dict[str, str]:
        rng = self.rng
        return {
            "PoliticalSystem": rng.choice(tables.POLITICAL_SYSTEMS),
            "Ruler": f"{rng.choice(tables.RULER_TITLES)} {rng.choice(tables.RULER_NAMES)}",
            "Laws": rng.choice(tables.LAW_CODES),
            "Diplomacy": rng.choice(tables.DIPLOMATIC_STANCES),
        }
