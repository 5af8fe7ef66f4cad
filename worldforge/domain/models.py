from __future__ import annotations

from datetime import datetime, timedelta
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag
from pydantic.alias_generators import to_camel

from worldforge.domain.ids import new_id
from worldforge.domain.types import (
    AlchemyType,
    EquipmentRarity,
    EquipmentType,
    EventStatus,
    IngredientRarity,
    MagicType,
    PlaceType,
    RuneType,
    TechnologyType,
    TechSpecType,
    WeaponType,
    WorldEventType,
)


class WorldModel(BaseModel):
    """Base for every stored entity: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Coordinates(WorldModel):
    latitude: float = 0.0
    longitude: float = 0.0
    elevation: float = 0.0


class GeographicInfo(WorldModel):
    climate: str = ""
    terrain: str = ""
    natural_resources: list[str] = Field(default_factory=list)
    coordinates: Coordinates = Field(default_factory=Coordinates)
    area: float = 0.0
    borders: list[str] = Field(default_factory=list)


class Population(WorldModel):
    total_count: int = 0
    race_distribution: dict[str, int] = Field(default_factory=dict)
    class_distribution: dict[str, int] = Field(default_factory=dict)
    age_distribution: dict[str, int] = Field(default_factory=dict)
    government_type: str = ""
    languages: list[str] = Field(default_factory=list)
    religions: list[str] = Field(default_factory=list)


class Place(WorldModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    description: str = ""
    type: PlaceType = "Other"
    parent_place_id: str | None = None
    child_place_ids: list[str] = Field(default_factory=list)
    geography: GeographicInfo = Field(default_factory=GeographicInfo)
    population: Population = Field(default_factory=Population)
    notable_features: list[str] = Field(default_factory=list)
    custom_properties: dict[str, str] = Field(default_factory=dict)


class HistoricFigure(WorldModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    title: str = ""
    description: str = ""
    race: str = ""
    class_: str = Field(default="", alias="class")
    birth_date: datetime | None = None
    death_date: datetime | None = None
    # Independent of death_date; a figure can be alive with a death date set.
    is_alive: bool = True
    birth_place_id: str = ""
    associated_place_ids: list[str] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)
    related_event_ids: list[str] = Field(default_factory=list)
    attributes: dict[str, int] = Field(default_factory=dict)
    relationships: list[str] = Field(default_factory=list)


class WorldEvent(WorldModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    description: str = ""
    type: WorldEventType = "Other"
    start_date: datetime | None = None
    end_date: datetime | None = None
    status: EventStatus = "Historical"
    participant_ids: list[str] = Field(default_factory=list)
    affected_place_ids: list[str] = Field(default_factory=list)
    consequences: dict[str, str] = Field(default_factory=dict)
    global_impact_level: int = Field(default=1, ge=1, le=10)


class Equipment(WorldModel):
    kind: str = Field(default="BasicEquipment", alias="$type")
    id: str = Field(default_factory=new_id)
    name: str = ""
    description: str = ""
    type: EquipmentType = "Other"
    rarity: EquipmentRarity = "Common"
    weight: float = 0.0
    value: float = 0.0
    material: str = ""
    condition: str = "Good"
    creator_id: str | None = None
    current_owner_id: str | None = None
    history: list[str] = Field(default_factory=list)
    properties: dict[str, int] = Field(default_factory=dict)


class BasicEquipment(Equipment):
    kind: Literal["BasicEquipment"] = Field(default="BasicEquipment", alias="$type")


class Weapon(Equipment):
    kind: Literal["Weapon"] = Field(default="Weapon", alias="$type")
    type: EquipmentType = "Weapon"
    weapon_type: WeaponType = "Other"
    damage: int = 0
    range: int = 0
    damage_type: str = ""
    is_magical: bool = False
    enchantments: list[str] = Field(default_factory=list)


class MagicalArtifact(Equipment):
    kind: Literal["MagicalArtifact"] = Field(default="MagicalArtifact", alias="$type")
    type: EquipmentType = "Artifact"
    magic_type: MagicType = "Other"
    magic_power: int = 0
    spells: list[str] = Field(default_factory=list)
    charges: int = 0
    max_charges: int = 0
    requires_attunement: bool = False
    activation_method: str = ""


class SciFiArtifact(Equipment):
    kind: Literal["SciFiArtifact"] = Field(default="SciFiArtifact", alias="$type")
    type: EquipmentType = "Artifact"
    technology_type: TechnologyType = "Other"
    tech_level: int = 0
    power_source: str = ""
    power_level: int = 0
    functions: list[str] = Field(default_factory=list)
    is_operational: bool = True
    operating_system: str = ""


_VARIANT_MARKERS: tuple[tuple[str, str], ...] = (
    ("weaponType", "Weapon"),
    ("weapon_type", "Weapon"),
    ("magicType", "MagicalArtifact"),
    ("magic_type", "MagicalArtifact"),
    ("technologyType", "SciFiArtifact"),
    ("technology_type", "SciFiArtifact"),
)

EQUIPMENT_KINDS = ("Weapon", "MagicalArtifact", "SciFiArtifact", "BasicEquipment")


def _equipment_tag(value: Any) -> str:
    if isinstance(value, dict):
        tag = value.get("$type", value.get("kind"))
        if isinstance(tag, str) and tag in EQUIPMENT_KINDS:
            return tag
        for marker, inferred in _VARIANT_MARKERS:
            if marker in value:
                return inferred
        return "BasicEquipment"
    return str(getattr(value, "kind", "BasicEquipment"))


EquipmentItem = Annotated[
    Union[
        Annotated[Weapon, Tag("Weapon")],
        Annotated[MagicalArtifact, Tag("MagicalArtifact")],
        Annotated[SciFiArtifact, Tag("SciFiArtifact")],
        Annotated[BasicEquipment, Tag("BasicEquipment")],
    ],
    Discriminator(_equipment_tag),
]


class Spell(WorldModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    description: str = ""
    level: int = 1
    school: MagicType = "Arcane"
    components: str = ""
    casting_time: str = ""
    range: str = ""
    duration: str = ""
    effects: list[str] = Field(default_factory=list)
    is_ritual: bool = False


class SpellBook(WorldModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    description: str = ""
    author_id: str = ""
    magic_school: MagicType = "Arcane"
    required_level: int = 1
    spells: list[Spell] = Field(default_factory=list)
    language: str = ""
    is_complete: bool = True
    missing_pages: list[str] = Field(default_factory=list)


class RuneOfPower(WorldModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    symbol: str = ""
    description: str = ""
    type: RuneType = "Other"
    power_level: int = Field(default=1, ge=1, le=10)
    element: str = ""
    effects: list[str] = Field(default_factory=list)
    activation_condition: str = ""
    is_active: bool = False
    location: str = ""
    creator_id: str = ""


class Ingredient(WorldModel):
    name: str = ""
    quantity: int = 0
    unit: str = ""
    rarity: IngredientRarity = "Common"
    source: str = ""
    properties: list[str] = Field(default_factory=list)


class AlchemyRecipe(WorldModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    description: str = ""
    type: AlchemyType = "Other"
    difficulty: int = Field(default=1, ge=1, le=10)
    ingredients: list[Ingredient] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    preparation_time: timedelta = timedelta(0)
    effects: list[str] = Field(default_factory=list)
    side_effects: list[str] = Field(default_factory=list)
    creator_id: str = ""
    is_secret: bool = False


class TechnicalSpecification(WorldModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    description: str = ""
    type: TechSpecType = "Other"
    tech_level: int = 1
    manufacturer: str = ""
    model_number: str = ""
    specifications: dict[str, str] = Field(default_factory=dict)
    requirements: list[str] = Field(default_factory=list)
    capabilities: list[str] = Field(default_factory=list)
    power_consumption: str = ""
    maintenance_schedule: str = ""
    is_classified: bool = False


class WorldLaws(WorldModel):
    magic_exists: bool = False
    death_is_permanent: bool = True
    time_travel: bool = False
    multiverse: bool = False
    custom_laws: dict[str, Any] = Field(default_factory=dict)


class WorldInfo(WorldModel):
    genre: str = ""
    time_era: str = ""
    magic_level: str = ""
    technology_level: str = ""
    custom_settings: dict[str, str] = Field(default_factory=dict)
    active_themes: list[str] = Field(default_factory=list)
    laws: WorldLaws = Field(default_factory=WorldLaws)


class World(WorldModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    description: str = ""
    creation_date: datetime | None = None
    world_info: WorldInfo = Field(default_factory=WorldInfo)
    places: list[Place] = Field(default_factory=list)
    historic_figures: list[HistoricFigure] = Field(default_factory=list)
    world_events: list[WorldEvent] = Field(default_factory=list)
    equipment: list[EquipmentItem] = Field(default_factory=list)
    spell_books: list[SpellBook] = Field(default_factory=list)
    runes_of_power: list[RuneOfPower] = Field(default_factory=list)
    alchemy_recipes: list[AlchemyRecipe] = Field(default_factory=list)
    technical_specs: list[TechnicalSpecification] = Field(default_factory=list)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def find_place(self, place_id: str) -> Place | None:
        return next((place for place in self.places if place.id == place_id), None)

    def find_figure(self, figure_id: str) -> HistoricFigure | None:
        return next((figure for figure in self.historic_figures if figure.id == figure_id), None)

    def find_event(self, event_id: str) -> WorldEvent | None:
        return next((event for event in self.world_events if event.id == event_id), None)

    def find_equipment(self, item_id: str) -> Equipment | None:
        return next((item for item in self.equipment if item.id == item_id), None)

    def find_spell_book(self, book_id: str) -> SpellBook | None:
        return next((book for book in self.spell_books if book.id == book_id), None)
