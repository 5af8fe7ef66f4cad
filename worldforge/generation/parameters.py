from __future__ import annotations

from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


DifficultyLevel = Literal["Easy", "Medium", "Hard"]
WorldScale = Literal["Local", "Regional", "Continental", "Global", "Interplanetary"]

DEFAULT_THEME = "Fantasy-SciFi"
QUICK_WORLD_SIZE = 25


def clamp_count(value: int | None) -> int:
    """Counts below zero mean nothing to generate."""
    if value is None:
        return 0
    return max(0, int(value))


class GenerationParameters(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    world_name: str
    theme: str = DEFAULT_THEME
    tech_level: int = 5
    magic_level: int = 7
    preferred_biomes: list[str] = Field(default_factory=list)
    preferred_races: list[str] = Field(default_factory=list)
    preferred_technologies: list[str] = Field(default_factory=list)
    preferred_magic_schools: list[str] = Field(default_factory=list)
    include_ancient_ruins: bool = True
    include_space_travel: bool = False
    include_magic_tech: bool = True
    world_size: int = QUICK_WORLD_SIZE
    difficulty_level: DifficultyLevel = "Medium"

    @field_validator("world_name")
    @classmethod
    def _non_blank_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("world_name must not be empty")
        return stripped

    @field_validator("theme")
    @classmethod
    def _default_blank_theme(cls, value: str) -> str:
        return value.strip() or DEFAULT_THEME

    @field_validator("tech_level", "magic_level")
    @classmethod
    def _level_range(cls, value: int) -> int:
        if not 0 <= value <= 10:
            raise ValueError("tech_level and magic_level must be between 0 and 10")
        return value

    @field_validator("preferred_biomes", "preferred_races", "preferred_technologies", "preferred_magic_schools")
    @classmethod
    def _drop_blank_entries(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item and item.strip()]


class CompleteWorldRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    continent_count: int = 3
    country_count: int = 8
    region_count: int = 15
    city_count: int = 20
    town_count: int = 25
    village_count: int = 30
    dungeon_count: int = 12
    natural_feature_count: int = 18

    character_count: int = 25
    historical_event_count: int = 15
    equipment_count: int = 40
    weapon_count: int | None = None
    magical_artifact_count: int | None = None
    scifi_artifact_count: int | None = None
    spell_book_count: int = 8
    rune_count: int = 12
    alchemy_recipe_count: int = 10
    technology_count: int = 15

    generate_hierarchy: bool = True
    generate_connections: bool = True
    generate_economy: bool = True
    generate_politics: bool = True
    world_scale: WorldScale = "Continental"
    custom_settings: dict[str, Any] = Field(default_factory=dict)

    @property
    def total_places(self) -> int:
        return sum(
            clamp_count(count)
            for count in (
                self.continent_count,
                self.country_count,
                self.region_count,
                self.city_count,
                self.town_count,
                self.village_count,
                self.dungeon_count,
                self.natural_feature_count,
            )
        )

    @property
    def has_explicit_equipment_mix(self) -> bool:
        return any(
            count is not None
            for count in (self.weapon_count, self.magical_artifact_count, self.scifi_artifact_count)
        )


def split_complete_request(payload: Mapping[str, Any]) -> tuple[GenerationParameters, CompleteWorldRequest]:
    """Split one flat request body into world parameters and the complete-world counts.

    The world size always follows the requested place counts.
    """
    request_keys = {
        key
        for name, info in CompleteWorldRequest.model_fields.items()
        for key in (name, info.alias)
        if key
    }
    request = CompleteWorldRequest.model_validate({k: v for k, v in payload.items() if k in request_keys})
    parameter_data = {
        k: v for k, v in payload.items() if k not in request_keys and k not in ("worldSize", "world_size")
    }
    parameter_data["world_size"] = request.total_places
    return GenerationParameters.model_validate(parameter_data), request
