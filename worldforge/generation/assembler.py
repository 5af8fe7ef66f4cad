from __future__ import annotations

from typing import Callable, TypeVar

from loguru import logger

from worldforge.domain.ids import new_id, utc_now
from worldforge.domain.models import Equipment, Place, World, WorldInfo, WorldLaws
from worldforge.generation import tables
from worldforge.generation.errors import GenerationFailure
from worldforge.generation.factories import EntityFactory
from worldforge.generation.parameters import (
    DEFAULT_THEME,
    QUICK_WORLD_SIZE,
    CompleteWorldRequest,
    GenerationParameters,
    clamp_count,
)
from worldforge.generation.random_source import RandomProvider

T = TypeVar("T")

ENHANCE_CATEGORIES = ("places", "characters", "events", "technology", "magic", "equipment")
DEFAULT_ENHANCE_BATCH = 5

_HIERARCHY_TIERS = ("Continent", "Country", "Region", "City", "Town", "Village")

_SCALE_SPANS = {
    "Interplanetary": "multiple worlds and star systems, ",
    "Global": "entire continents and oceans, ",
    "Continental": "vast continents and regions, ",
}


def magic_level_label(level: int) -> str:
    if level <= 3:
        return "Low"
    if level <= 7:
        return "Medium"
    return "High"


def tech_level_label(level: int) -> str:
    if level <= 3:
        return "Pre-Industrial"
    if level <= 6:
        return "Industrial"
    if level <= 8:
        return "Information Age"
    return "Space Age"


def build_world_info(parameters: GenerationParameters) -> WorldInfo:
    return WorldInfo(
        genre=parameters.theme,
        time_era="Future" if parameters.tech_level > 6 else "Medieval-Future",
        magic_level=magic_level_label(parameters.magic_level),
        technology_level=tech_level_label(parameters.tech_level),
        active_themes=[parameters.theme, "Adventure", "Exploration", "Magic-Tech Fusion"],
        laws=WorldLaws(
            magic_exists=parameters.magic_level > 0,
            death_is_permanent=parameters.difficulty_level == "Hard",
            time_travel=parameters.tech_level >= 9,
            multiverse=parameters.tech_level >= 8 and parameters.magic_level >= 8,
            custom_laws={
                "MagicTechInteraction": parameters.include_magic_tech,
                "SpaceTravel": parameters.include_space_travel,
                "AncientRuins": parameters.include_ancient_ruins,
            },
        ),
    )


def _magic_clause(magic_level: int) -> str:
    if magic_level > 7:
        return "ancient magic flows through every corner"
    if magic_level > 3:
        return "magic exists in harmony with technology"
    return "remnants of old magic still linger"


def _tech_clause(tech_level: int, *, leading: str) -> str:
    if tech_level > 7:
        return f"{leading} advanced technology has reached the stars. "
    if tech_level > 3:
        return "while innovative technology shapes daily life. "
    return "though technology remains primitive in most regions. "


def describe_world(parameters: GenerationParameters, rng: RandomProvider) -> str:
    flavor = rng.choice(tables.THEMES).lower()
    return (
        f"The world of {parameters.world_name} is a unique realm where "
        f"{_magic_clause(parameters.magic_level)}, "
        f"{_tech_clause(parameters.tech_level, leading='and')}"
        f"This {parameters.theme} world is characterized by {flavor}, "
        "creating a unique blend of wonder and innovation."
    )


def _complete_magic_sentence(magic_level: int) -> str:
    if magic_level > 7:
        return "Ancient magic flows through every corner of this realm, "
    if magic_level > 3:
        return "Magic exists in harmony with technology, "
    return "Remnants of old magic still linger, "


def describe_complete_world(parameters: GenerationParameters, request: CompleteWorldRequest) -> str:
    span = _SCALE_SPANS.get(request.world_scale, "diverse regions and territories, ")
    return (
        f"The vast world of {parameters.world_name} is a {request.world_scale.lower()} realm that spans {span}"
        f"featuring {clamp_count(request.continent_count)} major continents, "
        f"{clamp_count(request.country_count)} sovereign nations, "
        f"and {clamp_count(request.region_count)} distinct regions. "
        f"{_complete_magic_sentence(parameters.magic_level)}"
        f"{_tech_clause(parameters.tech_level, leading='while')}"
        f"This {parameters.theme} world is home to {clamp_count(request.character_count)} notable figures "
        f"and contains {clamp_count(request.dungeon_count)} mysterious dungeons, "
        f"{clamp_count(request.natural_feature_count)} natural wonders, "
        f"and {clamp_count(request.historical_event_count)} world-shaping events that have molded its history."
    )


def parameters_for_world(world: World) -> GenerationParameters:
    """Parameters for growing an existing world; stored worlds keep only level labels, so levels sit mid-scale."""
    return GenerationParameters(
        world_name=world.name.strip() or "Unnamed World",
        theme=world.world_info.genre or DEFAULT_THEME,
        tech_level=5,
        magic_level=5,
    )


class WorldAssembler:
    """Runs the generation pipeline: places, characters, events, equipment, magic, technology."""

    def __init__(
        self,
        rng_factory: Callable[[int | None], RandomProvider] = RandomProvider,
        *,
        enhance_batch_size: int = DEFAULT_ENHANCE_BATCH,
    ) -> None:
        self.rng_factory = rng_factory
        self.enhance_batch_size = max(1, enhance_batch_size)

    # Entry points

    def generate_world(
        self,
        name: str,
        theme: str = DEFAULT_THEME,
        tech_level: int = 5,
        magic_level: int = 7,
        *,
        seed: int | None = None,
    ) -> World:
        logger.info("Generating world {} with theme {}", name, theme)
        parameters = GenerationParameters(
            world_name=name,
            theme=theme,
            tech_level=tech_level,
            magic_level=magic_level,
            include_magic_tech=True,
            include_space_travel=tech_level >= 7,
            world_size=QUICK_WORLD_SIZE,
        )
        return self.generate_custom_world(parameters, seed=seed)

    def generate_custom_world(self, parameters: GenerationParameters, *, seed: int | None = None) -> World:
        rng = self.rng_factory(seed)
        factory = EntityFactory(parameters, rng)

        def build() -> World:
            world = World(
                id=new_id(),
                name=parameters.world_name,
                description=describe_world(parameters, rng),
                creation_date=utc_now(),
                world_info=build_world_info(parameters),
            )
            size = clamp_count(parameters.world_size)
            self._add_places(world, factory, size)
            self._add_characters(world, factory, min(size // 2, 15))
            self._add_events(world, factory, size // 3)
            for _ in range(size // 2):
                world.equipment.append(factory.create_equipment(world))
            if parameters.magic_level > 0:
                self._add_magic(
                    world,
                    factory,
                    spell_books=max(1, parameters.magic_level // 2),
                    runes=parameters.magic_level,
                    recipes=parameters.magic_level // 2,
                )
            if parameters.tech_level > 0:
                self._add_technology(world, factory, parameters.tech_level)
            return world

        world = self._guarded("custom generation", parameters.world_name, build)
        self._log_summary("Generated world", world)
        return world

    def generate_complete_world(
        self,
        parameters: GenerationParameters,
        request: CompleteWorldRequest,
        *,
        seed: int | None = None,
    ) -> World:
        logger.info("Generating complete world {} at {} scale", parameters.world_name, request.world_scale)
        rng = self.rng_factory(seed)
        factory = EntityFactory(parameters, rng)

        def build() -> World:
            world = World(
                id=new_id(),
                name=parameters.world_name,
                description=describe_complete_world(parameters, request),
                creation_date=utc_now(),
                world_info=self._complete_world_info(parameters, request),
            )
            if request.generate_hierarchy:
                self._add_hierarchical_places(world, factory, request)
            else:
                self._add_typed_places(world, factory, request)
            self._add_characters(world, factory, clamp_count(request.character_count))
            self._add_events(world, factory, clamp_count(request.historical_event_count))
            self._add_complete_equipment(world, factory, parameters, request)
            if parameters.magic_level > 0:
                self._add_magic(
                    world,
                    factory,
                    spell_books=clamp_count(request.spell_book_count),
                    runes=clamp_count(request.rune_count),
                    recipes=clamp_count(request.alchemy_recipe_count),
                )
            if parameters.tech_level > 0:
                self._add_technology(world, factory, clamp_count(request.technology_count))

            if request.generate_connections:
                for place in world.places:
                    place.custom_properties["Connections"] = factory.connection_summary(place, world.places)
            if request.generate_economy:
                for place in world.places:
                    place.custom_properties.update(factory.economy_properties())
            if request.generate_politics:
                for place in world.places:
                    place.custom_properties.update(factory.politics_properties())
            return world

        world = self._guarded("complete generation", parameters.world_name, build)
        self._log_summary("Generated complete world", world)
        return world

    def enhance_world(self, world: World, content_type: str, *, seed: int | None = None) -> World:
        """Append one batch of a content category to a copy of ``world`` and return the copy.

        Unknown categories add places and characters. The input world is left
        untouched when generation fails.
        """
        category = (content_type or "").strip().lower()
        logger.bind(world_id=world.id, operation="enhance", section=category or "-").info(
            "Enhancing world {} with content type {}", world.name, category or "<default>"
        )
        parameters = parameters_for_world(world)
        rng = self.rng_factory(seed)
        factory = EntityFactory(parameters, rng)
        batch = self.enhance_batch_size

        def build() -> World:
            staged = world.model_copy(deep=True)
            if category == "places":
                self._add_places(staged, factory, batch)
            elif category == "characters":
                self._add_characters(staged, factory, batch)
            elif category == "events":
                self._add_events(staged, factory, batch)
            elif category == "technology":
                self._add_technology(staged, factory, batch)
            elif category == "magic":
                self._add_magic(staged, factory, spell_books=2, runes=batch, recipes=2)
            elif category == "equipment":
                for _ in range(batch):
                    staged.equipment.append(factory.create_equipment(staged))
            else:
                self._add_places(staged, factory, batch)
                self._add_characters(staged, factory, batch)
            return staged

        return self._guarded(f"enhancement ({category or 'default'})", world.name, build)

    # Pipeline stages

    def _guarded(self, operation: str, world_name: str, build: Callable[[], T]) -> T:
        try:
            return build()
        except GenerationFailure:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.bind(operation=operation).exception("World generation failed for {}", world_name)
            raise GenerationFailure(operation, world_name) from exc

    @staticmethod
    def _complete_world_info(parameters: GenerationParameters, request: CompleteWorldRequest) -> WorldInfo:
        info = build_world_info(parameters)
        for key, value in request.custom_settings.items():
            info.custom_settings[str(key)] = "" if value is None else str(value)
        info.custom_settings.update(
            {
                "WorldScale": request.world_scale,
                "ContinentCount": str(clamp_count(request.continent_count)),
                "CountryCount": str(clamp_count(request.country_count)),
                "RegionCount": str(clamp_count(request.region_count)),
                "HasHierarchy": str(request.generate_hierarchy),
                "HasConnections": str(request.generate_connections),
                "HasEconomy": str(request.generate_economy),
                "HasPolitics": str(request.generate_politics),
            }
        )
        return info

    @staticmethod
    def _add_places(world: World, factory: EntityFactory, count: int) -> None:
        for _ in range(count):
            world.places.append(factory.create_place(world))

    @staticmethod
    def _tier_counts(request: CompleteWorldRequest) -> dict[str, int]:
        return {
            "Continent": clamp_count(request.continent_count),
            "Country": clamp_count(request.country_count),
            "Region": clamp_count(request.region_count),
            "City": clamp_count(request.city_count),
            "Town": clamp_count(request.town_count),
            "Village": clamp_count(request.village_count),
            "Dungeon": clamp_count(request.dungeon_count),
            "NaturalFeature": clamp_count(request.natural_feature_count),
        }

    def _add_typed_places(self, world: World, factory: EntityFactory, request: CompleteWorldRequest) -> None:
        for place_type, count in self._tier_counts(request).items():
            for _ in range(count):
                world.places.append(factory.create_place(world, place_type=place_type))

    def _add_hierarchical_places(self, world: World, factory: EntityFactory, request: CompleteWorldRequest) -> None:
        counts = self._tier_counts(request)
        parents: list[Place] = []
        for tier in _HIERARCHY_TIERS:
            created: list[Place] = []
            for _ in range(counts[tier]):
                parent = factory.rng.choice(parents) if parents else None
                place = factory.create_place(world, place_type=tier, parent=parent)
                if parent is not None:
                    parent.child_place_ids.append(place.id)
                world.places.append(place)
                created.append(place)
            # An empty tier passes its own parents down to the next one.
            if created:
                parents = created

        for place_type in ("Dungeon", "NaturalFeature"):
            for _ in range(counts[place_type]):
                world.places.append(factory.create_place(world, place_type=place_type))

    @staticmethod
    def _add_characters(world: World, factory: EntityFactory, count: int) -> None:
        for _ in range(count):
            world.historic_figures.append(factory.create_historic_figure(world))

    @staticmethod
    def _add_events(world: World, factory: EntityFactory, count: int) -> None:
        for _ in range(count):
            event = factory.create_world_event(world)
            world.world_events.append(event)
            for participant_id in event.participant_ids:
                figure = world.find_figure(participant_id)
                if figure is not None and event.id not in figure.related_event_ids:
                    figure.related_event_ids.append(event.id)

    @staticmethod
    def _add_complete_equipment(
        world: World,
        factory: EntityFactory,
        parameters: GenerationParameters,
        request: CompleteWorldRequest,
    ) -> None:
        if request.has_explicit_equipment_mix:
            plan: list[tuple[Callable[[World], Equipment], int]] = [
                (factory.create_weapon, clamp_count(request.weapon_count))
            ]
            if parameters.magic_level > 0:
                plan.append((factory.create_magical_artifact, clamp_count(request.magical_artifact_count)))
            if parameters.tech_level > 0:
                plan.append((factory.create_scifi_artifact, clamp_count(request.scifi_artifact_count)))
            for create, count in plan:
                for _ in range(count):
                    world.equipment.append(create(world))
            return

        builders: list[Callable[[World], Equipment]] = [factory.create_weapon]
        if parameters.magic_level > 0:
            builders.append(factory.create_magical_artifact)
        if parameters.tech_level > 0:
            builders.append(factory.create_scifi_artifact)
        for index in range(clamp_count(request.equipment_count)):
            world.equipment.append(builders[index % len(builders)](world))

    @staticmethod
    def _add_magic(world: World, factory: EntityFactory, *, spell_books: int, runes: int, recipes: int) -> None:
        for _ in range(spell_books):
            world.spell_books.append(factory.create_spell_book(world))
        for _ in range(runes):
            world.runes_of_power.append(factory.create_rune(world))
        for _ in range(recipes):
            world.alchemy_recipes.append(factory.create_alchemy_recipe(world))

    @staticmethod
    def _add_technology(world: World, factory: EntityFactory, count: int) -> None:
        for _ in range(count):
            world.technical_specs.append(factory.create_technical_specification(world))

    @staticmethod
    def _log_summary(message: str, world: World) -> None:
        logger.bind(world_id=world.id).info(
            "{} {}: places={} characters={} events={} equipment={}",
            message,
            world.name,
            len(world.places),
            len(world.historic_figures),
            len(world.world_events),
            len(world.equipment),
        )
