from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from loguru import logger
from pydantic import Field

from worldforge.domain.ids import utc_now
from worldforge.domain.models import (
    AlchemyRecipe,
    Ingredient,
    RuneOfPower,
    SpellBook,
    TechnicalSpecification,
    World,
    WorldEvent,
    WorldModel,
)
from worldforge.domain.types import PLACE_TYPES, TECH_SPEC_TYPES, match_literal
from worldforge.enhancement.json_utils import (
    ParseIssue,
    WorldUpdateInstruction,
    fallback_instruction,
    first_json_object,
    parse_theme_list,
    parse_update_instructions,
)
from worldforge.generation.assembler import WorldAssembler, parameters_for_world
from worldforge.generation.factories import EntityFactory, alchemy_difficulty
from worldforge.llm.client import FALLBACK_TEXT, TextGenerationClient
from worldforge.llm.prompts import (
    MAGIC_REGENERATE_PROMPT,
    TECHNOLOGY_REGENERATE_PROMPT,
    alchemy_prompt,
    description_rewrite_prompt,
    event_prompt,
    instruction_analysis_prompt,
    property_update_prompt,
    rune_prompt,
    spell_book_prompt,
    technology_prompt,
    theme_prompt,
)

NARRATED_SECTIONS = ("places", "characters", "events")
REGENERATABLE_SECTIONS = ("places", "characters", "events", "technology", "magic")

_CONTENT_TYPE_ALIASES = {
    "place": "places",
    "places": "places",
    "character": "characters",
    "characters": "characters",
    "event": "events",
    "events": "events",
    "technology": "technology",
    "magic": "magic",
    "equipment": "equipment",
}


class WorldEnhancementResult(WorldModel):
    updated_world: World
    generated_narrative: str = ""
    changes_applied: list[str] = Field(default_factory=list)
    user_comment: str = ""
    update_timestamp: datetime = Field(default_factory=utc_now)
    section_narratives: dict[str, str] = Field(default_factory=dict)


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _string_list(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [_text(item) for item in value if _text(item)]


def _lower_keys(properties: Mapping[str, Any]) -> dict[str, Any]:
    return {str(key).lower(): value for key, value in properties.items()}


def _parse_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _parse_datetime(value: Any) -> datetime | None:
    text = _text(value)
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class EnhancementEngine:
    """Applies free-text instructions to a world with help from a text-generation client.

    Every operation works on a deep copy of the given world and hands the copy back.
    """

    def __init__(self, client: TextGenerationClient, assembler: WorldAssembler | None = None) -> None:
        self.client = client
        self.assembler = assembler or WorldAssembler()

    def _factory(self, world: World) -> EntityFactory:
        return EntityFactory(parameters_for_world(world), self.assembler.rng_factory(None))

    def _log_parse_issue(self, world: World, source: str, raw_text: str, exc: Exception | str) -> None:
        log = logger.bind(world_id=world.id, operation="enhance", section=source)
        log.warning("Could not parse collaborator reply source={} error={} raw_len={}", source, exc, len(raw_text))
        observability = self.client.config.observability
        if observability.log_json_error_payload:
            max_chars = observability.json_error_payload_max_chars
            payload = raw_text if max_chars <= 0 else raw_text[:max_chars]
            log.warning("Collaborator raw_response={}", payload)

    # Public operations

    async def enhance(self, world: World, comment: str, target_section: str | None = None) -> WorldEnhancementResult:
        log = logger.bind(world_id=world.id, operation="enhance")
        log.info("Enhancing world {} with comment: {}", world.name, comment)
        staged = world.model_copy(deep=True)

        reply = await self.client.generate_text_from_json(staged, instruction_analysis_prompt(staged, comment))
        parsed = parse_update_instructions(reply)
        if isinstance(parsed, ParseIssue):
            self._log_parse_issue(staged, "instructions", parsed.raw_text, parsed.reason)
            instructions = [fallback_instruction(parsed.raw_text)]
        else:
            instructions = parsed.instructions

        factory = self._factory(staged)
        for instruction in instructions:
            await self._apply_instruction(staged, factory, instruction)

        result = WorldEnhancementResult(
            updated_world=staged,
            user_comment=comment,
            changes_applied=[instruction.change_entry() for instruction in instructions],
        )
        result.section_narratives = await self._section_narratives(staged, target_section)
        result.generated_narrative = await self.generate_world_narrative(staged)
        log.info("Enhanced world {} with {} changes", staged.name, len(result.changes_applied))
        return result

    async def regenerate_section(
        self,
        world: World,
        section_type: str,
        section_id: str,
        comment: str,
    ) -> WorldEnhancementResult:
        section = _text(section_type).lower()
        if section not in REGENERATABLE_SECTIONS:
            raise ValueError(f"Unknown section type: {section_type}")

        log = logger.bind(world_id=world.id, operation="regenerate", section=section)
        staged = world.model_copy(deep=True)
        result = WorldEnhancementResult(updated_world=staged, user_comment=comment)

        target = self._find_section_entity(staged, section, section_id)
        if target is None:
            log.info("No {} entry with id {}; world left unchanged", section, section_id)
            return result

        payload = {"entity": target, "userComment": comment}
        if section == "places":
            description = await self.client.generate_location_description(payload)
        elif section == "characters":
            description = await self.client.generate_character_description(payload)
        elif section == "events":
            description = await self.client.generate_event_narrative(payload)
        elif section == "technology":
            description = await self.client.generate_text_from_json(payload, TECHNOLOGY_REGENERATE_PROMPT)
        else:
            description = await self.client.generate_text_from_json(payload, MAGIC_REGENERATE_PROMPT)

        if description == FALLBACK_TEXT:
            log.warning("Keeping existing description for {} {}", section, section_id)
        else:
            target.description = description

        result.section_narratives = await self._section_narratives(staged, section)
        result.changes_applied.append(f"Regenerated {section_type} section '{section_id}' based on user feedback")
        return result

    async def add_content(self, world: World, content_type: str, description: str) -> WorldEnhancementResult:
        section = _CONTENT_TYPE_ALIASES.get(_text(content_type).lower())
        if section is None:
            raise ValueError(f"Unknown content type: {content_type}")

        logger.bind(world_id=world.id, operation="add_content", section=section).info(
            "Adding {} content to world {}: {}", section, world.name, description
        )
        staged = world.model_copy(deep=True)
        instruction = WorldUpdateInstruction(action="add", target=section, description=description)
        await self._add_entity(staged, self._factory(staged), instruction)

        result = WorldEnhancementResult(updated_world=staged, user_comment=description)
        result.section_narratives = await self._section_narratives(staged, section)
        result.changes_applied.append(f"Added new {content_type} content: {description}")
        return result

    async def update_properties(self, world: World, comment: str) -> World:
        log = logger.bind(world_id=world.id, operation="update_properties")
        reply = await self.client.generate_text_from_json(world, property_update_prompt(world, comment))
        try:
            changes = first_json_object(reply)
        except ValueError as exc:
            self._log_parse_issue(world, "properties", reply, exc)
            return world

        staged = world.model_copy(deep=True)
        info = staged.world_info
        for key, value in _lower_keys(changes).items():
            if key == "description":
                rewritten = await self.client.generate_text_from_json(
                    staged, description_rewrite_prompt(staged, comment, value)
                )
                staged.description = _text(value) if rewritten == FALLBACK_TEXT else rewritten
            elif key == "genre" and _text(value):
                info.genre = _text(value)
            elif key == "technologylevel" and _text(value):
                info.technology_level = _text(value)
            elif key == "magiclevel" and _text(value):
                info.magic_level = _text(value)
            elif key == "activethemes":
                themes = _string_list(value)
                if themes:
                    info.active_themes = themes
            elif key == "customsettings" and isinstance(value, dict):
                info.custom_settings.update({str(k): _text(v) for k, v in value.items()})
        log.info("Updated properties for world {}", staged.name)
        return staged

    async def generate_world_narrative(self, world: World) -> str:
        return await self.client.generate_world_narrative(world)

    # Instruction handling

    async def _apply_instruction(self, world: World, factory: EntityFactory, instruction: WorldUpdateInstruction) -> None:
        log = logger.bind(world_id=world.id, operation="enhance", section=instruction.target or "-")
        if instruction.action == "add":
            if instruction.target == "worldinfo":
                await self._modify_world_info(world, instruction)
            else:
                await self._add_entity(world, factory, instruction)
        elif instruction.action == "modify":
            if instruction.target == "worldinfo":
                await self._modify_world_info(world, instruction)
            elif instruction.target == "places":
                await self._modify_place(world, instruction)
            else:
                self._modify_named_entity(world, instruction)
        elif instruction.action == "remove":
            log.info("Remove instructions are not applied: {}", instruction.description)
        else:
            log.info("Ignoring instruction with unknown action {}", instruction.action)

    async def _add_entity(self, world: World, factory: EntityFactory, instruction: WorldUpdateInstruction) -> None:
        target = instruction.target
        description = instruction.description
        if target == "places":
            world.places.append(factory.create_place(world))
        elif target == "characters":
            world.historic_figures.append(factory.create_historic_figure(world))
        elif target == "events":
            event = factory.create_world_event(world)
            await self._overlay(world, event_prompt(world, description), event, self._apply_event_fields)
            world.world_events.append(event)
            for participant_id in event.participant_ids:
                figure = world.find_figure(participant_id)
                if figure is not None and event.id not in figure.related_event_ids:
                    figure.related_event_ids.append(event.id)
        elif target == "technology":
            spec = factory.create_technical_specification(world)
            await self._overlay(world, technology_prompt(world, description), spec, self._apply_technology_fields)
            world.technical_specs.append(spec)
        elif target == "magic":
            await self._add_magic(world, factory, description)
        elif target == "equipment":
            world.equipment.append(factory.create_equipment(world))
        else:
            logger.bind(world_id=world.id, operation="enhance").info("Ignoring add for unknown target {}", target)

    async def _add_magic(self, world: World, factory: EntityFactory, description: str) -> None:
        lowered = description.lower()
        if "spell" in lowered:
            book = factory.create_spell_book(world)
            await self._overlay(world, spell_book_prompt(world, description), book, self._apply_spell_book_fields)
            world.spell_books.append(book)
        elif "alchemy" in lowered or "potion" in lowered:
            recipe = factory.create_alchemy_recipe(world)
            await self._overlay(world, alchemy_prompt(world, description), recipe, self._apply_recipe_fields)
            world.alchemy_recipes.append(recipe)
        else:
            rune = factory.create_rune(world)
            await self._overlay(world, rune_prompt(world, description), rune, self._apply_rune_fields)
            world.runes_of_power.append(rune)

    async def _overlay(self, world: World, prompt: str, entity: Any, apply: Any) -> None:
        reply = await self.client.generate_text_from_json(world, prompt)
        try:
            fields = first_json_object(reply)
        except ValueError as exc:
            self._log_parse_issue(world, type(entity).__name__, reply, exc)
            return
        apply(entity, _lower_keys(fields))

    async def _modify_world_info(self, world: World, instruction: WorldUpdateInstruction) -> None:
        properties = _lower_keys(instruction.properties)
        info = world.world_info
        if _text(properties.get("description")):
            world.description = _text(properties["description"])
        if _text(properties.get("genre")):
            info.genre = _text(properties["genre"])
        if _text(properties.get("technologylevel")):
            info.technology_level = _text(properties["technologylevel"])
        if _text(properties.get("magiclevel")):
            info.magic_level = _text(properties["magiclevel"])
        themes = _string_list(properties.get("activethemes"))
        if themes:
            info.active_themes = themes

        if "theme" in instruction.description.lower():
            reply = await self.client.generate_text_from_json(world, theme_prompt(world, instruction.description))
            try:
                info.active_themes = parse_theme_list(reply)
            except ValueError as exc:
                self._log_parse_issue(world, "themes", reply, exc)

    async def _modify_place(self, world: World, instruction: WorldUpdateInstruction) -> None:
        properties = _lower_keys(instruction.properties)
        name = _text(properties.get("name"))
        place = next((item for item in world.places if item.name == name), None) if name else None
        if place is None:
            logger.bind(world_id=world.id, operation="enhance", section="places").info(
                "No place named {!r} to modify", name
            )
            return

        requested = _text(properties.get("description"))
        if requested:
            narrative = await self.client.generate_location_description({"place": place, "requestedChange": requested})
            place.description = requested if narrative == FALLBACK_TEXT else narrative
        place_type = match_literal(_text(properties.get("type")), PLACE_TYPES)
        if place_type is not None:
            place.type = place_type
        population = _parse_int(properties.get("population"))
        if population is not None and population >= 0:
            place.population.total_count = population

    def _modify_named_entity(self, world: World, instruction: WorldUpdateInstruction) -> None:
        properties = _lower_keys(instruction.properties)
        name = _text(properties.get("name"))
        description = _text(properties.get("description")) or instruction.description
        collections: dict[str, list[Any]] = {
            "characters": world.historic_figures,
            "events": world.world_events,
            "technology": world.technical_specs,
            "magic": [*world.spell_books, *world.runes_of_power, *world.alchemy_recipes],
            "equipment": world.equipment,
        }
        candidates = collections.get(instruction.target)
        if candidates is None or not name:
            return
        entity = next((item for item in candidates if item.name == name), None)
        if entity is not None and description:
            entity.description = description

    # Field overlays from collaborator JSON

    @staticmethod
    def _apply_event_fields(event: WorldEvent, fields: dict[str, Any]) -> None:
        event.name = _text(fields.get("name")) or event.name
        event.description = _text(fields.get("description")) or event.description
        start = _parse_datetime(fields.get("startdate"))
        if start is not None:
            event.start_date = start
        end = _parse_datetime(fields.get("enddate"))
        if end is not None:
            event.end_date = end
        consequences = fields.get("consequences")
        if isinstance(consequences, dict):
            event.consequences = {str(key): _text(value) for key, value in consequences.items()}

    @staticmethod
    def _apply_technology_fields(spec: TechnicalSpecification, fields: dict[str, Any]) -> None:
        spec.name = _text(fields.get("name")) or spec.name
        spec.description = _text(fields.get("description")) or spec.description
        spec_type = match_literal(_text(fields.get("category")), TECH_SPEC_TYPES)
        if spec_type is not None:
            spec.type = spec_type
        requirements = _string_list(fields.get("requirements"))
        if requirements:
            spec.requirements = requirements
        capabilities = _string_list(fields.get("applications"))
        if capabilities:
            spec.capabilities = capabilities

    @staticmethod
    def _apply_rune_fields(rune: RuneOfPower, fields: dict[str, Any]) -> None:
        rune.name = _text(fields.get("name")) or rune.name
        rune.description = _text(fields.get("description")) or rune.description
        rune.element = _text(fields.get("element")) or rune.element
        rune.activation_condition = _text(fields.get("activationmethod")) or rune.activation_condition
        power = _parse_int(fields.get("powerlevel"))
        if power is not None:
            rune.power_level = min(10, max(1, power))
        effects = _string_list(fields.get("effects"))
        if effects:
            rune.effects = effects

    @staticmethod
    def _apply_recipe_fields(recipe: AlchemyRecipe, fields: dict[str, Any]) -> None:
        recipe.name = _text(fields.get("name")) or recipe.name
        recipe.description = _text(fields.get("description")) or recipe.description
        if "difficulty" in fields:
            recipe.difficulty = alchemy_difficulty(fields["difficulty"])
        ingredients = _string_list(fields.get("ingredients"))
        if ingredients:
            recipe.ingredients = [
                Ingredient(name=name, quantity=1, unit="piece", rarity="Common") for name in ingredients
            ]
        steps = [step.strip() for step in _text(fields.get("instructions")).split(".") if step.strip()]
        if steps:
            recipe.steps = steps
        effects = _string_list(fields.get("effects"))
        if effects:
            recipe.effects = effects
        side_effects = _string_list(fields.get("sideeffects"))
        if side_effects is not None:
            recipe.side_effects = side_effects

    @staticmethod
    def _apply_spell_book_fields(book: SpellBook, fields: dict[str, Any]) -> None:
        book.name = _text(fields.get("name")) or book.name
        book.description = _text(fields.get("description")) or book.description
        book.language = _text(fields.get("language")) or book.language
        level = _parse_int(fields.get("requiredlevel"))
        if level is not None:
            book.required_level = min(20, max(1, level))

    # Lookups and narratives

    @staticmethod
    def _find_section_entity(world: World, section: str, entity_id: str) -> Any:
        if section == "places":
            return world.find_place(entity_id)
        if section == "characters":
            return world.find_figure(entity_id)
        if section == "events":
            return world.find_event(entity_id)
        if section == "technology":
            return next((spec for spec in world.technical_specs if spec.id == entity_id), None)
        magic_entities: list[RuneOfPower | SpellBook | AlchemyRecipe] = [
            *world.runes_of_power,
            *world.spell_books,
            *world.alchemy_recipes,
        ]
        return next((entity for entity in magic_entities if entity.id == entity_id), None)

    async def _section_narratives(self, world: World, target_section: str | None) -> dict[str, str]:
        if target_section is None:
            sections: tuple[str, ...] = NARRATED_SECTIONS
        else:
            sections = tuple(section for section in NARRATED_SECTIONS if section == target_section.strip().lower())

        narratives: dict[str, str] = {}
        for section in sections:
            if section == "places":
                narratives[section] = await self.client.generate_location_description(world.places)
            elif section == "characters":
                narratives[section] = await self.client.generate_character_description(world.historic_figures)
            else:
                narratives[section] = await self.client.generate_event_narrative(world.world_events)
        return narratives
