from __future__ import annotations

from worldforge.domain.models import World

NARRATIVE_SYSTEM_PROMPT = (
    "You are a creative writer specializing in fantasy and sci-fi world building. "
    "Generate vivid, engaging descriptions based on the provided JSON data."
)

WORLD_NARRATIVE_PROMPT = (
    "Create a compelling narrative description of this fantasy/sci-fi world.\n"
    "Include details about the setting, atmosphere, key locations, and what makes this world unique.\n"
    "Write in an engaging, immersive style that would draw readers into this world."
)

CHARACTER_PROMPT = (
    "Create a detailed character description based on the provided data.\n"
    "Include their physical appearance, personality traits, background, and what makes them memorable.\n"
    "Write in a narrative style that brings this character to life."
)

LOCATION_PROMPT = (
    "Create an immersive description of this location.\n"
    "Include sensory details about what someone would see, hear, smell, and feel when visiting this place.\n"
    "Describe the atmosphere, architecture, inhabitants, and any unique features that make this location special."
)

EVENT_PROMPT = (
    "Create a compelling narrative description of this event.\n"
    "Tell the story of what happened, who was involved, and the impact it had.\n"
    "Write in an engaging storytelling style that captures the drama and significance of the event."
)

TECHNOLOGY_REGENERATE_PROMPT = "Generate a detailed technical description based on the user comment"
MAGIC_REGENERATE_PROMPT = "Generate a detailed magical description based on the user comment"


def json_narrative_prompt(prompt: str, json_text: str) -> str:
    return f"{prompt}\n\nJSON Data:\n{json_text}\n\nPlease generate a descriptive narrative based on this data:"


def _world_context(world: World, *, include_places: bool = False) -> str:
    info = world.world_info
    lines = [
        "World Context:",
        f"- Genre: {info.genre}",
        f"- Tech Level: {info.technology_level}",
        f"- Magic Level: {info.magic_level}",
    ]
    if include_places:
        lines.append(f"- Existing Places: {', '.join(place.name for place in world.places[:3])}")
    return "\n".join(lines)


def instruction_analysis_prompt(world: World, comment: str) -> str:
    return (
        "Analyze this user comment about a fantasy/sci-fi world and break it down into specific update instructions.\n\n"
        f"World: {world.name}\n\n"
        f"User Comment: {comment}\n\n"
        "Please provide a JSON array of update instructions in this format:\n"
        "[\n"
        "  {\n"
        '    "action": "add|modify|remove",\n'
        '    "target": "places|characters|events|technology|magic|worldinfo",\n'
        '    "description": "specific description of what to change",\n'
        '    "properties": {"key": "value"}\n'
        "  }\n"
        "]"
    )


def theme_prompt(world: World, instruction_description: str) -> str:
    return (
        f"Based on this instruction: '{instruction_description}', "
        f"suggest 3-5 active themes for the world '{world.name}' that match the current genre "
        f"'{world.world_info.genre}'.\n"
        'Return as a JSON array: ["theme1", "theme2", "theme3"]'
    )


def property_update_prompt(world: World, comment: str) -> str:
    info = world.world_info
    return (
        "Analyze this user comment about a fantasy/sci-fi world and suggest specific property changes:\n\n"
        f"World: {world.name}\n"
        f"Current Description: {world.description}\n"
        f"Current Genre: {info.genre}\n"
        f"Current Tech Level: {info.technology_level}\n"
        f"Current Magic Level: {info.magic_level}\n\n"
        f"User Comment: {comment}\n\n"
        "Please provide a JSON response with suggested property updates in this format:\n"
        "{\n"
        '  "description": "updated description",\n'
        '  "genre": "updated genre",\n'
        '  "technologyLevel": "updated tech level",\n'
        '  "magicLevel": "updated magic level",\n'
        '  "customSettings": {"key": "value"},\n'
        '  "activeThemes": ["theme1", "theme2"]\n'
        "}"
    )


def description_rewrite_prompt(world: World, comment: str, suggestion: object) -> str:
    return (
        f"Update the world description based on this user comment: '{comment}'. "
        f"Current description: '{world.description}'. "
        f"Suggested change: '{suggestion}'. "
        "Provide a rich, detailed description that incorporates the user's feedback."
    )


def event_prompt(world: World, description: str) -> str:
    return (
        f"Create a detailed world event for the world '{world.name}' based on this description: {description}\n\n"
        f"{_world_context(world, include_places=True)}\n\n"
        "Generate a JSON object with these fields:\n"
        "{\n"
        '  "name": "Event Name",\n'
        '  "description": "Detailed description of what happened",\n'
        '  "startDate": "2023-01-01T00:00:00Z",\n'
        '  "endDate": "2023-01-02T00:00:00Z",\n'
        '  "consequences": {"political": "Political impact", "social": "Social impact", "economic": "Economic impact"}\n'
        "}"
    )


def technology_prompt(world: World, description: str) -> str:
    return (
        f"Create a detailed technology specification for the world '{world.name}' based on this description: "
        f"{description}\n\n"
        f"{_world_context(world)}\n\n"
        "Generate a JSON object with these fields:\n"
        "{\n"
        '  "name": "Technology Name",\n'
        '  "description": "Detailed technical description",\n'
        '  "category": "Weapon|Vehicle|Computer|Communication|Medical|Energy|Other",\n'
        '  "requirements": ["requirement1", "requirement2"],\n'
        '  "applications": ["application1", "application2"]\n'
        "}"
    )


def rune_prompt(world: World, description: str) -> str:
    return (
        f"Create a detailed magical rune for the world '{world.name}' based on this description: {description}\n\n"
        f"{_world_context(world)}\n\n"
        "Generate a JSON object with these fields:\n"
        "{\n"
        '  "name": "Rune Name",\n'
        '  "description": "Detailed description of the rune\'s appearance and power",\n'
        '  "element": "Fire|Water|Earth|Air|Shadow|Light|Arcane",\n'
        '  "powerLevel": "1-10",\n'
        '  "activationMethod": "How to activate the rune",\n'
        '  "effects": ["effect1", "effect2"]\n'
        "}"
    )


def alchemy_prompt(world: World, description: str) -> str:
    return (
        f"Create a detailed alchemy recipe for the world '{world.name}' based on this description: {description}\n\n"
        f"{_world_context(world)}\n\n"
        "Generate a JSON object with these fields:\n"
        "{\n"
        '  "name": "Potion/Recipe Name",\n'
        '  "description": "Detailed description of what this creates and its effects",\n'
        '  "difficulty": "Novice|Apprentice|Journeyman|Expert|Master",\n'
        '  "ingredients": ["ingredient1", "ingredient2", "ingredient3"],\n'
        '  "instructions": "Step by step brewing/crafting instructions",\n'
        '  "effects": ["effect1", "effect2"],\n'
        '  "sideEffects": ["side effect1", "side effect2"]\n'
        "}"
    )


def spell_book_prompt(world: World, description: str) -> str:
    return (
        f"Create a detailed spell book for the world '{world.name}' based on this description: {description}\n\n"
        f"{_world_context(world)}\n\n"
        "Generate a JSON object with these fields:\n"
        "{\n"
        '  "name": "Spell Book Name",\n'
        '  "description": "Detailed description of the spell book\'s appearance and origin",\n'
        '  "language": "Language the book is written in",\n'
        '  "requiredLevel": "1-20"\n'
        "}"
    )
