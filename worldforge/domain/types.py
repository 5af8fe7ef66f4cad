from __future__ import annotations

from typing import Literal, get_args


PlaceType = Literal[
    "World",
    "Continent",
    "Country",
    "Region",
    "Province",
    "City",
    "Town",
    "Village",
    "District",
    "Building",
    "Room",
    "NaturalFeature",
    "Dungeon",
    "Other",
]

WorldEventType = Literal[
    "Creation",
    "Apocalypse",
    "DivineIntervention",
    "MagicalCatastrophe",
    "TechnologicalSingularity",
    "PlaneShift",
    "TimeDistortion",
    "Other",
]

EventStatus = Literal["Planned", "Ongoing", "Historical", "Legendary", "Mythical"]

EquipmentType = Literal["Weapon", "Armor", "Tool", "Consumable", "Artifact", "Jewelry", "Book", "Container", "Other"]

EquipmentRarity = Literal["Common", "Uncommon", "Rare", "Epic", "Legendary", "Mythical", "Unique"]

WeaponType = Literal[
    "Sword",
    "Axe",
    "Mace",
    "Bow",
    "Crossbow",
    "Spear",
    "Dagger",
    "Staff",
    "Wand",
    "Firearm",
    "EnergyWeapon",
    "Other",
]

MagicType = Literal[
    "Arcane",
    "Divine",
    "Nature",
    "Elemental",
    "Necromantic",
    "Illusion",
    "Enchantment",
    "Transmutation",
    "Other",
]

TechnologyType = Literal[
    "Weapon",
    "Communication",
    "Transportation",
    "Medical",
    "Computing",
    "Energy",
    "Manufacturing",
    "Defense",
    "Other",
]

RuneType = Literal[
    "Protection",
    "Enhancement",
    "Destruction",
    "Binding",
    "Summoning",
    "Divination",
    "Healing",
    "Transformation",
    "Other",
]

AlchemyType = Literal["Healing", "Poison", "Enhancement", "Transformation", "Utility", "Combat", "Divination", "Other"]

IngredientRarity = Literal["Common", "Uncommon", "Rare", "Epic", "Legendary"]

TechSpecType = Literal[
    "Weapon",
    "Vehicle",
    "Computer",
    "Communication",
    "Medical",
    "Manufacturing",
    "Defense",
    "Exploration",
    "Other",
]


PLACE_TYPES: tuple[str, ...] = get_args(PlaceType)
WORLD_EVENT_TYPES: tuple[str, ...] = get_args(WorldEventType)
EVENT_STATUSES: tuple[str, ...] = get_args(EventStatus)
EQUIPMENT_RARITIES: tuple[str, ...] = get_args(EquipmentRarity)
WEAPON_TYPES: tuple[str, ...] = get_args(WeaponType)
MAGIC_TYPES: tuple[str, ...] = get_args(MagicType)
TECHNOLOGY_TYPES: tuple[str, ...] = get_args(TechnologyType)
RUNE_TYPES: tuple[str, ...] = get_args(RuneType)
ALCHEMY_TYPES: tuple[str, ...] = get_args(AlchemyType)
INGREDIENT_RARITIES: tuple[str, ...] = get_args(IngredientRarity)
TECH_SPEC_TYPES: tuple[str, ...] = get_args(TechSpecType)


def match_literal(value: object, choices: tuple[str, ...]) -> str | None:
    """Case-insensitive lookup of a free-text label among literal choices."""
    if value is None:
        return None
    normalized = str(value).strip().replace(" ", "").replace("-", "").lower()
    for choice in choices:
        if choice.lower() == normalized:
            return choice
    return None
