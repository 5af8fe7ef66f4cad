from __future__ import annotations

from types import MappingProxyType


THEMES: tuple[str, ...] = (
    "Magitech Empire",
    "Cybernetic Wizardry",
    "Quantum Spellcasting",
    "Stellar Kingdoms",
    "Techno-Druidism",
    "Mechanical Familiars",
    "Crystal-Powered Ships",
    "Dimensional Rifts",
    "Bio-Magical Synthesis",
    "Enchanted Circuits",
    "Astral Networks",
    "Runic Computers",
)

BIOMES: tuple[str, ...] = (
    "Enchanted Crystal Forests",
    "Cyber-Punk Cities",
    "Floating Sky Islands",
    "Underground Tech Vaults",
    "Magical Wastelands",
    "Quantum Beaches",
    "Temporal Anomaly Zones",
    "Bio-Mechanical Jungles",
    "Stellar Observatories",
    "Mystical Data Centers",
    "Arcane Laboratories",
    "Dimensional Harbors",
)

RACES: tuple[str, ...] = (
    "Cyber-Elves",
    "Techno-Dwarves",
    "Quantum Humans",
    "Magical Androids",
    "Stellar Gnomes",
    "Bio-Enhanced Orcs",
    "Crystal-Born",
    "Data-Sprites",
    "Mecha-Dragons",
    "Astral Beings",
)

# Places

PLACE_PREFIXES: tuple[str, ...] = ("Neo", "Astral", "Cyber", "Quantum", "Mystic", "Stellar", "Arcane", "Tech", "Crystal", "Void")
PLACE_SUFFIXES: tuple[str, ...] = ("Haven", "Citadel", "Nexus", "Spire", "Realm", "Station", "Core", "Gate", "Sanctum", "Hub")

PLACE_DESCRIPTIONS: tuple[str, ...] = (
    "A magnificent fusion of ancient magic and cutting-edge technology",
    "Where holographic displays blend seamlessly with enchanted crystals",
    "A bustling metropolis powered by both arcane energy and quantum processors",
    "An otherworldly location where spells are cast through neural interfaces",
    "A hidden sanctuary where magical creatures coexist with AI constructs",
)

# Place types the flat generator draws from when no explicit type is requested.
RANDOM_PLACE_TYPES: tuple[str, ...] = ("City", "Town", "Village", "NaturalFeature", "Dungeon", "Other")

CLIMATES: tuple[str, ...] = ("Temperate", "Tropical", "Arctic", "Desert", "Mystical", "Artificial", "Temporal Flux", "Energy Storm")

RESOURCES: tuple[str, ...] = (
    "Mana Crystals",
    "Quantum Ore",
    "Mythril",
    "Data Fragments",
    "Ether Gas",
    "Nano-materials",
    "Enchanted Metals",
    "Bio-fuel",
    "Temporal Shards",
    "Psionic Stones",
)

GOVERNMENTS: tuple[str, ...] = (
    "Techno-Monarchy",
    "Mage Council",
    "AI Democracy",
    "Corporate Federation",
    "Quantum Republic",
    "Arcane Empire",
    "Digital Commune",
    "Hybrid Oligarchy",
)

NOTABLE_FEATURES: tuple[str, ...] = (
    "Magitech Spire",
    "Quantum Rift",
    "Digital Shrine",
    "Bio-Mechanical Grove",
    "Floating Archive",
    "Singing Crystal Caverns",
)

ANCIENT_RUINS = "Ancient Ruins"

BORDERS: tuple[str, ...] = ("Mystic River", "Quantum Mountains", "Cyber Forest", "Digital Desert")

LANGUAGES: tuple[str, ...] = ("Common", "Cyber-Elven", "Techno-Dwarven", "Quantum Binary")

RELIGIONS: tuple[str, ...] = ("Church of Digital Harmony", "Quantum Mysticism", "Techno-Druidism")

AGE_BRACKETS: tuple[str, ...] = ("Children", "Adults", "Elders")

# Characters

FIRST_NAMES: tuple[str, ...] = ("Zara", "Kai", "Nova", "Orion", "Luna", "Axel", "Vera", "Cyrus", "Aria", "Neon")
LAST_NAMES: tuple[str, ...] = (
    "Starweaver",
    "Cybermage",
    "Quantumborn",
    "Techbane",
    "Voidwalker",
    "Dataforge",
    "Spellcode",
    "Netcaster",
)

TITLES: tuple[str, ...] = (
    "Quantum Sorcerer",
    "Cyber-Paladin",
    "Techno-Druid",
    "Digital Necromancer",
    "Mecha-Ranger",
    "Data-Witch",
    "Nano-Cleric",
    "Stellar Barbarian",
)

CHARACTER_DESCRIPTIONS: tuple[str, ...] = (
    "A master of both ancient magic and cutting-edge technology",
    "One who bridges the gap between the mystical and the digital",
    "A pioneer in the fusion of arcane arts and cyber-enhancement",
    "A guardian of the balance between magic and machine",
    "An explorer of the quantum realms and magical dimensions",
)

CHARACTER_CLASSES: tuple[str, ...] = ("Cyber-Paladin", "Techno-Wizard", "Quantum Ranger", "Bio-Cleric", "Data-Rogue")

ACHIEVEMENTS: tuple[str, ...] = (
    "Created the first magitech interface",
    "Discovered quantum-magical resonance",
    "Established the Cyber-Mage Academy",
    "Defeated the Rogue AI Overlord",
    "Opened the first dimensional portal",
    "Synthesized digital consciousness with magical souls",
)

CHARACTER_ATTRIBUTES: tuple[str, ...] = ("Strength", "Intelligence", "Charisma")

# Events

EVENT_DESCRIPTION = "A significant event that shaped the balance between magic and technology in the world."

GENERATED_EVENT_TYPES: tuple[str, ...] = (
    "MagicalCatastrophe",
    "TechnologicalSingularity",
    "PlaneShift",
    "TimeDistortion",
    "Other",
)

EVENT_CONSEQUENCES: MappingProxyType[str, str] = MappingProxyType(
    {
        "Primary": "Changed the fundamental understanding of magitech integration",
        "Secondary": "Established new trade routes between magical and technological regions",
    }
)

# Equipment

WEAPON_PREFIXES: tuple[str, ...] = ("Plasma", "Quantum", "Mana", "Cyber", "Bio")
WEAPON_FORMS: tuple[str, ...] = ("Sword", "Axe", "Rifle", "Staff", "Blade")
ARTIFACT_FORMS: tuple[str, ...] = ("Orb", "Amulet", "Crown", "Ring", "Scepter")
SCIFI_ARTIFACT_FORMS: tuple[str, ...] = ("Drone", "Exo-Frame", "Holo-Projector", "Phase Key", "Gravity Lens")

EQUIPMENT_DESCRIPTION = "A masterwork fusion of magical enchantment and technological innovation."

MATERIALS: tuple[str, ...] = ("Quantum Steel", "Mithril Alloy", "Bio-Metal", "Crystal Matrix", "Nano-Carbon")

EQUIPMENT_HISTORY: tuple[str, ...] = (
    "Forged during the Great Convergence",
    "Enhanced with alien technology",
    "Blessed by digital spirits",
)

DAMAGE_TYPES: tuple[str, ...] = ("Physical", "Energy", "Magical", "Plasma", "Quantum", "Psychic")

ENCHANTMENTS: tuple[str, ...] = ("Self-Repair Protocol", "Adaptive Resistance", "Neural Sync")

ARTIFACT_SPELLS: tuple[str, ...] = ("Quantum Bolt", "Mana Shield", "Digital Telepathy", "Cyber Healing")

ACTIVATION_METHODS: tuple[str, ...] = ("Touch", "Spoken Command", "Mental Focus", "Cybernetic Interface", "Magical Resonance")

POWER_SOURCES: tuple[str, ...] = ("Fusion Cell", "Mana Battery", "Zero-Point Core", "Solar Lattice", "Quantum Capacitor")

ARTIFACT_FUNCTIONS: tuple[str, ...] = ("Scanning", "Shielding", "Teleportation", "Translation", "Repair", "Cloaking")

OPERATING_SYSTEMS: tuple[str, ...] = ("ArcaneOS", "NexusCore", "RuneKernel", "StellarNet", "QuantumShell")

# Magic

ANCIENT_LANGUAGES: tuple[str, ...] = ("Quantum Runic", "Binary Mystical", "Cyber-Elven", "Techno-Draconic", "Digital Celestial")

SPELL_BOOK_DESCRIPTION = "A comprehensive guide to integrating magical theory with technological applications."

SPELL_PREFIXES: tuple[str, ...] = ("Arcane", "Quantum", "Stellar", "Void", "Crystal")
SPELL_NOUNS: tuple[str, ...] = ("Bolt", "Ward", "Surge", "Veil", "Lance", "Echo")
SPELL_COMPONENTS: tuple[str, ...] = ("V", "V, S", "V, S, M", "S, M", "Neural Link")
CASTING_TIMES: tuple[str, ...] = ("1 action", "1 bonus action", "1 minute", "10 minutes", "1 hour")
SPELL_RANGES: tuple[str, ...] = ("Self", "Touch", "30 feet", "60 feet", "120 feet", "1 mile")
SPELL_DURATIONS: tuple[str, ...] = ("Instantaneous", "1 round", "1 minute", "10 minutes", "1 hour", "Until dispelled")
SPELL_EFFECTS: tuple[str, ...] = (
    "Deals arcane-plasma damage",
    "Grants temporary shielding",
    "Reveals hidden data streams",
    "Restores vitality",
    "Bends local gravity",
)

RUNE_PREFIXES: tuple[str, ...] = ("Quantum", "Cyber", "Stellar", "Nano", "Bio")
RUNE_NOUNS: tuple[str, ...] = ("Power", "Harmony", "Interface", "Synthesis", "Resonance")
RUNE_DESCRIPTION = "A mystical symbol that bridges the gap between magical energy and digital processing."
RUNE_SYMBOLS: tuple[str, ...] = ("◊◊◊", "▲▼▲", "◈◈◈", "◇◆◇", "▣▣▣")
RUNE_ELEMENTS: tuple[str, ...] = ("Fire", "Water", "Air", "Earth", "Quantum", "Digital", "Bio", "Cyber")
RUNE_EFFECTS: tuple[str, ...] = (
    "Enhances cyber-magical integration",
    "Boosts quantum processing",
    "Stabilizes dimensional rifts",
)

ALCHEMY_PREFIXES: tuple[str, ...] = ("Cyber", "Quantum", "Stellar", "Bio", "Nano")
ALCHEMY_NOUNS: tuple[str, ...] = ("Enhancement", "Synthesis", "Resonance", "Integration", "Awakening")
ALCHEMY_DESCRIPTION = "A carefully crafted blend of magical essences and technological components."
INGREDIENT_NAMES: tuple[str, ...] = ("Quantum Moss", "Cyber-Herb", "Liquid Mana", "Nano-Particles", "Stellar Dew")
INGREDIENT_UNITS: tuple[str, ...] = ("grams", "milliliters", "units", "drops", "crystals")
INGREDIENT_SOURCES: tuple[str, ...] = ("Mystical Gardens", "Orbital Greenhouses", "Deep Vaults", "Rift Markets")
INGREDIENT_PROPERTIES: tuple[str, ...] = ("Magical", "Technological", "Rare")
ALCHEMY_STEPS: tuple[str, ...] = (
    "Combine base ingredients",
    "Heat to 100°C",
    "Add magical catalyst",
    "Stir with enchanted rod",
    "Cool slowly",
)
ALCHEMY_EFFECTS: tuple[str, ...] = (
    "Temporary cyber-magical abilities",
    "Enhanced neural processing",
    "Dimensional sight",
)
ALCHEMY_SIDE_EFFECTS: tuple[str, ...] = ("Mild quantum fluctuations", "Temporary digital overlay vision")

ALCHEMY_DIFFICULTY_TIERS: MappingProxyType[str, int] = MappingProxyType(
    {
        "novice": 1,
        "apprentice": 3,
        "journeyman": 5,
        "expert": 7,
        "master": 10,
    }
)
DEFAULT_ALCHEMY_DIFFICULTY = 3

# Technology

TECH_PREFIXES: tuple[str, ...] = ("Quantum", "Nano", "Bio", "Cyber", "Neural")
TECH_NOUNS: tuple[str, ...] = ("Processor", "Interface", "Synthesizer", "Amplifier", "Converter")
TECH_DESCRIPTION = "Advanced technology enhanced with magical principles for optimal performance."
MANUFACTURER_PREFIXES: tuple[str, ...] = ("Quantum", "Stellar", "Cyber", "Mystic", "Nano")
MANUFACTURER_SUFFIXES: tuple[str, ...] = ("Industries", "Corporation", "Technologies", "Dynamics", "Systems")
MODEL_PREFIXES: tuple[str, ...] = ("QM", "CT", "NB", "SX", "MZ")
TECH_REQUIREMENTS: tuple[str, ...] = ("Quantum Power Source", "Mana Conduit", "Neural Interface")
TECH_CAPABILITIES: tuple[str, ...] = ("Spell-Code Translation", "Quantum Processing", "Dimensional Scanning")

# Connections, economy and politics

CONNECTION_TYPES: tuple[str, ...] = ("Road", "River", "Sea Route", "Portal", "Mountain Pass", "Bridge", "Tunnel", "Trade Route")

ECONOMIC_SYSTEMS: tuple[str, ...] = (
    "Feudalism",
    "Capitalism",
    "Socialism",
    "Barter System",
    "Post-Scarcity",
    "Resource-Based",
    "Guild System",
)
INDUSTRIES: tuple[str, ...] = ("Agriculture", "Mining", "Manufacturing", "Trade", "Magic", "Technology", "Fishing", "Crafting")
TRADE_GOODS: tuple[str, ...] = (
    "Spices",
    "Metals",
    "Gems",
    "Textiles",
    "Weapons",
    "Magical Items",
    "Technology",
    "Food",
    "Lumber",
)
CURRENCIES: tuple[str, ...] = ("Gold Coins", "Silver Coins", "Crystals", "Credits", "Barter", "Energy Units", "Magical Essence")

POLITICAL_SYSTEMS: tuple[str, ...] = (
    "Monarchy",
    "Democracy",
    "Oligarchy",
    "Theocracy",
    "Technocracy",
    "Magocracy",
    "Confederation",
    "Empire",
)
RULER_TITLES: tuple[str, ...] = ("King", "Queen", "Emperor", "Empress", "Lord", "Lady", "Archmage", "High Priest", "Council")
RULER_NAMES: tuple[str, ...] = ("Aldric", "Morgana", "Theron", "Lyanna", "Vex", "Zara", "Kael", "Mira", "Darius", "Sera")
LAW_CODES: tuple[str, ...] = (
    "Common Law",
    "Divine Law",
    "Martial Law",
    "Magical Regulations",
    "Trade Laws",
    "Honor Code",
    "Technological Ethics",
)
DIPLOMATIC_STANCES: tuple[str, ...] = (
    "Peaceful",
    "Neutral",
    "Aggressive",
    "Isolationist",
    "Expansionist",
    "Defensive",
    "Mercantile",
)

# Catalogue shown to API and CLI users

WORLD_THEMES: tuple[MappingProxyType[str, str], ...] = (
    MappingProxyType({"name": "Fantasy-SciFi", "description": "Magic and technology in equal measure"}),
    MappingProxyType({"name": "Magitech Empire", "description": "An empire powered by enchanted machinery"}),
    MappingProxyType({"name": "Cybernetic Wizardry", "description": "Wizards who code their spells into implants"}),
    MappingProxyType({"name": "Stellar Kingdoms", "description": "Feudal realms scattered across the stars"}),
    MappingProxyType({"name": "Techno-Druidism", "description": "Nature cults tending bio-mechanical groves"}),
    MappingProxyType({"name": "Dimensional Rifts", "description": "A world torn open by planar instability"}),
)

WORLD_TEMPLATES: tuple[MappingProxyType[str, object], ...] = (
    MappingProxyType(
        {
            "name": "Classic Fantasy",
            "description": "High magic, low technology",
            "theme": "Fantasy-SciFi",
            "techLevel": 2,
            "magicLevel": 9,
        }
    ),
    MappingProxyType(
        {
            "name": "Balanced Magitech",
            "description": "Magic and machines in harmony",
            "theme": "Magitech Empire",
            "techLevel": 5,
            "magicLevel": 5,
        }
    ),
    MappingProxyType(
        {
            "name": "Space Opera",
            "description": "Starships, psionics and ancient relics",
            "theme": "Stellar Kingdoms",
            "techLevel": 9,
            "magicLevel": 4,
        }
    ),
    MappingProxyType(
        {
            "name": "Arcane Singularity",
            "description": "Where spellcraft and computation became one",
            "theme": "Runic Computers",
            "techLevel": 9,
            "magicLevel": 9,
        }
    ),
)


def list_world_themes() -> list[dict[str, str]]:
    return [dict(theme) for theme in WORLD_THEMES]


def list_world_templates() -> list[dict[str, object]]:
    return [dict(template) for template in WORLD_TEMPLATES]
