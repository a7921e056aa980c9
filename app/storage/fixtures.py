"""Sample world used to seed the memory backend and demo scripts."""

from __future__ import annotations

from app.db.models import Project
from app.db.registry import EntityKind
from app.services.rich_text import legacy_to_document
from app.storage.base import WorldStorage

DEMO_PROJECT = {
    "name": "The Chronicles of Aethermoor",
    "description": "A fantasy epic spanning multiple realms",
}

DEMO_RACES = [
    {"name": "Human", "description": "Short-lived and restless, found in every corner of the realm", "lifespan": "80 years"},
    {"name": "Elf", "description": "Ancient guardians of the old forests", "lifespan": "1000 years", "magical_affinity": "high"},
]

DEMO_CHARACTERS = [
    {
        "name": "Aria Stormwind",
        "role": "protagonist",
        "description": "A young mage discovering her true power",
        "appearance": "Auburn hair, green eyes, tall and graceful",
        "personality": "Determined, curious, brave but sometimes reckless",
        "background": "Orphaned at young age, raised by village elders",
        "age": "19",
        "race": "Human",
    },
    {
        "name": "Master Theron",
        "prefix": "Master",
        "role": "ally",
        "description": "Ancient mage and mentor to Aria",
        "appearance": "Long white beard, piercing blue eyes, weathered face",
        "personality": "Wise, patient, mysterious",
        "background": "Guardian of ancient secrets for centuries",
        "age": "150",
        "race": "Elf",
    },
    {
        "name": "Lord Malachar",
        "prefix": "Lord",
        "suffix": "the Shadowbane",
        "role": "villain",
        "description": "Dark sorcerer seeking to corrupt the realm",
        "appearance": "Tall, gaunt, always in dark robes",
        "personality": "Cunning, ruthless, charismatic",
        "background": "Former student turned to dark magic",
        "age": "45",
        "race": "Human",
    },
]

DEMO_LOCATIONS = [
    {
        "name": "Silverbrook Village",
        "type": "settlement",
        "description": "A peaceful village nestled in the mountains",
        "geography": "Mountainous region with streams",
        "culture": "Traditional mountain folk",
        "politics": "Elder Council",
    },
    {
        "name": "The Ancient Grove",
        "type": "natural",
        "description": "A mystical forest where ancient magic lingers",
        "geography": "Dense old-growth forest",
        "culture": "Sacred to druids",
    },
    {
        "name": "Shadowspire Tower",
        "type": "fortress",
        "description": "Dark tower serving as Malachar's stronghold",
        "geography": "Isolated mountain peak",
        "culture": "Cult of shadow",
        "politics": "Dictatorship",
    },
]

# (title, description, (year, month, day), type, stage, location name, participants)
DEMO_EVENTS = [
    ("Meeting the Mentor", "The protagonist meets their guide and teacher who reveals ancient secrets",
     (1, 1, 20), "meeting", "complete", "Silverbrook Village", ["Aria Stormwind", "Master Theron"]),
    ("The Great Discovery", "The main character discovers their hidden power",
     (1, 2, 15), "discovery", "editing", "The Ancient Grove", ["Aria Stormwind"]),
    ("First Battle", "The character's first real test in combat",
     (1, 5, 3), "battle", "writing", None, []),
    ("Dark Revelation", "A shocking truth about the world is revealed",
     (2, 3, 10), "discovery", "planning", None, []),
    ("The Royal Festival", "A grand celebration in the capital city",
     (2, 6, 15), "political", "writing", "Silverbrook Village", []),
    ("Assassin's Strike", "An attempt on the protagonist's life during the festival",
     (2, 6, 15), "battle", "editing", "Silverbrook Village", ["Aria Stormwind"]),
    ("Love's Declaration", "A romantic moment between protagonists amid the chaos",
     (2, 6, 15), "personal", "complete", "Silverbrook Village", []),
    ("The Final Confrontation", "The climactic battle between good and evil",
     (3, 12, 25), "battle", "first-draft", "Shadowspire Tower", ["Aria Stormwind", "Lord Malachar"]),
]

DEMO_MAGIC_SYSTEM = {
    "name": "Stormweaving",
    "type": "magic",
    "description": "Drawing power from the living weather",
    "rules": "A weaver must see the sky to call upon it",
    "limitations": "Exhaustion grows with every storm called",
    "source": "The winds of the upper realms",
    "complexity": "high",
}

DEMO_SPELLS = [
    ("Lightning Lance", "adept", "A focused bolt of lightning", {"Aria Stormwind": "adept", "Master Theron": "master"}),
    ("Windstep", "novice", "Ride the wind for a few heartbeats", {"Aria Stormwind": "novice"}),
]

DEMO_LORE = [
    {"title": "The Sundering", "content": "The realms split apart a thousand years ago", "category": "history", "importance": "high"},
]

DEMO_NOTES = [
    {"title": "Pacing", "content": "Keep the festival chapters tight", "category": "plot"},
]


def _rich(text: str | None) -> str | None:
    return legacy_to_document(text)


def seed_demo_world(storage: WorldStorage, owner_id: str) -> Project:
    """Create the sample project and its contents through the storage interface."""
    project = storage.create_project({"user_id": owner_id, **DEMO_PROJECT})
    project_id = project.project_id

    locations = {}
    for values in DEMO_LOCATIONS:
        location = storage.create_entity(
            EntityKind.LOCATION,
            {**values, "project_id": project_id, "description": _rich(values.get("description"))},
        )
        locations[location.name] = location.location_id

    races = {}
    for values in DEMO_RACES:
        race = storage.create_entity(
            EntityKind.RACE,
            {**values, "project_id": project_id, "description": _rich(values.get("description"))},
        )
        races[race.name] = race.race_id

    characters = {}
    for values in DEMO_CHARACTERS:
        fields = {key: value for key, value in values.items() if key != "race"}
        character = storage.create_entity(
            EntityKind.CHARACTER,
            {
                **fields,
                "project_id": project_id,
                "race_id": races.get(values.get("race")),
                "description": _rich(values.get("description")),
            },
        )
        characters[character.name] = character.character_id

    for order, (title, description, (year, month, day), type_, stage, location, participants) in enumerate(DEMO_EVENTS):
        event = storage.create_entity(
            EntityKind.EVENT,
            {
                "project_id": project_id,
                "title": title,
                "description": _rich(description),
                "year": year,
                "month": month,
                "day": day,
                "type": type_,
                "stage": stage,
                "location_id": locations.get(location),
                "order": order,
            },
        )
        for name in participants:
            storage.add_event_character(event.event_id, characters[name], role="participant")

    magic_system = storage.create_entity(
        EntityKind.MAGIC_SYSTEM,
        {**DEMO_MAGIC_SYSTEM, "project_id": project_id, "description": _rich(DEMO_MAGIC_SYSTEM["description"])},
    )
    for name, level, description, known_by in DEMO_SPELLS:
        spell = storage.create_entity(
            EntityKind.SPELL,
            {
                "project_id": project_id,
                "magic_system_id": magic_system.magic_system_id,
                "name": name,
                "level": level,
                "description": _rich(description),
            },
        )
        for character_name, proficiency in known_by.items():
            storage.add_character_spell(characters[character_name], spell.spell_id, proficiency)

    for values in DEMO_LORE:
        storage.create_entity(EntityKind.LORE, {**values, "project_id": project_id, "content": _rich(values["content"])})
    for values in DEMO_NOTES:
        storage.create_entity(EntityKind.NOTE, {**values, "project_id": project_id, "content": _rich(values["content"])})

    storage.create_relationship(
        {
            "project_id": project_id,
            "source_type": EntityKind.CHARACTER.value,
            "source_id": characters["Master Theron"],
            "target_type": EntityKind.CHARACTER.value,
            "target_id": characters["Aria Stormwind"],
            "relationship_type": "mentor",
            "strength": "strong",
            "description": "Theron guides Aria's training",
        }
    )
    storage.create_relationship(
        {
            "project_id": project_id,
            "source_type": EntityKind.CHARACTER.value,
            "source_id": characters["Lord Malachar"],
            "target_type": EntityKind.LOCATION.value,
            "target_id": locations["Shadowspire Tower"],
            "relationship_type": "rules",
            "strength": "strong",
        }
    )
    return project
