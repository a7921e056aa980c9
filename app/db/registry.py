"""Lookup table describing every project-scoped entity kind.

Storage backends, the entity service and the relationship checks all work
against `EntityKind` rather than concrete models, so adding a kind means
adding a model and one `KindInfo` entry here.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum

from app.db.base import Base
from app.db.models import Character, Event, Location, LoreEntry, MagicSystem, Note, Race, Spell


class EntityKind(str, Enum):
    CHARACTER = "character"
    LOCATION = "location"
    EVENT = "event"
    MAGIC_SYSTEM = "magic_system"
    SPELL = "spell"
    LORE = "lore"
    NOTE = "note"
    RACE = "race"


@dataclass(frozen=True)
class KindInfo:
    model: type[Base]
    id_field: str
    label_field: str
    display_name: str
    stats_key: str
    rich_text_fields: tuple[str, ...]
    search_fields: tuple[str, ...]
    image_fields: tuple[str, ...] = ()


KINDS: dict[EntityKind, KindInfo] = {
    EntityKind.CHARACTER: KindInfo(
        model=Character,
        id_field="character_id",
        label_field="name",
        display_name="Character",
        stats_key="characters",
        rich_text_fields=("description",),
        search_fields=("name", "role", "description"),
        image_fields=("image_url",),
    ),
    EntityKind.LOCATION: KindInfo(
        model=Location,
        id_field="location_id",
        label_field="name",
        display_name="Location",
        stats_key="locations",
        rich_text_fields=("description",),
        search_fields=("name", "type", "description"),
    ),
    EntityKind.EVENT: KindInfo(
        model=Event,
        id_field="event_id",
        label_field="title",
        display_name="Event",
        stats_key="events",
        rich_text_fields=("description",),
        search_fields=("title", "description"),
    ),
    EntityKind.MAGIC_SYSTEM: KindInfo(
        model=MagicSystem,
        id_field="magic_system_id",
        label_field="name",
        display_name="Magic system",
        stats_key="magic_systems",
        rich_text_fields=("description",),
        search_fields=("name", "description"),
    ),
    EntityKind.SPELL: KindInfo(
        model=Spell,
        id_field="spell_id",
        label_field="name",
        display_name="Spell",
        stats_key="spells",
        rich_text_fields=("description",),
        search_fields=("name", "description"),
    ),
    EntityKind.LORE: KindInfo(
        model=LoreEntry,
        id_field="lore_id",
        label_field="title",
        display_name="Lore entry",
        stats_key="lore_entries",
        rich_text_fields=("content",),
        search_fields=("title", "content"),
    ),
    EntityKind.NOTE: KindInfo(
        model=Note,
        id_field="note_id",
        label_field="title",
        display_name="Note",
        stats_key="notes",
        rich_text_fields=("content",),
        search_fields=("title", "content"),
    ),
    EntityKind.RACE: KindInfo(
        model=Race,
        id_field="race_id",
        label_field="name",
        display_name="Race",
        stats_key="races",
        rich_text_fields=("description",),
        search_fields=("name", "description"),
    ),
}


def kind_info(kind: EntityKind) -> KindInfo:
    return KINDS[EntityKind(kind)]


def entity_id(kind: EntityKind, entity) -> uuid.UUID:
    return getattr(entity, kind_info(kind).id_field)


def entity_label(kind: EntityKind, entity) -> str:
    return getattr(entity, kind_info(kind).label_field) or ""


# Foreign-key style fields that must point at an entity of the same project.
REFERENCES: dict[EntityKind, dict[str, EntityKind]] = {
    EntityKind.CHARACTER: {"race_id": EntityKind.RACE},
    EntityKind.LOCATION: {"parent_location_id": EntityKind.LOCATION},
    EntityKind.EVENT: {"location_id": EntityKind.LOCATION},
    EntityKind.SPELL: {"magic_system_id": EntityKind.MAGIC_SYSTEM},
    EntityKind.RACE: {"homeland_id": EntityKind.LOCATION},
}
