"""In-process storage backend for development and demos.

Rows are transient model instances kept in per-model dictionaries; nothing
survives a restart. A single lock serializes access because sync FastAPI
routes run on a thread pool.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Any

from sqlalchemy import inspect as sa_inspect

from app.db.base import Base
from app.db.models import (
    Activity,
    Character,
    CharacterSpell,
    Event,
    EventCharacter,
    Location,
    LoreEntry,
    MagicSystem,
    Note,
    Project,
    Race,
    Relationship,
    Spell,
    utcnow,
)
from app.db.registry import EntityKind, kind_info
from app.storage.base import ACTIVITY_PAGE_SIZE, WorldStorage


logger = logging.getLogger(__name__)

_PRIMARY_KEYS = {
    Project: "project_id",
    Character: "character_id",
    Location: "location_id",
    Event: "event_id",
    MagicSystem: "magic_system_id",
    Spell: "spell_id",
    LoreEntry: "lore_id",
    Note: "note_id",
    Race: "race_id",
    CharacterSpell: "character_spell_id",
    EventCharacter: "event_character_id",
    Relationship: "relationship_id",
    Activity: "activity_id",
}


def build_row(model: type[Base], values: dict[str, Any]):
    """Instantiate `model` with column defaults applied the way an INSERT would."""
    row = model()
    for attr in sa_inspect(model).column_attrs:
        column = attr.columns[0]
        if attr.key in values:
            value = values[attr.key]
        elif column.default is not None:
            default = column.default
            value = default.arg(None) if default.is_callable else default.arg
        else:
            value = None
        setattr(row, attr.key, value)
    return row


class MemoryStorage(WorldStorage):
    def __init__(self):
        self._lock = threading.RLock()
        self._rows: dict[type[Base], dict[uuid.UUID, Any]] = {model: {} for model in _PRIMARY_KEYS}

    def _table(self, model: type[Base]) -> dict[uuid.UUID, Any]:
        return self._rows[model]

    def _insert(self, model: type[Base], values: dict[str, Any]):
        row = build_row(model, values)
        with self._lock:
            self._table(model)[getattr(row, _PRIMARY_KEYS[model])] = row
        return row

    def _where(self, model: type[Base], predicate) -> list[Any]:
        with self._lock:
            return [row for row in self._table(model).values() if predicate(row)]

    def _purge(self, model: type[Base], predicate) -> int:
        with self._lock:
            table = self._table(model)
            doomed = [key for key, row in table.items() if predicate(row)]
            for key in doomed:
                del table[key]
            return len(doomed)

    @staticmethod
    def _touching(kind: EntityKind, ids: set[uuid.UUID]):
        def predicate(rel: Relationship) -> bool:
            return (rel.source_type == kind.value and rel.source_id in ids) or (
                rel.target_type == kind.value and rel.target_id in ids
            )

        return predicate

    # Projects

    def list_projects(self, user_id: str) -> list[Project]:
        projects = self._where(Project, lambda p: p.user_id == user_id)
        return sorted(projects, key=lambda p: p.created_at)

    def get_project(self, project_id: uuid.UUID) -> Project | None:
        return self._table(Project).get(project_id)

    def create_project(self, values: dict[str, Any]) -> Project:
        return self._insert(Project, values)

    def update_project(self, project_id: uuid.UUID, changes: dict[str, Any]) -> Project | None:
        with self._lock:
            project = self.get_project(project_id)
            if project is None:
                return None
            for key, value in changes.items():
                setattr(project, key, value)
            project.updated_at = utcnow()
            return project

    def delete_project(self, project_id: uuid.UUID) -> bool:
        with self._lock:
            if self.get_project(project_id) is None:
                return False
            character_ids = {c.character_id for c in self._where(Character, lambda c: c.project_id == project_id)}
            event_ids = {e.event_id for e in self._where(Event, lambda e: e.project_id == project_id)}
            spell_ids = {s.spell_id for s in self._where(Spell, lambda s: s.project_id == project_id)}

            self._purge(CharacterSpell, lambda l: l.character_id in character_ids or l.spell_id in spell_ids)
            self._purge(EventCharacter, lambda l: l.event_id in event_ids or l.character_id in character_ids)
            for model in (Activity, Spell, Relationship, Character, Event, MagicSystem, Race, Location, LoreEntry, Note):
                self._purge(model, lambda row: row.project_id == project_id)
            self._purge(Project, lambda p: p.project_id == project_id)
        return True

    # Leaf entities

    def list_entities(self, kind: EntityKind, project_id: uuid.UUID) -> list[Any]:
        model = kind_info(kind).model
        rows = self._where(model, lambda row: row.project_id == project_id)
        if model is Event:
            return sorted(rows, key=lambda e: (e.year, e.month, e.day, e.order))
        return sorted(rows, key=lambda row: row.created_at)

    def get_entity(self, kind: EntityKind, entity_id: uuid.UUID) -> Any | None:
        return self._table(kind_info(kind).model).get(entity_id)

    def create_entity(self, kind: EntityKind, values: dict[str, Any]) -> Any:
        return self._insert(kind_info(kind).model, values)

    def update_entity(self, kind: EntityKind, entity_id: uuid.UUID, changes: dict[str, Any]) -> Any | None:
        with self._lock:
            entity = self.get_entity(kind, entity_id)
            if entity is None:
                return None
            for key, value in changes.items():
                setattr(entity, key, value)
            entity.updated_at = utcnow()
            return entity

    def delete_entity(self, kind: EntityKind, entity_id: uuid.UUID) -> bool:
        kind = EntityKind(kind)
        info = kind_info(kind)
        with self._lock:
            if self.get_entity(kind, entity_id) is None:
                return False
            if kind is EntityKind.CHARACTER:
                self._purge(CharacterSpell, lambda l: l.character_id == entity_id)
                self._purge(EventCharacter, lambda l: l.character_id == entity_id)
            elif kind is EntityKind.MAGIC_SYSTEM:
                spell_ids = {s.spell_id for s in self._where(Spell, lambda s: s.magic_system_id == entity_id)}
                self._purge(CharacterSpell, lambda l: l.spell_id in spell_ids)
                self._purge(Relationship, self._touching(EntityKind.SPELL, spell_ids))
                self._purge(Spell, lambda s: s.spell_id in spell_ids)
            elif kind is EntityKind.SPELL:
                self._purge(CharacterSpell, lambda l: l.spell_id == entity_id)
            elif kind is EntityKind.EVENT:
                self._purge(EventCharacter, lambda l: l.event_id == entity_id)
            elif kind is EntityKind.LOCATION:
                for event in self._where(Event, lambda e: e.location_id == entity_id):
                    event.location_id = None
                for race in self._where(Race, lambda r: r.homeland_id == entity_id):
                    race.homeland_id = None
                for child in self._where(Location, lambda l: l.parent_location_id == entity_id):
                    child.parent_location_id = None
            elif kind is EntityKind.RACE:
                for character in self._where(Character, lambda c: c.race_id == entity_id):
                    character.race_id = None

            self._purge(Relationship, self._touching(kind, {entity_id}))
            del self._table(info.model)[entity_id]
        return True

    # Character <-> spell

    def list_character_spells(self, character_id: uuid.UUID) -> list[tuple[CharacterSpell, Spell]]:
        links = sorted(self._where(CharacterSpell, lambda l: l.character_id == character_id), key=lambda l: l.created_at)
        spells = self._table(Spell)
        return [(link, spells[link.spell_id]) for link in links if link.spell_id in spells]

    def add_character_spell(
        self, character_id: uuid.UUID, spell_id: uuid.UUID, proficiency: str = "novice"
    ) -> CharacterSpell:
        with self._lock:
            for link in self._where(CharacterSpell, lambda l: l.character_id == character_id and l.spell_id == spell_id):
                link.proficiency = proficiency
                return link
            return self._insert(
                CharacterSpell,
                {"character_id": character_id, "spell_id": spell_id, "proficiency": proficiency},
            )

    def remove_character_spell(self, character_id: uuid.UUID, spell_id: uuid.UUID) -> bool:
        return self._purge(CharacterSpell, lambda l: l.character_id == character_id and l.spell_id == spell_id) > 0

    def list_spell_characters(self, spell_id: uuid.UUID) -> list[Character]:
        character_ids = {l.character_id for l in self._where(CharacterSpell, lambda l: l.spell_id == spell_id)}
        return sorted(self._where(Character, lambda c: c.character_id in character_ids), key=lambda c: c.name)

    # Event <-> character

    def list_event_characters(self, event_id: uuid.UUID) -> list[tuple[EventCharacter, Character]]:
        links = sorted(self._where(EventCharacter, lambda l: l.event_id == event_id), key=lambda l: l.created_at)
        characters = self._table(Character)
        return [(link, characters[link.character_id]) for link in links if link.character_id in characters]

    def add_event_character(
        self, event_id: uuid.UUID, character_id: uuid.UUID, role: str | None = None
    ) -> EventCharacter:
        with self._lock:
            for link in self._where(EventCharacter, lambda l: l.event_id == event_id and l.character_id == character_id):
                link.role = role
                return link
            return self._insert(EventCharacter, {"event_id": event_id, "character_id": character_id, "role": role})

    def remove_event_character(self, event_id: uuid.UUID, character_id: uuid.UUID) -> bool:
        return self._purge(EventCharacter, lambda l: l.event_id == event_id and l.character_id == character_id) > 0

    def list_character_event_ids(self, character_id: uuid.UUID) -> set[uuid.UUID]:
        return {l.event_id for l in self._where(EventCharacter, lambda l: l.character_id == character_id)}

    # Aggregates

    def list_magic_system_spells(self, magic_system_id: uuid.UUID) -> list[Spell]:
        spells = self._where(Spell, lambda s: s.magic_system_id == magic_system_id)
        return sorted(spells, key=lambda s: s.created_at)

    def list_magic_system_characters(self, magic_system_id: uuid.UUID) -> list[Character]:
        spell_ids = {s.spell_id for s in self.list_magic_system_spells(magic_system_id)}
        character_ids = {l.character_id for l in self._where(CharacterSpell, lambda l: l.spell_id in spell_ids)}
        return sorted(self._where(Character, lambda c: c.character_id in character_ids), key=lambda c: c.name)

    def list_race_characters(self, race_id: uuid.UUID) -> list[Character]:
        return sorted(self._where(Character, lambda c: c.race_id == race_id), key=lambda c: c.name)

    def mentioning(self, kind: EntityKind, text: str) -> list[Any]:
        info = kind_info(kind)
        fields = info.image_fields + info.rich_text_fields
        return self._where(info.model, lambda row: any(text in (getattr(row, f, None) or "") for f in fields))

    # Relationships

    def list_relationships(
        self,
        project_id: uuid.UUID,
        element_type: EntityKind | None = None,
        element_id: uuid.UUID | None = None,
    ) -> list[Relationship]:
        touching = None
        if element_type is not None and element_id is not None:
            touching = self._touching(EntityKind(element_type), {element_id})
        rows = self._where(
            Relationship,
            lambda r: r.project_id == project_id and (touching is None or touching(r)),
        )
        return sorted(rows, key=lambda r: r.created_at)

    def get_relationship(self, relationship_id: uuid.UUID) -> Relationship | None:
        return self._table(Relationship).get(relationship_id)

    def create_relationship(self, values: dict[str, Any]) -> Relationship:
        return self._insert(Relationship, values)

    def update_relationship(self, relationship_id: uuid.UUID, changes: dict[str, Any]) -> Relationship | None:
        with self._lock:
            relationship = self.get_relationship(relationship_id)
            if relationship is None:
                return None
            for key, value in changes.items():
                setattr(relationship, key, value)
            return relationship

    def delete_relationship(self, relationship_id: uuid.UUID) -> bool:
        return self._purge(Relationship, lambda r: r.relationship_id == relationship_id) > 0

    # Activities

    def add_activity(self, values: dict[str, Any]) -> Activity:
        return self._insert(Activity, values)

    def list_activities(self, project_id: uuid.UUID, limit: int = ACTIVITY_PAGE_SIZE) -> list[Activity]:
        rows = self._where(Activity, lambda a: a.project_id == project_id)
        return sorted(rows, key=lambda a: a.created_at, reverse=True)[:limit]


_memory_storage: MemoryStorage | None = None
_memory_lock = threading.Lock()


def get_memory_storage() -> MemoryStorage:
    """Process-wide memory backend, seeded with the demo world on first use when enabled."""
    global _memory_storage
    with _memory_lock:
        if _memory_storage is None:
            from app.core.settings import settings
            from app.storage.fixtures import seed_demo_world

            storage = MemoryStorage()
            if settings.memory_seed_demo:
                seed_demo_world(storage, owner_id=settings.demo_owner_id)
                logger.info("memory_storage_seeded", extra={"owner_id": settings.demo_owner_id})
            _memory_storage = storage
        return _memory_storage


def reset_memory_storage() -> None:
    global _memory_storage
    with _memory_lock:
        _memory_storage = None
