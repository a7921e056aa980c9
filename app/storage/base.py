"""Storage interface shared by the in-memory and relational backends.

Both backends return SQLAlchemy model instances; the memory backend keeps
transient instances that are never attached to a session.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Any

from app.db.models import Activity, Character, CharacterSpell, EventCharacter, Project, Relationship, Spell
from app.db.registry import KINDS, EntityKind, kind_info
from app.services import rich_text

ACTIVITY_PAGE_SIZE = 50

# Deletion order for a project: junction rows first, then rows that other rows
# reference last (characters before races, events and races before locations).
PROJECT_DELETE_ORDER: tuple[str, ...] = (
    "character_spells",
    "event_characters",
    "activities",
    "spells",
    "relationships",
    "characters",
    "events",
    "magic_systems",
    "races",
    "locations",
    "lore_entries",
    "notes",
    "projects",
)


def entity_image_urls(kind: EntityKind, entity) -> list[str]:
    """Every media URL an entity holds: rich-text image blocks plus direct image fields."""
    info = kind_info(kind)
    urls: list[str] = []
    for field in info.rich_text_fields:
        urls.extend(rich_text.image_urls(getattr(entity, field, None)))
    for field in info.image_fields:
        value = getattr(entity, field, None)
        if value:
            urls.append(value)
    return list(dict.fromkeys(urls))


class WorldStorage(ABC):
    """CRUD and aggregate queries over one world-building dataset."""

    # Projects

    @abstractmethod
    def list_projects(self, user_id: str) -> list[Project]: ...

    @abstractmethod
    def get_project(self, project_id: uuid.UUID) -> Project | None: ...

    @abstractmethod
    def create_project(self, values: dict[str, Any]) -> Project: ...

    @abstractmethod
    def update_project(self, project_id: uuid.UUID, changes: dict[str, Any]) -> Project | None: ...

    @abstractmethod
    def delete_project(self, project_id: uuid.UUID) -> bool:
        """Delete a project and every row it owns in `PROJECT_DELETE_ORDER`."""

    def delete_user_data(self, user_id: str) -> int:
        deleted = 0
        for project in self.list_projects(user_id):
            if self.delete_project(project.project_id):
                deleted += 1
        return deleted

    # Leaf entities

    @abstractmethod
    def list_entities(self, kind: EntityKind, project_id: uuid.UUID) -> list[Any]: ...

    @abstractmethod
    def get_entity(self, kind: EntityKind, entity_id: uuid.UUID) -> Any | None: ...

    @abstractmethod
    def create_entity(self, kind: EntityKind, values: dict[str, Any]) -> Any: ...

    @abstractmethod
    def update_entity(self, kind: EntityKind, entity_id: uuid.UUID, changes: dict[str, Any]) -> Any | None: ...

    @abstractmethod
    def delete_entity(self, kind: EntityKind, entity_id: uuid.UUID) -> bool:
        """Delete one entity together with junction and relationship rows that point at it."""

    # Character <-> spell

    @abstractmethod
    def list_character_spells(self, character_id: uuid.UUID) -> list[tuple[CharacterSpell, Spell]]: ...

    @abstractmethod
    def add_character_spell(
        self, character_id: uuid.UUID, spell_id: uuid.UUID, proficiency: str = "novice"
    ) -> CharacterSpell: ...

    @abstractmethod
    def remove_character_spell(self, character_id: uuid.UUID, spell_id: uuid.UUID) -> bool: ...

    @abstractmethod
    def list_spell_characters(self, spell_id: uuid.UUID) -> list[Character]: ...

    # Event <-> character

    @abstractmethod
    def list_event_characters(self, event_id: uuid.UUID) -> list[tuple[EventCharacter, Character]]: ...

    @abstractmethod
    def add_event_character(
        self, event_id: uuid.UUID, character_id: uuid.UUID, role: str | None = None
    ) -> EventCharacter: ...

    @abstractmethod
    def remove_event_character(self, event_id: uuid.UUID, character_id: uuid.UUID) -> bool: ...

    @abstractmethod
    def list_character_event_ids(self, character_id: uuid.UUID) -> set[uuid.UUID]: ...

    # Aggregates

    @abstractmethod
    def list_magic_system_spells(self, magic_system_id: uuid.UUID) -> list[Spell]: ...

    @abstractmethod
    def list_magic_system_characters(self, magic_system_id: uuid.UUID) -> list[Character]:
        """Characters that know at least one spell of the system, without duplicates."""

    @abstractmethod
    def list_race_characters(self, race_id: uuid.UUID) -> list[Character]: ...

    @abstractmethod
    def mentioning(self, kind: EntityKind, text: str) -> list[Any]:
        """Entities of `kind` whose image or rich-text fields contain `text`, across all projects."""

    def image_references(self, url: str) -> list[tuple[EntityKind, Any]]:
        """Entities that hold `url` as an image, either directly or inside rich-text content."""
        if not url:
            return []
        return [
            (kind, entity)
            for kind in KINDS
            for entity in self.mentioning(kind, url)
            if url in entity_image_urls(kind, entity)
        ]

    def project_stats(self, project_id: uuid.UUID) -> dict[str, int]:
        return {info.stats_key: len(self.list_entities(kind, project_id)) for kind, info in KINDS.items()}

    def search(self, project_id: uuid.UUID, query: str) -> list[tuple[EntityKind, Any]]:
        """Case-insensitive substring match over each kind's searchable fields.

        Rich-text fields are matched on their plain text so block JSON keys
        never produce hits.
        """
        needle = query.strip().lower()
        if not needle:
            return []
        hits: list[tuple[EntityKind, Any]] = []
        for kind, info in KINDS.items():
            for entity in self.list_entities(kind, project_id):
                for field in info.search_fields:
                    value = getattr(entity, field, None)
                    if not value:
                        continue
                    text = rich_text.plain_text(value) if field in info.rich_text_fields else str(value)
                    if needle in text.lower():
                        hits.append((kind, entity))
                        break
        return hits

    # Relationships

    @abstractmethod
    def list_relationships(
        self,
        project_id: uuid.UUID,
        element_type: EntityKind | None = None,
        element_id: uuid.UUID | None = None,
    ) -> list[Relationship]:
        """Relationships of a project, optionally only those touching one element on either side."""

    @abstractmethod
    def get_relationship(self, relationship_id: uuid.UUID) -> Relationship | None: ...

    @abstractmethod
    def create_relationship(self, values: dict[str, Any]) -> Relationship: ...

    @abstractmethod
    def update_relationship(self, relationship_id: uuid.UUID, changes: dict[str, Any]) -> Relationship | None: ...

    @abstractmethod
    def delete_relationship(self, relationship_id: uuid.UUID) -> bool: ...

    # Activities

    @abstractmethod
    def add_activity(self, values: dict[str, Any]) -> Activity: ...

    @abstractmethod
    def list_activities(self, project_id: uuid.UUID, limit: int = ACTIVITY_PAGE_SIZE) -> list[Activity]:
        """Newest first."""

    # Helpers

    def find_entity_in_project(
        self, kind: EntityKind, entity_id: uuid.UUID, project_id: uuid.UUID
    ) -> Any | None:
        entity = self.get_entity(kind, entity_id)
        if entity is None or entity.project_id != project_id:
            return None
        return entity

    @staticmethod
    def model_for(kind: EntityKind):
        return kind_info(kind).model
