"""Relational storage backend built on a SQLAlchemy session."""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from typing import Any

from sqlalchemy import and_, delete, desc, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import StorageError
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
from app.db.registry import KINDS, EntityKind, kind_info
from app.storage.base import ACTIVITY_PAGE_SIZE, WorldStorage


logger = logging.getLogger(__name__)


def _touching(kind: EntityKind, ids) -> Any:
    """Filter for relationship rows with either endpoint among `ids` of `kind`."""
    return or_(
        and_(Relationship.source_type == kind.value, Relationship.source_id.in_(ids)),
        and_(Relationship.target_type == kind.value, Relationship.target_id.in_(ids)),
    )


class DatabaseStorage(WorldStorage):
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _transaction(self, operation: str):
        """Commit on success; roll back and raise `StorageError` on any database failure."""
        try:
            yield
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("storage_operation_failed", extra={"operation": operation})
            raise StorageError(f"{operation} failed: {exc}", detail="Storage operation failed") from exc

    def _execute(self, statement) -> int:
        result = self.db.execute(statement.execution_options(synchronize_session=False))
        return result.rowcount or 0

    def _save(self, operation: str, row):
        with self._transaction(operation):
            self.db.add(row)
        self.db.refresh(row)
        return row

    def _apply(self, operation: str, row, changes: dict[str, Any], touch: bool = True):
        with self._transaction(operation):
            for key, value in changes.items():
                setattr(row, key, value)
            if touch:
                row.updated_at = utcnow()
            self.db.add(row)
        self.db.refresh(row)
        return row

    # Projects

    def list_projects(self, user_id: str) -> list[Project]:
        stmt = select(Project).where(Project.user_id == user_id).order_by(Project.created_at)
        return list(self.db.execute(stmt).scalars().all())

    def get_project(self, project_id: uuid.UUID) -> Project | None:
        return self.db.get(Project, project_id)

    def create_project(self, values: dict[str, Any]) -> Project:
        return self._save("create_project", Project(**values))

    def update_project(self, project_id: uuid.UUID, changes: dict[str, Any]) -> Project | None:
        project = self.get_project(project_id)
        if project is None:
            return None
        return self._apply("update_project", project, changes)

    def delete_project(self, project_id: uuid.UUID) -> bool:
        if self.get_project(project_id) is None:
            return False

        character_ids = select(Character.character_id).where(Character.project_id == project_id)
        event_ids = select(Event.event_id).where(Event.project_id == project_id)
        spell_ids = select(Spell.spell_id).where(Spell.project_id == project_id)

        with self._transaction("delete_project"):
            self._execute(
                delete(CharacterSpell).where(
                    or_(CharacterSpell.character_id.in_(character_ids), CharacterSpell.spell_id.in_(spell_ids))
                )
            )
            self._execute(
                delete(EventCharacter).where(
                    or_(EventCharacter.event_id.in_(event_ids), EventCharacter.character_id.in_(character_ids))
                )
            )
            for model in (Activity, Spell, Relationship, Character, Event, MagicSystem, Race, Location, LoreEntry, Note):
                self._execute(delete(model).where(model.project_id == project_id))
            self._execute(delete(Project).where(Project.project_id == project_id))
        return True

    # Leaf entities

    def list_entities(self, kind: EntityKind, project_id: uuid.UUID) -> list[Any]:
        info = kind_info(kind)
        stmt = select(info.model).where(info.model.project_id == project_id)
        if info.model is Event:
            stmt = stmt.order_by(Event.year, Event.month, Event.day, Event.order)
        else:
            stmt = stmt.order_by(info.model.created_at)
        return list(self.db.execute(stmt).scalars().all())

    def get_entity(self, kind: EntityKind, entity_id: uuid.UUID) -> Any | None:
        return self.db.get(kind_info(kind).model, entity_id)

    def create_entity(self, kind: EntityKind, values: dict[str, Any]) -> Any:
        return self._save(f"create_{EntityKind(kind).value}", kind_info(kind).model(**values))

    def update_entity(self, kind: EntityKind, entity_id: uuid.UUID, changes: dict[str, Any]) -> Any | None:
        entity = self.get_entity(kind, entity_id)
        if entity is None:
            return None
        return self._apply(f"update_{EntityKind(kind).value}", entity, changes)

    def delete_entity(self, kind: EntityKind, entity_id: uuid.UUID) -> bool:
        kind = EntityKind(kind)
        info = kind_info(kind)
        if self.get_entity(kind, entity_id) is None:
            return False

        ids = [entity_id]
        with self._transaction(f"delete_{kind.value}"):
            if kind is EntityKind.CHARACTER:
                self._execute(delete(CharacterSpell).where(CharacterSpell.character_id == entity_id))
                self._execute(delete(EventCharacter).where(EventCharacter.character_id == entity_id))
            elif kind is EntityKind.MAGIC_SYSTEM:
                spell_ids = list(
                    self.db.execute(select(Spell.spell_id).where(Spell.magic_system_id == entity_id)).scalars()
                )
                self._execute(delete(CharacterSpell).where(CharacterSpell.spell_id.in_(spell_ids)))
                self._execute(delete(Relationship).where(_touching(EntityKind.SPELL, spell_ids)))
                self._execute(delete(Spell).where(Spell.magic_system_id == entity_id))
            elif kind is EntityKind.SPELL:
                self._execute(delete(CharacterSpell).where(CharacterSpell.spell_id == entity_id))
            elif kind is EntityKind.EVENT:
                self._execute(delete(EventCharacter).where(EventCharacter.event_id == entity_id))
            elif kind is EntityKind.LOCATION:
                self._execute(update(Event).where(Event.location_id == entity_id).values(location_id=None))
                self._execute(update(Race).where(Race.homeland_id == entity_id).values(homeland_id=None))
                self._execute(
                    update(Location).where(Location.parent_location_id == entity_id).values(parent_location_id=None)
                )
            elif kind is EntityKind.RACE:
                self._execute(update(Character).where(Character.race_id == entity_id).values(race_id=None))

            self._execute(delete(Relationship).where(_touching(kind, ids)))
            self._execute(delete(info.model).where(getattr(info.model, info.id_field) == entity_id))
        return True

    # Character <-> spell

    def list_character_spells(self, character_id: uuid.UUID) -> list[tuple[CharacterSpell, Spell]]:
        stmt = (
            select(CharacterSpell, Spell)
            .join(Spell, CharacterSpell.spell_id == Spell.spell_id)
            .where(CharacterSpell.character_id == character_id)
            .order_by(CharacterSpell.created_at)
        )
        return [(link, spell) for link, spell in self.db.execute(stmt).all()]

    def add_character_spell(
        self, character_id: uuid.UUID, spell_id: uuid.UUID, proficiency: str = "novice"
    ) -> CharacterSpell:
        existing = self.db.execute(
            select(CharacterSpell).where(
                CharacterSpell.character_id == character_id,
                CharacterSpell.spell_id == spell_id,
            )
        ).scalar_one_or_none()
        if existing is not None:
            return self._apply("update_character_spell", existing, {"proficiency": proficiency}, touch=False)
        link = CharacterSpell(character_id=character_id, spell_id=spell_id, proficiency=proficiency)
        return self._save("add_character_spell", link)

    def remove_character_spell(self, character_id: uuid.UUID, spell_id: uuid.UUID) -> bool:
        with self._transaction("remove_character_spell"):
            removed = self._execute(
                delete(CharacterSpell).where(
                    CharacterSpell.character_id == character_id,
                    CharacterSpell.spell_id == spell_id,
                )
            )
        return removed > 0

    def list_spell_characters(self, spell_id: uuid.UUID) -> list[Character]:
        stmt = (
            select(Character)
            .join(CharacterSpell, CharacterSpell.character_id == Character.character_id)
            .where(CharacterSpell.spell_id == spell_id)
            .order_by(Character.name)
        )
        return list(self.db.execute(stmt).scalars().unique().all())

    # Event <-> character

    def list_event_characters(self, event_id: uuid.UUID) -> list[tuple[EventCharacter, Character]]:
        stmt = (
            select(EventCharacter, Character)
            .join(Character, EventCharacter.character_id == Character.character_id)
            .where(EventCharacter.event_id == event_id)
            .order_by(EventCharacter.created_at)
        )
        return [(link, character) for link, character in self.db.execute(stmt).all()]

    def add_event_character(
        self, event_id: uuid.UUID, character_id: uuid.UUID, role: str | None = None
    ) -> EventCharacter:
        existing = self.db.execute(
            select(EventCharacter).where(
                EventCharacter.event_id == event_id,
                EventCharacter.character_id == character_id,
            )
        ).scalar_one_or_none()
        if existing is not None:
            return self._apply("update_event_character", existing, {"role": role}, touch=False)
        return self._save("add_event_character", EventCharacter(event_id=event_id, character_id=character_id, role=role))

    def remove_event_character(self, event_id: uuid.UUID, character_id: uuid.UUID) -> bool:
        with self._transaction("remove_event_character"):
            removed = self._execute(
                delete(EventCharacter).where(
                    EventCharacter.event_id == event_id,
                    EventCharacter.character_id == character_id,
                )
            )
        return removed > 0

    def list_character_event_ids(self, character_id: uuid.UUID) -> set[uuid.UUID]:
        stmt = select(EventCharacter.event_id).where(EventCharacter.character_id == character_id)
        return set(self.db.execute(stmt).scalars().all())

    # Aggregates

    def list_magic_system_spells(self, magic_system_id: uuid.UUID) -> list[Spell]:
        stmt = select(Spell).where(Spell.magic_system_id == magic_system_id).order_by(Spell.created_at)
        return list(self.db.execute(stmt).scalars().all())

    def list_magic_system_characters(self, magic_system_id: uuid.UUID) -> list[Character]:
        stmt = (
            select(Character)
            .join(CharacterSpell, CharacterSpell.character_id == Character.character_id)
            .join(Spell, Spell.spell_id == CharacterSpell.spell_id)
            .where(Spell.magic_system_id == magic_system_id)
            .distinct()
            .order_by(Character.name)
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_race_characters(self, race_id: uuid.UUID) -> list[Character]:
        stmt = select(Character).where(Character.race_id == race_id).order_by(Character.name)
        return list(self.db.execute(stmt).scalars().all())

    def mentioning(self, kind: EntityKind, text: str) -> list[Any]:
        info = kind_info(kind)
        columns = [getattr(info.model, field) for field in info.image_fields + info.rich_text_fields]
        stmt = select(info.model).where(or_(*(column.contains(text, autoescape=True) for column in columns)))
        return list(self.db.execute(stmt).scalars().all())

    def project_stats(self, project_id: uuid.UUID) -> dict[str, int]:
        stats: dict[str, int] = {}
        for info in KINDS.values():
            count = self.db.execute(
                select(func.count()).select_from(info.model).where(info.model.project_id == project_id)
            ).scalar_one()
            stats[info.stats_key] = int(count)
        return stats

    # Relationships

    def list_relationships(
        self,
        project_id: uuid.UUID,
        element_type: EntityKind | None = None,
        element_id: uuid.UUID | None = None,
    ) -> list[Relationship]:
        stmt = select(Relationship).where(Relationship.project_id == project_id)
        if element_type is not None and element_id is not None:
            stmt = stmt.where(_touching(EntityKind(element_type), [element_id]))
        return list(self.db.execute(stmt.order_by(Relationship.created_at)).scalars().all())

    def get_relationship(self, relationship_id: uuid.UUID) -> Relationship | None:
        return self.db.get(Relationship, relationship_id)

    def create_relationship(self, values: dict[str, Any]) -> Relationship:
        return self._save("create_relationship", Relationship(**values))

    def update_relationship(self, relationship_id: uuid.UUID, changes: dict[str, Any]) -> Relationship | None:
        relationship = self.get_relationship(relationship_id)
        if relationship is None:
            return None
        return self._apply("update_relationship", relationship, changes, touch=False)

    def delete_relationship(self, relationship_id: uuid.UUID) -> bool:
        with self._transaction("delete_relationship"):
            removed = self._execute(delete(Relationship).where(Relationship.relationship_id == relationship_id))
        return removed > 0

    # Activities

    def add_activity(self, values: dict[str, Any]) -> Activity:
        return self._save("add_activity", Activity(**values))

    def list_activities(self, project_id: uuid.UUID, limit: int = ACTIVITY_PAGE_SIZE) -> list[Activity]:
        stmt = (
            select(Activity)
            .where(Activity.project_id == project_id)
            .order_by(desc(Activity.created_at))
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())
