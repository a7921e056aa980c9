"""Entity lifecycle orchestration.

Routes call `EntityService` for every mutation so that reference checks,
activity logging, metrics and image cleanup happen the same way for each kind.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from typing import Any

from app.core.exceptions import ConfigurationError, EntityNotFoundError, MediaStorageError, ValidationFailedError
from app.core.metrics import record_entity_operation, record_image_cleanup, track_cascade_delete
from app.core.request_context import log_context
from app.core.telemetry import trace_span
from app.db.models import Project, Relationship
from app.db.registry import KINDS, REFERENCES, EntityKind, entity_id, entity_label, kind_info
from app.services import rich_text
from app.services.activity import ActivityLogger
from app.services.media import get_media_store
from app.storage.base import WorldStorage, entity_image_urls


logger = logging.getLogger(__name__)


class EntityService:
    def __init__(
        self,
        storage: WorldStorage,
        user_id: str | None = None,
        media_store_factory: Callable[[], Any] = get_media_store,
    ):
        self.storage = storage
        self.user_id = user_id
        self.media_store_factory = media_store_factory
        self.activity = ActivityLogger(storage, user_id=user_id)

    # Projects

    def create_project(self, values: dict[str, Any]) -> Project:
        project = self.storage.create_project({**values, "user_id": self.user_id})
        record_entity_operation("project", "create")
        logger.info("project_created", extra={"project_ref": str(project.project_id)})
        return project

    def update_project(self, project: Project, changes: dict[str, Any]) -> Project:
        updated = self.storage.update_project(project.project_id, changes)
        if updated is None:
            raise EntityNotFoundError("Project", project.project_id)
        record_entity_operation("project", "update")
        return updated

    def delete_project(self, project: Project) -> None:
        project_id = project.project_id
        urls: list[str] = []
        for kind in KINDS:
            for entity in self.storage.list_entities(kind, project_id):
                urls.extend(entity_image_urls(kind, entity))

        with log_context(project_id=project_id), trace_span("delete_project", project_id=project_id):
            with track_cascade_delete("project"):
                if not self.storage.delete_project(project_id):
                    raise EntityNotFoundError("Project", project_id)
        record_entity_operation("project", "delete")
        logger.info("project_deleted", extra={"project_ref": str(project_id), "images": len(urls)})
        self.cleanup_images(urls)

    def delete_user_data(self) -> int:
        projects = self.storage.list_projects(self.user_id)
        for project in projects:
            self.delete_project(project)
        return len(projects)

    # Leaf entities

    def _check_references(self, kind: EntityKind, project_id: uuid.UUID, values: dict[str, Any], own_id=None) -> None:
        for field, target_kind in REFERENCES.get(kind, {}).items():
            target_id = values.get(field)
            if target_id is None:
                continue
            if own_id is not None and target_id == own_id:
                raise ValidationFailedError(f"Invalid {kind.value} data: {field} cannot reference itself")
            if self.storage.find_entity_in_project(target_kind, target_id, project_id) is None:
                raise ValidationFailedError(
                    f"Invalid {kind.value} data: {field} does not reference a "
                    f"{kind_info(target_kind).display_name.lower()} in this project"
                )

    def create(self, kind: EntityKind, values: dict[str, Any]):
        kind = EntityKind(kind)
        self._check_references(kind, values["project_id"], values)
        entity = self.storage.create_entity(kind, values)
        record_entity_operation(kind.value, "create")
        self.activity.log_create(entity.project_id, kind.value, entity_id(kind, entity), entity_label(kind, entity))
        return entity

    def update(self, kind: EntityKind, entity, changes: dict[str, Any]):
        kind = EntityKind(kind)
        own_id = entity_id(kind, entity)
        self._check_references(kind, entity.project_id, changes, own_id=own_id)

        info = kind_info(kind)
        stale: list[str] = []
        for field in info.rich_text_fields:
            if field in changes:
                stale.extend(rich_text.removed_image_urls(getattr(entity, field, None), changes[field]))
        for field in info.image_fields:
            old_value = getattr(entity, field, None)
            if field in changes and old_value and old_value != changes[field]:
                stale.append(old_value)

        updated = self.storage.update_entity(kind, own_id, changes)
        if updated is None:
            raise EntityNotFoundError(info.display_name, own_id)
        record_entity_operation(kind.value, "update")
        self.activity.log_update(
            updated.project_id,
            kind.value,
            own_id,
            entity_label(kind, updated),
            metadata={"fields": sorted(changes)},
        )
        self.cleanup_images(stale)
        return updated

    def delete(self, kind: EntityKind, entity) -> None:
        kind = EntityKind(kind)
        own_id = entity_id(kind, entity)
        project_id = entity.project_id
        label = entity_label(kind, entity)
        urls = entity_image_urls(kind, entity)
        if kind is EntityKind.MAGIC_SYSTEM:
            for spell in self.storage.list_magic_system_spells(own_id):
                urls.extend(entity_image_urls(EntityKind.SPELL, spell))

        with log_context(project_id=project_id), trace_span(f"delete_{kind.value}", entity_id=own_id):
            with track_cascade_delete(kind.value):
                if not self.storage.delete_entity(kind, own_id):
                    raise EntityNotFoundError(kind_info(kind).display_name, own_id)
        record_entity_operation(kind.value, "delete")
        self.activity.log_delete(project_id, kind.value, own_id, label)
        self.cleanup_images(urls)

    # Relationships

    def _check_endpoint(self, project_id: uuid.UUID, side: str, kind: EntityKind, element_id: uuid.UUID) -> None:
        if self.storage.find_entity_in_project(kind, element_id, project_id) is None:
            raise ValidationFailedError(f"Invalid relationship data: {side} {kind.value} not found in this project")

    def create_relationship(self, values: dict[str, Any]) -> Relationship:
        project_id = values["project_id"]
        self._check_endpoint(project_id, "source", EntityKind(values["source_type"]), values["source_id"])
        self._check_endpoint(project_id, "target", EntityKind(values["target_type"]), values["target_id"])
        relationship = self.storage.create_relationship(values)
        record_entity_operation("relationship", "create")
        return relationship

    def update_relationship(self, relationship: Relationship, changes: dict[str, Any]) -> Relationship:
        merged = {
            "source_type": relationship.source_type,
            "source_id": relationship.source_id,
            "target_type": relationship.target_type,
            "target_id": relationship.target_id,
            **changes,
        }
        if {"source_type", "source_id"} & changes.keys():
            self._check_endpoint(relationship.project_id, "source", EntityKind(merged["source_type"]), merged["source_id"])
        if {"target_type", "target_id"} & changes.keys():
            self._check_endpoint(relationship.project_id, "target", EntityKind(merged["target_type"]), merged["target_id"])
        updated = self.storage.update_relationship(relationship.relationship_id, changes)
        if updated is None:
            raise EntityNotFoundError("Relationship", relationship.relationship_id)
        record_entity_operation("relationship", "update")
        return updated

    def delete_relationship(self, relationship: Relationship) -> None:
        if not self.storage.delete_relationship(relationship.relationship_id):
            raise EntityNotFoundError("Relationship", relationship.relationship_id)
        record_entity_operation("relationship", "delete")

    # Media

    def _media_store(self):
        try:
            return self.media_store_factory()
        except (ConfigurationError, MediaStorageError):
            logger.warning("media_store_unavailable", exc_info=True)
            return None

    def delete_owned_image(self, url: str) -> bool:
        """Delete an image only when every entity holding it lives in one of the caller's projects."""
        references = self.storage.image_references(url)
        owners = set()
        for project_id in {entity.project_id for _, entity in references}:
            project = self.storage.get_project(project_id)
            owners.add(project.user_id if project is not None else None)
        if not references or owners != {self.user_id}:
            logger.info("image_delete_refused", extra={"url": url, "references": len(references)})
            return False
        return self.media_store_factory().delete_image(url)

    def cleanup_images(self, urls: Iterable[str]) -> int:
        """Delete images no entity references any more, logging failures instead of raising."""
        urls = [url for url in dict.fromkeys(urls) if url]
        if not urls:
            return 0
        orphaned = []
        for url in urls:
            if self.storage.image_references(url):
                record_image_cleanup("shared")
            else:
                orphaned.append(url)
        if not orphaned:
            return 0

        store = self._media_store()
        if store is None:
            record_image_cleanup("skipped")
            return 0

        deleted = 0
        for url in orphaned:
            try:
                if store.delete_image(url):
                    deleted += 1
                    record_image_cleanup("deleted")
                else:
                    record_image_cleanup("ignored")
            except MediaStorageError:
                record_image_cleanup("failed")
                logger.warning("image_cleanup_failed", exc_info=True, extra={"url": url})
        return deleted
