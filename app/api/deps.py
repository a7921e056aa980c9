import uuid
from collections.abc import Generator
from typing import Any

from fastapi import Depends, Header

from app.core.exceptions import EntityNotFoundError, ProjectAccessDeniedError
from app.core.request_context import set_user_id
from app.core.settings import settings
from app.db.models import Project
from app.db.registry import EntityKind, kind_info
from app.db.session import open_session
from app.services.entities import EntityService
from app.services.identity import AuthenticatedUser, extract_bearer_token, get_identity_provider
from app.storage.base import WorldStorage
from app.storage.database import DatabaseStorage
from app.storage.memory import get_memory_storage


def world_storage() -> Generator[WorldStorage, None, None]:
    if settings.storage_backend == "memory":
        yield get_memory_storage()
        return
    with open_session() as db:
        yield DatabaseStorage(db)


async def current_user(authorization: str | None = Header(default=None)) -> AuthenticatedUser:
    provider = get_identity_provider()
    token = extract_bearer_token(authorization)
    user = await provider.resolve(token)
    set_user_id(user.user_id)
    return user


StorageDep = Depends(world_storage)
CurrentUserDep = Depends(current_user)


def entity_service(storage: WorldStorage = StorageDep, user: AuthenticatedUser = CurrentUserDep) -> EntityService:
    return EntityService(storage, user_id=user.user_id)


EntityServiceDep = Depends(entity_service)


def get_owned_project(storage: WorldStorage, project_id: uuid.UUID, user: AuthenticatedUser) -> Project:
    project = storage.get_project(project_id)
    if project is None:
        raise EntityNotFoundError("Project", project_id)
    if project.user_id != user.user_id:
        raise ProjectAccessDeniedError(project_id)
    return project


def get_owned_entity(storage: WorldStorage, kind: EntityKind, entity_id: uuid.UUID, user: AuthenticatedUser) -> Any:
    entity = storage.get_entity(kind, entity_id)
    if entity is None:
        raise EntityNotFoundError(kind_info(kind).display_name, entity_id)
    get_owned_project(storage, entity.project_id, user)
    return entity


def payload_changes(model, payload) -> dict[str, Any]:
    """Fields the client actually sent; nulls for NOT NULL columns are ignored."""
    columns = model.__table__.columns
    changes: dict[str, Any] = {}
    for field in payload.model_fields_set:
        value = getattr(payload, field)
        column = columns.get(field)
        if value is None and column is not None and not column.nullable:
            continue
        if isinstance(value, EntityKind):
            value = value.value
        changes[field] = value
    return changes
