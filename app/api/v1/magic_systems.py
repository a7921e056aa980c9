import uuid

from fastapi import APIRouter, Response

from app.api.deps import (
    CurrentUserDep,
    EntityServiceDep,
    StorageDep,
    get_owned_entity,
    get_owned_project,
    payload_changes,
)
from app.api.v1.schemas import CharacterRead, MagicSystemCreate, MagicSystemRead, MagicSystemUpdate, SpellRead
from app.db.models import MagicSystem
from app.db.registry import EntityKind


router = APIRouter(tags=["magic-systems"])


@router.get("/projects/{project_id}/magic-systems", response_model=list[MagicSystemRead])
def list_magic_systems(project_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_project(storage, project_id, user)
    return storage.list_entities(EntityKind.MAGIC_SYSTEM, project_id)


@router.get("/magic-systems/{magic_system_id}", response_model=MagicSystemRead)
def get_magic_system(magic_system_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    return get_owned_entity(storage, EntityKind.MAGIC_SYSTEM, magic_system_id, user)


@router.post("/magic-systems", response_model=MagicSystemRead, status_code=201)
def create_magic_system(payload: MagicSystemCreate, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    get_owned_project(storage, payload.project_id, user)
    return service.create(EntityKind.MAGIC_SYSTEM, payload.model_dump())


@router.patch("/magic-systems/{magic_system_id}", response_model=MagicSystemRead)
def update_magic_system(
    magic_system_id: uuid.UUID,
    payload: MagicSystemUpdate,
    storage=StorageDep,
    user=CurrentUserDep,
    service=EntityServiceDep,
):
    magic_system = get_owned_entity(storage, EntityKind.MAGIC_SYSTEM, magic_system_id, user)
    return service.update(EntityKind.MAGIC_SYSTEM, magic_system, payload_changes(MagicSystem, payload))


@router.delete("/magic-systems/{magic_system_id}", status_code=204)
def delete_magic_system(magic_system_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    magic_system = get_owned_entity(storage, EntityKind.MAGIC_SYSTEM, magic_system_id, user)
    service.delete(EntityKind.MAGIC_SYSTEM, magic_system)
    return Response(status_code=204)


@router.get("/magic-systems/{magic_system_id}/spells", response_model=list[SpellRead])
def list_magic_system_spells(magic_system_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_entity(storage, EntityKind.MAGIC_SYSTEM, magic_system_id, user)
    return storage.list_magic_system_spells(magic_system_id)


@router.get("/magic-systems/{magic_system_id}/characters", response_model=list[CharacterRead])
def list_magic_system_characters(magic_system_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_entity(storage, EntityKind.MAGIC_SYSTEM, magic_system_id, user)
    return storage.list_magic_system_characters(magic_system_id)
