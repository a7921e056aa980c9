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
from app.api.v1.schemas import LoreCreate, LoreRead, LoreUpdate
from app.db.models import LoreEntry
from app.db.registry import EntityKind


router = APIRouter(tags=["lore"])


@router.get("/projects/{project_id}/lore", response_model=list[LoreRead])
def list_lore(project_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_project(storage, project_id, user)
    return storage.list_entities(EntityKind.LORE, project_id)


@router.get("/lore/{lore_id}", response_model=LoreRead)
def get_lore(lore_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    return get_owned_entity(storage, EntityKind.LORE, lore_id, user)


@router.post("/lore", response_model=LoreRead, status_code=201)
def create_lore(payload: LoreCreate, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    get_owned_project(storage, payload.project_id, user)
    return service.create(EntityKind.LORE, payload.model_dump())


@router.patch("/lore/{lore_id}", response_model=LoreRead)
def update_lore(
    lore_id: uuid.UUID,
    payload: LoreUpdate,
    storage=StorageDep,
    user=CurrentUserDep,
    service=EntityServiceDep,
):
    entry = get_owned_entity(storage, EntityKind.LORE, lore_id, user)
    return service.update(EntityKind.LORE, entry, payload_changes(LoreEntry, payload))


@router.delete("/lore/{lore_id}", status_code=204)
def delete_lore(lore_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    entry = get_owned_entity(storage, EntityKind.LORE, lore_id, user)
    service.delete(EntityKind.LORE, entry)
    return Response(status_code=204)
