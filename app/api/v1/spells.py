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
from app.api.v1.schemas import CharacterRead, SpellCreate, SpellRead, SpellUpdate
from app.db.models import Spell
from app.db.registry import EntityKind


router = APIRouter(tags=["spells"])


@router.get("/projects/{project_id}/spells", response_model=list[SpellRead])
def list_spells(project_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_project(storage, project_id, user)
    return storage.list_entities(EntityKind.SPELL, project_id)


@router.get("/spells/{spell_id}", response_model=SpellRead)
def get_spell(spell_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    return get_owned_entity(storage, EntityKind.SPELL, spell_id, user)


@router.post("/spells", response_model=SpellRead, status_code=201)
def create_spell(payload: SpellCreate, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    get_owned_project(storage, payload.project_id, user)
    return service.create(EntityKind.SPELL, payload.model_dump())


@router.patch("/spells/{spell_id}", response_model=SpellRead)
def update_spell(
    spell_id: uuid.UUID,
    payload: SpellUpdate,
    storage=StorageDep,
    user=CurrentUserDep,
    service=EntityServiceDep,
):
    spell = get_owned_entity(storage, EntityKind.SPELL, spell_id, user)
    return service.update(EntityKind.SPELL, spell, payload_changes(Spell, payload))


@router.delete("/spells/{spell_id}", status_code=204)
def delete_spell(spell_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    spell = get_owned_entity(storage, EntityKind.SPELL, spell_id, user)
    service.delete(EntityKind.SPELL, spell)
    return Response(status_code=204)


@router.get("/spells/{spell_id}/characters", response_model=list[CharacterRead])
def list_spell_characters(spell_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_entity(storage, EntityKind.SPELL, spell_id, user)
    return storage.list_spell_characters(spell_id)
