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
from app.api.v1.schemas import (
    CharacterCreate,
    CharacterRead,
    CharacterSpellCreate,
    CharacterSpellRead,
    CharacterUpdate,
    EventRead,
    SpellRead,
)
from app.core.exceptions import EntityNotFoundError, ValidationFailedError
from app.db.models import Character
from app.db.registry import EntityKind


router = APIRouter(tags=["characters"])


def _character_spell_read(link, spell) -> CharacterSpellRead:
    return CharacterSpellRead(
        character_spell_id=link.character_spell_id,
        character_id=link.character_id,
        spell_id=link.spell_id,
        proficiency=link.proficiency,
        spell=SpellRead.model_validate(spell),
    )


@router.get("/projects/{project_id}/characters", response_model=list[CharacterRead])
def list_characters(project_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_project(storage, project_id, user)
    return storage.list_entities(EntityKind.CHARACTER, project_id)


@router.get("/characters/{character_id}", response_model=CharacterRead)
def get_character(character_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    return get_owned_entity(storage, EntityKind.CHARACTER, character_id, user)


@router.post("/characters", response_model=CharacterRead, status_code=201)
def create_character(payload: CharacterCreate, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    get_owned_project(storage, payload.project_id, user)
    return service.create(EntityKind.CHARACTER, payload.model_dump())


@router.patch("/characters/{character_id}", response_model=CharacterRead)
def update_character(
    character_id: uuid.UUID,
    payload: CharacterUpdate,
    storage=StorageDep,
    user=CurrentUserDep,
    service=EntityServiceDep,
):
    character = get_owned_entity(storage, EntityKind.CHARACTER, character_id, user)
    return service.update(EntityKind.CHARACTER, character, payload_changes(Character, payload))


@router.delete("/characters/{character_id}", status_code=204)
def delete_character(character_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    character = get_owned_entity(storage, EntityKind.CHARACTER, character_id, user)
    service.delete(EntityKind.CHARACTER, character)
    return Response(status_code=204)


@router.get("/characters/{character_id}/spells", response_model=list[CharacterSpellRead])
def list_character_spells(character_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_entity(storage, EntityKind.CHARACTER, character_id, user)
    return [_character_spell_read(link, spell) for link, spell in storage.list_character_spells(character_id)]


@router.post("/characters/{character_id}/spells", response_model=CharacterSpellRead, status_code=201)
def add_character_spell(
    character_id: uuid.UUID,
    payload: CharacterSpellCreate,
    storage=StorageDep,
    user=CurrentUserDep,
):
    character = get_owned_entity(storage, EntityKind.CHARACTER, character_id, user)
    spell = storage.find_entity_in_project(EntityKind.SPELL, payload.spell_id, character.project_id)
    if spell is None:
        raise ValidationFailedError("Invalid character spell data: spell not found in this project")
    link = storage.add_character_spell(character_id, payload.spell_id, payload.proficiency)
    return _character_spell_read(link, spell)


@router.delete("/characters/{character_id}/spells/{spell_id}", status_code=204)
def remove_character_spell(character_id: uuid.UUID, spell_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_entity(storage, EntityKind.CHARACTER, character_id, user)
    if not storage.remove_character_spell(character_id, spell_id):
        raise EntityNotFoundError("Character spell", spell_id)
    return Response(status_code=204)


@router.get("/characters/{character_id}/events", response_model=list[EventRead])
def list_character_events(character_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    character = get_owned_entity(storage, EntityKind.CHARACTER, character_id, user)
    event_ids = storage.list_character_event_ids(character_id)
    return [e for e in storage.list_entities(EntityKind.EVENT, character.project_id) if e.event_id in event_ids]
