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
    CharacterRead,
    EventCharacterCreate,
    EventCharacterRead,
    EventCreate,
    EventRead,
    EventUpdate,
)
from app.core.exceptions import EntityNotFoundError, ValidationFailedError
from app.db.models import Event
from app.db.registry import EntityKind


router = APIRouter(tags=["events"])


def _event_character_read(link, character) -> EventCharacterRead:
    return EventCharacterRead(
        event_character_id=link.event_character_id,
        event_id=link.event_id,
        character_id=link.character_id,
        role=link.role,
        character=CharacterRead.model_validate(character),
    )


@router.get("/projects/{project_id}/events", response_model=list[EventRead])
def list_events(project_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_project(storage, project_id, user)
    return storage.list_entities(EntityKind.EVENT, project_id)


@router.get("/events/{event_id}", response_model=EventRead)
def get_event(event_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    return get_owned_entity(storage, EntityKind.EVENT, event_id, user)


@router.post("/events", response_model=EventRead, status_code=201)
def create_event(payload: EventCreate, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    get_owned_project(storage, payload.project_id, user)
    return service.create(EntityKind.EVENT, payload.model_dump())


@router.patch("/events/{event_id}", response_model=EventRead)
def update_event(
    event_id: uuid.UUID,
    payload: EventUpdate,
    storage=StorageDep,
    user=CurrentUserDep,
    service=EntityServiceDep,
):
    event = get_owned_entity(storage, EntityKind.EVENT, event_id, user)
    return service.update(EntityKind.EVENT, event, payload_changes(Event, payload))


@router.delete("/events/{event_id}", status_code=204)
def delete_event(event_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    event = get_owned_entity(storage, EntityKind.EVENT, event_id, user)
    service.delete(EntityKind.EVENT, event)
    return Response(status_code=204)


@router.get("/events/{event_id}/characters", response_model=list[EventCharacterRead])
def list_event_characters(event_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_entity(storage, EntityKind.EVENT, event_id, user)
    return [_event_character_read(link, character) for link, character in storage.list_event_characters(event_id)]


@router.post("/events/{event_id}/characters", response_model=EventCharacterRead, status_code=201)
def add_event_character(
    event_id: uuid.UUID,
    payload: EventCharacterCreate,
    storage=StorageDep,
    user=CurrentUserDep,
):
    event = get_owned_entity(storage, EntityKind.EVENT, event_id, user)
    character = storage.find_entity_in_project(EntityKind.CHARACTER, payload.character_id, event.project_id)
    if character is None:
        raise ValidationFailedError("Invalid event character data: character not found in this project")
    link = storage.add_event_character(event_id, payload.character_id, payload.role)
    return _event_character_read(link, character)


@router.delete("/events/{event_id}/characters/{character_id}", status_code=204)
def remove_event_character(event_id: uuid.UUID, character_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_entity(storage, EntityKind.EVENT, event_id, user)
    if not storage.remove_event_character(event_id, character_id):
        raise EntityNotFoundError("Event character", character_id)
    return Response(status_code=204)
