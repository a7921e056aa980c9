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
from app.api.v1.schemas import CharacterRead, RaceCreate, RaceRead, RaceUpdate
from app.db.models import Race
from app.db.registry import EntityKind


router = APIRouter(tags=["races"])


@router.get("/projects/{project_id}/races", response_model=list[RaceRead])
def list_races(project_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_project(storage, project_id, user)
    return storage.list_entities(EntityKind.RACE, project_id)


@router.get("/races/{race_id}", response_model=RaceRead)
def get_race(race_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    return get_owned_entity(storage, EntityKind.RACE, race_id, user)


@router.post("/races", response_model=RaceRead, status_code=201)
def create_race(payload: RaceCreate, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    get_owned_project(storage, payload.project_id, user)
    return service.create(EntityKind.RACE, payload.model_dump())


@router.patch("/races/{race_id}", response_model=RaceRead)
def update_race(
    race_id: uuid.UUID,
    payload: RaceUpdate,
    storage=StorageDep,
    user=CurrentUserDep,
    service=EntityServiceDep,
):
    race = get_owned_entity(storage, EntityKind.RACE, race_id, user)
    return service.update(EntityKind.RACE, race, payload_changes(Race, payload))


@router.delete("/races/{race_id}", status_code=204)
def delete_race(race_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    race = get_owned_entity(storage, EntityKind.RACE, race_id, user)
    service.delete(EntityKind.RACE, race)
    return Response(status_code=204)


@router.get("/races/{race_id}/characters", response_model=list[CharacterRead])
def list_race_characters(race_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_entity(storage, EntityKind.RACE, race_id, user)
    return storage.list_race_characters(race_id)
