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
from app.api.v1.schemas import LocationCreate, LocationRead, LocationUpdate
from app.db.models import Location
from app.db.registry import EntityKind


router = APIRouter(tags=["locations"])


@router.get("/projects/{project_id}/locations", response_model=list[LocationRead])
def list_locations(project_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_project(storage, project_id, user)
    return storage.list_entities(EntityKind.LOCATION, project_id)


@router.get("/locations/{location_id}", response_model=LocationRead)
def get_location(location_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    return get_owned_entity(storage, EntityKind.LOCATION, location_id, user)


@router.post("/locations", response_model=LocationRead, status_code=201)
def create_location(payload: LocationCreate, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    get_owned_project(storage, payload.project_id, user)
    return service.create(EntityKind.LOCATION, payload.model_dump())


@router.patch("/locations/{location_id}", response_model=LocationRead)
def update_location(
    location_id: uuid.UUID,
    payload: LocationUpdate,
    storage=StorageDep,
    user=CurrentUserDep,
    service=EntityServiceDep,
):
    location = get_owned_entity(storage, EntityKind.LOCATION, location_id, user)
    return service.update(EntityKind.LOCATION, location, payload_changes(Location, payload))


@router.delete("/locations/{location_id}", status_code=204)
def delete_location(location_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    location = get_owned_entity(storage, EntityKind.LOCATION, location_id, user)
    service.delete(EntityKind.LOCATION, location)
    return Response(status_code=204)
