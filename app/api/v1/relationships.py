import uuid

from fastapi import APIRouter, Response

from app.api.deps import CurrentUserDep, EntityServiceDep, StorageDep, get_owned_project, payload_changes
from app.api.v1.schemas import RelationshipCreate, RelationshipRead, RelationshipUpdate
from app.core.exceptions import EntityNotFoundError, ValidationFailedError
from app.db.models import Relationship
from app.db.registry import EntityKind


router = APIRouter(tags=["relationships"])


def get_owned_relationship(storage, relationship_id: uuid.UUID, user) -> Relationship:
    relationship = storage.get_relationship(relationship_id)
    if relationship is None:
        raise EntityNotFoundError("Relationship", relationship_id)
    get_owned_project(storage, relationship.project_id, user)
    return relationship


@router.get("/projects/{project_id}/relationships", response_model=list[RelationshipRead])
def list_relationships(
    project_id: uuid.UUID,
    element_type: EntityKind | None = None,
    element_id: uuid.UUID | None = None,
    storage=StorageDep,
    user=CurrentUserDep,
):
    get_owned_project(storage, project_id, user)
    if (element_type is None) != (element_id is None):
        raise ValidationFailedError("element_type and element_id must be given together")
    return storage.list_relationships(project_id, element_type=element_type, element_id=element_id)


@router.get("/relationships/{relationship_id}", response_model=RelationshipRead)
def get_relationship(relationship_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    return get_owned_relationship(storage, relationship_id, user)


@router.post("/relationships", response_model=RelationshipRead, status_code=201)
def create_relationship(payload: RelationshipCreate, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    get_owned_project(storage, payload.project_id, user)
    values = payload.model_dump()
    values["source_type"] = payload.source_type.value
    values["target_type"] = payload.target_type.value
    return service.create_relationship(values)


@router.patch("/relationships/{relationship_id}", response_model=RelationshipRead)
def update_relationship(
    relationship_id: uuid.UUID,
    payload: RelationshipUpdate,
    storage=StorageDep,
    user=CurrentUserDep,
    service=EntityServiceDep,
):
    relationship = get_owned_relationship(storage, relationship_id, user)
    return service.update_relationship(relationship, payload_changes(Relationship, payload))


@router.delete("/relationships/{relationship_id}", status_code=204)
def delete_relationship(relationship_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    relationship = get_owned_relationship(storage, relationship_id, user)
    service.delete_relationship(relationship)
    return Response(status_code=204)
