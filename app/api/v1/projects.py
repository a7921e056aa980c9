import uuid

from fastapi import APIRouter, Response

from app.api.deps import CurrentUserDep, EntityServiceDep, StorageDep, get_owned_project
from app.api.v1.schemas import ProjectCreate, ProjectRead, ProjectUpdate


router = APIRouter(tags=["projects"])


@router.get("/projects", response_model=list[ProjectRead])
def list_projects(storage=StorageDep, user=CurrentUserDep):
    return storage.list_projects(user.user_id)


@router.post("/projects", response_model=ProjectRead, status_code=201)
def create_project(payload: ProjectCreate, service=EntityServiceDep):
    return service.create_project(payload.model_dump())


@router.get("/projects/{project_id}", response_model=ProjectRead)
def get_project(project_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    return get_owned_project(storage, project_id, user)


@router.patch("/projects/{project_id}", response_model=ProjectRead)
def update_project(
    project_id: uuid.UUID,
    payload: ProjectUpdate,
    storage=StorageDep,
    user=CurrentUserDep,
    service=EntityServiceDep,
):
    project = get_owned_project(storage, project_id, user)
    changes = {}
    if "name" in payload.model_fields_set and payload.name is not None:
        changes["name"] = payload.name
    if "description" in payload.model_fields_set:
        changes["description"] = payload.description
    return service.update_project(project, changes)


@router.delete("/projects/{project_id}", status_code=204)
def delete_project(project_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    project = get_owned_project(storage, project_id, user)
    service.delete_project(project)
    return Response(status_code=204)
