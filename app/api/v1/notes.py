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
from app.api.v1.schemas import NoteCreate, NoteRead, NoteUpdate
from app.db.models import Note
from app.db.registry import EntityKind


router = APIRouter(tags=["notes"])


@router.get("/projects/{project_id}/notes", response_model=list[NoteRead])
def list_notes(project_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_project(storage, project_id, user)
    return storage.list_entities(EntityKind.NOTE, project_id)


@router.get("/notes/{note_id}", response_model=NoteRead)
def get_note(note_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    return get_owned_entity(storage, EntityKind.NOTE, note_id, user)


@router.post("/notes", response_model=NoteRead, status_code=201)
def create_note(payload: NoteCreate, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    get_owned_project(storage, payload.project_id, user)
    return service.create(EntityKind.NOTE, payload.model_dump())


@router.patch("/notes/{note_id}", response_model=NoteRead)
def update_note(
    note_id: uuid.UUID,
    payload: NoteUpdate,
    storage=StorageDep,
    user=CurrentUserDep,
    service=EntityServiceDep,
):
    note = get_owned_entity(storage, EntityKind.NOTE, note_id, user)
    return service.update(EntityKind.NOTE, note, payload_changes(Note, payload))


@router.delete("/notes/{note_id}", status_code=204)
def delete_note(note_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep, service=EntityServiceDep):
    note = get_owned_entity(storage, EntityKind.NOTE, note_id, user)
    service.delete(EntityKind.NOTE, note)
    return Response(status_code=204)
