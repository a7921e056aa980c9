import uuid

from fastapi import APIRouter, Query

from app.api.deps import CurrentUserDep, StorageDep, get_owned_project
from app.api.v1.schemas import ActivityRead, ProjectStats, SearchHit
from app.core.exceptions import ValidationFailedError
from app.db.registry import entity_id, entity_label, kind_info
from app.services import rich_text
from app.storage.base import ACTIVITY_PAGE_SIZE


router = APIRouter(tags=["insights"])


@router.get("/projects/{project_id}/search", response_model=list[SearchHit])
def search_project(project_id: uuid.UUID, q: str | None = None, storage=StorageDep, user=CurrentUserDep):
    get_owned_project(storage, project_id, user)
    if q is None or not q.strip():
        raise ValidationFailedError("Search query is required")

    hits = []
    for kind, entity in storage.search(project_id, q):
        info = kind_info(kind)
        preview = ""
        if info.rich_text_fields:
            preview = rich_text.preview(getattr(entity, info.rich_text_fields[0], None))
        hits.append(
            SearchHit(kind=kind, entity_id=entity_id(kind, entity), label=entity_label(kind, entity), preview=preview)
        )
    return hits


@router.get("/projects/{project_id}/stats", response_model=ProjectStats)
def project_stats(project_id: uuid.UUID, storage=StorageDep, user=CurrentUserDep):
    get_owned_project(storage, project_id, user)
    return ProjectStats(**storage.project_stats(project_id))


@router.get("/projects/{project_id}/activities", response_model=list[ActivityRead])
def list_activities(
    project_id: uuid.UUID,
    limit: int = Query(default=ACTIVITY_PAGE_SIZE, ge=1, le=ACTIVITY_PAGE_SIZE),
    storage=StorageDep,
    user=CurrentUserDep,
):
    get_owned_project(storage, project_id, user)
    return storage.list_activities(project_id, limit=limit)
