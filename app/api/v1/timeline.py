import uuid

from fastapi import APIRouter, Query

from app.api.deps import CurrentUserDep, StorageDep, get_owned_project
from app.api.v1.schemas import TimelineEventRead, TimelineGroupRead, TimelineRead
from app.db.registry import EntityKind
from app.services import rich_text
from app.services.timeline import build_layout, filter_events


router = APIRouter(tags=["timeline"])


@router.get("/projects/{project_id}/timeline", response_model=TimelineRead)
def project_timeline(
    project_id: uuid.UUID,
    viewport_width: int | None = Query(default=None, ge=0),
    events_per_row: int | None = Query(default=None, ge=1, le=12),
    container_width: int | None = Query(default=None, ge=200, le=10000),
    character_id: uuid.UUID | None = None,
    location_id: uuid.UUID | None = None,
    storage=StorageDep,
    user=CurrentUserDep,
):
    get_owned_project(storage, project_id, user)
    character_event_ids = storage.list_character_event_ids(character_id) if character_id else None
    events = filter_events(
        storage.list_entities(EntityKind.EVENT, project_id),
        character_event_ids=character_event_ids,
        location_id=location_id,
    )
    layout = build_layout(
        events,
        viewport_width=viewport_width,
        events_per_row=events_per_row,
        container_width=container_width,
    )

    groups = []
    for position in layout.positions:
        group = position.group
        groups.append(
            TimelineGroupRead(
                date_key=group.date_key,
                year=group.year,
                month=group.month,
                day=group.day,
                count=group.count,
                is_multiple=group.is_multiple,
                x=position.x,
                y=position.y,
                side=position.side,
                row=position.row,
                events=[
                    TimelineEventRead(
                        event_id=event.event_id,
                        title=event.title,
                        year=event.year,
                        month=event.month,
                        day=event.day,
                        type=event.type,
                        stage=event.stage,
                        location_id=event.location_id,
                        preview=rich_text.preview(event.description),
                    )
                    for event in group.events
                ],
            )
        )
    return TimelineRead(
        events_per_row=layout.events_per_row,
        container_width=layout.container_width,
        margin=layout.margin,
        usable_width=layout.usable_width,
        height=layout.height,
        path=layout.path,
        groups=groups,
    )
