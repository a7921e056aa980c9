import uuid

from fastapi import APIRouter

from app.api.deps import CurrentUserDep, StorageDep, get_owned_entity
from app.api.v1.schemas import RenderedContent
from app.core.exceptions import ValidationFailedError
from app.db.registry import EntityKind, kind_info
from app.services import rich_text


router = APIRouter(tags=["content"])


@router.get("/content/{kind}/{entity_id}", response_model=RenderedContent)
def render_content(
    kind: EntityKind,
    entity_id: uuid.UUID,
    field: str | None = None,
    storage=StorageDep,
    user=CurrentUserDep,
):
    info = kind_info(kind)
    field = field or info.rich_text_fields[0]
    if field not in info.rich_text_fields:
        raise ValidationFailedError(f"{field} is not a rich-text field of {kind.value}")

    entity = get_owned_entity(storage, kind, entity_id, user)
    raw = getattr(entity, field)
    return RenderedContent(
        kind=kind,
        entity_id=entity_id,
        field=field,
        html=rich_text.render_html(raw),
        text=rich_text.plain_text(raw),
        preview=rich_text.preview(raw),
        image_urls=rich_text.image_urls(raw),
    )
