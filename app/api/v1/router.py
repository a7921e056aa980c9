from fastapi import APIRouter

from app.api.v1 import (
    account,
    characters,
    content,
    events,
    insights,
    locations,
    lore,
    magic_systems,
    notes,
    projects,
    races,
    relationships,
    spells,
    timeline,
    uploads,
)


api_router = APIRouter(prefix="/api")

api_router.include_router(projects.router)
api_router.include_router(characters.router)
api_router.include_router(locations.router)
api_router.include_router(events.router)
api_router.include_router(magic_systems.router)
api_router.include_router(spells.router)
api_router.include_router(lore.router)
api_router.include_router(notes.router)
api_router.include_router(races.router)
api_router.include_router(relationships.router)
api_router.include_router(insights.router)
api_router.include_router(timeline.router)
api_router.include_router(content.router)
api_router.include_router(uploads.router)
api_router.include_router(account.router)
