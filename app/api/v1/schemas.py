import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from app.db.registry import EntityKind

# Range of the INTEGER columns on every supported database.
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None


class ProjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None


class ProjectRead(BaseModel):
    project_id: uuid.UUID
    user_id: str
    name: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CharacterCreate(BaseModel):
    project_id: uuid.UUID
    name: str = Field(min_length=1, max_length=255)
    prefix: str | None = Field(default=None, max_length=64)
    suffix: str | None = Field(default=None, max_length=64)
    role: str | None = Field(default=None, max_length=64)
    description: str | None = None
    appearance: str | None = None
    personality: str | None = None
    background: str | None = None
    goals: str | None = None
    power_type: str | None = Field(default=None, max_length=255)
    age: str | None = Field(default=None, max_length=64)
    race_id: uuid.UUID | None = None
    weapons: str | None = None
    equipment: str | None = None
    image_url: str | None = None
    status: str = Field(default="active", min_length=1, max_length=32)


class CharacterUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    prefix: str | None = Field(default=None, max_length=64)
    suffix: str | None = Field(default=None, max_length=64)
    role: str | None = Field(default=None, max_length=64)
    description: str | None = None
    appearance: str | None = None
    personality: str | None = None
    background: str | None = None
    goals: str | None = None
    power_type: str | None = Field(default=None, max_length=255)
    age: str | None = Field(default=None, max_length=64)
    race_id: uuid.UUID | None = None
    weapons: str | None = None
    equipment: str | None = None
    image_url: str | None = None
    status: str | None = Field(default=None, min_length=1, max_length=32)


class CharacterRead(BaseModel):
    character_id: uuid.UUID
    project_id: uuid.UUID
    name: str
    prefix: str | None = None
    suffix: str | None = None
    role: str | None = None
    description: str | None = None
    appearance: str | None = None
    personality: str | None = None
    background: str | None = None
    goals: str | None = None
    power_type: str | None = None
    age: str | None = None
    race_id: uuid.UUID | None = None
    weapons: str | None = None
    equipment: str | None = None
    image_url: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LocationCreate(BaseModel):
    project_id: uuid.UUID
    name: str = Field(min_length=1, max_length=255)
    type: str | None = Field(default=None, max_length=64)
    description: str | None = None
    geography: str | None = None
    culture: str | None = None
    politics: str | None = None
    parent_location_id: uuid.UUID | None = None


class LocationUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: str | None = Field(default=None, max_length=64)
    description: str | None = None
    geography: str | None = None
    culture: str | None = None
    politics: str | None = None
    parent_location_id: uuid.UUID | None = None


class LocationRead(BaseModel):
    location_id: uuid.UUID
    project_id: uuid.UUID
    name: str
    type: str | None = None
    description: str | None = None
    geography: str | None = None
    culture: str | None = None
    politics: str | None = None
    parent_location_id: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EventCreate(BaseModel):
    project_id: uuid.UUID
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    # Calendar-free: month and day are ordering keys only.
    year: int = Field(ge=INT32_MIN, le=INT32_MAX)
    month: int = Field(ge=INT32_MIN, le=INT32_MAX)
    day: int = Field(ge=INT32_MIN, le=INT32_MAX)
    type: str = Field(default="other", min_length=1, max_length=64)
    stage: str = Field(default="planning", min_length=1, max_length=64)
    location_id: uuid.UUID | None = None
    order: int = Field(default=0, ge=INT32_MIN, le=INT32_MAX)


class EventUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    year: int | None = Field(default=None, ge=INT32_MIN, le=INT32_MAX)
    month: int | None = Field(default=None, ge=INT32_MIN, le=INT32_MAX)
    day: int | None = Field(default=None, ge=INT32_MIN, le=INT32_MAX)
    type: str | None = Field(default=None, min_length=1, max_length=64)
    stage: str | None = Field(default=None, min_length=1, max_length=64)
    location_id: uuid.UUID | None = None
    order: int | None = Field(default=None, ge=INT32_MIN, le=INT32_MAX)


class EventRead(BaseModel):
    event_id: uuid.UUID
    project_id: uuid.UUID
    title: str
    description: str | None = None
    year: int
    month: int
    day: int
    type: str
    stage: str
    location_id: uuid.UUID | None = None
    order: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MagicSystemCreate(BaseModel):
    project_id: uuid.UUID
    name: str = Field(min_length=1, max_length=255)
    type: str = Field(default="magic", min_length=1, max_length=64)
    description: str | None = None
    rules: str | None = None
    limitations: str | None = None
    source: str | None = None
    complexity: str = Field(default="medium", min_length=1, max_length=32)
    users: str | None = None
    cost: str | None = None


class MagicSystemUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: str | None = Field(default=None, min_length=1, max_length=64)
    description: str | None = None
    rules: str | None = None
    limitations: str | None = None
    source: str | None = None
    complexity: str | None = Field(default=None, min_length=1, max_length=32)
    users: str | None = None
    cost: str | None = None


class MagicSystemRead(BaseModel):
    magic_system_id: uuid.UUID
    project_id: uuid.UUID
    name: str
    type: str
    description: str | None = None
    rules: str | None = None
    limitations: str | None = None
    source: str | None = None
    complexity: str
    users: str | None = None
    cost: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SpellCreate(BaseModel):
    project_id: uuid.UUID
    magic_system_id: uuid.UUID
    name: str = Field(min_length=1, max_length=255)
    level: str = Field(default="novice", min_length=1, max_length=32)
    description: str | None = None


class SpellUpdate(BaseModel):
    magic_system_id: uuid.UUID | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    level: str | None = Field(default=None, min_length=1, max_length=32)
    description: str | None = None


class SpellRead(BaseModel):
    spell_id: uuid.UUID
    project_id: uuid.UUID
    magic_system_id: uuid.UUID
    name: str
    level: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LoreCreate(BaseModel):
    project_id: uuid.UUID
    title: str = Field(min_length=1, max_length=255)
    content: str | None = None
    category: str | None = Field(default=None, max_length=64)
    importance: str = Field(default="medium", min_length=1, max_length=32)


class LoreUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = None
    category: str | None = Field(default=None, max_length=64)
    importance: str | None = Field(default=None, min_length=1, max_length=32)


class LoreRead(BaseModel):
    lore_id: uuid.UUID
    project_id: uuid.UUID
    title: str
    content: str | None = None
    category: str | None = None
    importance: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NoteCreate(BaseModel):
    project_id: uuid.UUID
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    category: str = Field(default="general", min_length=1, max_length=64)


class NoteUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = Field(default=None, min_length=1)
    category: str | None = Field(default=None, min_length=1, max_length=64)


class NoteRead(BaseModel):
    note_id: uuid.UUID
    project_id: uuid.UUID
    title: str
    content: str
    category: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RaceCreate(BaseModel):
    project_id: uuid.UUID
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    homeland_id: uuid.UUID | None = None
    lifespan: str | None = Field(default=None, max_length=255)
    size_category: str | None = Field(default=None, max_length=64)
    magical_affinity: str | None = Field(default=None, max_length=255)


class RaceUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    homeland_id: uuid.UUID | None = None
    lifespan: str | None = Field(default=None, max_length=255)
    size_category: str | None = Field(default=None, max_length=64)
    magical_affinity: str | None = Field(default=None, max_length=255)


class RaceRead(BaseModel):
    race_id: uuid.UUID
    project_id: uuid.UUID
    name: str
    description: str | None = None
    homeland_id: uuid.UUID | None = None
    lifespan: str | None = None
    size_category: str | None = None
    magical_affinity: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CharacterSpellCreate(BaseModel):
    spell_id: uuid.UUID
    proficiency: str = Field(default="novice", min_length=1, max_length=32)


class CharacterSpellRead(BaseModel):
    character_spell_id: uuid.UUID
    character_id: uuid.UUID
    spell_id: uuid.UUID
    proficiency: str
    spell: SpellRead


class EventCharacterCreate(BaseModel):
    character_id: uuid.UUID
    role: str | None = Field(default=None, max_length=64)


class EventCharacterRead(BaseModel):
    event_character_id: uuid.UUID
    event_id: uuid.UUID
    character_id: uuid.UUID
    role: str | None = None
    character: CharacterRead


class RelationshipCreate(BaseModel):
    project_id: uuid.UUID
    source_type: EntityKind
    source_id: uuid.UUID
    target_type: EntityKind
    target_id: uuid.UUID
    relationship_type: str = Field(min_length=1, max_length=64)
    strength: str = Field(default="medium", min_length=1, max_length=32)
    description: str | None = None


class RelationshipUpdate(BaseModel):
    source_type: EntityKind | None = None
    source_id: uuid.UUID | None = None
    target_type: EntityKind | None = None
    target_id: uuid.UUID | None = None
    relationship_type: str | None = Field(default=None, min_length=1, max_length=64)
    strength: str | None = Field(default=None, min_length=1, max_length=32)
    description: str | None = None


class RelationshipRead(BaseModel):
    relationship_id: uuid.UUID
    project_id: uuid.UUID
    source_type: str
    source_id: uuid.UUID
    target_type: str
    target_id: uuid.UUID
    relationship_type: str
    strength: str
    description: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ActivityRead(BaseModel):
    activity_id: uuid.UUID
    project_id: uuid.UUID
    entity_type: str
    entity_id: uuid.UUID
    entity_name: str
    action: str
    description: str
    metadata: dict = Field(default_factory=dict, validation_alias="metadata_")
    user_id: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True, "populate_by_name": True}


class ProjectStats(BaseModel):
    characters: int = 0
    locations: int = 0
    events: int = 0
    magic_systems: int = 0
    spells: int = 0
    lore_entries: int = 0
    notes: int = 0
    races: int = 0


class SearchHit(BaseModel):
    kind: EntityKind
    entity_id: uuid.UUID
    label: str
    preview: str = ""


class TimelineEventRead(BaseModel):
    event_id: uuid.UUID
    title: str
    year: int
    month: int
    day: int
    type: str
    stage: str
    location_id: uuid.UUID | None = None
    preview: str = ""


class TimelineGroupRead(BaseModel):
    date_key: str
    year: int
    month: int
    day: int
    count: int
    is_multiple: bool
    x: float
    y: float
    side: str
    row: int
    events: list[TimelineEventRead]


class TimelineRead(BaseModel):
    events_per_row: int
    container_width: int
    margin: float
    usable_width: float
    height: int
    path: str
    groups: list[TimelineGroupRead]


class RenderedContent(BaseModel):
    kind: EntityKind
    entity_id: uuid.UUID
    field: str
    html: str
    text: str
    preview: str
    image_urls: list[str] = Field(default_factory=list)


class UploadedFile(BaseModel):
    url: str


class UploadResponse(BaseModel):
    success: int = 1
    file: UploadedFile


class ImageUrlRequest(BaseModel):
    url: str | None = None


class ImageDeleteResponse(BaseModel):
    deleted: bool


class AccountDataDeleted(BaseModel):
    projects_deleted: int
