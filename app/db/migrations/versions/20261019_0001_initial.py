"""initial world schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True) -> list[sa.Column]:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False))
    return columns


def _project_fk() -> sa.Column:
    return sa.Column("project_id", sa.Uuid(as_uuid=True), sa.ForeignKey("projects.project_id"), nullable=False)


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("project_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_projects_user_id", "projects", ["user_id"])

    op.create_table(
        "locations",
        sa.Column("location_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("geography", sa.Text(), nullable=True),
        sa.Column("culture", sa.Text(), nullable=True),
        sa.Column("politics", sa.Text(), nullable=True),
        sa.Column("parent_location_id", sa.Uuid(as_uuid=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "races",
        sa.Column("race_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("homeland_id", sa.Uuid(as_uuid=True), sa.ForeignKey("locations.location_id"), nullable=True),
        sa.Column("lifespan", sa.String(length=255), nullable=True),
        sa.Column("size_category", sa.String(length=64), nullable=True),
        sa.Column("magical_affinity", sa.String(length=255), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "characters",
        sa.Column("character_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("prefix", sa.String(length=64), nullable=True),
        sa.Column("suffix", sa.String(length=64), nullable=True),
        sa.Column("role", sa.String(length=64), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("appearance", sa.Text(), nullable=True),
        sa.Column("personality", sa.Text(), nullable=True),
        sa.Column("background", sa.Text(), nullable=True),
        sa.Column("goals", sa.Text(), nullable=True),
        sa.Column("power_type", sa.String(length=255), nullable=True),
        sa.Column("age", sa.String(length=64), nullable=True),
        sa.Column("race_id", sa.Uuid(as_uuid=True), sa.ForeignKey("races.race_id"), nullable=True),
        sa.Column("weapons", sa.Text(), nullable=True),
        sa.Column("equipment", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "events",
        sa.Column("event_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("day", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("stage", sa.String(length=64), nullable=False),
        sa.Column("location_id", sa.Uuid(as_uuid=True), sa.ForeignKey("locations.location_id"), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "magic_systems",
        sa.Column("magic_system_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("rules", sa.Text(), nullable=True),
        sa.Column("limitations", sa.Text(), nullable=True),
        sa.Column("source", sa.Text(), nullable=True),
        sa.Column("complexity", sa.String(length=32), nullable=False),
        sa.Column("users", sa.Text(), nullable=True),
        sa.Column("cost", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "spells",
        sa.Column("spell_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column(
            "magic_system_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("magic_systems.magic_system_id"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("level", sa.String(length=32), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_spells_magic_system_id", "spells", ["magic_system_id"])

    op.create_table(
        "lore_entries",
        sa.Column("lore_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("importance", sa.String(length=32), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "notes",
        sa.Column("note_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=False),
        *_timestamps(),
    )

    for table in (
        "locations",
        "races",
        "characters",
        "events",
        "magic_systems",
        "spells",
        "lore_entries",
        "notes",
    ):
        op.create_index(f"ix_{table}_project_id", table, ["project_id"])

    op.create_table(
        "character_spells",
        sa.Column("character_spell_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "character_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("characters.character_id"),
            nullable=False,
        ),
        sa.Column("spell_id", sa.Uuid(as_uuid=True), sa.ForeignKey("spells.spell_id"), nullable=False),
        sa.Column("proficiency", sa.String(length=32), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_character_spells_character_id", "character_spells", ["character_id"])
    op.create_index("ix_character_spells_spell_id", "character_spells", ["spell_id"])

    op.create_table(
        "event_characters",
        sa.Column("event_character_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("event_id", sa.Uuid(as_uuid=True), sa.ForeignKey("events.event_id"), nullable=False),
        sa.Column(
            "character_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("characters.character_id"),
            nullable=False,
        ),
        sa.Column("role", sa.String(length=64), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_event_characters_event_id", "event_characters", ["event_id"])
    op.create_index("ix_event_characters_character_id", "event_characters", ["character_id"])

    op.create_table(
        "relationships",
        sa.Column("relationship_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("source_type", sa.String(length=32), nullable=False),
        sa.Column("source_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("target_type", sa.String(length=32), nullable=False),
        sa.Column("target_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("relationship_type", sa.String(length=64), nullable=False),
        sa.Column("strength", sa.String(length=32), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_relationships_project_id", "relationships", ["project_id"])
    op.create_index("ix_relationships_source_id", "relationships", ["source_id"])
    op.create_index("ix_relationships_target_id", "relationships", ["target_id"])

    op.create_table(
        "activities",
        sa.Column("activity_id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        _project_fk(),
        sa.Column("entity_type", sa.String(length=32), nullable=False),
        sa.Column("entity_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("entity_name", sa.String(length=255), nullable=False),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=True),
        sa.Column("request_id", sa.String(length=64), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_activities_project_id", "activities", ["project_id"])


def downgrade() -> None:
    for table in (
        "activities",
        "relationships",
        "event_characters",
        "character_spells",
        "notes",
        "lore_entries",
        "spells",
        "magic_systems",
        "events",
        "characters",
        "races",
        "locations",
        "projects",
    ):
        op.drop_table(table)
