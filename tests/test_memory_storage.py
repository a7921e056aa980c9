import pytest

from app.db.models import Character, CharacterSpell, EventCharacter, Relationship
from app.db.registry import EntityKind
from app.storage.fixtures import seed_demo_world
from app.storage.memory import MemoryStorage, build_row


@pytest.fixture()
def storage():
    return MemoryStorage()


@pytest.fixture()
def demo(storage):
    return seed_demo_world(storage, owner_id="alice")


def test_build_row_applies_column_defaults():
    row = build_row(Character, {"name": "Aria"})
    assert row.character_id is not None
    assert row.status == "active"
    assert row.created_at is not None
    assert row.race_id is None


def test_demo_world_contents(storage, demo):
    stats = storage.project_stats(demo.project_id)
    assert stats == {
        "characters": 3,
        "locations": 3,
        "events": 8,
        "magic_systems": 1,
        "spells": 2,
        "lore_entries": 1,
        "notes": 1,
        "races": 2,
    }
    titles = [e.title for e in storage.list_entities(EntityKind.EVENT, demo.project_id)]
    assert titles[0] == "Meeting the Mentor"
    assert titles[-1] == "The Final Confrontation"


def test_magic_system_aggregates(storage, demo):
    (system,) = storage.list_entities(EntityKind.MAGIC_SYSTEM, demo.project_id)
    assert [s.name for s in storage.list_magic_system_spells(system.magic_system_id)] == ["Lightning Lance", "Windstep"]
    users = storage.list_magic_system_characters(system.magic_system_id)
    assert [c.name for c in users] == ["Aria Stormwind", "Master Theron"]


def test_race_characters(storage, demo):
    races = {r.name: r for r in storage.list_entities(EntityKind.RACE, demo.project_id)}
    humans = storage.list_race_characters(races["Human"].race_id)
    assert [c.name for c in humans] == ["Aria Stormwind", "Lord Malachar"]


def test_search_is_case_insensitive(storage, demo):
    hits = storage.search(demo.project_id, "STORM")
    assert {(kind, getattr(entity, "name", None)) for kind, entity in hits} == {
        (EntityKind.CHARACTER, "Aria Stormwind"),
        (EntityKind.MAGIC_SYSTEM, "Stormweaving"),
    }
    assert storage.search(demo.project_id, "   ") == []


def test_character_delete_cascades(storage, demo):
    characters = {c.name: c for c in storage.list_entities(EntityKind.CHARACTER, demo.project_id)}
    aria_id = characters["Aria Stormwind"].character_id

    assert storage.delete_entity(EntityKind.CHARACTER, aria_id) is True
    assert storage.get_entity(EntityKind.CHARACTER, aria_id) is None
    assert not storage._where(CharacterSpell, lambda l: l.character_id == aria_id)
    assert not storage._where(EventCharacter, lambda l: l.character_id == aria_id)
    assert not storage._where(Relationship, lambda r: aria_id in (r.source_id, r.target_id))
    assert storage.delete_entity(EntityKind.CHARACTER, aria_id) is False


def test_project_delete_leaves_nothing_behind(storage, demo):
    other = seed_demo_world(storage, owner_id="bob")

    assert storage.delete_project(demo.project_id) is True
    assert storage.get_project(demo.project_id) is None
    for model, rows in storage._rows.items():
        if hasattr(model, "project_id"):
            assert all(row.project_id != demo.project_id for row in rows.values()), model.__tablename__
    # Junction rows of the surviving world are untouched.
    assert len(storage._rows[CharacterSpell]) == 3
    assert storage.project_stats(other.project_id)["events"] == 8


def test_delete_user_data(storage, demo):
    seed_demo_world(storage, owner_id="alice")
    seed_demo_world(storage, owner_id="bob")

    assert storage.delete_user_data("alice") == 2
    assert storage.list_projects("alice") == []
    assert len(storage.list_projects("bob")) == 1


@pytest.mark.anyio
async def test_api_serves_the_seeded_world(memory_backend, client, alice, bob):
    projects = (await client.get("/api/projects", headers=alice)).json()
    assert [p["name"] for p in projects] == ["The Chronicles of Aethermoor"]
    project_id = projects[0]["project_id"]

    timeline = (await client.get(f"/api/projects/{project_id}/timeline", headers=alice)).json()
    festival = next(g for g in timeline["groups"] if g["date_key"] == "2-6-15")
    assert festival["count"] == 3

    assert (await client.get(f"/api/projects/{project_id}", headers=bob)).status_code == 403

    character = (
        await client.post("/api/characters", json={"project_id": project_id, "name": "Kestrel"}, headers=alice)
    ).json()
    activities = (await client.get(f"/api/projects/{project_id}/activities", headers=alice)).json()
    assert activities[0]["entity_id"] == character["character_id"]

    assert (await client.delete(f"/api/projects/{project_id}", headers=alice)).status_code == 204
    assert (await client.get("/api/projects", headers=alice)).json() == []
