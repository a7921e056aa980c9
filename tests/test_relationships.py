import uuid

import pytest


@pytest.fixture()
async def world(client, alice):
    project_id = (await client.post("/api/projects", json={"name": "w"}, headers=alice)).json()["project_id"]

    async def make(path, body):
        return (await client.post(path, json={"project_id": project_id, **body}, headers=alice)).json()

    return {
        "project_id": project_id,
        "aria": await make("/api/characters", {"name": "Aria"}),
        "theron": await make("/api/characters", {"name": "Theron"}),
        "grove": await make("/api/locations", {"name": "Grove"}),
    }


def _edge(world, source, target, **extra):
    source_type, source_id = source
    target_type, target_id = target
    return {
        "project_id": world["project_id"],
        "source_type": source_type,
        "source_id": source_id,
        "target_type": target_type,
        "target_id": target_id,
        "relationship_type": "ally",
        **extra,
    }


@pytest.mark.anyio
async def test_relationship_crud(client, alice, world):
    aria = ("character", world["aria"]["character_id"])
    theron = ("character", world["theron"]["character_id"])

    resp = await client.post("/api/relationships", json=_edge(world, theron, aria), headers=alice)
    assert resp.status_code == 201
    relationship = resp.json()
    assert relationship["strength"] == "medium"

    resp = await client.patch(
        f"/api/relationships/{relationship['relationship_id']}",
        json={"strength": "strong", "description": "sworn"},
        headers=alice,
    )
    assert resp.status_code == 200
    assert resp.json()["strength"] == "strong"
    assert resp.json()["relationship_type"] == "ally"

    resp = await client.get(f"/api/relationships/{relationship['relationship_id']}", headers=alice)
    assert resp.json()["description"] == "sworn"

    assert (await client.delete(f"/api/relationships/{relationship['relationship_id']}", headers=alice)).status_code == 204
    assert (await client.get(f"/api/relationships/{relationship['relationship_id']}", headers=alice)).status_code == 404


@pytest.mark.anyio
async def test_list_filter_matches_either_side(client, alice, world):
    aria = ("character", world["aria"]["character_id"])
    theron = ("character", world["theron"]["character_id"])
    grove = ("location", world["grove"]["location_id"])

    for source, target in ((theron, aria), (aria, grove), (theron, grove)):
        await client.post("/api/relationships", json=_edge(world, source, target), headers=alice)

    resp = await client.get(
        f"/api/projects/{world['project_id']}/relationships",
        params={"element_type": "character", "element_id": aria[1]},
        headers=alice,
    )
    assert resp.status_code == 200
    assert len(resp.json()) == 2

    everything = (await client.get(f"/api/projects/{world['project_id']}/relationships", headers=alice)).json()
    assert len(everything) == 3

    resp = await client.get(
        f"/api/projects/{world['project_id']}/relationships",
        params={"element_type": "character"},
        headers=alice,
    )
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_endpoints_must_exist_in_the_project(client, alice, world):
    aria = ("character", world["aria"]["character_id"])

    resp = await client.post(
        "/api/relationships", json=_edge(world, aria, ("location", str(uuid.uuid4()))), headers=alice
    )
    assert resp.status_code == 400

    # An existing ID declared with the wrong kind does not resolve either.
    resp = await client.post(
        "/api/relationships", json=_edge(world, aria, ("race", world["grove"]["location_id"])), headers=alice
    )
    assert resp.status_code == 400

    resp = await client.post("/api/relationships", json=_edge(world, aria, ("planet", aria[1])), headers=alice)
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_deleting_lore_removes_its_relationships(client, alice, world):
    lore = (
        await client.post(
            "/api/lore", json={"project_id": world["project_id"], "title": "Prophecy"}, headers=alice
        )
    ).json()
    await client.post(
        "/api/relationships",
        json=_edge(world, ("lore", lore["lore_id"]), ("character", world["aria"]["character_id"])),
        headers=alice,
    )

    assert (await client.delete(f"/api/lore/{lore['lore_id']}", headers=alice)).status_code == 204
    assert (await client.get(f"/api/projects/{world['project_id']}/relationships", headers=alice)).json() == []
