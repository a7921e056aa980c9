import json

import pytest


def _blocks(*paragraphs):
    return json.dumps(
        {"blocks": [{"type": "paragraph", "data": {"text": text}} for text in paragraphs], "version": "2.28.2"}
    )


@pytest.fixture()
async def project_id(client, alice):
    return (await client.post("/api/projects", json={"name": "search me"}, headers=alice)).json()["project_id"]


@pytest.mark.anyio
async def test_search_matches_names_and_rich_text(client, alice, project_id):
    await client.post(
        "/api/characters",
        json={"project_id": project_id, "name": "Aria Stormwind", "description": _blocks("A young mage")},
        headers=alice,
    )
    await client.post(
        "/api/lore",
        json={"project_id": project_id, "title": "The Sundering", "content": _blocks("Storms split the realm")},
        headers=alice,
    )
    await client.post(
        "/api/notes",
        json={"project_id": project_id, "title": "Pacing", "content": "keep chapters tight"},
        headers=alice,
    )

    hits = (await client.get(f"/api/projects/{project_id}/search", params={"q": "STORM"}, headers=alice)).json()
    assert sorted((h["kind"], h["label"]) for h in hits) == [("character", "Aria Stormwind"), ("lore", "The Sundering")]
    lore_hit = next(h for h in hits if h["kind"] == "lore")
    assert lore_hit["preview"] == "Storms split the realm"

    # Block JSON keys are not searchable text.
    hits = (await client.get(f"/api/projects/{project_id}/search", params={"q": "paragraph"}, headers=alice)).json()
    assert hits == []


@pytest.mark.anyio
@pytest.mark.parametrize("params", [{}, {"q": ""}, {"q": "   "}])
async def test_search_requires_a_query(client, alice, project_id, params):
    resp = await client.get(f"/api/projects/{project_id}/search", params=params, headers=alice)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Search query is required"


@pytest.mark.anyio
async def test_stats_count_every_kind(client, alice, project_id):
    for name in ("a", "b"):
        await client.post("/api/characters", json={"project_id": project_id, "name": name}, headers=alice)
    await client.post("/api/races", json={"project_id": project_id, "name": "Elf"}, headers=alice)

    stats = (await client.get(f"/api/projects/{project_id}/stats", headers=alice)).json()
    assert stats["characters"] == 2
    assert stats["races"] == 1
    assert stats["events"] == 0


@pytest.mark.anyio
async def test_activities_record_mutations_newest_first(client, alice, project_id):
    character = (
        await client.post("/api/characters", json={"project_id": project_id, "name": "Aria"}, headers=alice)
    ).json()
    await client.patch(f"/api/characters/{character['character_id']}", json={"role": "hero"}, headers=alice)
    await client.delete(f"/api/characters/{character['character_id']}", headers=alice)

    activities = (await client.get(f"/api/projects/{project_id}/activities", headers=alice)).json()
    assert [a["action"] for a in activities] == ["delete", "update", "create"]
    assert activities[2]["description"] == 'Created character "Aria"'
    assert activities[1]["metadata"] == {"fields": ["role"]}
    assert all(a["user_id"] == "alice" for a in activities)

    limited = (await client.get(f"/api/projects/{project_id}/activities", params={"limit": 1}, headers=alice)).json()
    assert len(limited) == 1

    resp = await client.get(f"/api/projects/{project_id}/activities", params={"limit": 500}, headers=alice)
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_content_endpoint_renders_rich_text(client, alice, project_id):
    content = json.dumps(
        {
            "blocks": [
                {"type": "header", "data": {"text": "Origins", "level": 2}},
                {"type": "image", "data": {"file": {"url": "/media/map.png"}, "caption": "Map"}},
            ]
        }
    )
    lore = (
        await client.post("/api/lore", json={"project_id": project_id, "title": "Origins", "content": content}, headers=alice)
    ).json()

    resp = await client.get(f"/api/content/lore/{lore['lore_id']}", headers=alice)
    assert resp.status_code == 200
    body = resp.json()
    assert body["field"] == "content"
    assert "<h2>Origins</h2>" in body["html"]
    assert body["image_urls"] == ["/media/map.png"]
    assert body["text"] == "Origins Map"

    resp = await client.get(f"/api/content/lore/{lore['lore_id']}", params={"field": "title"}, headers=alice)
    assert resp.status_code == 400
