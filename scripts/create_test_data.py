#!/usr/bin/env python3
"""Create the sample world through the HTTP API and print IDs for manual testing.

Usage: WORLDKEEPER_TOKEN=... python scripts/create_test_data.py [base_url]
"""

import os
import sys

import httpx

from app.storage.fixtures import (
    DEMO_CHARACTERS,
    DEMO_EVENTS,
    DEMO_LOCATIONS,
    DEMO_LORE,
    DEMO_MAGIC_SYSTEM,
    DEMO_NOTES,
    DEMO_PROJECT,
    DEMO_RACES,
    DEMO_SPELLS,
)

BASE_URL = "http://127.0.0.1:8000"


def _post(client: httpx.Client, path: str, payload: dict) -> dict:
    resp = client.post(path, json=payload)
    if resp.status_code != 201:
        print(f"Failed POST {path}: {resp.status_code} {resp.text}", file=sys.stderr)
        sys.exit(1)
    return resp.json()


def main():
    token = os.environ.get("WORLDKEEPER_TOKEN")
    if not token:
        print("WORLDKEEPER_TOKEN is not set", file=sys.stderr)
        sys.exit(1)
    base_url = sys.argv[1] if len(sys.argv) > 1 else BASE_URL
    client = httpx.Client(base_url=base_url, timeout=10.0, headers={"Authorization": f"Bearer {token}"})

    project_id = _post(client, "/api/projects", DEMO_PROJECT)["project_id"]
    print(f"PROJECT_ID={project_id}")

    locations = {
        values["name"]: _post(client, "/api/locations", {**values, "project_id": project_id})["location_id"]
        for values in DEMO_LOCATIONS
    }
    races = {
        values["name"]: _post(client, "/api/races", {**values, "project_id": project_id})["race_id"]
        for values in DEMO_RACES
    }

    characters = {}
    for values in DEMO_CHARACTERS:
        payload = {key: value for key, value in values.items() if key != "race"}
        payload.update(project_id=project_id, race_id=races.get(values.get("race")))
        characters[values["name"]] = _post(client, "/api/characters", payload)["character_id"]

    for order, (title, description, (year, month, day), type_, stage, location, participants) in enumerate(DEMO_EVENTS):
        event = _post(
            client,
            "/api/events",
            {
                "project_id": project_id,
                "title": title,
                "description": description,
                "year": year,
                "month": month,
                "day": day,
                "type": type_,
                "stage": stage,
                "location_id": locations.get(location),
                "order": order,
            },
        )
        for name in participants:
            _post(
                client,
                f"/api/events/{event['event_id']}/characters",
                {"character_id": characters[name], "role": "participant"},
            )

    magic_system_id = _post(client, "/api/magic-systems", {**DEMO_MAGIC_SYSTEM, "project_id": project_id})[
        "magic_system_id"
    ]
    for name, level, description, known_by in DEMO_SPELLS:
        spell = _post(
            client,
            "/api/spells",
            {
                "project_id": project_id,
                "magic_system_id": magic_system_id,
                "name": name,
                "level": level,
                "description": description,
            },
        )
        for character_name, proficiency in known_by.items():
            _post(
                client,
                f"/api/characters/{characters[character_name]}/spells",
                {"spell_id": spell["spell_id"], "proficiency": proficiency},
            )

    for values in DEMO_LORE:
        _post(client, "/api/lore", {**values, "project_id": project_id})
    for values in DEMO_NOTES:
        _post(client, "/api/notes", {**values, "project_id": project_id})

    stats = client.get(f"/api/projects/{project_id}/stats").json()
    print(f"STATS={stats}")
    print("\n# Export for shell (copy-paste):")
    print(f"export PROJECT_ID={project_id}")


if __name__ == "__main__":
    main()
