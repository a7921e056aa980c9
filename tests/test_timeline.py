"""Serpentine timeline grouping and layout."""

import uuid
from types import SimpleNamespace

import pytest
from hypothesis import given, settings, strategies as st

from app.services.timeline import (
    MIN_HEIGHT,
    START_Y,
    VERTICAL_SPACING,
    build_layout,
    filter_events,
    group_events,
    responsive_dimensions,
)


def _event(year, month, day, location_id=None, title=None):
    return SimpleNamespace(
        event_id=uuid.uuid4(),
        title=title or f"{year}-{month}-{day}",
        year=year,
        month=month,
        day=day,
        location_id=location_id,
    )


event_dates = st.lists(
    st.tuples(
        st.integers(min_value=-50, max_value=50),
        st.integers(min_value=1, max_value=12),
        st.integers(min_value=1, max_value=31),
    ),
    max_size=40,
)


class TestGrouping:
    def test_same_date_events_collapse(self):
        groups = group_events([_event(1, 2, 15), _event(1, 5, 3), _event(1, 2, 15)])

        assert [g.date_key for g in groups] == ["1-2-15", "1-5-3"]
        assert [g.count for g in groups] == [2, 1]
        assert groups[0].is_multiple is True
        assert groups[1].is_multiple is False

    def test_sort_is_lexicographic_not_textual(self):
        groups = group_events([_event(10, 1, 1), _event(2, 12, 1), _event(2, 2, 30)])
        assert [g.date_key for g in groups] == ["2-2-30", "2-12-1", "10-1-1"]

    def test_same_date_keeps_incoming_order(self):
        first, second = _event(3, 3, 3, title="first"), _event(3, 3, 3, title="second")
        (group,) = group_events([first, second])
        assert [e.title for e in group.events] == ["first", "second"]

    @given(dates=event_dates)
    @settings(max_examples=100, deadline=None)
    def test_groups_partition_events(self, dates):
        events = [_event(*date) for date in dates]
        groups = group_events(events)

        keys = [(g.year, g.month, g.day) for g in groups]
        assert keys == sorted(set(keys))
        assert sum(g.count for g in groups) == len(events)
        for group in groups:
            assert all((e.year, e.month, e.day) == (group.year, group.month, group.day) for e in group.events)


class TestResponsiveDimensions:
    @pytest.mark.parametrize(
        ("viewport", "expected"),
        [
            (320, (2, 500)),
            (767, (2, 500)),
            (768, (3, 750)),
            (1199, (3, 750)),
            (1200, (4, 1000)),
            (2560, (4, 1000)),
            (None, (4, 1000)),
        ],
    )
    def test_breakpoints(self, viewport, expected):
        assert responsive_dimensions(viewport) == expected


class TestLayout:
    def test_example_layout(self):
        layout = build_layout([_event(1, 2, 15), _event(1, 2, 15), _event(1, 5, 3)])

        assert layout.margin == 80
        assert layout.usable_width == 840
        assert [(p.x, p.y, p.side) for p in layout.positions] == [(80, 80, "left"), (360, 80, "left")]
        assert layout.path == "M 80 80 L 440 80"
        assert layout.height == MIN_HEIGHT

    def test_serpentine_turns_into_second_row(self):
        events = [_event(1, 1, day) for day in (1, 2, 3)]
        layout = build_layout(events, events_per_row=2, container_width=500)

        assert layout.margin == 60
        assert [(p.x, p.y, p.side, p.row) for p in layout.positions] == [
            (60, 80, "left", 0),
            (440, 80, "right", 0),
            (440, 230, "right", 1),
        ]
        assert layout.path == "M 60 80 L 440 80 Q 460 155 440 230 L 360 230"

    def test_single_slot_rows_are_centered(self):
        layout = build_layout([_event(1, 1, 1), _event(1, 1, 2)], events_per_row=1, container_width=1000)
        assert [p.x for p in layout.positions] == [500, 500]
        assert [p.side for p in layout.positions] == ["left", "right"]
        assert layout.path == "M 80 80 L 920 80 Q 960 155 920 230 L 500 230"

        single = build_layout([_event(1, 1, 1)], events_per_row=1, container_width=1000)
        assert single.path == "M 80 80 L 500 80"

    def test_empty_timeline(self):
        layout = build_layout([])
        assert layout.positions == []
        assert layout.path == ""
        assert layout.height == MIN_HEIGHT
        assert layout.rows == 0

    def test_viewport_drives_capacity(self):
        events = [_event(1, 1, day) for day in range(1, 6)]
        layout = build_layout(events, viewport_width=800)
        assert layout.events_per_row == 3
        assert layout.container_width == 750
        assert layout.rows == 2

    @given(
        dates=event_dates,
        per_row=st.integers(min_value=1, max_value=12),
        width=st.integers(min_value=200, max_value=4000),
    )
    @settings(max_examples=100, deadline=None)
    def test_positions_stay_on_the_track(self, dates, per_row, width):
        layout = build_layout([_event(*d) for d in dates], events_per_row=per_row, container_width=width)

        assert len(layout.positions) == len(group_events([_event(*d) for d in dates]))
        assert layout.height >= MIN_HEIGHT
        assert layout.height >= layout.rows * VERTICAL_SPACING
        for index, position in enumerate(layout.positions):
            assert position.row == index // per_row
            assert position.y == START_Y + position.row * VERTICAL_SPACING
            assert layout.margin - 1e-6 <= position.x <= layout.margin + layout.usable_width + 1e-6
            assert position.side in {"left", "right"}
        if layout.positions:
            assert layout.path.startswith("M ")
            assert layout.path.count("Q") == layout.rows - 1
        else:
            assert layout.path == ""


def test_filter_by_character_and_location():
    here = uuid.uuid4()
    a, b, c = _event(1, 1, 1, location_id=here), _event(1, 1, 2), _event(1, 1, 3, location_id=here)

    assert filter_events([a, b, c], character_event_ids={a.event_id, b.event_id}) == [a, b]
    assert filter_events([a, b, c], location_id=here) == [a, c]
    assert filter_events([a, b, c], character_event_ids={b.event_id}, location_id=here) == []


@pytest.mark.anyio
async def test_timeline_endpoint(client, alice):
    project_id = (await client.post("/api/projects", json={"name": "t"}, headers=alice)).json()["project_id"]
    aria = (
        await client.post("/api/characters", json={"project_id": project_id, "name": "Aria"}, headers=alice)
    ).json()
    dated = (("Festival", (1, 2, 15)), ("Strike", (1, 2, 15)), ("Battle", (1, 5, 3)))
    for order, (title, (year, month, day)) in enumerate(dated):
        event = (
            await client.post(
                "/api/events",
                json={
                    "project_id": project_id,
                    "title": title,
                    "year": year,
                    "month": month,
                    "day": day,
                    "order": order,
                },
                headers=alice,
            )
        ).json()
        if title == "Strike":
            await client.post(
                f"/api/events/{event['event_id']}/characters",
                json={"character_id": aria["character_id"]},
                headers=alice,
            )

    resp = await client.get(f"/api/projects/{project_id}/timeline", params={"viewport_width": 1400}, headers=alice)
    assert resp.status_code == 200
    body = resp.json()
    assert body["events_per_row"] == 4
    assert [(g["date_key"], g["count"], g["is_multiple"]) for g in body["groups"]] == [
        ("1-2-15", 2, True),
        ("1-5-3", 1, False),
    ]
    assert [e["title"] for e in body["groups"][0]["events"]] == ["Festival", "Strike"]

    filtered = (
        await client.get(
            f"/api/projects/{project_id}/timeline", params={"character_id": aria["character_id"]}, headers=alice
        )
    ).json()
    assert [g["count"] for g in filtered["groups"]] == [1]

    resp = await client.get(f"/api/projects/{project_id}/timeline", params={"events_per_row": 0}, headers=alice)
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_event_dates_must_fit_integer_columns(client, alice):
    project_id = (await client.post("/api/projects", json={"name": "t"}, headers=alice)).json()["project_id"]

    def event(year):
        return {"project_id": project_id, "title": "Far", "year": year, "month": 1, "day": 1}

    for year in (2**31, -(2**31) - 1, 2**70):
        resp = await client.post("/api/events", json=event(year), headers=alice)
        assert resp.status_code == 400, year

    for year in (2**31 - 1, -(2**31)):
        resp = await client.post("/api/events", json=event(year), headers=alice)
        assert resp.status_code == 201, resp.text

    event_id = resp.json()["event_id"]
    resp = await client.patch(f"/api/events/{event_id}", json={"day": 2**31}, headers=alice)
    assert resp.status_code == 400
    resp = await client.patch(f"/api/events/{event_id}", json={"order": -(2**31)}, headers=alice)
    assert resp.status_code == 200
