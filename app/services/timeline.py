"""
Serpentine timeline layout.

Events sharing an exact (year, month, day) collapse into one marker. Markers
fill rows left to right, then right to left on the next row, and an SVG path
threads through the rows with a quadratic curve at every turn.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

DEFAULT_EVENTS_PER_ROW = 4
DEFAULT_CONTAINER_WIDTH = 1000
MIN_MARGIN = 60
MARGIN_RATIO = 0.08
VERTICAL_SPACING = 150
START_Y = 80
LAST_ROW_TAIL = 80
MAX_CURVE_OFFSET = 40
CURVE_RATIO = 0.04
HEIGHT_PADDING = 160
MIN_HEIGHT = 400

# (exclusive upper viewport bound, events per row, container width)
BREAKPOINTS: tuple[tuple[int, int, int], ...] = (
    (768, 2, 500),
    (1200, 3, 750),
)


@dataclass
class EventGroup:
    """Events that share one calendar date."""

    year: int
    month: int
    day: int
    events: list[Any] = field(default_factory=list)

    @property
    def date_key(self) -> str:
        return f"{self.year}-{self.month}-{self.day}"

    @property
    def count(self) -> int:
        return len(self.events)

    @property
    def is_multiple(self) -> bool:
        return self.count > 1


@dataclass
class TimelinePosition:
    x: float
    y: float
    side: str  # "left" or "right": which way the label opens
    row: int
    group: EventGroup


@dataclass
class TimelineLayout:
    events_per_row: int
    container_width: int
    margin: float
    usable_width: float
    height: int
    positions: list[TimelinePosition] = field(default_factory=list)
    path: str = ""

    @property
    def rows(self) -> int:
        return math.ceil(len(self.positions) / self.events_per_row) if self.positions else 0


def responsive_dimensions(viewport_width: int | None) -> tuple[int, int]:
    """Events per row and container width for a viewport; `None` means a fixed desktop layout."""
    if viewport_width is None:
        return DEFAULT_EVENTS_PER_ROW, DEFAULT_CONTAINER_WIDTH
    for upper_bound, per_row, width in BREAKPOINTS:
        if viewport_width < upper_bound:
            return per_row, width
    return DEFAULT_EVENTS_PER_ROW, DEFAULT_CONTAINER_WIDTH


def filter_events(
    events: Iterable[Any],
    character_event_ids: set[uuid.UUID] | None = None,
    location_id: uuid.UUID | None = None,
) -> list[Any]:
    """Keep events linked to a character (by event ID set) and/or held at a location."""
    kept = []
    for event in events:
        if character_event_ids is not None and event.event_id not in character_event_ids:
            continue
        if location_id is not None and event.location_id != location_id:
            continue
        kept.append(event)
    return kept


def group_events(events: Iterable[Any]) -> list[EventGroup]:
    """Sort by (year, month, day) and merge events with the exact same date.

    The sort is stable, so events on one date keep their incoming order.
    """
    groups: dict[tuple[int, int, int], EventGroup] = {}
    for event in sorted(events, key=lambda e: (e.year, e.month, e.day)):
        key = (event.year, event.month, event.day)
        if key not in groups:
            groups[key] = EventGroup(year=event.year, month=event.month, day=event.day)
        groups[key].events.append(event)
    return list(groups.values())


def _fmt(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def _step(usable_width: float, events_per_row: int) -> float:
    if events_per_row <= 1:
        return 0.0
    return usable_width / (events_per_row - 1)


def place_groups(
    groups: Sequence[EventGroup],
    events_per_row: int,
    container_width: int,
) -> list[TimelinePosition]:
    margin = max(MIN_MARGIN, container_width * MARGIN_RATIO)
    usable_width = container_width - 2 * margin
    step = _step(usable_width, events_per_row)

    positions = []
    for index, group in enumerate(groups):
        row, slot = divmod(index, events_per_row)
        y = START_Y + row * VERTICAL_SPACING
        first_half = slot < events_per_row / 2
        if events_per_row == 1:
            x = margin + usable_width / 2
            side = "left" if row % 2 == 0 else "right"
        elif row % 2 == 0:
            x = margin + slot * step
            side = "left" if first_half else "right"
        else:
            x = margin + usable_width - slot * step
            side = "right" if first_half else "left"
        positions.append(TimelinePosition(x=x, y=y, side=side, row=row, group=group))
    return positions


def serpentine_path(group_count: int, events_per_row: int, container_width: int) -> str:
    """SVG path data threading through every row; empty when there is nothing to draw."""
    if group_count == 0:
        return ""

    margin = max(MIN_MARGIN, container_width * MARGIN_RATIO)
    usable_width = container_width - 2 * margin
    right_edge = margin + usable_width
    # Single-slot rows centre their marker, so the last row stops there.
    centre = margin + usable_width / 2
    step = _step(usable_width, events_per_row)
    curve_offset = min(MAX_CURVE_OFFSET, container_width * CURVE_RATIO)
    total_rows = math.ceil(group_count / events_per_row)

    commands = [f"M {_fmt(margin)} {_fmt(START_Y)}"]
    for row in range(total_rows):
        y = START_Y + row * VERTICAL_SPACING
        is_last_row = row == total_rows - 1
        in_row = min(events_per_row, group_count - row * events_per_row)
        next_y = y + VERTICAL_SPACING
        mid_y = y + VERTICAL_SPACING / 2

        if row % 2 == 0:
            if is_last_row:
                last_x = min(margin + (in_row - 1) * step + LAST_ROW_TAIL, right_edge)
                commands.append(f"L {_fmt(centre if events_per_row == 1 else last_x)} {_fmt(y)}")
            else:
                commands.append(f"L {_fmt(right_edge)} {_fmt(y)}")
                commands.append(
                    f"Q {_fmt(right_edge + curve_offset)} {_fmt(mid_y)} {_fmt(right_edge)} {_fmt(next_y)}"
                )
        else:
            if is_last_row:
                last_x = max(right_edge - (in_row - 1) * step - LAST_ROW_TAIL, margin)
                commands.append(f"L {_fmt(centre if events_per_row == 1 else last_x)} {_fmt(y)}")
            else:
                commands.append(f"L {_fmt(margin)} {_fmt(y)}")
                commands.append(f"Q {_fmt(margin - curve_offset)} {_fmt(mid_y)} {_fmt(margin)} {_fmt(next_y)}")
    return " ".join(commands)


def timeline_height(group_count: int, events_per_row: int) -> int:
    return max(MIN_HEIGHT, math.ceil(group_count / events_per_row) * VERTICAL_SPACING + HEIGHT_PADDING)


def build_layout(
    events: Iterable[Any],
    viewport_width: int | None = None,
    events_per_row: int | None = None,
    container_width: int | None = None,
) -> TimelineLayout:
    """Group, place and path a set of events; explicit sizes override the breakpoints."""
    default_per_row, default_width = responsive_dimensions(viewport_width)
    per_row = events_per_row or default_per_row
    width = container_width or default_width
    if per_row < 1:
        raise ValueError("events_per_row must be at least 1")

    groups = group_events(events)
    margin = max(MIN_MARGIN, width * MARGIN_RATIO)
    return TimelineLayout(
        events_per_row=per_row,
        container_width=width,
        margin=margin,
        usable_width=width - 2 * margin,
        height=timeline_height(len(groups), per_row),
        positions=place_groups(groups, per_row, width),
        path=serpentine_path(len(groups), per_row, width),
    )
