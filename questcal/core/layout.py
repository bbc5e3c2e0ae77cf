"""
QuestCal — Event Layout Engine.

Packs one day's events into side-by-side columns so overlapping events
never render on top of each other, and gives every event in a cluster of
(transitively) overlapping events the same column count so the cluster's
row divides evenly.
"""

from __future__ import annotations

import logging
from collections import deque
from datetime import date, datetime, time, timedelta, tzinfo

from questcal.data.models import Event, Interval, LayoutSlot

logger = logging.getLogger(__name__)


def _min_event_minutes() -> int:
    from questcal.config import settings

    return settings.MIN_EVENT_MINUTES


def layout_interval(interval: Interval, min_minutes: int) -> Interval:
    """Stretch ``interval`` to at least ``min_minutes`` for layout purposes.

    Stored durations may legitimately be shorter; only placement uses this.
    """
    floor = timedelta(minutes=min_minutes)
    if interval.end - interval.start < floor:
        return Interval(interval.start, interval.start + floor)
    return interval


def compute_layout(
    events: list[Event], min_minutes: int | None = None
) -> dict[str, LayoutSlot]:
    """Assign a column and a column count to every event of one day.

    Events are placed in start order (longer first on ties) into the
    first column holding nothing they overlap. Afterwards each connected
    component of the overlap graph gets ``1 + max(column)`` over the
    component as its shared ``total_columns``.

    Pairwise work is quadratic in the number of events, which is fine for
    a single day's worth of items.

    Args:
        events: The events to lay out; the caller has already filtered
            them to one day.
        min_minutes: Minimum span an event occupies in the layout.

    Returns:
        Mapping of event id to LayoutSlot. Empty for no events.
    """
    if not events:
        return {}
    if min_minutes is None:
        min_minutes = _min_event_minutes()

    spans = {ev.id: layout_interval(ev.interval, min_minutes) for ev in events}
    ordered = sorted(
        spans,
        key=lambda eid: (spans[eid].start, -spans[eid].duration),
    )

    # Greedy first-fit column placement
    columns: list[list[Interval]] = []
    column_of: dict[str, int] = {}
    for eid in ordered:
        span = spans[eid]
        for index, occupants in enumerate(columns):
            if not any(span.overlaps(occ) for occ in occupants):
                occupants.append(span)
                column_of[eid] = index
                break
        else:
            columns.append([span])
            column_of[eid] = len(columns) - 1

    # Connected components of the overlap graph
    neighbours: dict[str, list[str]] = {eid: [] for eid in ordered}
    for i, a in enumerate(ordered):
        for b in ordered[i + 1:]:
            if spans[a].overlaps(spans[b]):
                neighbours[a].append(b)
                neighbours[b].append(a)

    layout: dict[str, LayoutSlot] = {}
    for root in ordered:
        if root in layout:
            continue
        cluster = [root]
        seen = {root}
        queue = deque([root])
        while queue:
            current = queue.popleft()
            for other in neighbours[current]:
                if other not in seen:
                    seen.add(other)
                    cluster.append(other)
                    queue.append(other)
        total = 1 + max(column_of[eid] for eid in cluster)
        for eid in cluster:
            layout[eid] = LayoutSlot(column=column_of[eid], total_columns=total)

    logger.debug(
        "Laid out %d events in %d columns", len(events), len(columns),
    )
    return layout


def column_geometry(slot: LayoutSlot) -> tuple[float, float]:
    """Return (left, width) of a slot as percentages of the day column."""
    width = 100.0 / slot.total_columns
    return slot.column * width, width


def day_bounds(day: date, tz: tzinfo) -> Interval:
    """The [midnight, next midnight) span of a local calendar day."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return Interval(start, end)


def events_for_date(events: list[Event], day: date, tz: tzinfo) -> list[Event]:
    """Events whose interval intersects the local calendar day ``day``.

    Zero-length events are kept when they sit inside the day.
    """
    bounds = day_bounds(day, tz)
    result = []
    for ev in events:
        if ev.interval.overlaps(bounds):
            result.append(ev)
        elif ev.start == ev.end and bounds.start <= ev.start < bounds.end:
            result.append(ev)
    return result


def substitute_interval(
    events: list[Event], event_id: str | None, interval: Interval | None
) -> list[Event]:
    """Return the render view with one event moved to ``interval``.

    Used while a gesture is active: only the dragged event shows its
    tentative interval, every other event keeps its stored one.
    """
    if event_id is None or interval is None:
        return list(events)
    return [
        ev.with_interval(interval) if ev.id == event_id else ev
        for ev in events
    ]
