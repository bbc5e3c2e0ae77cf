"""
QuestCal — Local Event Store.

The in-memory cache the calendar view renders from. Holds the events of
the currently loaded month, keyed by event id. Writes replace whole
events (last writer wins); there is no field-level merging.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from questcal.data.models import Event
from questcal.ports.event_store_port import StoreSnapshot

logger = logging.getLogger(__name__)


class InMemoryEventStore:
    """Dict-backed implementation of EventStorePort."""

    def __init__(self, events: list[Event] | None = None) -> None:
        self._events: dict[str, Event] = {}
        # Load order is kept so a reverted removal lands back in place
        self._order: list[str] = []
        if events:
            self.load(events)

    def load(self, events: list[Event]) -> None:
        """Replace the whole cache with a freshly fetched event list."""
        self._events = {ev.id: ev for ev in events}
        self._order = list(self._events)
        logger.debug("Event store loaded with %d events", len(self._events))

    def all(self) -> list[Event]:
        return [self._events[eid] for eid in self._order if eid in self._events]

    def get(self, event_id: str) -> Event | None:
        return self._events.get(event_id)

    def replace(self, event: Event) -> None:
        if event.id not in self._events and event.id not in self._order:
            self._order.append(event.id)
        self._events[event.id] = event

    def remove(self, event_id: str) -> Event | None:
        return self._events.pop(event_id, None)

    def snapshot(self, event_id: str) -> StoreSnapshot:
        event = self._events.get(event_id)
        # Events are mutable dataclasses; copy so later writes can't leak in
        return StoreSnapshot(
            event_id=event_id,
            event=replace(event, extra=dict(event.extra)) if event else None,
        )

    def revert(self, snapshot: StoreSnapshot) -> None:
        """Restore one event id to exactly the state captured in ``snapshot``."""
        if snapshot.event is None:
            self._events.pop(snapshot.event_id, None)
            return
        self.replace(snapshot.event)

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events
