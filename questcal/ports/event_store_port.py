"""Event store port — the local event cache the view renders from.

Optimistic updates write here before the backend confirms them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from questcal.data.models import Event


@dataclass(frozen=True)
class StoreSnapshot:
    """State of one event id at a point in time; ``event`` is None if absent."""

    event_id: str
    event: Event | None


class EventStorePort(Protocol):
    """Abstract local event cache used by core modules."""

    def load(self, events: list[Event]) -> None: ...

    def all(self) -> list[Event]: ...

    def get(self, event_id: str) -> Event | None: ...

    def replace(self, event: Event) -> None: ...

    def remove(self, event_id: str) -> Event | None: ...

    def snapshot(self, event_id: str) -> StoreSnapshot: ...

    def revert(self, snapshot: StoreSnapshot) -> None: ...
