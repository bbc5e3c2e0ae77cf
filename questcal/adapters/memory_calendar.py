"""In-memory calendar adapter — implements the calendar ports without a server.

Useful offline and in tests: keeps its own copy of every event, applies
updates the way the quest backend does, records each call, and can be
told to fail.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import timedelta

from questcal.data.models import TASK_ID_PREFIX, Event, PersistResult, TaskUpdate
from questcal.ports.calendar_port import CalendarError

logger = logging.getLogger(__name__)


class MemoryCalendarBackend:
    """Dict-backed implementation of CalendarDataProvider + MutationPersistencePort."""

    def __init__(self, events: list[Event] | None = None) -> None:
        self._events: dict[str, Event] = {ev.id: ev for ev in events or []}
        self.calls: list[tuple[str, str, dict]] = []
        self.fail_next = 0
        self.calendar_synced: bool | None = None
        self.calendar_sync_error: str | None = None

    def _maybe_fail(self, op: str) -> None:
        if self.fail_next > 0:
            self.fail_next -= 1
            raise CalendarError(f"Simulated failure in {op}")

    def event(self, event_id: str) -> Event | None:
        return self._events.get(event_id)

    async def fetch_events(self, year: int, month: int) -> list[Event]:
        self._maybe_fail("fetch_events")
        return [
            replace(ev)
            for ev in self._events.values()
            if ev.start.year == year and ev.start.month == month
        ]

    async def update_task(self, task_id: str, update: TaskUpdate) -> PersistResult:
        payload = update.to_json()
        self.calls.append(("update_task", task_id, payload))
        self._maybe_fail("update_task")

        event_id = f"{TASK_ID_PREFIX}{task_id}"
        event = self._events.get(event_id)
        if event is None:
            raise CalendarError(f"Task {task_id} not found")
        start = update.scheduled_time
        self._events[event_id] = replace(
            event,
            start=start,
            end=start + timedelta(minutes=update.duration),
            duration_minutes=update.duration,
        )
        logger.debug("Memory backend updated %s: %s", event_id, payload)
        return PersistResult(
            calendar_synced=self.calendar_synced,
            calendar_sync_error=self.calendar_sync_error,
        )

    async def unschedule_task(self, task_id: str, remove_from_google: bool = False) -> None:
        self.calls.append(
            ("unschedule_task", task_id, {"removeFromGoogleCalendar": remove_from_google})
        )
        self._maybe_fail("unschedule_task")
        self._events.pop(f"{TASK_ID_PREFIX}{task_id}", None)
