"""HTTP calendar adapter — talks to the quest REST API.

Implements both CalendarDataProvider and MutationPersistencePort. All
HTTP-specific logic lives here; core modules depend on the ports only.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from questcal.data.models import Event, EventRecord, PersistResult, TaskUpdate
from questcal.ports.calendar_port import CalendarError

logger = logging.getLogger(__name__)

_EVENTS_PATH = "/api/google-calendar/events"
_TASK_PATH = "/api/tasks/{task_id}"
_UNSCHEDULE_PATH = "/api/tasks/{task_id}/unschedule"


class HttpCalendarClient:
    """httpx-backed implementation of the calendar ports."""

    def __init__(
        self,
        base_url: str,
        session_cookie: str = "",
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._cookies = {"connect.sid": session_cookie} if session_cookie else None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            cookies=self._cookies,
        )

    async def fetch_events(self, year: int, month: int) -> list[Event]:
        """Events of one month; ``month`` is 1-12 (the API wants 0-11)."""
        try:
            async with self._client() as client:
                resp = await client.get(
                    _EVENTS_PATH, params={"year": year, "month": month - 1},
                )
                resp.raise_for_status()
                data = resp.json()
        except Exception as exc:
            logger.error("Events request failed for %d-%02d: %s", year, month, exc)
            raise CalendarError(f"Failed to fetch events: {exc}") from exc

        events: list[Event] = []
        for raw in data.get("events", []):
            try:
                events.append(EventRecord.model_validate(raw).to_event())
            except ValidationError as exc:
                logger.warning("Skipping malformed event %r: %s", raw.get("id"), exc)
        return events

    async def update_task(self, task_id: str, update: TaskUpdate) -> PersistResult:
        try:
            async with self._client() as client:
                resp = await client.patch(
                    _TASK_PATH.format(task_id=task_id), json=update.to_json(),
                )
                resp.raise_for_status()
                data = resp.json() if resp.content else {}
        except Exception as exc:
            logger.error("Task update failed for %s: %s", task_id, exc)
            raise CalendarError(f"Failed to update task {task_id}: {exc}") from exc

        return PersistResult(
            calendar_synced=data.get("calendarSynced"),
            calendar_sync_error=data.get("calendarSyncError"),
        )

    async def unschedule_task(self, task_id: str, remove_from_google: bool = False) -> None:
        try:
            async with self._client() as client:
                resp = await client.post(
                    _UNSCHEDULE_PATH.format(task_id=task_id),
                    json={"removeFromGoogleCalendar": remove_from_google},
                )
                resp.raise_for_status()
        except Exception as exc:
            logger.error("Unschedule failed for %s: %s", task_id, exc)
            raise CalendarError(f"Failed to unschedule task {task_id}: {exc}") from exc
        logger.info("Task %s removed from calendar", task_id)
