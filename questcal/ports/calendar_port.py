"""Calendar ports — abstract interfaces for loading and persisting events.

Core modules depend on these protocols, never on a specific backend.
"""

from __future__ import annotations

from typing import Protocol

from questcal.data.models import Event, PersistResult, TaskUpdate


class CalendarError(Exception):
    """Raised when any calendar backend operation fails."""


class CalendarDataProvider(Protocol):
    """Supplies the flat event list for one visible month."""

    async def fetch_events(self, year: int, month: int) -> list[Event]: ...


class MutationPersistencePort(Protocol):
    """Persists calendar edits to the task backend."""

    async def update_task(self, task_id: str, update: TaskUpdate) -> PersistResult: ...

    async def unschedule_task(
        self, task_id: str, remove_from_google: bool = False
    ) -> None: ...
