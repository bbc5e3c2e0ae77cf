"""Calendar backend factory — creates the right adapter based on config."""

from __future__ import annotations

from questcal.config import settings


def create_calendar_backend():
    """Return the backend matching the CALENDAR_BACKEND setting.

    The returned object implements both CalendarDataProvider and
    MutationPersistencePort.
    """
    backend = settings.CALENDAR_BACKEND.lower()

    if backend == "http":
        from questcal.adapters.http_calendar import HttpCalendarClient

        return HttpCalendarClient(
            base_url=settings.API_BASE_URL,
            session_cookie=settings.API_SESSION_COOKIE,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    if backend == "memory":
        from questcal.adapters.memory_calendar import MemoryCalendarBackend

        return MemoryCalendarBackend()

    raise ValueError(f"Unknown CALENDAR_BACKEND: {backend!r}")
