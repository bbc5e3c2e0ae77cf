"""Shared test fixtures and configuration.

Sets up fake environment variables so questcal.config doesn't sys.exit(),
and provides the common building blocks: a store, a notifier, an
in-memory backend and a coordinator wired to them.
"""

import os

# Patch env vars BEFORE any questcal imports
os.environ.setdefault("API_BASE_URL", "http://quest.test")
os.environ.setdefault("CALENDAR_BACKEND", "memory")
os.environ["TIMEZONE"] = "UTC"

import pytest
from datetime import timezone


@pytest.fixture
def utc():
    return timezone.utc


@pytest.fixture
def store():
    """Return an empty InMemoryEventStore."""
    from questcal.data.store import InMemoryEventStore
    return InMemoryEventStore()


@pytest.fixture
def notifier():
    """Return a LoggingNotifier that remembers what it was told."""
    from questcal.adapters.log_notifier import LoggingNotifier
    return LoggingNotifier()


@pytest.fixture
def backend():
    """Return an empty MemoryCalendarBackend."""
    from questcal.adapters.memory_calendar import MemoryCalendarBackend
    return MemoryCalendarBackend()


@pytest.fixture
def coordinator(store, backend, notifier, utc):
    """Return an OptimisticMutationCoordinator over the shared fixtures."""
    from questcal.core.mutations import OptimisticMutationCoordinator
    return OptimisticMutationCoordinator(store, backend, notifier, tz=utc)
