"""Notification port — abstract interface for the toast surface.

Core modules depend on this protocol, never on a specific presentation.
"""

from __future__ import annotations

from typing import Protocol

from questcal.data.models import Notice


class NotificationPort(Protocol):
    """Abstract notification interface used by core modules."""

    def notify(self, notice: Notice) -> None: ...
