"""Logging notification adapter — implements NotificationPort.

Writes every notice to the log and keeps the most recent ones so a
front end (or a test) can read them back.
"""

from __future__ import annotations

import logging
from collections import deque

from questcal.data.models import Notice, NoticeVariant

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """Log-backed implementation of NotificationPort."""

    def __init__(self, keep: int = 20) -> None:
        self.notices: deque[Notice] = deque(maxlen=keep)

    def notify(self, notice: Notice) -> None:
        self.notices.append(notice)
        level = logging.INFO if notice.variant is NoticeVariant.DEFAULT else logging.WARNING
        suffix = " [undo available]" if notice.undo_available else ""
        logger.log(level, "%s: %s%s", notice.title, notice.description, suffix)

    @property
    def last(self) -> Notice | None:
        return self.notices[-1] if self.notices else None

    def titles(self) -> list[str]:
        return [n.title for n in self.notices]
