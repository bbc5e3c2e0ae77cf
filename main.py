"""
QuestCal — Entry Point.

`python main.py [YYYY-MM-DD]` loads the month containing the date from the
configured backend and logs how that day's events are laid out.
"""

import asyncio
import logging
import sys
from datetime import date
from zoneinfo import ZoneInfo

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from questcal.adapters.calendar_factory import create_calendar_backend
from questcal.adapters.log_notifier import LoggingNotifier
from questcal.config import settings
from questcal.core.calendar_view import CalendarView
from questcal.core.coordinates import CoordinateMapper
from questcal.core.mutations import OptimisticMutationCoordinator
from questcal.data.store import InMemoryEventStore

logger = logging.getLogger("questcal")


async def main(day: date) -> None:
    tz = ZoneInfo(settings.TIMEZONE)
    backend = create_calendar_backend()
    store = InMemoryEventStore()
    notifier = LoggingNotifier()
    view = CalendarView(
        store=store,
        coordinator=OptimisticMutationCoordinator(store, backend, notifier, tz=tz),
        mapper=CoordinateMapper(tz),
        notifier=notifier,
    )
    try:
        await view.load_month(backend, day.year, day.month)
        for block in view.day_blocks(day):
            start = block.interval.start.astimezone(tz)
            logger.info(
                "%-28s %s  top=%6.1f height=%5.1f column=%d/%d",
                block.event.title or block.event.id,
                start.strftime("%H:%M"),
                block.top, block.height,
                block.column + 1, block.total_columns,
            )
    finally:
        await view.close()


if __name__ == "__main__":
    target = date.fromisoformat(sys.argv[1]) if len(sys.argv) > 1 else date.today()
    asyncio.run(main(target))
