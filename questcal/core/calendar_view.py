"""
QuestCal — Calendar View.

UI-agnostic owner of the calendar's interaction state. Wires the layout
engine, coordinate mapper, drag controller and mutation coordinator
together: loads a month into the local store, turns one day's events
into positioned blocks, and routes pointer and keyboard input.

A rendering layer (web, desktop, terminal) calls this class and draws
the EventBlocks it returns in its own way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from questcal.core.drag_controller import (
    DragResizeController,
    DragResult,
    ScrollViewport,
    hit_region,
)
from questcal.core.layout import (
    column_geometry,
    compute_layout,
    events_for_date,
    substitute_interval,
)
from questcal.core.selection import Rect, SelectionState
from questcal.data.models import Event, Interval, LayoutSlot, Notice, NoticeVariant
from questcal.ports.calendar_port import CalendarError

if TYPE_CHECKING:
    import asyncio

    from questcal.core.coordinates import CoordinateMapper
    from questcal.core.mutations import OptimisticMutationCoordinator
    from questcal.ports.calendar_port import CalendarDataProvider
    from questcal.ports.event_store_port import EventStorePort
    from questcal.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventBlock:
    """One event as drawn in a day column."""

    event: Event
    interval: Interval     # tentative while being dragged, stored otherwise
    top: float
    height: float
    column: int
    total_columns: int
    left_pct: float
    width_pct: float
    active: bool = False   # the block under an active gesture

    def rect(self, column_width: float) -> Rect:
        left = self.left_pct / 100 * column_width
        return Rect(
            left=left,
            top=self.top,
            right=left + self.width_pct / 100 * column_width,
            bottom=self.top + self.height,
        )


class CalendarView:
    """Interaction state of the day/3-day/week calendar grid."""

    def __init__(
        self,
        store: EventStorePort,
        coordinator: OptimisticMutationCoordinator,
        mapper: CoordinateMapper,
        notifier: NotificationPort,
        viewport: ScrollViewport | None = None,
        controller: DragResizeController | None = None,
        handle_px: float | None = None,
        selection_min_px: float | None = None,
    ) -> None:
        from questcal.config import settings

        self.store = store
        self.coordinator = coordinator
        self.mapper = mapper
        self.viewport = viewport or ScrollViewport(scroll_height=mapper.column_height)
        self.controller = controller or DragResizeController(mapper, self.viewport)
        self.selection = SelectionState()
        self.selected_event: Event | None = None
        self._notifier = notifier
        self._handle_px = handle_px if handle_px is not None else settings.RESIZE_HANDLE_PX
        self._selection_min_px = (
            selection_min_px if selection_min_px is not None else settings.SELECTION_MIN_PX
        )

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    async def load_month(self, provider: CalendarDataProvider, year: int, month: int) -> int:
        """Fetch a month from the provider into the local store.

        On failure the store keeps whatever it held before. Returns the
        number of events loaded.
        """
        try:
            events = await provider.fetch_events(year, month)
        except CalendarError as exc:
            logger.error("Failed to load events for %d-%02d: %s", year, month, exc)
            self._notifier.notify(Notice(
                title="Calendar Unavailable",
                description="Failed to load calendar events",
                variant=NoticeVariant.DESTRUCTIVE,
            ))
            return 0
        self.store.load(events)
        logger.info("Loaded %d events for %d-%02d", len(events), year, month)
        return len(events)

    def day_blocks(self, day: date) -> list[EventBlock]:
        """Positioned blocks for every event intersecting ``day``.

        The event under an active gesture is laid out at its tentative
        interval; all others at their stored intervals.
        """
        session = self.controller.session
        view = substitute_interval(
            self.store.all(),
            session.event_id if session else None,
            session.tentative if session else None,
        )
        day_events = events_for_date(view, day, self.mapper.tz)
        layout = compute_layout(day_events)

        blocks = []
        for ev in day_events:
            slot = layout.get(ev.id, LayoutSlot())
            left, width = column_geometry(slot)
            position = self.mapper.block_position(ev.interval, day)
            blocks.append(EventBlock(
                event=ev,
                interval=ev.interval,
                top=position.top,
                height=position.height,
                column=slot.column,
                total_columns=slot.total_columns,
                left_pct=left,
                width_pct=width,
                active=session is not None and session.event_id == ev.id,
            ))
        return blocks

    # ------------------------------------------------------------------
    # Pointer input
    # ------------------------------------------------------------------

    def pointer_down(
        self, event_id: str, client_y: float, day: date, modifier: bool = False
    ) -> bool:
        """Pointer pressed on an event block. Returns True if a gesture began.

        With Cmd/Ctrl held the event is toggled in the selection instead.
        """
        event = self.store.get(event_id)
        if event is None:
            return False
        if modifier:
            self.selection.toggle(event_id)
            return False

        position = self.mapper.block_position(event.interval, day)
        mode = hit_region(
            position.top,
            position.height,
            self.viewport.to_content_y(client_y),
            self._handle_px,
        )
        return self.controller.begin(event, client_y, mode)

    def pointer_move(self, client_y: float) -> Interval | None:
        return self.controller.move(client_y)

    def pointer_up(self) -> DragResult | None:
        """Finish the gesture: a click opens the detail view, a drag commits."""
        result = self.controller.end()
        if result is None:
            return None
        if result.is_click:
            self.selected_event = self.store.get(result.event_id)
        else:
            self.coordinator.commit_drag(result)
        return result

    def pointer_leave(self) -> DragResult | None:
        """Leaving the scroll container commits like a pointer-up."""
        if not self.controller.active:
            return None
        return self.pointer_up()

    # ------------------------------------------------------------------
    # Rubber-band selection
    # ------------------------------------------------------------------

    def begin_selection(self, x: float, client_y: float, extend: bool = False) -> bool:
        if self.controller.active:
            return False
        self.selection.begin(x, self.viewport.to_content_y(client_y), extend=extend)
        return True

    def update_selection(self, x: float, client_y: float) -> None:
        self.selection.update(x, self.viewport.to_content_y(client_y))

    def end_selection(self, day: date, column_width: float) -> set[str]:
        blocks = {b.event.id: b.rect(column_width) for b in self.day_blocks(day)}
        return self.selection.finish(blocks, self._selection_min_px)

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    async def key_down(
        self,
        key: str,
        meta: bool = False,
        ctrl: bool = False,
        shift: bool = False,
        in_text_input: bool = False,
    ) -> asyncio.Task | None:
        """Keyboard shortcuts of the grid.

        Cmd/Ctrl+Z undoes the last move or resize, Delete/Backspace
        unschedules the selection, Escape clears the selection and detail
        view. Escape does not abort an in-progress drag.
        """
        if (meta or ctrl) and key.lower() == "z" and not shift:
            return self.coordinator.undo()

        if key in ("Delete", "Backspace") and self.selection.selected and not in_text_input:
            ids = sorted(self.selection.selected)
            self.selection.clear()
            await self.coordinator.unschedule_many(ids)
            return None

        if key == "Escape":
            self.selection.clear()
            self.selected_event = None
        return None

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Stop any auto-scroll and wait for in-flight persistence calls."""
        self.controller.close()
        await self.coordinator.drain()
