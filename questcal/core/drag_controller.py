"""
QuestCal — Drag/Resize Controller.

Tracks the one in-progress move or resize gesture of the calendar view:
captures the anchors on pointer-down, recomputes a tentative interval on
every pointer-move (compensating for any scrolling since the gesture
began), nudges the scroll container while the pointer sits near its
edges, and hands the final interval over on pointer-up.

States: idle -> active(mode) -> idle. There is no pause and no cancel
gesture; leaving the container commits like a pointer-up.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Protocol

from questcal.core.coordinates import CoordinateMapper, shift_by
from questcal.data.models import DragMode, Event, Interval

logger = logging.getLogger(__name__)

SCROLL_UP = -1
SCROLL_DOWN = 1


# ---------------------------------------------------------------------------
# Scroll container
# ---------------------------------------------------------------------------


class ScrollContainer(Protocol):
    """The scrollable element hosting the day columns."""

    scroll_top: float
    viewport_top: float
    viewport_bottom: float

    def nudge(self, step: float) -> None: ...


@dataclass
class ScrollViewport:
    """Plain-state scroll container: client-space edges plus scroll extent."""

    viewport_top: float = 0.0
    viewport_bottom: float = 600.0
    scroll_top: float = 0.0
    scroll_height: float = 1440.0

    @property
    def client_height(self) -> float:
        return self.viewport_bottom - self.viewport_top

    @property
    def max_scroll_top(self) -> float:
        return max(self.scroll_height - self.client_height, 0.0)

    def nudge(self, step: float) -> None:
        """Scroll by ``step`` pixels, staying inside the scrollable range."""
        if step < 0 and self.scroll_top > 0:
            self.scroll_top = max(self.scroll_top + step, 0.0)
        elif step > 0 and self.scroll_top < self.max_scroll_top:
            self.scroll_top = min(self.scroll_top + step, self.max_scroll_top)

    def to_content_y(self, client_y: float) -> float:
        """Client-space pointer Y to an offset inside the scrolled content."""
        return client_y - self.viewport_top + self.scroll_top


class AutoScroller:
    """Owns the repeating scroll nudge; at most one runs at any time."""

    def __init__(
        self,
        container: ScrollContainer,
        step: float,
        interval_ms: int,
        on_tick: Callable[[], None] | None = None,
    ) -> None:
        self._container = container
        self._step = step
        self._interval = interval_ms / 1000
        self._on_tick = on_tick
        self._task: asyncio.Task | None = None
        self._direction = 0

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def direction(self) -> int:
        return self._direction if self.active else 0

    def start(self, direction: int) -> None:
        """Begin nudging in ``direction``; replaces any running nudge."""
        self.stop()
        self._direction = direction
        self._task = asyncio.get_running_loop().create_task(self._run(direction))
        logger.debug("Auto-scroll started (%s)", "up" if direction < 0 else "down")

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.debug("Auto-scroll stopped")
        self._direction = 0

    async def _run(self, direction: int) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self._container.nudge(direction * self._step)
            if self._on_tick is not None:
                self._on_tick()


# ---------------------------------------------------------------------------
# Gesture state
# ---------------------------------------------------------------------------


def hit_region(
    block_top: float, block_height: float, y: float, handle_px: float
) -> DragMode:
    """Decide which gesture a pointer-down at content offset ``y`` starts.

    The top and bottom ``handle_px`` of a block are resize handles; the
    rest of the block moves it. Blocks too short for two handles plus a
    body resize only from the bottom. A point outside the block moves it.
    """
    offset = y - block_top
    if offset < 0 or offset > block_height:
        return DragMode.MOVE
    if block_height >= 3 * handle_px and offset <= handle_px:
        return DragMode.RESIZE_TOP
    if offset >= block_height - handle_px:
        return DragMode.RESIZE_BOTTOM
    return DragMode.MOVE


@dataclass
class DragSession:
    event_id: str
    mode: DragMode
    anchor_pointer_y: float
    anchor_scroll_top: float
    anchor_time: datetime  # the edge being dragged
    original: Interval
    tentative: Interval | None = None
    last_pointer_y: float = 0.0
    dragged: bool = False


@dataclass(frozen=True)
class DragResult:
    """What a finished gesture produced.

    ``dragged`` is False when the pointer never moved past the no-op
    threshold: the gesture was a plain click. ``tentative`` is None when
    no valid interval was ever produced.
    """

    event_id: str
    mode: DragMode
    original: Interval
    tentative: Interval | None
    dragged: bool = True

    @property
    def is_click(self) -> bool:
        return not self.dragged

    @property
    def changed(self) -> bool:
        return self.tentative is not None and self.tentative != self.original


class DragResizeController:
    """Explicit state machine for the calendar's single drag/resize gesture."""

    def __init__(
        self,
        mapper: CoordinateMapper,
        container: ScrollContainer | None = None,
        min_minutes: int | None = None,
        drag_threshold: float | None = None,
        scroll_threshold: float | None = None,
        scroll_step: float | None = None,
        scroll_interval_ms: int | None = None,
    ) -> None:
        from questcal.config import settings

        self._mapper = mapper
        self._container = container
        self._min_duration = timedelta(
            minutes=min_minutes if min_minutes is not None else settings.MIN_EVENT_MINUTES
        )
        self._drag_threshold = (
            drag_threshold if drag_threshold is not None else settings.DRAG_THRESHOLD_PX
        )
        self._scroll_threshold = (
            scroll_threshold if scroll_threshold is not None else settings.AUTO_SCROLL_THRESHOLD_PX
        )
        self._session: DragSession | None = None
        self._scroller: AutoScroller | None = None
        if container is not None:
            self._scroller = AutoScroller(
                container,
                step=scroll_step if scroll_step is not None else settings.AUTO_SCROLL_STEP_PX,
                interval_ms=(
                    scroll_interval_ms
                    if scroll_interval_ms is not None
                    else settings.AUTO_SCROLL_INTERVAL_MS
                ),
                on_tick=self._on_auto_scroll_tick,
            )

    @property
    def session(self) -> DragSession | None:
        return self._session

    @property
    def active(self) -> bool:
        return self._session is not None

    @property
    def auto_scroller(self) -> AutoScroller | None:
        return self._scroller

    def tentative_for(self, event_id: str) -> Interval | None:
        if self._session is not None and self._session.event_id == event_id:
            return self._session.tentative
        return None

    # -- transitions --------------------------------------------------------

    def begin(self, event: Event, pointer_y: float, mode: DragMode = DragMode.MOVE) -> bool:
        """Start a gesture on ``event``. Returns False if none was started.

        Read-only (external) events never start a gesture, and a second
        gesture can't start while one is active.
        """
        if not event.is_native:
            return False
        if self._session is not None:
            logger.debug("Ignoring pointer-down on %s: gesture already active", event.id)
            return False

        if mode is DragMode.RESIZE_BOTTOM:
            anchor_time = event.end
        else:
            anchor_time = event.start

        self._session = DragSession(
            event_id=event.id,
            mode=mode,
            anchor_pointer_y=pointer_y,
            anchor_scroll_top=self._scroll_top(),
            anchor_time=anchor_time,
            original=event.interval,
            last_pointer_y=pointer_y,
        )
        logger.debug("Gesture %s started on %s", mode.value, event.id)
        return True

    def move(self, pointer_y: float) -> Interval | None:
        """Handle a pointer-move; returns the current tentative interval."""
        session = self._session
        if session is None:
            return None
        session.last_pointer_y = pointer_y
        self._update_auto_scroll(pointer_y)
        return self._recompute()

    def end(self) -> DragResult | None:
        """Finish the gesture (pointer-up or pointer-leave)."""
        session = self._session
        try:
            if self._scroller is not None:
                self._scroller.stop()
            if session is None:
                return None
            return DragResult(
                event_id=session.event_id,
                mode=session.mode,
                original=session.original,
                tentative=session.tentative,
                dragged=session.dragged,
            )
        finally:
            self._session = None

    # Leaving the container commits exactly like releasing the pointer
    leave = end

    def close(self) -> None:
        """Teardown: drop any gesture and make sure no scroll nudge survives."""
        if self._scroller is not None:
            self._scroller.stop()
        self._session = None

    # -- internals ----------------------------------------------------------

    def _scroll_top(self) -> float:
        return self._container.scroll_top if self._container is not None else 0.0

    def _update_auto_scroll(self, pointer_y: float) -> None:
        if self._scroller is None or self._container is None:
            return
        if pointer_y < self._container.viewport_top + self._scroll_threshold:
            direction = SCROLL_UP
        elif pointer_y > self._container.viewport_bottom - self._scroll_threshold:
            direction = SCROLL_DOWN
        else:
            direction = 0

        if direction == 0:
            self._scroller.stop()
        elif self._scroller.direction != direction:
            self._scroller.start(direction)

    def _on_auto_scroll_tick(self) -> None:
        # The pointer is still; recompute against the new scroll offset
        self._recompute()

    def _recompute(self) -> Interval | None:
        session = self._session
        if session is None:
            return None

        scroll_delta = self._scroll_top() - session.anchor_scroll_top
        delta_y = (session.last_pointer_y - session.anchor_pointer_y) + scroll_delta
        if not session.dragged:
            if abs(delta_y) <= self._drag_threshold:
                return session.tentative
            session.dragged = True

        new_edge = self._mapper.apply_delta(session.anchor_time, delta_y)
        original = session.original

        if session.mode is DragMode.MOVE:
            session.tentative = Interval(new_edge, shift_by(new_edge, original.duration))
        elif session.mode is DragMode.RESIZE_TOP:
            if original.end - new_edge >= self._min_duration:
                session.tentative = Interval(new_edge, original.end)
        else:
            if new_edge - original.start >= self._min_duration:
                session.tentative = Interval(original.start, new_edge)
        return session.tentative
