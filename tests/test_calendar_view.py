"""Tests for questcal.core.calendar_view — the grid's interaction state."""

from datetime import date, datetime, timezone

import pytest

from questcal.adapters.memory_calendar import MemoryCalendarBackend
from questcal.core.calendar_view import CalendarView
from questcal.core.coordinates import CoordinateMapper
from questcal.core.drag_controller import ScrollViewport
from questcal.data.models import DragMode, Event, EventSource, Interval

UTC = timezone.utc
DAY = date(2026, 2, 9)


def _at(hour, minute=0, day=9):
    return datetime(2026, 2, day, hour, minute, tzinfo=UTC)


def _events():
    return [
        Event(id="task-1", start=_at(10), end=_at(10, 30), title="Deep work"),
        Event(id="task-2", start=_at(10, 15), end=_at(11), title="Review"),
        Event(id="google-x", start=_at(15), end=_at(16), source=EventSource.EXTERNAL),
        Event(id="task-9", start=_at(9, day=12), end=_at(10, day=12)),
    ]


@pytest.fixture
def backend():
    return MemoryCalendarBackend(_events())


@pytest.fixture
def view(store, coordinator, notifier):
    mapper = CoordinateMapper(UTC, pixels_per_hour=60, snap_minutes=5, min_block_height=20)
    store.load(_events())
    return CalendarView(
        store,
        coordinator,
        mapper,
        notifier,
        viewport=ScrollViewport(scroll_top=500, scroll_height=1440),
        handle_px=8,
        selection_min_px=10,
    )


# ---------------------------------------------------------------------------
# Loading and layout
# ---------------------------------------------------------------------------


class TestLoadMonth:
    @pytest.mark.asyncio
    async def test_loads_into_store(self, store, coordinator, notifier):
        mapper = CoordinateMapper(UTC)
        view = CalendarView(store, coordinator, mapper, notifier)
        count = await view.load_month(MemoryCalendarBackend(_events()), 2026, 2)
        assert count == 4
        assert "task-1" in store

    @pytest.mark.asyncio
    async def test_failure_keeps_store_and_notifies(self, view, store, notifier):
        failing = MemoryCalendarBackend()
        failing.fail_next = 1
        assert await view.load_month(failing, 2026, 2) == 0
        assert len(store) == 4
        assert notifier.last.title == "Calendar Unavailable"


class TestDayBlocks:
    def test_only_events_of_the_day(self, view):
        ids = {b.event.id for b in view.day_blocks(DAY)}
        assert ids == {"task-1", "task-2", "google-x"}

    def test_positions_and_columns(self, view):
        blocks = {b.event.id: b for b in view.day_blocks(DAY)}
        assert (blocks["task-1"].top, blocks["task-1"].height) == (600, 30)
        assert (blocks["task-1"].column, blocks["task-2"].column) == (0, 1)
        assert blocks["task-2"].left_pct == 50.0
        assert blocks["google-x"].total_columns == 1

    def test_tentative_interval_drives_layout(self, view):
        # 115 client px is 615 content px: the body of task-1
        assert view.pointer_down("task-1", 115, DAY) is True
        view.pointer_move(115 + 300)
        blocks = {b.event.id: b for b in view.day_blocks(DAY)}
        assert blocks["task-1"].interval == Interval(_at(15), _at(15, 30))
        assert blocks["task-1"].active is True
        assert blocks["task-1"].total_columns == 2
        assert blocks["task-2"].total_columns == 1
        view.controller.close()


# ---------------------------------------------------------------------------
# Pointer gestures
# ---------------------------------------------------------------------------


class TestPointer:
    @pytest.mark.asyncio
    async def test_drag_commits(self, view, store, backend):
        view.pointer_down("task-1", 115, DAY)
        view.pointer_move(162)
        result = view.pointer_up()
        assert result.mode is DragMode.MOVE
        assert store.get("task-1").interval == Interval(_at(10, 45), _at(11, 15))
        await view.close()
        assert backend.event("task-1").start == _at(10, 45)

    def test_click_opens_detail(self, view):
        view.pointer_down("task-1", 115, DAY)
        result = view.pointer_up()
        assert result.is_click is True
        assert view.selected_event.id == "task-1"

    def test_external_event_does_not_drag(self, view):
        assert view.pointer_down("google-x", 520, DAY) is False
        assert view.controller.active is False

    def test_top_edge_starts_resize(self, view):
        # task-1 starts at content 600, client 100 with 500px scrolled
        view.pointer_down("task-1", 103, DAY)
        assert view.controller.session.mode is DragMode.RESIZE_TOP
        view.controller.close()

    def test_bottom_edge_starts_resize(self, view):
        view.pointer_down("task-1", 127, DAY)
        assert view.controller.session.mode is DragMode.RESIZE_BOTTOM
        view.controller.close()

    def test_modifier_toggles_selection(self, view):
        assert view.pointer_down("task-1", 115, DAY, modifier=True) is False
        assert view.selection.selected == {"task-1"}
        assert view.controller.active is False

    def test_leave_without_gesture_is_noop(self, view):
        assert view.pointer_leave() is None

    @pytest.mark.asyncio
    async def test_leave_commits(self, view, store):
        view.pointer_down("task-1", 115, DAY)
        view.pointer_move(175)
        view.pointer_leave()
        assert store.get("task-1").start == _at(11)
        await view.close()


# ---------------------------------------------------------------------------
# Selection and keyboard
# ---------------------------------------------------------------------------


class TestSelectionBox:
    def test_box_selects_intersected_blocks(self, view):
        assert view.begin_selection(10, 90) is True
        view.update_selection(40, 120)
        assert view.end_selection(DAY, column_width=200) == {"task-1"}

    def test_no_box_during_drag(self, view):
        view.pointer_down("task-1", 115, DAY)
        assert view.begin_selection(10, 90) is False
        view.controller.close()


class TestKeyboard:
    @pytest.mark.asyncio
    async def test_undo_shortcut(self, view, store):
        view.pointer_down("task-1", 115, DAY)
        view.pointer_move(162)
        view.pointer_up()
        await view.coordinator.drain()

        task = await view.key_down("z", meta=True)
        assert await task is not None
        assert store.get("task-1").start == _at(10)

    @pytest.mark.asyncio
    async def test_shift_z_is_not_undo(self, view, notifier):
        assert await view.key_down("Z", ctrl=True, shift=True) is None
        assert "Nothing to Undo" not in notifier.titles()

    @pytest.mark.asyncio
    async def test_delete_unschedules_selection(self, view, store):
        view.selection.selected = {"task-1", "google-x"}
        await view.key_down("Delete")
        assert "task-1" not in store
        assert "google-x" in store
        assert view.selection.selected == set()

    @pytest.mark.asyncio
    async def test_delete_inside_text_input_ignored(self, view, store):
        view.selection.selected = {"task-1"}
        await view.key_down("Backspace", in_text_input=True)
        assert "task-1" in store

    @pytest.mark.asyncio
    async def test_escape_clears(self, view):
        view.selection.selected = {"task-1"}
        view.selected_event = view.store.get("task-1")
        await view.key_down("Escape")
        assert view.selection.selected == set()
        assert view.selected_event is None

    @pytest.mark.asyncio
    async def test_release_after_dragged_event_was_deleted(self, view, store, backend):
        view.pointer_down("task-1", 115, DAY, modifier=True)
        view.pointer_down("task-1", 115, DAY)
        view.pointer_move(162)
        await view.key_down("Delete")
        assert "task-1" not in store

        result = view.pointer_up()
        assert result.is_click is False
        assert "task-1" not in store
        assert view.coordinator.pending == 0
        assert [c[0] for c in backend.calls] == ["unschedule_task"]

    @pytest.mark.asyncio
    async def test_escape_keeps_drag(self, view):
        view.pointer_down("task-1", 115, DAY)
        view.pointer_move(162)
        await view.key_down("Escape")
        assert view.controller.active is True
        view.controller.close()
