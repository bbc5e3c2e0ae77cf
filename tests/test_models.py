"""Tests for questcal.data.models — events, intervals and wire shapes."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from questcal.data.models import (
    Event,
    EventRecord,
    EventSource,
    Interval,
    TaskUpdate,
)

UTC = timezone.utc


def _at(hour, minute=0, day=9):
    return datetime(2026, 2, day, hour, minute, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Interval
# ---------------------------------------------------------------------------


class TestInterval:
    def test_duration_minutes(self):
        assert Interval(_at(10), _at(10, 30)).duration_minutes == 30

    def test_overlap_detected(self):
        assert Interval(_at(9), _at(9, 30)).overlaps(Interval(_at(9, 15), _at(9, 45)))

    def test_touching_intervals_do_not_overlap(self):
        a = Interval(_at(9), _at(9, 30))
        b = Interval(_at(9, 30), _at(10))
        assert not a.overlaps(b)
        assert not b.overlaps(a)

    def test_containment_overlaps(self):
        assert Interval(_at(9), _at(12)).overlaps(Interval(_at(10), _at(10, 5)))

    def test_duration_is_elapsed_across_dst(self):
        from zoneinfo import ZoneInfo

        tz = ZoneInfo("America/New_York")
        # 2026-03-08 02:00 local clocks jump to 03:00
        interval = Interval(datetime(2026, 3, 8, 1, tzinfo=tz), datetime(2026, 3, 8, 4, tzinfo=tz))
        assert interval.duration_minutes == 120


# ---------------------------------------------------------------------------
# Event
# ---------------------------------------------------------------------------


class TestEvent:
    def test_duration_derived_when_missing(self):
        ev = Event(id="task-1", start=_at(10), end=_at(11, 15))
        assert ev.duration_minutes == 75

    def test_stored_duration_kept(self):
        ev = Event(id="task-1", start=_at(10), end=_at(10, 5), duration_minutes=3)
        assert ev.duration_minutes == 3

    def test_task_id_strips_prefix(self):
        assert Event(id="task-42", start=_at(10), end=_at(11)).task_id == "42"

    def test_task_id_without_prefix(self):
        assert Event(id="42", start=_at(10), end=_at(11)).task_id == "42"

    def test_source_controls_mutability(self):
        native = Event(id="task-1", start=_at(10), end=_at(11))
        external = Event(
            id="google-abc", start=_at(10), end=_at(11), source=EventSource.EXTERNAL,
        )
        assert native.is_native is True
        assert external.is_native is False

    def test_with_interval_updates_duration(self):
        ev = Event(id="task-1", start=_at(10), end=_at(10, 30), title="Write report")
        moved = ev.with_interval(Interval(_at(14), _at(15)))
        assert moved.start == _at(14)
        assert moved.duration_minutes == 60
        assert moved.title == "Write report"
        # Original untouched
        assert ev.start == _at(10)

    def test_with_interval_explicit_duration(self):
        ev = Event(id="task-1", start=_at(10), end=_at(10, 30))
        moved = ev.with_interval(Interval(_at(11), _at(11, 5)), duration_minutes=2)
        assert moved.duration_minutes == 2


class TestEventSource:
    @pytest.mark.parametrize("wire", ["productivityquest", "native", "NATIVE", "task"])
    def test_native_values(self, wire):
        assert EventSource.from_wire(wire) is EventSource.NATIVE

    @pytest.mark.parametrize("wire", ["google", "outlook", "", None])
    def test_everything_else_is_external(self, wire):
        assert EventSource.from_wire(wire) is EventSource.EXTERNAL


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------


class TestTaskUpdate:
    def test_same_day_payload_has_no_due_date(self):
        update = TaskUpdate(scheduled_time=_at(14), duration=30)
        payload = update.to_json()
        assert set(payload) == {"scheduledTime", "duration"}
        assert payload["duration"] == 30

    def test_cross_day_payload_includes_due_date(self):
        update = TaskUpdate(scheduled_time=_at(9, day=10), duration=30, due_date=_at(9, day=10))
        payload = update.to_json()
        assert set(payload) == {"scheduledTime", "duration", "dueDate"}
        assert payload["dueDate"].startswith("2026-02-10T09:00:00")

    def test_accepts_camel_case(self):
        update = TaskUpdate.model_validate(
            {"scheduledTime": "2026-02-09T10:00:00Z", "duration": 15}
        )
        assert update.scheduled_time == _at(10)


class TestEventRecord:
    def test_to_event(self):
        record = EventRecord.model_validate({
            "id": 17,
            "title": "Gym",
            "start": "2026-02-09T07:00:00Z",
            "end": "2026-02-09T08:00:00Z",
            "source": "google",
            "completed": True,
            "calendarName": "Personal",
        })
        ev = record.to_event()
        assert ev.id == "17"
        assert ev.source is EventSource.EXTERNAL
        assert ev.completed is True
        assert ev.duration_minutes == 60
        assert ev.extra == {"calendarName": "Personal"}

    def test_stored_duration_forwarded(self):
        record = EventRecord.model_validate({
            "id": "task-3",
            "start": "2026-02-09T07:00:00Z",
            "end": "2026-02-09T07:30:00Z",
            "duration": 25,
        })
        ev = record.to_event()
        assert ev.is_native
        assert ev.duration_minutes == 25

    def test_naive_instants_rejected(self):
        with pytest.raises(ValidationError):
            EventRecord.model_validate({
                "id": "task-3",
                "start": "2026-02-09T07:00:00",
                "end": "2026-02-09T07:30:00",
            })

    def test_end_is_exclusive_instant(self):
        record = EventRecord.model_validate({
            "id": "task-3",
            "start": "2026-02-09T07:00:00+02:00",
            "end": "2026-02-09T07:30:00+02:00",
        })
        assert record.end - record.start == timedelta(minutes=30)
