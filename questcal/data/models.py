"""
QuestCal — Data Models.

Calendar events as the view sees them, plus the small value types that
flow between the layout engine, the drag controller and the mutation
coordinator. Wire-facing shapes (what the REST API sends and accepts) are
pydantic models; everything the core passes around internally is a
dataclass.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

TASK_ID_PREFIX = "task-"
EXTERNAL_ID_PREFIX = "google-"


class EventSource(Enum):
    NATIVE = "native"
    EXTERNAL = "external"

    @classmethod
    def from_wire(cls, value: str) -> EventSource:
        """Map an API source string to a source kind.

        The quest API labels its own tasks "productivityquest" and synced
        Google Calendar items "google".
        """
        v = (value or "").strip().lower()
        if v in ("native", "productivityquest", "task"):
            return cls.NATIVE
        return cls.EXTERNAL


class DragMode(Enum):
    MOVE = "move"
    RESIZE_TOP = "resize-top"
    RESIZE_BOTTOM = "resize-bottom"


@dataclass(frozen=True)
class Interval:
    """A half-open [start, end) span between two timezone-aware instants."""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        # Elapsed time; same-zone subtraction would ignore a DST change
        return self.end.astimezone(timezone.utc) - self.start.astimezone(timezone.utc)

    @property
    def duration_minutes(self) -> int:
        return round(self.duration.total_seconds() / 60)

    def overlaps(self, other: Interval) -> bool:
        return not (self.end <= other.start or self.start >= other.end)


@dataclass
class Event:
    """One schedulable item displayed on the calendar.

    Task-backed items use the id convention ``task-{taskId}``; synced
    items carry a namespaced id such as ``google-{externalId}``.
    ``duration_minutes`` is stored separately from ``end`` because the
    backend persists a duration, not an end time.
    """

    id: str
    start: datetime
    end: datetime
    source: EventSource = EventSource.NATIVE
    completed: bool = False
    duration_minutes: int | None = None
    title: str = ""
    color: str | None = None
    importance: str | None = None
    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.duration_minutes is None:
            self.duration_minutes = self.interval.duration_minutes

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)

    @property
    def is_native(self) -> bool:
        return self.source is EventSource.NATIVE

    @property
    def task_id(self) -> str:
        if self.id.startswith(TASK_ID_PREFIX):
            return self.id[len(TASK_ID_PREFIX):]
        return self.id

    def with_interval(
        self, interval: Interval, duration_minutes: int | None = None
    ) -> Event:
        """Return a copy moved to ``interval``; duration follows unless given."""
        if duration_minutes is None:
            duration_minutes = interval.duration_minutes
        return replace(
            self,
            start=interval.start,
            end=interval.end,
            duration_minutes=duration_minutes,
        )


@dataclass(frozen=True)
class LayoutSlot:
    """Horizontal placement of one event inside its day column."""

    column: int = 0
    total_columns: int = 1


@dataclass(frozen=True)
class UndoRecord:
    """The single most recent calendar mutation that can be reverted."""

    event_id: str
    task_id: str
    previous: Interval
    new: Interval
    previous_duration: int
    new_duration: int
    due_date_changed: bool = False


class NoticeVariant(Enum):
    DEFAULT = "default"
    WARNING = "warning"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notice:
    """A human-readable signal for the toast surface."""

    title: str
    description: str = ""
    variant: NoticeVariant = NoticeVariant.DEFAULT
    undo_available: bool = False


@dataclass(frozen=True)
class PersistResult:
    """Outcome of a successful persistence call.

    ``calendar_synced`` mirrors the server's Google Calendar sync report:
    None when the task is not linked to a calendar.
    """

    calendar_synced: bool | None = None
    calendar_sync_error: str | None = None


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------


class TaskUpdate(BaseModel):
    """PATCH body for /api/tasks/{taskId}.

    JSON example (cross-day move):
    {
        "scheduledTime": "2026-02-10T09:00:00+00:00",
        "duration": 30,
        "dueDate": "2026-02-10T09:00:00+00:00"
    }
    ``dueDate`` is only sent when the calendar day changed.
    """

    model_config = ConfigDict(populate_by_name=True)

    scheduled_time: datetime = Field(alias="scheduledTime")
    duration: int
    due_date: datetime | None = Field(default=None, alias="dueDate")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class EventRecord(BaseModel):
    """One entry of the events endpoint's ``{"events": [...]}`` payload."""

    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""
    start: datetime
    end: datetime
    source: str = "productivityquest"
    completed: bool = False
    duration: int | None = None
    color: str | None = None
    importance: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> str:
        return str(v)

    @field_validator("start", "end", mode="after")
    @classmethod
    def require_timezone(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("event instants must be timezone-aware")
        return v

    def to_event(self) -> Event:
        return Event(
            id=self.id,
            start=self.start,
            end=self.end,
            source=EventSource.from_wire(self.source),
            completed=self.completed,
            duration_minutes=self.duration,
            title=self.title,
            color=self.color,
            importance=self.importance,
            extra=dict(self.model_extra or {}),
        )
