"""
QuestCal — Optimistic Mutation Coordinator.

Makes calendar edits feel instant: the local event store is updated the
moment a gesture commits, the backend call runs in the background, and a
single-slot undo record remembers what the event looked like before.

Last committed wins: every write to an event bumps a per-event version,
and a background call that finishes after a newer write never touches
the store.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from questcal.core.coordinates import shift_by
from questcal.data.models import (
    EXTERNAL_ID_PREFIX,
    DragMode,
    Interval,
    Notice,
    NoticeVariant,
    TaskUpdate,
    UndoRecord,
)

if TYPE_CHECKING:
    from questcal.core.drag_controller import DragResult
    from questcal.data.models import Event
    from questcal.ports.calendar_port import MutationPersistencePort
    from questcal.ports.event_store_port import EventStorePort, StoreSnapshot
    from questcal.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)


class MutationOutcome(Enum):
    PERSISTED = "persisted"
    REVERTED = "reverted"      # backend failed, local state rolled back
    STALE = "stale"            # backend failed, a newer write already won
    FAILED = "failed"          # backend failed, nothing to roll back


def _format_when(instant: datetime) -> str:
    """Toast wording for a new start time, e.g. "Feb 9, 10:45 AM"."""
    hour = 12 if instant.hour % 12 == 0 else instant.hour % 12
    suffix = "AM" if instant.hour < 12 else "PM"
    return f"{instant:%b} {instant.day}, {hour}:{instant.minute:02d} {suffix}"


def build_task_update(original: Interval, new: Interval, tz: tzinfo) -> TaskUpdate:
    """Persistence payload for moving an event from ``original`` to ``new``.

    The backend stores "which day" (due date) separately from "what time"
    (scheduled time), so the due date is only sent when the local calendar
    day of the start changed.
    """
    same_day = original.start.astimezone(tz).date() == new.start.astimezone(tz).date()
    return TaskUpdate(
        scheduled_time=new.start,
        duration=new.duration_minutes,
        due_date=None if same_day else new.start,
    )


class OptimisticMutationCoordinator:
    """Applies calendar edits locally first, then persists them."""

    def __init__(
        self,
        store: EventStorePort,
        persistence: MutationPersistencePort,
        notifier: NotificationPort,
        tz: tzinfo | None = None,
    ) -> None:
        if tz is None:
            from questcal.config import settings

            tz = ZoneInfo(settings.TIMEZONE)
        self._store = store
        self._persistence = persistence
        self._notifier = notifier
        self._tz = tz
        self._undo: UndoRecord | None = None
        self._versions: dict[str, int] = {}
        self._pending: set[asyncio.Task] = set()

    @property
    def undo_record(self) -> UndoRecord | None:
        return self._undo

    @property
    def pending(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------
    # Move / resize
    # ------------------------------------------------------------------

    def commit_drag(self, result: DragResult) -> asyncio.Task | None:
        """Hand-off point for a finished drag/resize gesture."""
        if result.is_click or not result.changed:
            return None
        if self._store.get(result.event_id) is None:
            logger.warning("Dropping gesture on %s: event no longer loaded", result.event_id)
            return None
        return self.commit(result.event_id, result.tentative, result.mode)

    def commit(
        self,
        event_id: str,
        new_interval: Interval,
        mode: DragMode = DragMode.MOVE,
    ) -> asyncio.Task | None:
        """Move ``event_id`` to ``new_interval`` now and persist in the background.

        Returns the background task (resolving to a MutationOutcome), or
        None when nothing was committed.
        """
        event = self._store.get(event_id)
        if event is None:
            raise KeyError(event_id)
        if not event.is_native:
            logger.warning("Refusing to reschedule read-only event %s", event_id)
            return None
        if new_interval == event.interval:
            return None

        update = build_task_update(event.interval, new_interval, self._tz)
        snapshot = self._store.snapshot(event_id)
        self._store.replace(event.with_interval(new_interval))
        version = self._bump(event_id)

        record = UndoRecord(
            event_id=event_id,
            task_id=event.task_id,
            previous=event.interval,
            new=new_interval,
            previous_duration=event.duration_minutes,
            new_duration=update.duration,
            due_date_changed=update.due_date is not None,
        )
        # Single slot: a newer mutation always supersedes the old record
        self._undo = record

        local_start = new_interval.start.astimezone(self._tz)
        self._notifier.notify(Notice(
            title="Event Rescheduled" if mode is DragMode.MOVE else "Duration Updated",
            description=f"Updated to {_format_when(local_start)} ({update.duration} min)",
            undo_available=True,
        ))
        logger.info(
            "Committed %s for %s: %s -> %s (%d min)",
            mode.value, event_id, event.start.isoformat(),
            new_interval.start.isoformat(), update.duration,
        )
        return self._spawn(self._persist_commit(event, update, snapshot, record, version))

    def shift_date(self, event_id: str, days: int) -> asyncio.Task | None:
        """Move an event by whole days, keeping its time of day and length."""
        event = self._store.get(event_id)
        if event is None:
            raise KeyError(event_id)
        # Whole days in wall-clock time; the length stays elapsed time
        new_start = event.start.astimezone(self._tz) + timedelta(days=days)
        new_end = shift_by(new_start, event.interval.duration)
        return self.commit(event_id, Interval(new_start, new_end))

    async def _persist_commit(
        self,
        event: Event,
        update: TaskUpdate,
        snapshot: StoreSnapshot,
        record: UndoRecord,
        version: int,
    ) -> MutationOutcome:
        try:
            result = await self._persistence.update_task(event.task_id, update)
        except Exception as exc:
            logger.error("Failed to update task %s: %s", event.task_id, exc)
            if self._versions.get(event.id) != version:
                logger.warning(
                    "Update for %s failed after a newer change; keeping local state",
                    event.id,
                )
                return MutationOutcome.STALE
            self._store.revert(snapshot)
            if self._undo is record:
                self._undo = None
            self._notifier.notify(Notice(
                title="Update Failed",
                description="Failed to save changes. Reverting...",
                variant=NoticeVariant.DESTRUCTIVE,
            ))
            return MutationOutcome.REVERTED

        if result.calendar_synced is False:
            logger.warning(
                "Google Calendar sync failed for task %s: %s",
                event.task_id, result.calendar_sync_error,
            )
            self._notifier.notify(Notice(
                title="Google Calendar Not Updated",
                description=result.calendar_sync_error
                or "Failed to sync change to Google Calendar",
                variant=NoticeVariant.WARNING,
            ))
        logger.info("Task %s saved", event.task_id)
        return MutationOutcome.PERSISTED

    # ------------------------------------------------------------------
    # Undo
    # ------------------------------------------------------------------

    def undo(self) -> asyncio.Task | None:
        """Revert the most recent move/resize. Returns the background task."""
        record = self._undo
        event = self._store.get(record.event_id) if record else None
        self._undo = None
        if record is None or event is None:
            self._notifier.notify(Notice(
                title="Nothing to Undo",
                description="No recent calendar changes to undo",
            ))
            return None

        self._store.replace(event.with_interval(record.previous, record.previous_duration))
        self._bump(record.event_id)
        self._notifier.notify(Notice(
            title="Undone",
            description="Event reverted to previous state",
        ))
        logger.info("Undid change to %s", record.event_id)

        update = TaskUpdate(
            scheduled_time=record.previous.start,
            duration=record.previous_duration,
            due_date=record.previous.start if record.due_date_changed else None,
        )
        return self._spawn(self._persist_undo(record, update))

    async def _persist_undo(self, record: UndoRecord, update: TaskUpdate) -> MutationOutcome:
        try:
            await self._persistence.update_task(record.task_id, update)
        except Exception as exc:
            logger.error("Failed to undo task update %s: %s", record.task_id, exc)
            self._notifier.notify(Notice(
                title="Undo Failed",
                description="Failed to revert changes on server",
                variant=NoticeVariant.DESTRUCTIVE,
            ))
            return MutationOutcome.FAILED
        return MutationOutcome.PERSISTED

    # ------------------------------------------------------------------
    # Unschedule (remove from calendar, keep the quest)
    # ------------------------------------------------------------------

    def unschedule(
        self, event_id: str, remove_from_google: bool = False
    ) -> asyncio.Task | None:
        """Take a native event off the calendar; the task itself survives."""
        event = self._store.get(event_id)
        if event is None:
            raise KeyError(event_id)
        if not event.is_native:
            self._notifier.notify(Notice(
                title="Cannot Hide Google Calendar Events",
                description=(
                    "Google Calendar events sync automatically. To remove this event, "
                    "delete it from Google Calendar or disable calendar sync in Settings."
                ),
                variant=NoticeVariant.DESTRUCTIVE,
            ))
            return None

        snapshot = self._store.snapshot(event_id)
        self._store.remove(event_id)
        version = self._bump(event_id)
        if self._undo is not None and self._undo.event_id == event_id:
            self._undo = None

        self._notifier.notify(Notice(
            title="Removed from Calendar",
            description="Event removed from calendar. Quest still available in Quests page.",
        ))
        logger.info("Unscheduled %s", event_id)
        return self._spawn(
            self._persist_unschedule(event, remove_from_google, snapshot, version)
        )

    async def _persist_unschedule(
        self,
        event: Event,
        remove_from_google: bool,
        snapshot: StoreSnapshot,
        version: int,
    ) -> MutationOutcome:
        try:
            await self._persistence.unschedule_task(event.task_id, remove_from_google)
        except Exception as exc:
            logger.error("Failed to remove %s from calendar: %s", event.id, exc)
            self._notifier.notify(Notice(
                title="Error",
                description="Failed to remove from calendar. Please try again.",
                variant=NoticeVariant.DESTRUCTIVE,
            ))
            if self._versions.get(event.id) != version:
                return MutationOutcome.STALE
            self._store.revert(snapshot)
            return MutationOutcome.REVERTED
        return MutationOutcome.PERSISTED

    async def unschedule_many(self, event_ids: list[str]) -> tuple[int, int]:
        """Unschedule several events one after another.

        Synced external events can't be removed here and count as failures.
        Returns (removed, failed).
        """
        removed = failed = 0
        for event_id in event_ids:
            event = self._store.get(event_id)
            if event_id.startswith(EXTERNAL_ID_PREFIX) or (event and not event.is_native):
                failed += 1
                continue
            task_id = event.task_id if event else event_id
            try:
                await self._persistence.unschedule_task(task_id, True)
            except Exception as exc:
                logger.error("Failed to delete event %s: %s", event_id, exc)
                failed += 1
                continue
            self._store.remove(event_id)
            self._bump(event_id)
            if self._undo is not None and self._undo.event_id == event_id:
                self._undo = None
            removed += 1

        if removed:
            plural = "s" if removed > 1 else ""
            self._notifier.notify(Notice(
                title=f"Removed {removed} Event{plural}",
                description=(
                    f"{failed} event(s) could not be removed (Google Calendar events "
                    "must be deleted from Google Calendar)"
                    if failed
                    else "Events removed from calendar. Quests still available in Quests page."
                ),
            ))
        elif failed:
            self._notifier.notify(Notice(
                title="Cannot Remove",
                description="Google Calendar events must be deleted from Google Calendar directly.",
                variant=NoticeVariant.DESTRUCTIVE,
            ))
        logger.info("Bulk unschedule: %d removed, %d failed", removed, failed)
        return removed, failed

    # ------------------------------------------------------------------
    # Background bookkeeping
    # ------------------------------------------------------------------

    async def drain(self) -> None:
        """Wait for every in-flight persistence call to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _bump(self, event_id: str) -> int:
        version = self._versions.get(event_id, 0) + 1
        self._versions[event_id] = version
        return version

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task
