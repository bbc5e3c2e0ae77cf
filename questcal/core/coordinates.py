"""
QuestCal — Coordinate Mapper.

Translates between the vertical pixel strip of a day column (24 hours,
``pixels_per_hour`` tall each) and wall-clock time, in both directions.
Pointer deltas are snapped to a fixed minute increment so drag feedback
moves in steady steps.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from questcal.core.layout import day_bounds
from questcal.data.models import Interval


def _round_half_up(value: float) -> int:
    # round() would use banker's rounding: 2.5 -> 2
    return math.floor(value + 0.5)


def shift_by(instant: datetime, delta: timedelta) -> datetime:
    """Move an aware instant by elapsed time, stable across DST changes."""
    shifted = instant.astimezone(timezone.utc) + delta
    return shifted.astimezone(instant.tzinfo)


def shift_minutes(instant: datetime, minutes: int) -> datetime:
    return shift_by(instant, timedelta(minutes=minutes))


@dataclass(frozen=True)
class BlockPosition:
    """Vertical placement of an event block inside its day column."""

    top: float
    height: float


class CoordinateMapper:
    """Bidirectional pixel <-> time mapping for one day column."""

    def __init__(
        self,
        tz: tzinfo,
        pixels_per_hour: float | None = None,
        snap_minutes: int | None = None,
        min_block_height: float | None = None,
    ) -> None:
        from questcal.config import settings

        self.tz = tz
        self.pixels_per_hour = float(
            pixels_per_hour if pixels_per_hour is not None else settings.PIXELS_PER_HOUR
        )
        self.snap_minutes = snap_minutes if snap_minutes is not None else settings.SNAP_MINUTES
        self.min_block_height = float(
            min_block_height if min_block_height is not None else settings.MIN_BLOCK_HEIGHT_PX
        )
        if self.pixels_per_hour <= 0:
            raise ValueError("pixels_per_hour must be positive")

    @property
    def column_height(self) -> float:
        return 24 * self.pixels_per_hour

    # -- time -> pixel ------------------------------------------------------

    def time_to_pixel(self, instant: datetime) -> float:
        """Offset of ``instant`` from the top of its local day's column."""
        local = instant.astimezone(self.tz)
        minutes = local.hour * 60 + local.minute + local.second / 60
        return minutes / 60 * self.pixels_per_hour

    def minutes_to_pixels(self, minutes: float) -> float:
        return minutes / 60 * self.pixels_per_hour

    def block_position(self, interval: Interval, day: date | None = None) -> BlockPosition:
        """Top offset and height of an event block.

        When ``day`` is given the interval is clipped to that day so events
        crossing midnight stay inside the column. The height floor is a
        rendering minimum only.
        """
        if day is not None:
            bounds = day_bounds(day, self.tz)
            start = max(interval.start, bounds.start)
            end = min(interval.end, bounds.end)
            top = self.time_to_pixel(start) if start > bounds.start else 0.0
        else:
            start, end = interval.start, interval.end
            top = self.time_to_pixel(start)
        minutes = max((end - start).total_seconds() / 60, 0.0)
        height = self.minutes_to_pixels(minutes)
        return BlockPosition(top=top, height=max(height, self.min_block_height))

    # -- pixel -> time ------------------------------------------------------

    def minutes_delta(self, delta_y: float) -> int:
        """Convert a scroll-compensated pointer delta to snapped minutes."""
        raw_minutes = (delta_y / self.pixels_per_hour) * 60
        return _round_half_up(raw_minutes / self.snap_minutes) * self.snap_minutes

    def apply_delta(self, anchor: datetime, delta_y: float) -> datetime:
        """Anchor time moved by the snapped equivalent of ``delta_y``."""
        return shift_minutes(anchor, self.minutes_delta(delta_y))

    def pixel_to_time(self, offset: float, day: date) -> datetime:
        """Snapped wall-clock time at ``offset`` pixels into ``day``'s column."""
        offset = min(max(offset, 0.0), self.column_height)
        midnight = datetime.combine(day, time.min, tzinfo=self.tz)
        # Wall-clock arithmetic, the inverse of time_to_pixel
        return midnight + timedelta(minutes=self.minutes_delta(offset))

    # -- grid helpers -------------------------------------------------------

    def now_indicator_offset(self, day: date, now: datetime | None = None) -> float | None:
        """Offset of the current-time line, or None when ``day`` isn't today."""
        now = (now or datetime.now(self.tz)).astimezone(self.tz)
        if now.date() != day:
            return None
        return self.time_to_pixel(now)

    def initial_scroll_top(self, now: datetime | None = None, context_px: float = 100.0) -> float:
        """Scroll offset that shows the current hour with some context above."""
        now = (now or datetime.now(self.tz)).astimezone(self.tz)
        return max(now.hour * self.pixels_per_hour - context_px, 0.0)


def hour_labels() -> list[str]:
    """The 24 row labels of the time grid: 12:00 AM … 11:00 PM."""
    labels = []
    for hour in range(24):
        display = 12 if hour % 12 == 0 else hour % 12
        labels.append(f"{display}:00 {'AM' if hour < 12 else 'PM'}")
    return labels
