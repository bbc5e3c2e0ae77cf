"""
QuestCal — Multi-select.

Rubber-band selection over the day grid. The box and the event blocks
live in the same content-pixel space the coordinate mapper produces, so
selecting is a plain rectangle intersection query.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def intersects(self, other: Rect) -> bool:
        # Touching edges count as an intersection
        return not (
            other.right < self.left
            or other.left > self.right
            or other.bottom < self.top
            or other.top > self.bottom
        )


@dataclass
class SelectionBox:
    """A box dragged from (start_x, start_y) to the current pointer."""

    start_x: float
    start_y: float
    current_x: float
    current_y: float

    def rect(self) -> Rect:
        """Normalized rectangle regardless of drag direction."""
        return Rect(
            left=min(self.start_x, self.current_x),
            top=min(self.start_y, self.current_y),
            right=max(self.start_x, self.current_x),
            bottom=max(self.start_y, self.current_y),
        )

    def is_meaningful(self, min_px: float) -> bool:
        """Tiny boxes are accidental clicks, not selections."""
        r = self.rect()
        return r.width > min_px and r.height > min_px


def events_in_box(blocks: dict[str, Rect], box: Rect) -> set[str]:
    """Ids of every block rectangle intersecting ``box``."""
    return {event_id for event_id, rect in blocks.items() if rect.intersects(box)}


@dataclass
class SelectionState:
    """Selected event ids plus the box being dragged, if any."""

    selected: set[str] = field(default_factory=set)
    box: SelectionBox | None = None

    def toggle(self, event_id: str) -> None:
        if event_id in self.selected:
            self.selected.discard(event_id)
        else:
            self.selected.add(event_id)

    def clear(self) -> None:
        self.selected = set()
        self.box = None

    def begin(self, x: float, y: float, extend: bool = False) -> None:
        if not extend:
            self.selected = set()
        self.box = SelectionBox(x, y, x, y)

    def update(self, x: float, y: float) -> None:
        if self.box is not None:
            self.box.current_x = x
            self.box.current_y = y

    def finish(self, blocks: dict[str, Rect], min_px: float) -> set[str]:
        """Close the box, adding every intersected block to the selection."""
        box, self.box = self.box, None
        if box is not None and box.is_meaningful(min_px):
            self.selected = self.selected | events_in_box(blocks, box.rect())
        return set(self.selected)
