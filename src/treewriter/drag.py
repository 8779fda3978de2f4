"""Drag targeting: reduce pointer geometry to a move.

The presentation layer reports what lies under the pointer as hotspots
(cards, sibling groups, column areas). DragController turns those into a
target, shows it through the surface, and on drop hands a DropPlan to
the model's move operation. AutoScroller keeps a scroll area moving while
the pointer rests in its top or bottom edge zone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Protocol, Sequence, Union

from textual.geometry import Region

from treewriter.model.card import move_card
from treewriter.model.query import is_descendant
from treewriter.models import MoveResult, ProjectData

logger = logging.getLogger(__name__)

SCROLL_SPEED = 1
SCROLL_TRIGGER_ZONE = 2
SCROLL_INTERVAL = 1 / 30


# --- Hotspots reported by the surface ---


@dataclass(frozen=True)
class CardSpot:
    card_id: str
    region: Region


@dataclass(frozen=True)
class GroupSpot:
    """A sibling group: the children of parent_id (None for the roots)."""

    parent_id: str | None
    column_index: int
    members: tuple[CardSpot, ...]
    region: Region


@dataclass(frozen=True)
class ColumnSpot:
    """The list area of a column, outside any group."""

    column_index: int
    entries: tuple[CardSpot, ...]
    region: Region


Hotspot = Union[CardSpot, GroupSpot, ColumnSpot]


# --- Resolved targets ---


@dataclass(frozen=True)
class ReparentTarget:
    """Drop onto a card: become its last child."""

    parent_id: str
    column_index: int


@dataclass(frozen=True)
class InsertTarget:
    """Drop into a sibling list before insert_before (None appends)."""

    parent_id: str | None
    column_index: int
    insert_before: str | None


Target = Union[ReparentTarget, InsertTarget]


@dataclass(frozen=True)
class DropPlan:
    card_id: str
    parent_id: str | None
    column_index: int
    insert_before: str | None = None


# --- Drag state ---


@dataclass(frozen=True)
class Idle:
    pass


@dataclass
class Dragging:
    source_id: str
    target: Target | None = None


IDLE = Idle()


# --- Collaborators ---


@dataclass(frozen=True)
class ScrollArea:
    """A scrollable container under the pointer. Equal when key is equal."""

    key: object
    region: Region = field(compare=False)
    scroll: Callable[[int], None] = field(compare=False)


class DragSurface(Protocol):
    def hit_test(self, x: int, y: int) -> Sequence[Hotspot]:
        """Hotspots under the pointer, innermost first."""

    def scroll_area_at(self, x: int, y: int) -> ScrollArea | None: ...

    def show_target(self, target: Target) -> None: ...

    def clear_affordances(self) -> None: ...

    def set_compact(self, compact: bool) -> None: ...


class TimerHandle(Protocol):
    def stop(self) -> None: ...


class Scheduler(Protocol):
    """Anything with Textual's ``set_timer`` shape."""

    def set_timer(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


Mover = Callable[..., MoveResult]


class AutoScroller:
    """Constant-speed scrolling while the pointer is in an edge zone.

    Each step is a one-shot timer: fire, check still active, scroll,
    schedule the next. ``stop()`` cancels the pending step.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        speed: int = SCROLL_SPEED,
        zone: int = SCROLL_TRIGGER_ZONE,
        interval: float = SCROLL_INTERVAL,
    ):
        self.scheduler = scheduler
        self.speed = speed
        self.zone = zone
        self.interval = interval
        self.area: ScrollArea | None = None
        self.direction = 0
        self._pending: TimerHandle | None = None

    @property
    def active(self) -> bool:
        return self._pending is not None

    def direction_for(self, region: Region, y: int) -> int:
        """-1 in the top zone, 1 in the bottom zone, else 0."""
        if y < region.y + self.zone:
            return -1
        if y >= region.bottom - self.zone:
            return 1
        return 0

    def update(self, area: ScrollArea | None, y: int) -> None:
        if area is None:
            self.stop()
            return
        direction = self.direction_for(area.region, y)
        if direction == 0:
            self.stop()
            return
        if self.active and area == self.area and direction == self.direction:
            return
        self.stop()
        self.area = area
        self.direction = direction
        self._schedule()

    def _schedule(self) -> None:
        self._pending = self.scheduler.set_timer(self.interval, self._step)

    def _step(self) -> None:
        self._pending = None
        if self.area is None:
            return
        self.area.scroll(self.direction * self.speed)
        self._schedule()

    def stop(self) -> None:
        if self._pending is not None:
            self._pending.stop()
            self._pending = None
        self.area = None
        self.direction = 0


def _midline(region: Region) -> float:
    return region.y + region.height / 2


def insertion_point(members: Sequence[CardSpot], y: int, skip: str | None = None) -> str | None:
    """Card id to insert before, from the member nearest to y by midline.

    Above the nearest member's midline inserts before it; below inserts
    before the member after it (None when it is last).
    """
    candidates = [spot for spot in members if spot.card_id != skip]
    if not candidates:
        return None
    nearest = min(range(len(candidates)), key=lambda i: abs(y - _midline(candidates[i].region)))
    if y < _midline(candidates[nearest].region):
        return candidates[nearest].card_id
    if nearest + 1 < len(candidates):
        return candidates[nearest + 1].card_id
    return None


class DragController:
    """Idle/Dragging state machine for moving cards by pointer."""

    def __init__(
        self,
        data_source: Callable[[], ProjectData | None],
        surface: DragSurface,
        scroller: AutoScroller | None = None,
        mover: Mover = move_card,
    ):
        self.data_source = data_source
        self.surface = surface
        self.scroller = scroller
        self.mover = mover
        self.state: Idle | Dragging = IDLE

    @property
    def dragging(self) -> bool:
        return isinstance(self.state, Dragging)

    @property
    def source_id(self) -> str | None:
        return self.state.source_id if isinstance(self.state, Dragging) else None

    @property
    def target(self) -> Target | None:
        return self.state.target if isinstance(self.state, Dragging) else None

    def begin(self, card_id: str) -> bool:
        """Start dragging card_id. False if already dragging or unknown."""
        data = self.data_source()
        if self.dragging or data is None or card_id not in data.cards:
            return False
        self.state = Dragging(card_id)
        self.surface.set_compact(True)
        logger.debug("Drag started for %s", card_id)
        return True

    def resolve(self, spots: Sequence[Hotspot], y: int) -> Target | None:
        """Target for the hotspots under the pointer while dragging."""
        if not isinstance(self.state, Dragging):
            return None
        data = self.data_source()
        if data is None:
            return None
        source = self.state.source_id

        def inside_source(card_id: str) -> bool:
            return card_id == source or is_descendant(data, card_id, source)

        card_spot = next((s for s in spots if isinstance(s, CardSpot)), None)
        if card_spot is not None:
            card = data.cards.get(card_spot.card_id)
            if card is None or inside_source(card.id):
                return None
            return ReparentTarget(card.id, card.column_index + 1)

        group = next((s for s in spots if isinstance(s, GroupSpot)), None)
        if group is not None:
            if group.parent_id is None:
                column_index = 0
            else:
                owner = data.cards.get(group.parent_id)
                if owner is None or inside_source(owner.id):
                    return None
                column_index = owner.column_index + 1
            return InsertTarget(group.parent_id, column_index, insertion_point(group.members, y, skip=source))

        column = next((s for s in spots if isinstance(s, ColumnSpot)), None)
        if column is not None and column.column_index == 0:
            first = next((e.card_id for e in column.entries if e.card_id != source), None)
            return InsertTarget(None, 0, first)
        return None

    def move(self, x: int, y: int) -> Target | None:
        """Pointer moved while dragging: re-resolve the target and autoscroll."""
        if not isinstance(self.state, Dragging):
            return None
        target = self.resolve(self.surface.hit_test(x, y), y)
        if target != self.state.target:
            self.state.target = target
            if target is None:
                self.surface.clear_affordances()
            else:
                self.surface.show_target(target)
        if self.scroller is not None:
            self.scroller.update(self.surface.scroll_area_at(x, y), y)
        return target

    def plan(self) -> DropPlan | None:
        if not isinstance(self.state, Dragging) or self.state.target is None:
            return None
        target = self.state.target
        insert_before = target.insert_before if isinstance(target, InsertTarget) else None
        return DropPlan(self.state.source_id, target.parent_id, target.column_index, insert_before)

    def drop(self) -> MoveResult | None:
        """Finish the drag. Returns the move result, or None if nothing moved."""
        if not isinstance(self.state, Dragging):
            return None
        plan = self.plan()
        self._finish()
        data = self.data_source()
        if plan is None or data is None:
            logger.debug("Drag dropped with no target")
            return None
        result = self.mover(
            data,
            plan.card_id,
            plan.column_index,
            plan.parent_id,
            insert_before=plan.insert_before,
        )
        if not result:
            logger.info("Drop of %s rejected: %s", plan.card_id, result.reason)
        return result

    def cancel(self) -> None:
        if isinstance(self.state, Dragging):
            logger.debug("Drag of %s cancelled", self.state.source_id)
            self._finish()

    def _finish(self) -> None:
        self.surface.clear_affordances()
        self.surface.set_compact(False)
        if self.scroller is not None:
            self.scroller.stop()
        self.state = IDLE
