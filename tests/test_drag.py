"""Tests for drag targeting and autoscroll."""

import pytest
from textual.geometry import Region

from treewriter.drag import (
    IDLE,
    AutoScroller,
    CardSpot,
    ColumnSpot,
    DragController,
    DropPlan,
    GroupSpot,
    InsertTarget,
    ReparentTarget,
    ScrollArea,
    insertion_point,
)
from treewriter.model.query import get_children, root_cards

from .model.conftest import _make_card, _make_data


class FakeSurface:
    """Records affordance calls; hit_test returns whatever spots are set."""

    def __init__(self):
        self.spots = []
        self.area = None
        self.shown = []
        self.cleared = 0
        self.compact = []

    def hit_test(self, x, y):
        return self.spots

    def scroll_area_at(self, x, y):
        return self.area

    def show_target(self, target):
        self.shown.append(target)

    def clear_affordances(self):
        self.cleared += 1

    def set_compact(self, compact):
        self.compact.append(compact)


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.stopped = False

    def stop(self):
        self.stopped = True


class FakeScheduler:
    def __init__(self):
        self.timers = []

    def set_timer(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    def fire(self):
        """Fire the most recent pending timer."""
        timer = self.timers[-1]
        assert not timer.stopped
        timer.callback()


def _spot(card_id, y, height=3):
    return CardSpot(card_id, Region(0, y, 20, height))


@pytest.fixture
def data():
    """Roots a, b; a has children a1, a2; a1 has child a1x."""
    return _make_data(
        _make_card("a", order=0),
        _make_card("b", order=1),
        _make_card("a1", "a", 1, 0),
        _make_card("a2", "a", 1, 1),
        _make_card("a1x", "a1", 2, 0),
    )


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def controller(data, surface):
    return DragController(lambda: data, surface)


def _a_group():
    return GroupSpot("a", 1, (_spot("a1", 0), _spot("a2", 3)), Region(0, 0, 20, 8))


# --- insertion_point ---


def test_insertion_point_above_midline():
    members = [_spot("x", 0), _spot("y", 3)]
    assert insertion_point(members, 0) == "x"
    assert insertion_point(members, 3) == "y"


def test_insertion_point_below_midline():
    members = [_spot("x", 0), _spot("y", 3)]
    assert insertion_point(members, 2) == "y"
    assert insertion_point(members, 5) is None


def test_insertion_point_skips_dragged_card():
    members = [_spot("x", 0), _spot("y", 3)]
    assert insertion_point(members, 0, skip="x") == "y"
    assert insertion_point(members, 0, skip="y") == "x"
    assert insertion_point([_spot("x", 0)], 0, skip="x") is None


# --- state machine ---


def test_begin_enters_compact_mode(controller, surface):
    assert controller.begin("b")
    assert controller.dragging
    assert controller.source_id == "b"
    assert surface.compact == [True]


def test_begin_refuses_unknown_or_second_drag(controller):
    assert not controller.begin("missing")
    assert controller.begin("a")
    assert not controller.begin("b")
    assert controller.source_id == "a"


def test_resolve_when_idle(controller):
    assert controller.resolve([_spot("a", 0)], 0) is None


def test_card_spot_is_reparent_target(controller):
    controller.begin("b")
    assert controller.resolve([_spot("a1", 0), _a_group()], 0) == ReparentTarget("a1", 2)


def test_card_spot_inside_dragged_subtree_is_rejected(controller):
    controller.begin("a")
    assert controller.resolve([_spot("a1x", 0)], 0) is None
    assert controller.resolve([_spot("a", 0)], 0) is None


def test_group_spot_is_insert_target(controller):
    controller.begin("b")
    assert controller.resolve([_a_group()], 4) == InsertTarget("a", 1, "a2")
    assert controller.resolve([_a_group()], 7) == InsertTarget("a", 1, None)


def test_own_children_group_is_rejected(controller):
    controller.begin("a")
    assert controller.resolve([_a_group()], 4) is None


def test_reorder_within_own_sibling_group(controller):
    controller.begin("a2")
    assert controller.resolve([_a_group()], 0) == InsertTarget("a", 1, "a1")


def test_root_group(controller):
    controller.begin("a1")
    roots = GroupSpot(None, 0, (_spot("a", 0), _spot("b", 3)), Region(0, 0, 20, 6))
    assert controller.resolve([roots], 4) == InsertTarget(None, 0, "b")


def test_column_zero_area_inserts_before_first_root(controller):
    controller.begin("a")
    column = ColumnSpot(0, (_spot("a", 0), _spot("b", 3)), Region(0, 0, 20, 40))
    assert controller.resolve([column], 30) == InsertTarget(None, 0, "b")


def test_other_column_area_has_no_target(controller):
    controller.begin("a2")
    column = ColumnSpot(1, (_spot("a1", 0),), Region(20, 0, 20, 40))
    assert controller.resolve([column], 30) is None


# --- move and drop ---


def test_move_shows_and_clears_affordances(controller, surface):
    controller.begin("b")
    surface.spots = [_spot("a1", 0)]
    controller.move(5, 1)
    controller.move(5, 2)
    assert surface.shown == [ReparentTarget("a1", 2)]

    surface.spots = []
    assert controller.move(5, 30) is None
    assert surface.cleared == 1
    assert controller.target is None


def test_drop_onto_card_reparents(controller, surface, data):
    controller.begin("b")
    surface.spots = [_spot("a1x", 0)]
    controller.move(45, 1)
    assert controller.plan() == DropPlan("b", "a1x", 3)

    result = controller.drop()
    assert result
    assert data.cards["b"].parent_id == "a1x"
    assert data.cards["b"].column_index == 3
    assert controller.state == IDLE
    assert surface.compact == [True, False]


def test_drop_reorders_roots(controller, surface, data):
    controller.begin("b")
    surface.spots = [GroupSpot(None, 0, (_spot("a", 0), _spot("b", 3)), Region(0, 0, 20, 6))]
    controller.move(1, 0)
    controller.drop()
    assert [c.id for c in root_cards(data)] == ["b", "a"]
    assert data.cards["b"].color == "hsl(200, 60%, 90%)"
    assert data.cards["a1"].color == "hsl(230, 60%, 87%)"


def test_drop_without_target_changes_nothing(controller, data):
    before = {card_id: (c.parent_id, c.order) for card_id, c in data.cards.items()}
    controller.begin("a2")
    assert controller.drop() is None
    assert {card_id: (c.parent_id, c.order) for card_id, c in data.cards.items()} == before
    assert not controller.dragging


def test_rejected_drop_is_reported(data, surface):
    calls = []

    def refuse(*args, **kwargs):
        from treewriter.models import MoveResult

        calls.append(args)
        return MoveResult(False, reason="nope")

    controller = DragController(lambda: data, surface, mover=refuse)
    controller.begin("a2")
    surface.spots = [_spot("b", 0)]
    controller.move(0, 0)
    result = controller.drop()
    assert not result
    assert calls == [(data, "a2", 1, "b")]


def test_cancel(controller, surface):
    controller.begin("a")
    controller.cancel()
    assert controller.state == IDLE
    assert surface.compact == [True, False]
    controller.cancel()
    assert surface.compact == [True, False]


def test_drag_scenario_reparent_then_reorder(controller, surface, data):
    """Drag a2 onto b, then drag it above b's existing child."""
    controller.begin("b")
    surface.spots = [GroupSpot(None, 0, (_spot("a", 0), _spot("b", 3)), Region(0, 0, 20, 6))]
    controller.move(0, 5)
    controller.drop()

    data.cards["b1"] = _make_card("b1", "b", 1, 0)
    controller.begin("a2")
    surface.spots = [_spot("b", 0)]
    controller.move(0, 1)
    controller.drop()
    assert [c.id for c in get_children(data, "b")] == ["b1", "a2"]

    controller.begin("a2")
    group = GroupSpot("b", 1, (_spot("b1", 0), _spot("a2", 3)), Region(0, 0, 20, 6))
    surface.spots = [group]
    controller.move(0, 0)
    controller.drop()
    assert [c.id for c in get_children(data, "b")] == ["a2", "b1"]


# --- autoscroll ---


def _area(scrolled, key="col-1"):
    return ScrollArea(key, Region(0, 10, 20, 20), scrolled.append)


def test_direction_for_zones():
    scroller = AutoScroller(FakeScheduler(), zone=2)
    region = Region(0, 10, 20, 20)
    assert scroller.direction_for(region, 10) == -1
    assert scroller.direction_for(region, 11) == -1
    assert scroller.direction_for(region, 12) == 0
    assert scroller.direction_for(region, 27) == 0
    assert scroller.direction_for(region, 28) == 1


def test_autoscroll_steps_until_stopped():
    scheduler = FakeScheduler()
    scroller = AutoScroller(scheduler, speed=2, interval=0.05)
    scrolled = []
    scroller.update(_area(scrolled), 29)
    assert scroller.active
    assert scheduler.timers[0].delay == 0.05

    scheduler.fire()
    scheduler.fire()
    assert scrolled == [2, 2]

    scroller.update(_area(scrolled), 20)
    assert not scroller.active
    assert scheduler.timers[-1].stopped


def test_autoscroll_up():
    scheduler = FakeScheduler()
    scroller = AutoScroller(scheduler)
    scrolled = []
    scroller.update(_area(scrolled), 10)
    scheduler.fire()
    assert scrolled == [-1]


def test_autoscroll_same_zone_does_not_restart():
    scheduler = FakeScheduler()
    scroller = AutoScroller(scheduler)
    scrolled = []
    scroller.update(_area(scrolled), 29)
    scroller.update(_area(scrolled), 28)
    assert len(scheduler.timers) == 1


def test_autoscroll_switches_area():
    scheduler = FakeScheduler()
    scroller = AutoScroller(scheduler)
    first, second = [], []
    scroller.update(_area(first, "one"), 29)
    scroller.update(_area(second, "two"), 29)
    assert scheduler.timers[0].stopped
    scheduler.fire()
    assert first == []
    assert second == [1]


def test_drag_end_stops_autoscroll(data, surface):
    scheduler = FakeScheduler()
    scroller = AutoScroller(scheduler)
    controller = DragController(lambda: data, surface, scroller)
    scrolled = []
    surface.area = _area(scrolled)

    controller.begin("a")
    controller.move(0, 29)
    assert scroller.active
    controller.drop()
    assert not scroller.active
    assert scheduler.timers[-1].stopped
