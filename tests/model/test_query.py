"""Tests for read-only forest queries."""

from treewriter.model.query import (
    color_of,
    get_ancestor_ids,
    get_card,
    get_children,
    get_column,
    get_column_cards,
    get_descendant_ids,
    get_siblings,
    is_descendant,
    root_cards,
)

from .conftest import _make_card, _make_data


def test_get_card(forest):
    assert get_card(forest, "a1").id == "a1"
    assert get_card(forest, "missing") is None
    assert get_card(forest, None) is None


def test_get_column(forest):
    assert get_column(forest, 0).id == "col-0"
    assert get_column(forest, 3) is None
    assert get_column(forest, -1) is None


def test_column_cards_follow_parent_order():
    """Groups in a column follow their parents' order, not their own."""
    data = _make_data(
        _make_card("p", order=0),
        _make_card("q", order=1),
        _make_card("q1", "q", 1, -5),
        _make_card("p2", "p", 1, 9),
        _make_card("p1", "p", 1, 3),
    )
    assert [c.id for c in get_column_cards(data, 1)] == ["p1", "p2", "q1"]


def test_column_cards_deep_groups(forest):
    assert [c.id for c in get_column_cards(forest, 0)] == ["a", "b"]
    assert [c.id for c in get_column_cards(forest, 1)] == ["a1", "a2", "b1"]
    assert [c.id for c in get_column_cards(forest, 2)] == ["a1x"]
    assert get_column_cards(forest, 5) == []


def test_get_children(forest):
    assert [c.id for c in get_children(forest, "a")] == ["a1", "a2"]
    assert [c.id for c in get_children(forest, "a", 1)] == ["a1", "a2"]
    assert get_children(forest, "a", 2) == []
    assert get_children(forest, "a2") == []


def test_get_children_of_none_are_roots(forest):
    assert [c.id for c in get_children(forest, None)] == ["a", "b"]


def test_root_cards_ignore_orphans():
    data = _make_data(_make_card("r", order=1), _make_card("stray", None, 1, 0))
    assert [c.id for c in root_cards(data)] == ["r"]


def test_get_siblings(forest):
    assert [c.id for c in get_siblings(forest, "a2")] == ["a1", "a2"]
    assert [c.id for c in get_siblings(forest, "b")] == ["a", "b"]
    assert get_siblings(forest, "missing") == []


def test_get_descendant_ids_preorder(forest):
    assert get_descendant_ids(forest, "a") == ["a1", "a1x", "a2"]
    assert get_descendant_ids(forest, "a2") == []


def test_get_ancestor_ids(forest):
    assert get_ancestor_ids(forest, "a1x") == ["a", "a1"]
    assert get_ancestor_ids(forest, "a") == []


def test_ancestors_stop_at_cycle():
    data = _make_data(_make_card("x", "y", 1), _make_card("y", "x", 1))
    assert get_ancestor_ids(data, "x") == ["y"]


def test_is_descendant(forest):
    assert is_descendant(forest, "a1x", "a")
    assert not is_descendant(forest, "a", "a1x")
    assert not is_descendant(forest, "a", "a")
    assert not is_descendant(forest, "b1", "a")


def test_color_cascade(forest):
    assert color_of(forest, forest.cards["a"]) == "hsl(200, 60%, 90%)"
    assert color_of(forest, forest.cards["b"]) == "hsl(230, 60%, 90%)"
    assert color_of(forest, forest.cards["a1"]) == "hsl(200, 60%, 87%)"
    assert color_of(forest, forest.cards["a1x"]) == "hsl(200, 60%, 84%)"
    assert color_of(forest, forest.cards["b1"]) == "hsl(230, 60%, 87%)"


def test_color_of_orphans_and_cycles():
    data = _make_data(
        _make_card("stray", None, 1),
        _make_card("lost", "gone", 1),
        _make_card("x", "y", 1),
        _make_card("y", "x", 2),
    )
    assert color_of(data, data.cards["stray"]) == "hsl(200, 60%, 90%)"
    assert color_of(data, data.cards["lost"]) == "hsl(200, 60%, 87%)"
    assert color_of(data, data.cards["x"]).startswith("hsl(200, 60%")


def test_cached_colors_match_cascade(forest):
    for card in forest.cards.values():
        assert card.color == color_of(forest, card)
