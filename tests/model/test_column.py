"""Tests for column and prompt operations."""

from treewriter.model.card import add_card
from treewriter.model.column import (
    add_column,
    can_delete_column,
    delete_column,
    ensure_columns,
    set_column_prompt,
    set_global_prompt,
)
from treewriter.models import MIN_COLUMNS


def test_ensure_columns(forest):
    assert ensure_columns(forest, 1) == 0
    assert ensure_columns(forest, 5) == 3
    assert len(forest.columns) == 6


def test_add_column(forest):
    assert add_column(forest) == 3
    assert len(forest.columns) == 4
    assert forest.columns[3].prompt == ""


def test_column_ids_are_unique(forest):
    add_column(forest)
    add_column(forest)
    ids = [col.id for col in forest.columns]
    assert len(ids) == len(set(ids))


def test_cannot_delete_minimum_columns(forest):
    assert len(forest.columns) == MIN_COLUMNS
    assert not can_delete_column(forest, 2)
    assert not delete_column(forest, 2)
    assert len(forest.columns) == MIN_COLUMNS


def test_delete_empty_rightmost_column(forest):
    add_column(forest)
    assert can_delete_column(forest, 3)
    assert delete_column(forest, 3)
    assert len(forest.columns) == 3


def test_cannot_delete_inner_column(forest):
    add_column(forest)
    add_column(forest)
    assert not can_delete_column(forest, 3)


def test_cannot_delete_column_with_cards(forest):
    add_card(forest, "a1x", 3)
    add_column(forest)
    assert not can_delete_column(forest, 3)
    assert delete_column(forest, 4)
    assert not delete_column(forest, 3)


def test_set_column_prompt(forest):
    calls = []
    forest.watch(calls.append)
    assert set_column_prompt(forest, 1, "Write scenes")
    assert forest.columns[1].prompt == "Write scenes"
    assert not set_column_prompt(forest, 1, "Write scenes")
    assert not set_column_prompt(forest, 9, "x")
    assert len(calls) == 1


def test_set_global_prompt(forest):
    assert set_global_prompt(forest, "A mystery novel")
    assert forest.global_prompt == "A mystery novel"
    assert not set_global_prompt(forest, "A mystery novel")
