"""Shared test helpers for model tests."""

import pytest

from treewriter.model.card import refresh_colors
from treewriter.models import Card, Column, ProjectData


def _make_card(card_id, parent_id=None, column_index=0, order=0.0, content=""):
    """Helper to build a card."""
    return Card(id=card_id, parent_id=parent_id, column_index=column_index, order=order, content=content or card_id)


def _make_data(*cards, columns=3, global_prompt=""):
    """Helper to build project data with cached colors."""
    data = ProjectData(
        columns=[Column(id=f"col-{i}") for i in range(columns)],
        cards={card.id: card for card in cards},
        global_prompt=global_prompt,
    )
    refresh_colors(data)
    return data


@pytest.fixture
def forest():
    """Two roots with a small tree under the first.

    Structure (column: cards):
    0: a, b
    1: a1, a2 (under a), b1 (under b)
    2: a1x (under a1)
    """
    return _make_data(
        _make_card("a", order=0),
        _make_card("b", order=1),
        _make_card("a1", "a", 1, 0),
        _make_card("a2", "a", 1, 1),
        _make_card("b1", "b", 1, 0),
        _make_card("a1x", "a1", 2, 0),
    )
