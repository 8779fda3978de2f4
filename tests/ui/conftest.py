"""Fixtures for UI tests."""

import pytest

from treewriter.model.card import add_card
from treewriter.model.project import Workspace
from treewriter.storage import MemoryStore

SIZE = (140, 50)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def workspace(store):
    """Active project with roots "Alpha" and "Beta"; Alpha has children "One" and "Two"."""
    ws = Workspace.load(store)
    data = ws.data
    alpha = add_card(data, content="Alpha")
    add_card(data, content="Beta")
    add_card(data, alpha.id, 1, content="One")
    add_card(data, alpha.id, 1, content="Two")
    return ws


@pytest.fixture
def ids(workspace):
    return {card.content: card.id for card in workspace.data.cards.values()}
