"""Shared fixtures for CLI tests."""

from argparse import Namespace

import pytest

from treewriter.model.card import add_card
from treewriter.model.project import Workspace
from treewriter.storage import JsonFileStore


@pytest.fixture
def data_dir(tmp_path):
    """A data directory with one project "Novel" holding a small outline.

    Structure:
    - Part one
      - Opening
      - Middle
    - Part two
    """
    directory = tmp_path / "data"
    workspace = Workspace.load(JsonFileStore(directory))
    workspace.rename_project(workspace.active_project_id, "Novel")
    data = workspace.data
    part_one = add_card(data, content="Part one")
    add_card(data, part_one.id, 1, content="Opening")
    add_card(data, part_one.id, 1, content="Middle")
    add_card(data, content="Part two")
    workspace.save()
    return directory


@pytest.fixture
def make_args(data_dir, tmp_path):
    """Build a Namespace with the common options filled in."""

    def make(**kwargs):
        defaults = {"data_dir": str(data_dir), "config": str(tmp_path / "config"), "json": False}
        return Namespace(**{**defaults, **kwargs})

    return make


@pytest.fixture
def load(data_dir):
    """Reload the workspace from disk."""
    return lambda: Workspace.load(JsonFileStore(data_dir))
