"""Tests for the board screen."""

import json

import pytest

from treewriter.drag import CardSpot, ColumnSpot, GroupSpot, InsertTarget, ReparentTarget
from treewriter.model.query import get_children, root_cards
from treewriter.storage import PROJECTS_KEY
from treewriter.ui import WriterApp
from treewriter.ui.board import BoardScreen
from treewriter.ui.card import CardWidget, GapIndicator, GroupWidget, card_background, card_text
from treewriter.ui.column import ColumnWidget
from treewriter.ui.dialogs import CardEditor, ChoiceScreen, cursor_offset

from .conftest import SIZE


def _board(app) -> BoardScreen:
    assert isinstance(app.screen, BoardScreen)
    return app.screen


@pytest.mark.asyncio
async def test_columns_and_groups(workspace, ids):
    app = WriterApp(workspace)
    async with app.run_test(size=SIZE) as pilot:
        await pilot.pause()
        board = _board(app)
        columns = board.column_widgets()
        assert len(columns) == 3
        assert [w.card_id for w in columns[0].card_widgets()] == [ids["Alpha"], ids["Beta"]]
        groups = list(columns[1].query(GroupWidget))
        assert [g.parent_id for g in groups] == [ids["Alpha"], ids["Beta"]]
        assert [w.card_id for w in groups[0].card_widgets()] == [ids["One"], ids["Two"]]
        assert groups[1].card_widgets() == []


@pytest.mark.asyncio
async def test_first_card_is_focused(workspace, ids):
    app = WriterApp(workspace)
    async with app.run_test(size=SIZE) as pilot:
        await pilot.pause()
        assert _board(app).focused_card_id == ids["Alpha"]


@pytest.mark.asyncio
async def test_keyboard_navigation(workspace, ids):
    app = WriterApp(workspace)
    async with app.run_test(size=SIZE) as pilot:
        await pilot.pause()
        board = _board(app)
        await pilot.press("right")
        assert board.focused_card_id == ids["One"]
        await pilot.press("down")
        assert board.focused_card_id == ids["Two"]
        await pilot.press("left")
        assert board.focused_card_id == ids["Alpha"]
        await pilot.press("down")
        assert board.focused_card_id == ids["Beta"]


@pytest.mark.asyncio
async def test_add_sibling_opens_editor(workspace, ids):
    app = WriterApp(workspace)
    async with app.run_test(size=SIZE) as pilot:
        await pilot.pause()
        await pilot.press("a")
        await pilot.pause()
        assert isinstance(app.screen, CardEditor)
        await pilot.press("escape")
        await pilot.pause()

        data = workspace.data
        roots = root_cards(data)
        assert [c.content for c in roots] == ["Alpha", "", "Beta"]
        assert _board(app).focused_card_id == roots[1].id


@pytest.mark.asyncio
async def test_add_child_and_save_text(workspace, ids):
    app = WriterApp(workspace)
    async with app.run_test(size=SIZE) as pilot:
        await pilot.pause()
        await pilot.press("down", "c")
        await pilot.pause()
        editor = app.screen
        assert isinstance(editor, CardEditor)
        editor.query_one("TextArea").text = "Beta detail"
        await pilot.press("ctrl+s")
        await pilot.pause()

        children = get_children(workspace.data, ids["Beta"])
        assert [c.content for c in children] == ["Beta detail"]
        widget = _board(app).card_widget(children[0].id)
        assert widget is not None
        assert widget.column_index == 1


@pytest.mark.asyncio
async def test_delete_leaf(workspace, ids):
    app = WriterApp(workspace)
    async with app.run_test(size=SIZE) as pilot:
        await pilot.pause()
        await pilot.press("down", "d")
        await app.workers.wait_for_complete()
        await pilot.pause()
        assert ids["Beta"] not in workspace.data.cards
        assert _board(app).card_widget(ids["Beta"]) is None


@pytest.mark.asyncio
async def test_delete_with_descendants_asks_first(workspace, ids):
    app = WriterApp(workspace)
    async with app.run_test(size=SIZE) as pilot:
        await pilot.pause()
        await pilot.press("d")
        await pilot.pause()
        assert isinstance(app.screen, ChoiceScreen)
        await pilot.press("escape")
        await pilot.pause()
        assert ids["Alpha"] in workspace.data.cards


@pytest.mark.asyncio
async def test_busy_generation_blocks_structure(workspace, ids):
    app = WriterApp(workspace)
    async with app.run_test(size=SIZE) as pilot:
        await pilot.pause()
        board = _board(app)
        board.session.busy = True
        count = len(workspace.data.cards)
        await pilot.press("a")
        await pilot.pause()
        assert len(workspace.data.cards) == count
        assert isinstance(app.screen, BoardScreen)


@pytest.mark.asyncio
async def test_busy_generation_blocks_columns_and_projects(workspace):
    app = WriterApp(workspace)
    async with app.run_test(size=SIZE) as pilot:
        await pilot.pause()
        board = _board(app)
        await board.action_add_column()
        board.session.busy = True
        await board.action_add_column()
        assert len(workspace.data.columns) == 4
        await board.action_delete_column()
        assert len(workspace.data.columns) == 4
        board.action_switch_project()
        board.action_new_project()
        await pilot.pause()
        assert isinstance(app.screen, BoardScreen)
        assert len(workspace.projects) == 1


@pytest.mark.asyncio
async def test_add_and_remove_column(workspace):
    app = WriterApp(workspace)
    async with app.run_test(size=SIZE) as pilot:
        await pilot.pause()
        board = _board(app)
        await board.action_add_column()
        assert len(board.column_widgets()) == 4
        await board.action_delete_column()
        assert len(board.column_widgets()) == 3
        await board.action_delete_column()
        assert len(board.column_widgets()) == 3


@pytest.mark.asyncio
async def test_hit_test_reports_innermost_first(workspace, ids):
    app = WriterApp(workspace)
    async with app.run_test(size=SIZE) as pilot:
        await pilot.pause()
        board = _board(app)
        region = board.card_widget(ids["One"]).region
        spots = board.hit_test(region.x + 1, region.y + 1)
        assert isinstance(spots[0], CardSpot)
        assert spots[0].card_id == ids["One"]
        assert isinstance(spots[1], GroupSpot)
        assert spots[1].parent_id == ids["Alpha"]
        assert isinstance(spots[-1], ColumnSpot)
        assert spots[-1].column_index == 1
        assert board.scroll_area_at(region.x + 1, region.y + 1).key == 1


@pytest.mark.asyncio
async def test_affordances(workspace, ids):
    app = WriterApp(workspace)
    async with app.run_test(size=SIZE) as pilot:
        await pilot.pause()
        board = _board(app)
        board.show_target(InsertTarget(ids["Alpha"], 1, ids["Two"]))
        await pilot.pause()
        group = board.group_widget(ids["Alpha"], 1)
        kinds = [type(child) for child in group.children]
        assert kinds.index(GapIndicator) == kinds.index(CardWidget) + 1

        board.show_target(ReparentTarget(ids["Beta"], 1))
        await pilot.pause()
        assert not list(board.query(GapIndicator))
        assert board.card_widget(ids["Beta"]).has_class("drop-parent")

        board.clear_affordances()
        assert not board.card_widget(ids["Beta"]).has_class("drop-parent")


@pytest.mark.asyncio
async def test_drop_moves_card_and_saves(workspace, ids, store):
    app = WriterApp(workspace)
    async with app.run_test(size=SIZE) as pilot:
        await pilot.pause()
        board = _board(app)
        assert board.controller.begin(ids["Two"])
        assert board.query_one("#columns").has_class("compact")
        board.controller.state.target = ReparentTarget(ids["Beta"], 1)
        await board.on_mouse_up(None)
        await pilot.pause()

        assert not board.query_one("#columns").has_class("compact")
        assert workspace.data.cards[ids["Two"]].parent_id == ids["Beta"]
        beta_group = board.group_widget(ids["Beta"], 1)
        assert [w.card_id for w in beta_group.card_widgets()] == [ids["Two"]]
        saved = json.loads(store.values[PROJECTS_KEY])
        project = saved[workspace.active_project_id]
        assert project["data"]["cards"][ids["Two"]]["parent_id"] == ids["Beta"]


@pytest.mark.asyncio
async def test_escape_cancels_drag(workspace, ids):
    app = WriterApp(workspace)
    async with app.run_test(size=SIZE) as pilot:
        await pilot.pause()
        board = _board(app)
        board.controller.begin(ids["Two"])
        await pilot.press("escape")
        assert not board.controller.dragging
        assert workspace.data.cards[ids["Two"]].parent_id == ids["Alpha"]


@pytest.mark.asyncio
async def test_quit_saves(workspace, store):
    store.values.clear()
    app = WriterApp(workspace)
    async with app.run_test(size=SIZE) as pilot:
        await pilot.pause()
        await pilot.press("ctrl+q")
    assert PROJECTS_KEY in store.values


def test_card_text_preview(workspace, ids):
    card = workspace.data.cards[ids["Alpha"]]
    card.content = "\n".join(str(i) for i in range(10))
    card.name = "Intro"
    text = card_text(card)
    assert text.startswith("[Intro]\n0\n")
    assert text.endswith("5\n…")


def test_card_background(workspace, ids):
    card = workspace.data.cards[ids["Alpha"]]
    assert card_background(card).brightness > 0.5
    card.color = ""
    assert card_background(card) is None


def test_cursor_offset():
    assert cursor_offset("ab\ncd", 0, 1) == 1
    assert cursor_offset("ab\ncd", 1, 2) == 5
    assert cursor_offset("ab\ncd", 1, 9) == 5


def test_column_titles(workspace):
    workspace.data.columns[1].prompt = "Scenes in detail for every chapter"
    assert ColumnWidget(workspace.data, 0).title() == "Column 1"
    assert ColumnWidget(workspace.data, 1).title() == "Column 2: Scenes in detail fo…"
