"""Board screen: the columns of the active project."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.errors import NoWidget
from textual.screen import Screen
from textual.widgets import Footer, Static

from treewriter.config import DEFAULTS
from treewriter.drag import (
    AutoScroller,
    CardSpot,
    ColumnSpot,
    DragController,
    GroupSpot,
    Hotspot,
    ReparentTarget,
    ScrollArea,
    Target,
)
from treewriter.generation import ChatClient, ChatSettings, GenerationSession, Mode
from treewriter.model import (
    add_card,
    add_column,
    delete_column,
    delete_subtree,
    get_descendant_ids,
    get_siblings,
    merge_with_next,
    merge_with_previous,
    set_column_prompt,
    set_global_prompt,
    split_as_child,
    split_below,
    update_content,
)
from treewriter.model.edits import first_child, next_card, parent_card, previous_card
from treewriter.model.project import Workspace
from treewriter.models import ProjectData
from treewriter.ui.card import CardWidget, GapIndicator, GroupWidget
from treewriter.ui.column import ColumnWidget
from treewriter.ui.dialogs import CardEditor, ChoiceScreen, EditorResult, TextPrompt

logger = logging.getLogger(__name__)

GENERATION_CHOICES = [
    (Mode.CONTINUE.value, "Continue: write the next card"),
    (Mode.SUMMARIZE.value, "Summarize this card"),
    (Mode.BREAKDOWN.value, "Break down into child cards"),
    (Mode.EXPAND.value, "Expand into a richer version"),
    (Mode.CUSTOM.value, "Custom instruction…"),
]


class BoardScreen(Screen):
    """Columns of cards for the active project, with keyboard and drag editing."""

    BINDINGS = [
        Binding("escape", "cancel_drag", "Cancel drag", show=False),
        ("ctrl+s", "save", "Save"),
        ("a", "add_card", "Add"),
        ("c", "add_child", "Child"),
        ("e", "edit_card", "Edit"),
        Binding("enter", "edit_card", "Edit", show=False),
        ("d", "delete_card", "Delete"),
        Binding("backspace", "merge_previous", "Merge up", show=False),
        Binding("m", "merge_next", "Merge down", show=False),
        Binding("up", "focus_previous", show=False),
        Binding("down", "focus_next", show=False),
        Binding("left", "focus_parent", show=False),
        Binding("right", "focus_child", show=False),
        ("g", "generate", "AI"),
        ("p", "column_prompt", "Column prompt"),
        ("o", "global_prompt", "Global prompt"),
        Binding("plus", "add_column", "Add column", show=False),
        Binding("minus", "delete_column", "Remove column", show=False),
        ("ctrl+o", "switch_project", "Projects"),
        Binding("ctrl+n", "new_project", "New project", show=False),
        Binding("ctrl+r", "rename_project", "Rename project", show=False),
    ]

    DEFAULT_CSS = """
    BoardScreen #board-title {
        width: 100%;
        height: 1;
        text-style: bold;
        padding: 0 1;
        background: $primary-darken-2;
    }
    BoardScreen #columns {
        width: 100%;
        height: 1fr;
    }
    """

    def __init__(self, workspace: Workspace, config: dict[str, dict[str, Any]] | None = None):
        super().__init__()
        self.workspace = workspace
        config = config or {}
        options = {**{k.replace("-", "_"): v for k, v in DEFAULTS["treewriter"].items()}, **config.get("treewriter", {})}
        self.controller = DragController(
            lambda: self.workspace.data,
            self,
            AutoScroller(
                self,
                speed=options["scroll_speed"],
                zone=options["scroll_zone"],
                interval=options["scroll_interval"],
            ),
        )
        self.drag_threshold = options["drag_threshold"]
        self.chat_settings = ChatSettings.from_config(config.get("ai", {}))
        self.session = GenerationSession(
            lambda: self.workspace.data,
            ChatClient(self.chat_settings),
            on_update=self._on_generation_update,
        )
        self._indicator: GapIndicator | None = None
        self._drop_parent: CardWidget | None = None

    @property
    def data(self) -> ProjectData:
        return self.workspace.data

    def compose(self) -> ComposeResult:
        yield Static(self._title_text(), id="board-title", markup=False)
        with Horizontal(id="columns"):
            for index in range(len(self.data.columns)):
                yield ColumnWidget(self.data, index)
        yield Footer()

    def on_mount(self) -> None:
        self._apply_threshold()
        self.call_after_refresh(self._focus_first_card)

    def _title_text(self) -> str:
        project = self.workspace.active_project
        return project.title if project else ""

    def _apply_threshold(self) -> None:
        for widget in self.query(CardWidget):
            widget.DRAG_THRESHOLD = self.drag_threshold

    # -- Rendering --

    def column_widgets(self) -> list[ColumnWidget]:
        container = self.query_one("#columns", Horizontal)
        return [child for child in container.children if isinstance(child, ColumnWidget)]

    def card_widget(self, card_id: str | None) -> CardWidget | None:
        if card_id is None:
            return None
        return next((w for w in self.query(CardWidget) if w.card_id == card_id), None)

    def group_widget(self, parent_id: str | None, column_index: int) -> GroupWidget | None:
        return next(
            (g for g in self.query(GroupWidget) if g.parent_id == parent_id and g.column_index == column_index),
            None,
        )

    async def refresh_columns(self, indices: Iterable[int] | None = None, focus: str | None = None) -> None:
        """Re-render the given columns, or all of them when the layout changed."""
        data = self.data
        container = self.query_one("#columns", Horizontal)
        widgets = self.column_widgets()
        if indices is None or len(widgets) != len(data.columns) or any(w.data is not data for w in widgets):
            await container.remove_children()
            await container.mount_all([ColumnWidget(data, i) for i in range(len(data.columns))])
        else:
            for index in sorted(set(indices)):
                if 0 <= index < len(widgets):
                    await widgets[index].rebuild()
        self.query_one("#board-title", Static).update(self._title_text())
        self._apply_threshold()
        if focus is not None:
            self.call_after_refresh(self.focus_card, focus)

    def focus_card(self, card_id: str) -> None:
        widget = self.card_widget(card_id)
        if widget is not None:
            widget.focus()
            widget.scroll_visible()

    def _focus_first_card(self) -> None:
        cards = list(self.query(CardWidget))
        if cards:
            cards[0].focus()

    @property
    def focused_card_id(self) -> str | None:
        focused = self.focused
        return focused.card_id if isinstance(focused, CardWidget) else None

    def save(self) -> bool:
        return self.workspace.save()

    def _structure_locked(self) -> bool:
        if self.session.busy:
            self.notify("Wait for the running generation to finish", severity="warning")
            return True
        return False

    # -- DragSurface --

    def hit_test(self, x: int, y: int) -> list[Hotspot]:
        try:
            widget, _region = self.get_widget_at(x, y)
        except NoWidget:
            return []
        spots: list[Hotspot] = []
        node = widget
        while node is not None and node is not self:
            if isinstance(node, CardWidget):
                spots.append(node.spot())
            elif isinstance(node, GroupWidget):
                members = tuple(card.spot() for card in node.card_widgets())
                spots.append(GroupSpot(node.parent_id, node.column_index, members, node.region))
            elif isinstance(node, ColumnWidget):
                entries: tuple[CardSpot, ...] = ()
                if node.column_index == 0:
                    roots = self.group_widget(None, 0)
                    entries = tuple(card.spot() for card in roots.card_widgets()) if roots else ()
                spots.append(ColumnSpot(node.column_index, entries, node.region))
            node = node.parent
        return spots

    def scroll_area_at(self, x: int, y: int) -> ScrollArea | None:
        try:
            widget, _region = self.get_widget_at(x, y)
        except NoWidget:
            return None
        node = widget
        while node is not None and not isinstance(node, ColumnWidget):
            node = node.parent
        return node.scroll_area() if node is not None else None

    def show_target(self, target: Target) -> None:
        self.clear_affordances()
        if isinstance(target, ReparentTarget):
            widget = self.card_widget(target.parent_id)
            if widget is not None:
                widget.add_class("drop-parent")
                self._drop_parent = widget
            return
        group = self.group_widget(target.parent_id, target.column_index)
        if group is None:
            return
        before = self.card_widget(target.insert_before)
        self._indicator = GapIndicator()
        if before is not None and before.parent is group:
            group.mount(self._indicator, before=before)
        else:
            group.mount(self._indicator)

    def clear_affordances(self) -> None:
        if self._indicator is not None and self._indicator.parent is not None:
            self._indicator.remove()
        self._indicator = None
        if self._drop_parent is not None:
            self._drop_parent.remove_class("drop-parent")
        self._drop_parent = None

    def set_compact(self, compact: bool) -> None:
        self.query_one("#columns", Horizontal).set_class(compact, "compact")

    # -- Mouse routing while dragging --

    def on_card_widget_drag_started(self, event: CardWidget.DragStarted) -> None:
        event.stop()
        if self._structure_locked():
            return
        if self.controller.begin(event.card_widget.card_id):
            event.card_widget.add_class("dragging")
            self.capture_mouse()

    def on_mouse_move(self, event) -> None:
        if self.controller.dragging:
            self.controller.move(event.screen_x, event.screen_y)

    async def on_mouse_up(self, event) -> None:
        if not self.controller.dragging:
            return
        self.release_mouse()
        source_id = self.controller.source_id
        result = self.controller.drop()
        self._end_drag_styles()
        if result:
            await self.refresh_columns(result.affected_columns, focus=source_id)
            self.save()
        elif result is not None:
            self.notify(result.reason or "Cannot move there", severity="warning")

    def action_cancel_drag(self) -> None:
        if self.controller.dragging:
            self.release_mouse()
            self.controller.cancel()
            self._end_drag_styles()

    def _end_drag_styles(self) -> None:
        for widget in self.query(".dragging"):
            widget.remove_class("dragging")

    # -- Card actions --

    async def action_add_card(self) -> None:
        if self._structure_locked():
            return
        current = self.data.cards.get(self.focused_card_id or "")
        if current is None:
            card = add_card(self.data, None, 0)
        else:
            siblings = get_siblings(self.data, current.id)
            index = next(i for i, c in enumerate(siblings) if c.id == current.id)
            following = siblings[index + 1].id if index + 1 < len(siblings) else None
            card = add_card(self.data, current.parent_id, current.column_index, insert_before=following)
        if card is not None:
            await self._after_add(card.id, card.column_index)

    async def action_add_child(self) -> None:
        if self._structure_locked():
            return
        current = self.data.cards.get(self.focused_card_id or "")
        if current is None:
            return
        card = add_card(self.data, current.id, current.column_index + 1)
        if card is not None:
            await self._after_add(card.id, card.column_index)

    async def _after_add(self, card_id: str, column_index: int) -> None:
        await self.refresh_columns({0, column_index, column_index + 1}, focus=card_id)
        self.save()
        self.call_after_refresh(self.action_edit_card, card_id)

    def action_edit_card(self, card_id: str | None = None) -> None:
        card_id = card_id or self.focused_card_id
        card = self.data.cards.get(card_id or "")
        if card is None:
            return
        title = card.name or f"Card in column {card.column_index + 1}"
        self.app.push_screen(CardEditor(title, card.content), lambda result: self._on_edited(card.id, result))

    async def _on_edited(self, card_id: str, result: EditorResult | None) -> None:
        card = self.data.cards.get(card_id)
        if result is None or card is None:
            return
        update_content(self.data, card_id, result.text)
        if result.action == "save":
            widget = self.card_widget(card_id)
            if widget is not None:
                widget.show_card(card)
            await self.refresh_columns({card.column_index + 1}, focus=card_id)
            self.save()
            return
        if self._structure_locked():
            return
        if result.action == "split_below":
            new_card = split_below(self.data, card_id, result.cursor)
        else:
            new_card = split_as_child(self.data, card_id, result.cursor)
        if new_card is not None:
            columns = {card.column_index, new_card.column_index, new_card.column_index + 1}
            await self.refresh_columns(columns, focus=new_card.id)
            self.save()

    def action_delete_card(self) -> None:
        if self._structure_locked():
            return
        card_id = self.focused_card_id
        if card_id is None:
            return
        descendants = get_descendant_ids(self.data, card_id)
        if not descendants:
            self.run_worker(self._delete(card_id))
            return
        choices = [("confirm", f"Delete the card and {len(descendants)} descendants"), ("cancel", "Cancel")]

        async def confirmed(choice: str | None) -> None:
            if choice == "confirm":
                await self._delete(card_id)

        self.app.push_screen(ChoiceScreen("Delete card?", choices), confirmed)

    async def _delete(self, card_id: str) -> None:
        neighbour = previous_card(self.data, card_id) or next_card(self.data, card_id) or parent_card(self.data, card_id)
        result = delete_subtree(self.data, card_id)
        if result:
            await self.refresh_columns(result.affected_columns, focus=neighbour.id if neighbour else None)
            self.save()

    async def action_merge_previous(self) -> None:
        await self._merge(merge_with_previous)

    async def action_merge_next(self) -> None:
        await self._merge(merge_with_next)

    async def _merge(self, merge) -> None:
        card_id = self.focused_card_id
        if card_id is None or self._structure_locked():
            return
        result = merge(self.data, card_id)
        if result is None:
            return
        await self.refresh_columns(result.affected_columns, focus=result.card_id)
        self.save()

    # -- Navigation --

    def _navigate(self, step) -> None:
        card_id = self.focused_card_id
        if card_id is None:
            self._focus_first_card()
            return
        target = step(self.data, card_id)
        if target is not None:
            self.focus_card(target.id)

    def action_focus_previous(self) -> None:
        self._navigate(previous_card)

    def action_focus_next(self) -> None:
        self._navigate(next_card)

    def action_focus_parent(self) -> None:
        self._navigate(parent_card)

    def action_focus_child(self) -> None:
        self._navigate(first_child)

    # -- Columns and prompts --

    async def action_add_column(self) -> None:
        if self._structure_locked():
            return
        add_column(self.data)
        await self.refresh_columns()
        self.save()

    async def action_delete_column(self) -> None:
        if self._structure_locked():
            return
        if not delete_column(self.data, len(self.data.columns) - 1):
            self.notify("Only an empty rightmost column beyond the minimum can be removed", severity="warning")
            return
        await self.refresh_columns()
        self.save()

    def _focused_column(self) -> int:
        card = self.data.cards.get(self.focused_card_id or "")
        return card.column_index if card else 0

    def action_column_prompt(self) -> None:
        index = self._focused_column()
        column = self.data.columns[index]

        async def done(prompt: str | None) -> None:
            if prompt is not None and set_column_prompt(self.data, index, prompt):
                await self.refresh_columns({index})
                self.save()

        self.app.push_screen(TextPrompt(f"Prompt for column {index + 1}", column.prompt), done)

    def action_global_prompt(self) -> None:
        def done(prompt: str | None) -> None:
            if prompt is not None and set_global_prompt(self.data, prompt):
                self.save()

        self.app.push_screen(TextPrompt("Global prompt", self.data.global_prompt), done)

    # -- Generation --

    def action_generate(self) -> None:
        card_id = self.focused_card_id
        if card_id is None:
            return
        if not self.chat_settings.is_valid:
            self.notify("Configure provider-url, model-name and api-key in the [ai] section", severity="error")
            return
        if self._structure_locked():
            return

        def chosen(choice: str | None) -> None:
            if choice is None:
                return
            mode = Mode(choice)
            if mode is Mode.CUSTOM:
                self.app.push_screen(
                    TextPrompt("Custom instruction", placeholder="e.g. Rewrite this in a formal tone"),
                    lambda prompt: self._start_generation(card_id, mode, prompt),
                )
            else:
                self._start_generation(card_id, mode)

        self.app.push_screen(ChoiceScreen("Generate", GENERATION_CHOICES), chosen)

    def _start_generation(self, card_id: str, mode: Mode, prompt: str | None = None) -> None:
        if mode is Mode.CUSTOM and not (prompt or "").strip():
            return
        self.run_worker(self._generate(card_id, mode, prompt))

    async def _generate(self, card_id: str, mode: Mode, prompt: str | None) -> None:
        written = await self.session.generate(card_id, mode, prompt)
        await self.refresh_columns(focus=written[-1] if written else card_id)
        self.save()

    def _on_generation_update(self, card_id: str) -> None:
        card = self.data.cards.get(card_id)
        widget = self.card_widget(card_id)
        if card is not None and widget is not None:
            widget.show_card(card)
        else:
            self.call_later(self.refresh_columns)

    # -- Projects --

    def action_switch_project(self) -> None:
        if self._structure_locked():
            return
        choices = [(p.id, p.title) for p in self.workspace.projects_by_recency()]

        async def chosen(project_id: str | None) -> None:
            if project_id and self.workspace.switch_project(project_id):
                await self.refresh_columns()
                self.save()
                self._focus_first_card()

        self.app.push_screen(ChoiceScreen("Switch project", choices), chosen)

    def action_new_project(self) -> None:
        if self._structure_locked():
            return
        async def named(title: str | None) -> None:
            if title is None:
                return
            project = self.workspace.create_project(title)
            self.workspace.switch_project(project.id)
            await self.refresh_columns()
            self.save()

        self.app.push_screen(TextPrompt("New project title"), named)

    def action_rename_project(self) -> None:
        project = self.workspace.active_project
        if project is None:
            return

        async def named(title: str | None) -> None:
            if title and self.workspace.rename_project(project.id, title):
                self.query_one("#board-title", Static).update(self._title_text())
                self.save()

        self.app.push_screen(TextPrompt("Rename project", project.title), named)

    def action_save(self) -> None:
        if self.save():
            self.notify("Saved")
