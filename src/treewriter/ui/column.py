"""Column widget: the sibling groups of one column."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Rule, Static

from treewriter.drag import ScrollArea
from treewriter.model.query import get_children, get_column, get_column_cards, root_cards
from treewriter.models import ProjectData
from treewriter.ui.card import CardWidget, GroupWidget

HEADER_WIDTH = 20


def _snippet(text: str, width: int = HEADER_WIDTH) -> str:
    line = text.strip().splitlines()[0] if text.strip() else ""
    return line if len(line) <= width else line[: width - 1] + "…"


class ColumnWidget(VerticalScroll, can_focus=False, inherit_bindings=False):
    """A scrolling column holding one group per card in the column to its left."""

    DEFAULT_CSS = """
    ColumnWidget {
        width: 1fr;
        min-width: 30;
        height: 100%;
        padding: 0 1;
        border-right: tall $surface-lighten-1;
    }
    ColumnWidget > .column-title {
        width: 100%;
        text-align: center;
        text-style: bold;
    }
    ColumnWidget > Rule.-horizontal {
        margin: 0;
    }
    .compact CardWidget {
        height: 1;
        min-height: 1;
        margin-bottom: 0;
    }
    """

    def __init__(self, data: ProjectData, column_index: int):
        super().__init__()
        self.data = data
        self.column_index = column_index

    def title(self) -> str:
        column = get_column(self.data, self.column_index)
        prompt = column.prompt if column else ""
        label = f"Column {self.column_index + 1}"
        return f"{label}: {_snippet(prompt)}" if prompt else label

    def compose(self) -> ComposeResult:
        yield Static(self.title(), classes="column-title", markup=False)
        yield Rule()
        yield from self.groups()

    def groups(self) -> list[GroupWidget]:
        if self.column_index == 0:
            return [GroupWidget(None, 0, root_cards(self.data))]
        parents = get_column_cards(self.data, self.column_index - 1)
        return [
            GroupWidget(
                parent.id,
                self.column_index,
                get_children(self.data, parent.id, self.column_index),
                header=f"↳ {_snippet(parent.content) or '(empty)'}",
            )
            for parent in parents
        ]

    async def rebuild(self) -> None:
        """Re-render title and groups from the model."""
        await self.remove_children()
        await self.mount_all(list(self.compose()))

    def card_widgets(self) -> list[CardWidget]:
        return list(self.query(CardWidget))

    def scroll_area(self) -> ScrollArea:
        return ScrollArea(self.column_index, self.region, self._scroll_rows)

    def _scroll_rows(self, rows: int) -> None:
        self.scroll_relative(y=rows, animate=False)
