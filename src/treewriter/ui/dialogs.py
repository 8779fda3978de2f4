"""Modal screens: card editor, single-line prompt, choice list."""

from __future__ import annotations

from dataclasses import dataclass

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, OptionList, Static, TextArea
from textual.widgets.option_list import Option


def dialog_css(screen: str) -> str:
    return f"""
    {screen} {{
        align: center middle;
    }}
    {screen} #dialog {{
        width: 80;
        height: auto;
        max-height: 90%;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }}
    {screen} #dialog-title {{
        text-style: bold;
        margin-bottom: 1;
    }}
    """


def cursor_offset(text: str, row: int, column: int) -> int:
    """Character offset of a (row, column) location in text."""
    lines = text.split("\n")
    row = min(row, len(lines) - 1)
    return sum(len(line) + 1 for line in lines[:row]) + min(column, len(lines[row]))


@dataclass
class EditorResult:
    text: str
    action: str = "save"
    cursor: int = 0


class CardEditor(ModalScreen[EditorResult | None]):
    """Edit a card's text. Can also split the card at the cursor."""

    CSS = dialog_css("CardEditor") + "CardEditor TextArea { height: 20; }"

    BINDINGS = [
        Binding("ctrl+s", "save", "Save"),
        Binding("escape", "cancel", "Cancel"),
        Binding("ctrl+b", "split_below", "Split below"),
        Binding("ctrl+n", "split_child", "Split as child"),
    ]

    def __init__(self, title: str, text: str):
        super().__init__()
        self._title = title
        self._text = text

    def compose(self) -> ComposeResult:
        with Vertical(id="dialog"):
            yield Static(self._title, id="dialog-title", markup=False)
            yield TextArea(self._text, id="editor")

    def on_mount(self) -> None:
        self.query_one(TextArea).focus()

    def _result(self, action: str) -> EditorResult:
        area = self.query_one(TextArea)
        row, column = area.cursor_location
        return EditorResult(area.text, action, cursor_offset(area.text, row, column))

    def action_save(self) -> None:
        self.dismiss(self._result("save"))

    def action_split_below(self) -> None:
        self.dismiss(self._result("split_below"))

    def action_split_child(self) -> None:
        self.dismiss(self._result("split_child"))

    def action_cancel(self) -> None:
        self.dismiss(None)


class TextPrompt(ModalScreen[str | None]):
    """Ask for a single line of text."""

    CSS = dialog_css("TextPrompt")

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, title: str, value: str = "", placeholder: str = ""):
        super().__init__()
        self._title = title
        self._value = value
        self._placeholder = placeholder

    def compose(self) -> ComposeResult:
        with Vertical(id="dialog"):
            yield Static(self._title, id="dialog-title", markup=False)
            yield Input(self._value, placeholder=self._placeholder)

    def on_mount(self) -> None:
        self.query_one(Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.dismiss(event.value)

    def action_cancel(self) -> None:
        self.dismiss(None)


class ChoiceScreen(ModalScreen[str | None]):
    """Pick one of several (id, label) choices."""

    CSS = dialog_css("ChoiceScreen")

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, title: str, choices: list[tuple[str, str]]):
        super().__init__()
        self._title = title
        self._choices = choices

    def compose(self) -> ComposeResult:
        with Vertical(id="dialog"):
            yield Static(self._title, id="dialog-title", markup=False)
            yield OptionList(*(Option(label, id=choice_id) for choice_id, label in self._choices))

    def on_mount(self) -> None:
        self.query_one(OptionList).focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        self.dismiss(event.option.id)

    def action_cancel(self) -> None:
        self.dismiss(None)
