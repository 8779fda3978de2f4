"""Card and sibling-group widgets."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.color import Color
from textual.containers import Vertical
from textual.geometry import Offset
from textual.message import Message
from textual.widgets import Static

from treewriter.drag import CardSpot
from treewriter.models import Card
from treewriter.palette import parse_hsl

DRAG_THRESHOLD = 2
PREVIEW_LINES = 6


def card_background(card: Card) -> Color | None:
    hsl = parse_hsl(card.color)
    if hsl is None:
        return None
    hue, saturation, lightness = hsl
    return Color.from_hsl(hue / 360, saturation / 100, lightness / 100)


def card_text(card: Card) -> str:
    lines = card.content.splitlines() or [""]
    text = "\n".join(lines[:PREVIEW_LINES])
    if len(lines) > PREVIEW_LINES:
        text += "\n…"
    if card.name:
        text = f"[{card.name}]\n{text}"
    return text


class CardWidget(Static, can_focus=True):
    """One card. Press and move past the threshold to start a drag."""

    DRAG_THRESHOLD = DRAG_THRESHOLD

    class DragStarted(Message):
        """Posted when a press on the card turns into a drag."""

        def __init__(self, card_widget: CardWidget):
            super().__init__()
            self.card_widget = card_widget

    DEFAULT_CSS = """
    CardWidget {
        width: 100%;
        height: auto;
        min-height: 3;
        padding: 0 1;
        margin-bottom: 1;
        border: tall transparent;
    }
    CardWidget:focus {
        border: tall $accent;
    }
    CardWidget.dragging {
        opacity: 0.4;
    }
    CardWidget.drop-parent {
        border: tall $success;
    }
    """

    def __init__(self, card: Card):
        super().__init__(card_text(card), markup=False)
        self.card_id = card.id
        self.column_index = card.column_index
        self._press: Offset | None = None
        self.show_card(card)

    def show_card(self, card: Card) -> None:
        """Re-render from the card's current content and color."""
        self.update(card_text(card))
        background = card_background(card)
        if background is not None:
            self.styles.background = background
            self.styles.color = Color(20, 20, 20) if background.brightness > 0.5 else Color(235, 235, 235)

    def spot(self) -> CardSpot:
        return CardSpot(self.card_id, self.region)

    def on_mouse_down(self, event) -> None:
        if event.button != 1:
            return
        event.stop()
        self._press = Offset(event.screen_x, event.screen_y)
        self.capture_mouse()

    def on_mouse_move(self, event) -> None:
        if self._press is None:
            return
        event.stop()
        dx = abs(event.screen_x - self._press.x)
        dy = abs(event.screen_y - self._press.y)
        if dx > self.DRAG_THRESHOLD or dy > self.DRAG_THRESHOLD:
            self._press = None
            self.release_mouse()
            self.post_message(self.DragStarted(self))

    def on_mouse_up(self, event) -> None:
        if self._press is None:
            return
        event.stop()
        self._press = None
        self.release_mouse()
        self.focus()


class GapIndicator(Static):
    """Marks where a dragged card will land."""

    DEFAULT_CSS = """
    GapIndicator {
        width: 100%;
        height: 1;
        background: $success;
    }
    """


class GroupWidget(Vertical):
    """The children of one parent (or the roots) within a column."""

    DEFAULT_CSS = """
    GroupWidget {
        width: 100%;
        height: auto;
        min-height: 2;
        padding: 0 0 1 0;
        border-left: outer $surface-lighten-2;
    }
    GroupWidget.root {
        border-left: none;
    }
    GroupWidget > .group-header {
        color: $text-muted;
        height: 1;
    }
    """

    def __init__(self, parent_id: str | None, column_index: int, cards: list[Card], header: str = ""):
        super().__init__(classes="root" if parent_id is None else "")
        self.parent_id = parent_id
        self.column_index = column_index
        self._cards = cards
        self._header = header

    def compose(self) -> ComposeResult:
        if self._header:
            yield Static(self._header, classes="group-header", markup=False)
        for card in self._cards:
            yield CardWidget(card)

    def card_widgets(self) -> list[CardWidget]:
        return [child for child in self.children if isinstance(child, CardWidget)]
