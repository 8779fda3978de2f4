"""Data models for treewriter projects."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable

from treewriter.ids import generate_id

logger = logging.getLogger(__name__)

MIN_COLUMNS = 3

Watcher = Callable[["ProjectData"], None]


def _number(value: Any, kind: type) -> Any:
    """value as int or float, or None if it is missing or not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = kind(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if kind is float and not math.isfinite(number):
        return None
    return number


@dataclass
class Card:
    """A card in the forest.

    Root cards have no parent and live in column 0; every other card
    lives exactly one column right of its parent. ``order`` is only
    meaningful among siblings. ``color`` is a cached derived value.
    """

    id: str
    parent_id: str | None = None
    column_index: int = 0
    order: float = 0.0
    content: str = ""
    name: str | None = None
    color: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "parent_id": self.parent_id,
            "column_index": self.column_index,
            "order": self.order,
            "content": self.content,
            "name": self.name,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Card:
        """Build a card. An unusable column_index or order falls back to 0."""
        column_index = _number(raw.get("column_index"), int)
        if column_index is None or column_index < 0:
            logger.warning("Card %s has invalid column_index %r, using 0", raw["id"], raw.get("column_index"))
            column_index = 0
        return cls(
            id=str(raw["id"]),
            parent_id=raw.get("parent_id") or None,
            column_index=column_index,
            order=_number(raw.get("order"), float) or 0.0,
            content=str(raw.get("content") or ""),
            name=raw.get("name"),
            color=raw.get("color") or "",
        )


@dataclass
class Column:
    """A column. Its index is its position in ProjectData.columns."""

    id: str = field(default_factory=lambda: f"col-{generate_id()}")
    prompt: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "prompt": self.prompt}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Column:
        return cls(id=str(raw["id"]), prompt=raw.get("prompt") or "")


@dataclass
class ProjectData:
    """Columns and cards of one project.

    Owns the card and column collections. Mutations call ``changed()``,
    which notifies watchers (the workspace uses this to keep the owning
    project's ``last_modified`` current).
    """

    columns: list[Column] = field(default_factory=list)
    cards: dict[str, Card] = field(default_factory=dict)
    global_prompt: str = ""
    _watchers: list[Watcher] = field(default_factory=list, repr=False, compare=False)

    @classmethod
    def default(cls) -> ProjectData:
        """Empty data with the minimum number of columns."""
        return cls(columns=[Column() for _ in range(MIN_COLUMNS)])

    def watch(self, callback: Watcher) -> Callable[[], None]:
        """Watch for mutations. Returns an unwatch callable."""
        self._watchers.append(callback)

        def unwatch() -> None:
            if callback in self._watchers:
                self._watchers.remove(callback)

        return unwatch

    def changed(self) -> None:
        for callback in list(self._watchers):
            callback(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "columns": [col.to_dict() for col in self.columns],
            "cards": {card_id: card.to_dict() for card_id, card in self.cards.items()},
            "global_prompt": self.global_prompt,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ProjectData:
        cards: dict[str, Card] = {}
        unordered: list[Card] = []
        for card_id, card_raw in raw["cards"].items():
            card = Card.from_dict({**card_raw, "id": card_id})
            if _number(card_raw.get("order"), float) is None:
                unordered.append(card)
            cards[card.id] = card

        # Cards without a usable order go after their siblings
        for card in unordered:
            sibling_orders = [
                other.order
                for other in cards.values()
                if other is not card
                and other.parent_id == card.parent_id
                and other.column_index == card.column_index
            ]
            card.order = max(sibling_orders) + 1 if sibling_orders else 0.0
            logger.warning("Card %s has no usable order, placing it last", card.id)

        return cls(
            columns=[Column.from_dict(col) for col in raw["columns"]],
            cards=cards,
            global_prompt=raw.get("global_prompt") or "",
        )


@dataclass
class Project:
    """A named project record."""

    id: str
    title: str = "Untitled Project"
    last_modified: float = 0.0
    data: ProjectData | None = field(default_factory=ProjectData.default)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "last_modified": self.last_modified,
            "data": self.data.to_dict() if self.data is not None else None,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Project:
        """Build a project; an unusable data section becomes None."""
        data = raw.get("data")
        return cls(
            id=str(raw["id"]),
            title=raw.get("title") or "Untitled Project",
            last_modified=_number(raw.get("last_modified"), float) or 0.0,
            data=ProjectData.from_dict(data) if is_valid_project_data(data) else None,
        )


def is_valid_project_data(raw: Any) -> bool:
    """True when raw has a columns list and a cards mapping of dicts."""
    if not isinstance(raw, dict):
        return False
    columns = raw.get("columns")
    cards = raw.get("cards")
    if not isinstance(columns, list) or not isinstance(cards, dict):
        return False
    if not all(isinstance(col, dict) and "id" in col for col in columns):
        return False
    return all(isinstance(card, dict) for card in cards.values())


@dataclass
class DeleteResult:
    """Outcome of delete_subtree."""

    deleted_ids: list[str] = field(default_factory=list)
    affected_columns: set[int] = field(default_factory=set)

    def __bool__(self) -> bool:
        return bool(self.deleted_ids)


@dataclass
class MoveResult:
    """Outcome of move_card. Falsy when the move was rejected."""

    success: bool
    affected_columns: set[int] = field(default_factory=set)
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.success
