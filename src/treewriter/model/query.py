"""Read-only queries over a project's card forest."""

from __future__ import annotations

import logging

from treewriter.models import Card, Column, ProjectData
from treewriter.ordering import sort_by_order_path
from treewriter.palette import BASE_HSL, Hsl, child_hsl, format_hsl, root_hsl

logger = logging.getLogger(__name__)


def get_card(data: ProjectData, card_id: str | None) -> Card | None:
    """Look up a card by id."""
    if card_id is None:
        return None
    return data.cards.get(card_id)


def get_column(data: ProjectData, column_index: int) -> Column | None:
    """Column at column_index, or None if out of range."""
    if 0 <= column_index < len(data.columns):
        return data.columns[column_index]
    return None


def get_column_cards(data: ProjectData, column_index: int) -> list[Card]:
    """All cards in a column, globally ordered by order path.

    Children of one parent are contiguous and ordered by their own
    order; groups follow their parents' order, recursively up to the
    roots.
    """
    ids = [card_id for card_id, card in data.cards.items() if card.column_index == column_index]
    return [data.cards[card_id] for card_id in sort_by_order_path(data.cards, ids)]


def get_children(data: ProjectData, parent_id: str | None, column_index: int | None = None) -> list[Card]:
    """Direct children of parent_id, by order. parent_id None gives the roots."""
    children = [card for card in data.cards.values() if card.parent_id == parent_id]
    if column_index is not None:
        children = [card for card in children if card.column_index == column_index]
    return sorted(children, key=lambda card: card.order)


def get_siblings(data: ProjectData, card_id: str) -> list[Card]:
    """Cards sharing the card's parent and column, by order, including itself."""
    card = data.cards.get(card_id)
    if card is None:
        return []
    return get_children(data, card.parent_id, card.column_index)


def root_cards(data: ProjectData) -> list[Card]:
    """The root ordering: parentless cards of column 0."""
    return get_children(data, None, 0)


def get_descendant_ids(data: ProjectData, card_id: str) -> list[str]:
    """All descendants in pre-order, children visited by order."""
    result: list[str] = []
    seen = {card_id}
    stack = list(reversed(get_children(data, card_id)))
    while stack:
        card = stack.pop()
        if card.id in seen:
            continue
        seen.add(card.id)
        result.append(card.id)
        stack.extend(reversed(get_children(data, card.id)))
    return result


def get_ancestor_ids(data: ProjectData, card_id: str) -> list[str]:
    """Ancestor ids from the root down to the immediate parent."""
    ancestors: list[str] = []
    seen = {card_id}
    card = data.cards.get(card_id)
    while card is not None and card.parent_id and card.parent_id not in seen:
        ancestors.append(card.parent_id)
        seen.add(card.parent_id)
        card = data.cards.get(card.parent_id)
    ancestors.reverse()
    return ancestors


def is_descendant(data: ProjectData, card_id: str, ancestor_id: str) -> bool:
    """True if ancestor_id is a proper ancestor of card_id."""
    return ancestor_id in get_ancestor_ids(data, card_id)


def _hsl_of(data: ProjectData, card: Card, visiting: set[str]) -> Hsl:
    if card.id in visiting:
        logger.warning("Card %s is part of a parent cycle", card.id)
        return BASE_HSL
    if card.parent_id is None:
        if card.column_index != 0:
            logger.warning("Card %s is in column %d but has no parent", card.id, card.column_index)
            return BASE_HSL
        roots = root_cards(data)
        root_index = next((i for i, root in enumerate(roots) if root.id == card.id), 0)
        return root_hsl(root_index)
    parent = data.cards.get(card.parent_id)
    if parent is None:
        logger.warning("Card %s has missing parent %s", card.id, card.parent_id)
        return child_hsl(BASE_HSL)
    return child_hsl(_hsl_of(data, parent, visiting | {card.id}))


def color_of(data: ProjectData, card: Card) -> str:
    """Cascade color for a card, computed from its ancestry on every call.

    Roots rotate hue by their position in the root ordering; each level
    below is one lightness step darker than its parent.
    """
    return format_hsl(_hsl_of(data, card, set()))
