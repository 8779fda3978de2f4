"""Editing conveniences built on the card mutations: split, merge, navigate."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from treewriter.model.card import add_card, delete_subtree, reparent_children, update_content
from treewriter.model.query import get_children, get_column_cards, get_siblings
from treewriter.models import Card, ProjectData

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """The card that survived a merge and where the cursor belongs in it."""

    card_id: str
    cursor: int
    affected_columns: set[int] = field(default_factory=set)


def _sibling_at(data: ProjectData, card_id: str, offset: int) -> Card | None:
    siblings = get_siblings(data, card_id)
    index = next((i for i, card in enumerate(siblings) if card.id == card_id), None)
    if index is None or not 0 <= index + offset < len(siblings):
        return None
    return siblings[index + offset]


def split_below(data: ProjectData, card_id: str, cursor: int) -> Card | None:
    """Split a card at cursor; the tail becomes its next sibling."""
    card = data.cards.get(card_id)
    if card is None:
        return None
    head, tail = card.content[:cursor], card.content[cursor:]
    following = _sibling_at(data, card_id, 1)
    update_content(data, card_id, head)
    return add_card(
        data,
        parent_id=card.parent_id,
        column_index=card.column_index,
        insert_before=following.id if following else None,
        content=tail,
    )


def split_as_child(data: ProjectData, card_id: str, cursor: int) -> Card | None:
    """Split a card at cursor; the tail becomes its last child."""
    card = data.cards.get(card_id)
    if card is None:
        return None
    head, tail = card.content[:cursor], card.content[cursor:]
    update_content(data, card_id, head)
    return add_card(data, parent_id=card_id, column_index=card.column_index + 1, content=tail)


def _merge(data: ProjectData, keep: Card, absorb: Card) -> MergeResult:
    cursor = len(keep.content)
    update_content(data, keep.id, keep.content + absorb.content)
    affected = reparent_children(data, absorb.id, keep.id)
    affected |= delete_subtree(data, absorb.id).affected_columns
    logger.debug("Merged %s into %s", absorb.id, keep.id)
    return MergeResult(keep.id, cursor, affected)


def merge_with_previous(data: ProjectData, card_id: str) -> MergeResult | None:
    """Append a card to its previous sibling, adopting its children.

    None when the card is first among its siblings.
    """
    card = data.cards.get(card_id)
    previous = _sibling_at(data, card_id, -1)
    if card is None or previous is None:
        return None
    return _merge(data, previous, card)


def merge_with_next(data: ProjectData, card_id: str) -> MergeResult | None:
    """Append the next sibling to a card, adopting its children.

    None when the card is last among its siblings.
    """
    card = data.cards.get(card_id)
    following = _sibling_at(data, card_id, 1)
    if card is None or following is None:
        return None
    return _merge(data, card, following)


def _column_neighbour(data: ProjectData, card_id: str, offset: int) -> Card | None:
    card = data.cards.get(card_id)
    if card is None:
        return None
    cards = get_column_cards(data, card.column_index)
    index = next(i for i, other in enumerate(cards) if other.id == card_id)
    if not 0 <= index + offset < len(cards):
        return None
    return cards[index + offset]


def next_card(data: ProjectData, card_id: str) -> Card | None:
    """The card below in column order, crossing group boundaries."""
    return _column_neighbour(data, card_id, 1)


def previous_card(data: ProjectData, card_id: str) -> Card | None:
    """The card above in column order, crossing group boundaries."""
    return _column_neighbour(data, card_id, -1)


def parent_card(data: ProjectData, card_id: str) -> Card | None:
    card = data.cards.get(card_id)
    if card is None or card.parent_id is None:
        return None
    return data.cards.get(card.parent_id)


def first_child(data: ProjectData, card_id: str) -> Card | None:
    card = data.cards.get(card_id)
    if card is None:
        return None
    children = get_children(data, card_id, card.column_index + 1)
    return children[0] if children else None
