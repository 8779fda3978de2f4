"""Card mutation operations.

Every function takes the owning ProjectData and leaves it satisfying the
forest invariants: roots live in column 0, children one column right of
their parent, and cached colors equal the cascade value.
"""

from __future__ import annotations

import logging
from typing import Iterable

from treewriter.ids import generate_id
from treewriter.model.column import ensure_columns
from treewriter.model.query import color_of, get_children, get_descendant_ids, is_descendant
from treewriter.models import Card, DeleteResult, MoveResult, ProjectData
from treewriter.ordering import midpoint

logger = logging.getLogger(__name__)


def refresh_colors(data: ProjectData, card_ids: Iterable[str] | None = None) -> set[int]:
    """Re-cache cascade colors for card_ids (all cards if None).

    Returns the column indices holding a card whose color changed.
    """
    ids = list(data.cards) if card_ids is None else [i for i in card_ids if i in data.cards]
    changed: set[int] = set()
    for card_id in ids:
        card = data.cards[card_id]
        color = color_of(data, card)
        if card.color != color:
            card.color = color
            changed.add(card.column_index)
    return changed


def order_for_insert(
    data: ProjectData,
    parent_id: str | None,
    column_index: int,
    insert_before: str | None = None,
    exclude: str | None = None,
) -> float:
    """Fractional order for a new sibling in the (parent_id, column_index) group.

    Placed before insert_before when that card is in the group, otherwise
    after the last sibling. ``exclude`` is left out of the group (the card
    being moved).
    """
    siblings = [card for card in get_children(data, parent_id, column_index) if card.id != exclude]
    if insert_before is not None and insert_before != exclude:
        index = next((i for i, card in enumerate(siblings) if card.id == insert_before), None)
        if index is not None:
            before = siblings[index - 1].order if index > 0 else None
            return midpoint(before, siblings[index].order)
        logger.warning("%s is not a sibling in column %d, appending", insert_before, column_index)
    return midpoint(siblings[-1].order if siblings else None, None)


def _placement_error(data: ProjectData, parent_id: str | None, column_index: int) -> str | None:
    """Why (parent_id, column_index) would break the forest invariants, if it would."""
    if parent_id is None:
        if column_index != 0:
            return f"root cards live in column 0, not {column_index}"
        return None
    parent = data.cards.get(parent_id)
    if parent is None:
        return f"parent {parent_id} not found"
    if column_index != parent.column_index + 1:
        return f"child of a column {parent.column_index} card must be in column {parent.column_index + 1}"
    return None


def add_card(
    data: ProjectData,
    parent_id: str | None = None,
    column_index: int = 0,
    order: float | None = None,
    insert_before: str | None = None,
    content: str = "",
) -> Card | None:
    """Create a card under parent_id in column_index.

    Returns the new card, or None if the parent is unknown or the
    placement is invalid.
    """
    if column_index < 0 or column_index > len(data.columns):
        logger.error("Cannot add card: invalid column index %d", column_index)
        return None
    error = _placement_error(data, parent_id, column_index)
    if error:
        logger.error("Cannot add card: %s", error)
        return None

    if order is None:
        order = order_for_insert(data, parent_id, column_index, insert_before)
    card = Card(
        id=generate_id("card_"),
        parent_id=parent_id,
        column_index=column_index,
        order=order,
        content=content,
    )
    data.cards[card.id] = card
    ensure_columns(data, column_index)

    if parent_id is None:
        # Root positions may shift, and every subtree's hue with them.
        refresh_colors(data)
    else:
        card.color = color_of(data, card)

    data.changed()
    logger.debug("Card %s added to column %d, parent %s, order %s", card.id, column_index, parent_id, order)
    return card


def update_content(data: ProjectData, card_id: str, text: str) -> bool:
    """Replace a card's content. False if the card is unknown."""
    card = data.cards.get(card_id)
    if card is None:
        return False
    if card.content != text:
        card.content = text
        data.changed()
    return True


def update_name(data: ProjectData, card_id: str, name: str | None) -> bool:
    """Set or clear a card's display name. False if the card is unknown."""
    card = data.cards.get(card_id)
    if card is None:
        return False
    if card.name != name:
        card.name = name
        data.changed()
    return True


def delete_subtree(data: ProjectData, card_id: str) -> DeleteResult:
    """Delete a card and all of its descendants."""
    card = data.cards.get(card_id)
    if card is None:
        return DeleteResult()

    ids = [card_id, *get_descendant_ids(data, card_id)]
    affected: set[int] = set()
    for deleted_id in ids:
        deleted = data.cards.pop(deleted_id)
        affected.add(deleted.column_index)
        if deleted.column_index + 1 < len(data.columns):
            affected.add(deleted.column_index + 1)

    if card.parent_id is None:
        affected |= refresh_colors(data)
        affected.add(0)

    data.changed()
    logger.debug("Card %s and %d descendants deleted", card_id, len(ids) - 1)
    return DeleteResult(deleted_ids=ids, affected_columns=affected)


def move_card(
    data: ProjectData,
    card_id: str,
    column_index: int,
    parent_id: str | None,
    order: float | None = None,
    insert_before: str | None = None,
) -> MoveResult:
    """Move a card (with its subtree) under parent_id in column_index.

    The card's order is ``order`` when given, otherwise computed from
    insert_before (or appended). Descendants shift columns with it.
    """
    card = data.cards.get(card_id)
    if card is None:
        return MoveResult(False, reason=f"card {card_id} not found")
    if parent_id is not None and (parent_id == card_id or is_descendant(data, parent_id, card_id)):
        return MoveResult(False, reason="cannot move a card into itself or its descendants")
    error = _placement_error(data, parent_id, column_index)
    if error:
        return MoveResult(False, reason=error)

    old_column = card.column_index
    was_root = card.parent_id is None
    descendants = get_descendant_ids(data, card_id)
    if order is None:
        order = order_for_insert(data, parent_id, column_index, insert_before, exclude=card_id)

    card.parent_id = parent_id
    card.column_index = column_index
    card.order = order

    delta = column_index - old_column
    affected = {old_column, old_column + 1, column_index, column_index + 1}
    deepest = column_index
    for descendant_id in descendants:
        descendant = data.cards[descendant_id]
        affected.add(descendant.column_index)
        descendant.column_index += delta
        affected.add(descendant.column_index)
        deepest = max(deepest, descendant.column_index)
    ensure_columns(data, deepest)

    if was_root or parent_id is None:
        affected |= refresh_colors(data)
        affected.add(0)
    else:
        affected |= refresh_colors(data, [card_id, *descendants])

    data.changed()
    logger.debug("Card %s moved to column %d, parent %s, order %s", card_id, column_index, parent_id, order)
    valid = {i for i in affected if 0 <= i < len(data.columns)}
    return MoveResult(True, affected_columns=valid)


def reparent_children(data: ProjectData, old_parent_id: str, new_parent_id: str) -> set[int]:
    """Move every direct child of old_parent_id under new_parent_id.

    The children keep their relative order and are appended after the
    new parent's existing children. Colors of the moved cards and all
    their descendants are recomputed. Returns the affected columns.
    """
    old_parent = data.cards.get(old_parent_id)
    new_parent = data.cards.get(new_parent_id)
    if old_parent is None or new_parent is None or old_parent_id == new_parent_id:
        return set()
    children = get_children(data, old_parent_id)
    if not children:
        return set()
    if any(child.id == new_parent_id or is_descendant(data, new_parent_id, child.id) for child in children):
        logger.warning("Cannot reparent children of %s into their own subtree", old_parent_id)
        return set()

    target_column = new_parent.column_index + 1
    existing = get_children(data, new_parent_id, target_column)
    previous = existing[-1].order if existing else -1.0

    affected = {target_column}
    moved: list[str] = []
    deepest = target_column
    for child in children:
        subtree = get_descendant_ids(data, child.id)
        delta = target_column - child.column_index
        affected.add(child.column_index)

        previous = midpoint(previous, previous + 1)
        child.order = previous
        child.parent_id = new_parent_id
        child.column_index = target_column

        for descendant_id in subtree:
            descendant = data.cards[descendant_id]
            affected.add(descendant.column_index)
            descendant.column_index += delta
            affected.add(descendant.column_index)
            deepest = max(deepest, descendant.column_index)
        moved.extend([child.id, *subtree])

    ensure_columns(data, deepest)
    affected |= refresh_colors(data, moved)
    data.changed()
    logger.debug("Reparented %d children from %s to %s", len(children), old_parent_id, new_parent_id)
    return {i for i in affected if 0 <= i < len(data.columns)}
