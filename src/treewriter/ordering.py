"""Order paths: a single global ordering for cards from many parent groups."""

from __future__ import annotations

from functools import cmp_to_key
from typing import TYPE_CHECKING, Mapping, Sequence

if TYPE_CHECKING:
    from treewriter.models import Card


def order_path(cards: Mapping[str, Card], card_id: str) -> list[float]:
    """Return the order values from the card's root down to the card.

    A root card's path is ``[order]``. A dangling parent link ends the
    walk, and a parent cycle is cut at the first repeated card.
    """
    path: list[float] = []
    seen: set[str] = set()
    current = cards.get(card_id)
    while current is not None and current.id not in seen:
        seen.add(current.id)
        path.append(current.order)
        current = cards.get(current.parent_id) if current.parent_id else None
    path.reverse()
    return path


def compare_order_paths(left: Sequence[float], right: Sequence[float]) -> int:
    """Compare two order paths.

    Element-wise; the first differing pair decides. A strict prefix sorts
    before the longer path. Returns -1, 0 or 1.
    """
    for a, b in zip(left, right):
        if a < b:
            return -1
        if a > b:
            return 1
    if len(left) < len(right):
        return -1
    if len(left) > len(right):
        return 1
    return 0


def sort_by_order_path(cards: Mapping[str, Card], card_ids: Sequence[str]) -> list[str]:
    """Sort card ids by order path. Equal paths keep their input order."""
    paths = {card_id: order_path(cards, card_id) for card_id in card_ids}
    key = cmp_to_key(compare_order_paths)
    return sorted(card_ids, key=lambda card_id: key(paths[card_id]))


def midpoint(before: float | None, after: float | None) -> float:
    """Fractional position between two neighbour orders.

    Either side may be None: before the first sibling is ``after - 1``,
    after the last is ``before + 1``, and an empty group starts at 0.
    Repeated midpoints lose precision; orders are never renumbered.
    """
    if before is None and after is None:
        return 0.0
    if before is None:
        return after - 1
    if after is None:
        return before + 1
    return (before + after) / 2
