"""Handlers for 'treewriter card' commands."""

import sys

from treewriter.cli._common import (
    error,
    find_card,
    open_workspace,
    output_json,
    output_result,
    save,
)
from treewriter.model.card import add_card, delete_subtree, move_card, update_content, update_name
from treewriter.model.query import get_children, get_column_cards, root_cards


def _active_data(args):
    """Workspace and the active project's data."""
    workspace = open_workspace(args)
    return workspace, workspace.data


def _first_line(text: str, width: int = 60) -> str:
    line = text.strip().splitlines()[0] if text.strip() else ""
    return line if len(line) <= width else line[: width - 1] + "…"


def card_list(args) -> int:
    """List cards as an indented outline, or one column with --column."""
    _workspace, data = _active_data(args)

    if args.column is not None:
        cards = get_column_cards(data, args.column)
        if args.json:
            output_json([c.to_dict() for c in cards])
        else:
            for card in cards:
                print(f"{card.id}  {card.name or _first_line(card.content)}")
        return 0

    outline: list[tuple[int, object]] = []

    def visit(card, depth: int) -> None:
        outline.append((depth, card))
        for child in get_children(data, card.id, card.column_index + 1):
            visit(child, depth + 1)

    for root in root_cards(data):
        visit(root, 0)

    if args.json:
        output_json([card.to_dict() for _depth, card in outline])
    else:
        for depth, card in outline:
            print(f"{'  ' * depth}{card.id}  {card.name or _first_line(card.content)}")

    return 0


def card_get(args) -> int:
    """Dump a card's content."""
    _workspace, data = _active_data(args)
    card = find_card(data, args.id, args.json)

    if args.json:
        output_json(card.to_dict())
    else:
        sys.stdout.write(card.content)
        if card.content and not card.content.endswith("\n"):
            sys.stdout.write("\n")

    return 0


def card_set(args) -> int:
    """Replace a card's content from stdin."""
    workspace, data = _active_data(args)
    card = find_card(data, args.id, args.json)
    update_content(data, card.id, sys.stdin.read())
    if args.name is not None:
        update_name(data, card.id, args.name or None)
    save(workspace, args.json)

    output_result(card.to_dict(), f"Updated {card.id}", args.json)
    return 0


def card_add(args) -> int:
    """Create a card, as a root or under --parent."""
    workspace, data = _active_data(args)

    column_index = 0
    if args.parent:
        column_index = find_card(data, args.parent, args.json).column_index + 1
    if args.before:
        find_card(data, args.before, args.json)

    card = add_card(data, args.parent, column_index, insert_before=args.before, content=args.content)
    if card is None:
        error("Cannot place a card there.", args.json)
    save(workspace, args.json)

    output_result(card.to_dict(), f"Created {card.id} in column {card.column_index}", args.json)
    return 0


def card_move(args) -> int:
    """Move a card and its subtree under --parent, or to the roots."""
    workspace, data = _active_data(args)
    card = find_card(data, args.id, args.json)

    column_index = 0
    if args.parent:
        column_index = find_card(data, args.parent, args.json).column_index + 1
    if args.before:
        find_card(data, args.before, args.json)

    result = move_card(data, card.id, column_index, args.parent, insert_before=args.before)
    if not result:
        error(f"Cannot move {card.id}: {result.reason}", args.json)
    save(workspace, args.json)

    output_result(
        {**card.to_dict(), "affected_columns": sorted(result.affected_columns)},
        f"Moved {card.id} to column {card.column_index}",
        args.json,
    )
    return 0


def card_delete(args) -> int:
    """Delete a card and all of its descendants."""
    workspace, data = _active_data(args)
    card = find_card(data, args.id, args.json)
    result = delete_subtree(data, card.id)
    save(workspace, args.json)

    count = len(result.deleted_ids)
    output_result(
        {"deleted": result.deleted_ids},
        f"Deleted {count} card{'s' if count != 1 else ''}",
        args.json,
    )
    return 0
