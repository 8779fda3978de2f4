"""Handlers for 'treewriter column' commands."""

from treewriter.cli._common import error, open_workspace, output_json, output_result, save
from treewriter.model.column import add_column, can_delete_column, delete_column, set_column_prompt
from treewriter.model.query import get_column_cards


def _column_dict(data, index: int) -> dict:
    column = data.columns[index]
    return {
        "index": index,
        "id": column.id,
        "prompt": column.prompt,
        "cards": len(get_column_cards(data, index)),
    }


def column_list(args) -> int:
    """List columns with their card counts."""
    data = open_workspace(args).data
    items = [_column_dict(data, i) for i in range(len(data.columns))]

    if args.json:
        output_json(items)
    else:
        for item in items:
            prompt = f"  prompt: {item['prompt']}" if item["prompt"] else ""
            print(f"{item['index']}  {item['cards']} cards{prompt}")

    return 0


def column_add(args) -> int:
    """Append a column."""
    workspace = open_workspace(args)
    data = workspace.data
    index = add_column(data)
    save(workspace, args.json)

    output_result(_column_dict(data, index), f"Added column {index}", args.json)
    return 0


def column_delete(args) -> int:
    """Delete the rightmost column if it is empty."""
    workspace = open_workspace(args)
    data = workspace.data
    index = len(data.columns) - 1
    if not can_delete_column(data, index):
        error("Only an empty rightmost column beyond the minimum can be deleted.", args.json)
    delete_column(data, index)
    save(workspace, args.json)

    output_result({"deleted": index}, f"Deleted column {index}", args.json)
    return 0


def column_prompt(args) -> int:
    """Show or set a column's prompt."""
    workspace = open_workspace(args)
    data = workspace.data
    if not 0 <= args.index < len(data.columns):
        error(f"Column {args.index} not found.", args.json)

    if args.prompt is not None:
        set_column_prompt(data, args.index, args.prompt)
        save(workspace, args.json)

    item = _column_dict(data, args.index)
    output_result(item, item["prompt"], args.json)
    return 0
