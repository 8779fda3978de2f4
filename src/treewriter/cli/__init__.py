"""CLI argument parser and dispatch for treewriter."""

import argparse

from treewriter.cli.card import card_add, card_delete, card_get, card_list, card_move, card_set
from treewriter.cli.column import column_add, column_delete, column_list, column_prompt
from treewriter.cli.config import config_get, config_set
from treewriter.cli.generate import generate
from treewriter.cli.project import (
    project_delete,
    project_export,
    project_import,
    project_list,
    project_new,
    project_rename,
    project_switch,
)
from treewriter.generation import Mode


def build_parser() -> argparse.ArgumentParser:
    """Build the full CLI argument parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--data-dir", dest="data_dir", help="Project data directory (default: from config)")
    common.add_argument("--config", help="Config file (default: $TREEWRITER_CONFIG or ~/.config/treewriter/config)")
    common.add_argument("--json", action="store_true", help="Machine-readable JSON output")

    parser = argparse.ArgumentParser(
        prog="treewriter",
        description="Hierarchical multi-column card writing",
        parents=[common],
    )

    nouns = parser.add_subparsers(dest="noun")

    # --- project ---
    proj_p = nouns.add_parser("project", help="Project operations", parents=[common])
    proj_verbs = proj_p.add_subparsers(dest="verb")

    proj_list_p = proj_verbs.add_parser("list", help="List projects", parents=[common])
    proj_list_p.set_defaults(func=project_list)

    proj_new_p = proj_verbs.add_parser("new", help="Create a project and make it active", parents=[common])
    proj_new_p.add_argument("title", nargs="?", default="", help="Project title")
    proj_new_p.set_defaults(func=project_new)

    proj_rename_p = proj_verbs.add_parser("rename", help="Rename a project", parents=[common])
    proj_rename_p.add_argument("id", help="Project ID or title")
    proj_rename_p.add_argument("title", help="New title")
    proj_rename_p.set_defaults(func=project_rename)

    proj_delete_p = proj_verbs.add_parser("delete", help="Delete a project", parents=[common])
    proj_delete_p.add_argument("id", help="Project ID or title")
    proj_delete_p.set_defaults(func=project_delete)

    proj_switch_p = proj_verbs.add_parser("switch", help="Make a project active", parents=[common])
    proj_switch_p.add_argument("id", help="Project ID or title")
    proj_switch_p.set_defaults(func=project_switch)

    proj_export_p = proj_verbs.add_parser("export", help="Print project text (or data with --json)", parents=[common])
    proj_export_p.add_argument("id", nargs="?", help="Project ID or title (default: active)")
    proj_export_p.set_defaults(func=project_export)

    proj_import_p = proj_verbs.add_parser("import", help="Create a project from exported JSON", parents=[common])
    proj_import_p.add_argument("file", help="JSON file")
    proj_import_p.add_argument("--title", help="Project title (default: file name)")
    proj_import_p.set_defaults(func=project_import)

    # project with no verb = list
    proj_p.set_defaults(func=project_list)

    # --- card ---
    card_p = nouns.add_parser("card", help="Card operations on the active project", parents=[common])
    card_verbs = card_p.add_subparsers(dest="verb")

    card_list_p = card_verbs.add_parser("list", help="List cards as an outline", parents=[common])
    card_list_p.add_argument("--column", type=int, help="Only cards in this column index")
    card_list_p.set_defaults(func=card_list)

    card_get_p = card_verbs.add_parser("get", help="Dump card content", parents=[common])
    card_get_p.add_argument("id", help="Card ID")
    card_get_p.set_defaults(func=card_get)

    card_set_p = card_verbs.add_parser("set", help="Write card content from stdin", parents=[common])
    card_set_p.add_argument("id", help="Card ID")
    card_set_p.add_argument("--name", help="Display name (empty string clears it)")
    card_set_p.set_defaults(func=card_set)

    card_add_p = card_verbs.add_parser("add", help="Create a card", parents=[common])
    card_add_p.add_argument("content", nargs="?", default="", help="Card content")
    card_add_p.add_argument("--parent", help="Parent card ID (default: new root)")
    card_add_p.add_argument("--before", help="Insert before this sibling")
    card_add_p.set_defaults(func=card_add)

    card_move_p = card_verbs.add_parser("move", help="Move a card with its subtree", parents=[common])
    card_move_p.add_argument("id", help="Card ID")
    card_move_p.add_argument("--parent", help="New parent card ID (default: make it a root)")
    card_move_p.add_argument("--before", help="Insert before this sibling")
    card_move_p.set_defaults(func=card_move)

    card_delete_p = card_verbs.add_parser("delete", help="Delete a card and its descendants", parents=[common])
    card_delete_p.add_argument("id", help="Card ID")
    card_delete_p.set_defaults(func=card_delete)

    # card with no verb = list
    card_p.set_defaults(func=card_list, column=None)

    # --- column ---
    col_p = nouns.add_parser("column", help="Column operations on the active project", parents=[common])
    col_verbs = col_p.add_subparsers(dest="verb")

    col_list_p = col_verbs.add_parser("list", help="List columns", parents=[common])
    col_list_p.set_defaults(func=column_list)

    col_add_p = col_verbs.add_parser("add", help="Append a column", parents=[common])
    col_add_p.set_defaults(func=column_add)

    col_delete_p = col_verbs.add_parser("delete", help="Delete the empty rightmost column", parents=[common])
    col_delete_p.set_defaults(func=column_delete)

    col_prompt_p = col_verbs.add_parser("prompt", help="Show or set a column prompt", parents=[common])
    col_prompt_p.add_argument("index", type=int, help="Column index")
    col_prompt_p.add_argument("prompt", nargs="?", help="New prompt (omit to show)")
    col_prompt_p.set_defaults(func=column_prompt)

    # column with no verb = list
    col_p.set_defaults(func=column_list)

    # --- config ---
    conf_p = nouns.add_parser("config", help="Read or write settings", parents=[common])
    conf_verbs = conf_p.add_subparsers(dest="verb")

    conf_get_p = conf_verbs.add_parser("get", help="Show settings", parents=[common])
    conf_get_p.add_argument("key", nargs="?", help="section.key, e.g. ai.model-name")
    conf_get_p.set_defaults(func=config_get)

    conf_set_p = conf_verbs.add_parser("set", help="Write a setting", parents=[common])
    conf_set_p.add_argument("key", help="section.key, e.g. ai.api-key")
    conf_set_p.add_argument("value", help="New value")
    conf_set_p.set_defaults(func=config_set)

    # config with no verb = get
    conf_p.set_defaults(func=config_get, key=None)

    # --- generate ---
    gen_p = nouns.add_parser("generate", help="Generate text for a card", parents=[common])
    gen_p.add_argument("id", help="Card ID")
    gen_p.add_argument(
        "--mode",
        choices=[mode.value for mode in Mode],
        default=Mode.CONTINUE.value,
        help="Generation mode (default: continue)",
    )
    gen_p.add_argument("--prompt", help="Instructions for custom mode")
    gen_p.set_defaults(func=generate)

    return parser
