"""Ordered-forest model: queries, mutations and the project workspace."""

from treewriter.model.card import (
    add_card,
    delete_subtree,
    move_card,
    order_for_insert,
    refresh_colors,
    reparent_children,
    update_content,
    update_name,
)
from treewriter.model.column import (
    add_column,
    can_delete_column,
    delete_column,
    ensure_columns,
    set_column_prompt,
    set_global_prompt,
)
from treewriter.model.edits import (
    MergeResult,
    merge_with_next,
    merge_with_previous,
    split_as_child,
    split_below,
)
from treewriter.model.project import Workspace, export_text, validate_project_data
from treewriter.model.query import (
    color_of,
    get_ancestor_ids,
    get_card,
    get_children,
    get_column,
    get_column_cards,
    get_descendant_ids,
    get_siblings,
    is_descendant,
    root_cards,
)

__all__ = [
    "MergeResult",
    "Workspace",
    "add_card",
    "add_column",
    "can_delete_column",
    "color_of",
    "delete_column",
    "delete_subtree",
    "ensure_columns",
    "export_text",
    "get_ancestor_ids",
    "get_card",
    "get_children",
    "get_column",
    "get_column_cards",
    "get_descendant_ids",
    "get_siblings",
    "is_descendant",
    "merge_with_next",
    "merge_with_previous",
    "move_card",
    "order_for_insert",
    "refresh_colors",
    "reparent_children",
    "root_cards",
    "set_column_prompt",
    "set_global_prompt",
    "split_as_child",
    "split_below",
    "update_content",
    "update_name",
    "validate_project_data",
]
