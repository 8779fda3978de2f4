"""Column and prompt mutation operations."""

import logging

from treewriter.model.query import get_column, get_column_cards
from treewriter.models import MIN_COLUMNS, Column, ProjectData

logger = logging.getLogger(__name__)


def ensure_columns(data: ProjectData, column_index: int) -> int:
    """Append columns until column_index exists. Returns how many were added."""
    added = 0
    while len(data.columns) <= column_index:
        data.columns.append(Column())
        added += 1
    return added


def add_column(data: ProjectData) -> int:
    """Append an empty column and return its index."""
    data.columns.append(Column())
    data.changed()
    logger.debug("Column added, count now %d", len(data.columns))
    return len(data.columns) - 1


def can_delete_column(data: ProjectData, column_index: int) -> bool:
    """Only the rightmost column, when empty and above the minimum count."""
    count = len(data.columns)
    return column_index == count - 1 and count > MIN_COLUMNS and not get_column_cards(data, column_index)


def delete_column(data: ProjectData, column_index: int) -> bool:
    """Remove the rightmost column if allowed."""
    if not can_delete_column(data, column_index):
        return False
    del data.columns[column_index]
    data.changed()
    logger.debug("Column %d deleted", column_index)
    return True


def set_column_prompt(data: ProjectData, column_index: int, prompt: str) -> bool:
    """Set a column's prompt. False if the column is unknown or unchanged."""
    column = get_column(data, column_index)
    if column is None or column.prompt == prompt:
        return False
    column.prompt = prompt
    data.changed()
    return True


def set_global_prompt(data: ProjectData, prompt: str) -> bool:
    """Set the project-wide prompt. False if unchanged."""
    if data.global_prompt == prompt:
        return False
    data.global_prompt = prompt
    data.changed()
    return True
