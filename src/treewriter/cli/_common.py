"""Shared helpers for CLI command handlers."""

import json
import sys
from pathlib import Path

from treewriter.config import read_config
from treewriter.model.project import Workspace
from treewriter.models import Card, Project, ProjectData
from treewriter.storage import JsonFileStore


def data_dir(args) -> Path:
    """--data-dir if given, else the configured data directory."""
    if getattr(args, "data_dir", None):
        return Path(args.data_dir).expanduser()
    return Path(read_config(getattr(args, "config", None))["treewriter"]["data_dir"]).expanduser()


def open_workspace(args) -> Workspace:
    """Load the workspace from the data directory. Exit 1 if unreadable."""

    def report(e: Exception) -> None:
        error(str(e), args.json)

    return Workspace.load(JsonFileStore(data_dir(args)), on_error=report)


def save(workspace: Workspace, json_mode: bool) -> None:
    """Save the workspace. Exit 1 if the store fails."""
    if not workspace.save():
        error("Could not save projects", json_mode)


def find_project(workspace: Workspace, key: str, json_mode: bool) -> Project:
    """Lookup project by ID, or by title if unambiguous. Exit 1 if not found."""
    project = workspace.projects.get(key)
    if project is not None:
        return project
    matches = [p for p in workspace.projects.values() if p.title == key]
    if len(matches) == 1:
        return matches[0]
    available = [f"  {p.id}  {p.title}" for p in workspace.projects_by_recency()]
    reason = "is ambiguous" if matches else "not found"
    error(f"Project '{key}' {reason}. Available:\n" + "\n".join(available), json_mode)


def find_card(data: ProjectData, card_id: str, json_mode: bool) -> Card:
    """Lookup card by ID. Exit 1 if not found."""
    card = data.cards.get(card_id)
    if card is not None:
        return card
    error(f"Card '{card_id}' not found.", json_mode)


def project_summary(workspace: Workspace, project: Project) -> dict:
    data = project.data
    return {
        "id": project.id,
        "title": project.title,
        "last_modified": project.last_modified,
        "active": project.id == workspace.active_project_id,
        "columns": len(data.columns) if data else 0,
        "cards": len(data.cards) if data else 0,
    }


def output_json(data: dict | list) -> None:
    """Write JSON to stdout."""
    print(json.dumps(data, indent=2))


def output_result(data: dict, text: str, json_mode: bool) -> None:
    """Output mutation result as JSON or plain text."""
    if json_mode:
        output_json(data)
    else:
        print(text)


def error(message: str, json_mode: bool) -> None:
    """Print error to stderr and exit 1."""
    if json_mode:
        print(json.dumps({"error": message}), file=sys.stderr)
    else:
        print(f"error: {message}", file=sys.stderr)
    sys.exit(1)
