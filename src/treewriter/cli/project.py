"""Handlers for 'treewriter project' commands."""

import json
import sys
from pathlib import Path

from treewriter.cli._common import (
    error,
    find_project,
    open_workspace,
    output_json,
    output_result,
    project_summary,
    save,
)
from treewriter.model.project import export_text, validate_project_data


def project_list(args) -> int:
    """List projects, most recently modified first."""
    workspace = open_workspace(args)
    items = [project_summary(workspace, p) for p in workspace.projects_by_recency()]

    if args.json:
        output_json(items)
    else:
        for p in items:
            marker = "*" if p["active"] else " "
            cards = "card" if p["cards"] == 1 else "cards"
            print(f"{marker} {p['id']}  {p['title']:<24} {p['cards']} {cards}")

    return 0


def project_new(args) -> int:
    """Create a project and make it active."""
    workspace = open_workspace(args)
    project = workspace.create_project(args.title)
    workspace.switch_project(project.id)
    save(workspace, args.json)

    output_result(project_summary(workspace, project), f"Created project {project.id}: {project.title}", args.json)
    return 0


def project_rename(args) -> int:
    """Rename a project."""
    workspace = open_workspace(args)
    project = find_project(workspace, args.id, args.json)
    if not workspace.rename_project(project.id, args.title):
        error("Title must not be empty.", args.json)
    save(workspace, args.json)

    output_result(project_summary(workspace, project), f"Renamed {project.id} to {project.title}", args.json)
    return 0


def project_delete(args) -> int:
    """Delete a project. The most recent remaining one becomes active."""
    workspace = open_workspace(args)
    project = find_project(workspace, args.id, args.json)
    workspace.delete_project(project.id)
    save(workspace, args.json)

    output_result(
        {"deleted": project.id, "active": workspace.active_project_id},
        f"Deleted {project.id}; active project is {workspace.active_project_id}",
        args.json,
    )
    return 0


def project_switch(args) -> int:
    """Make a project the active one."""
    workspace = open_workspace(args)
    project = find_project(workspace, args.id, args.json)
    workspace.switch_project(project.id)
    save(workspace, args.json)

    output_result(project_summary(workspace, project), f"Active project is {project.id}: {project.title}", args.json)
    return 0


def project_export(args) -> int:
    """Print a project's text, or its raw data with --json."""
    workspace = open_workspace(args)
    project = find_project(workspace, args.id, args.json) if args.id else workspace.active_project

    if args.json:
        output_json(project.to_dict())
    else:
        text = export_text(project)
        sys.stdout.write(text + "\n" if text else "")

    return 0


def project_import(args) -> int:
    """Create a project from an exported JSON data file."""
    path = Path(args.file)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        error(f"Cannot read {path}: {e}", args.json)
    if isinstance(raw, dict) and "data" in raw and not validate_project_data(raw):
        raw = raw["data"]
    if not validate_project_data(raw):
        error(f"{path} does not contain valid project data.", args.json)

    workspace = open_workspace(args)
    project = workspace.create_project(args.title or path.stem, raw)
    workspace.switch_project(project.id)
    save(workspace, args.json)

    output_result(project_summary(workspace, project), f"Imported {path} as {project.id}: {project.title}", args.json)
    return 0
