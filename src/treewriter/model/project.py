"""Project registry: the set of projects, the active one, and persistence."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable

from treewriter.ids import generate_id
from treewriter.model.card import refresh_colors
from treewriter.model.column import ensure_columns
from treewriter.model.query import get_children, root_cards
from treewriter.models import MIN_COLUMNS, Project, ProjectData, is_valid_project_data
from treewriter.storage import ACTIVE_PROJECT_KEY, PROJECTS_KEY, KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Project"

ErrorCallback = Callable[[Exception], None]


def validate_project_data(raw: Any) -> bool:
    """True when raw (parsed JSON) can be imported as project data."""
    return is_valid_project_data(raw)


def export_text(project: Project) -> str:
    """Plain text of a project: depth-first from the roots, by order.

    Empty cards are skipped; the rest are separated by a blank line.
    """
    data = project.data
    if data is None:
        return ""
    parts: list[str] = []
    seen: set[str] = set()

    def visit(card_id: str, column_index: int) -> None:
        if card_id in seen:
            return
        seen.add(card_id)
        content = data.cards[card_id].content.strip()
        if content:
            parts.append(content)
        for child in get_children(data, card_id, column_index + 1):
            visit(child.id, child.column_index)

    for root in root_cards(data):
        visit(root.id, root.column_index)
    return "\n\n".join(parts)


class Workspace:
    """All projects in a store, with exactly one active.

    Mutating the active project's data touches its ``last_modified``.
    Saving is explicit; call ``save()`` after each logical operation.
    """

    def __init__(
        self,
        store: KeyValueStore,
        on_error: ErrorCallback | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.on_error = on_error
        self.clock = clock
        self.projects: dict[str, Project] = {}
        self.active_project_id: str | None = None
        self._watched: dict[str, tuple[ProjectData, Callable[[], None]]] = {}

    @classmethod
    def load(cls, store: KeyValueStore, on_error: ErrorCallback | None = None, **kwargs) -> Workspace:
        """Load projects from store; fall back to one saved default project."""
        workspace = cls(store, on_error=on_error, **kwargs)
        workspace.projects = workspace._read_projects()
        saved_active = workspace._read(ACTIVE_PROJECT_KEY)

        if not workspace.projects:
            project = workspace.create_project(DEFAULT_TITLE)
            workspace.active_project_id = project.id
            workspace.save()
            return workspace

        if saved_active in workspace.projects:
            workspace.active_project_id = saved_active
        else:
            workspace.active_project_id = workspace.projects_by_recency()[0].id
        return workspace

    def _read(self, key: str) -> str | None:
        try:
            return self.store.get(key)
        except OSError as e:
            logger.warning("Cannot read %s from store: %s", key, e)
            self._report(e)
            return None

    def _read_projects(self) -> dict[str, Project]:
        text = self._read(PROJECTS_KEY)
        if not text:
            return {}
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("Stored projects are corrupt, starting fresh: %s", e)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Stored projects are not a mapping, starting fresh")
            return {}

        projects: dict[str, Project] = {}
        for project_id, project_raw in raw.items():
            if not isinstance(project_raw, dict):
                logger.warning("Skipping malformed project %s", project_id)
                continue
            project = Project.from_dict({"id": project_id, **project_raw})
            if project.data is not None:
                refresh_colors(project.data)
            projects[project.id] = project
        logger.debug("Loaded %d projects", len(projects))
        return projects

    def _report(self, error: Exception) -> None:
        if self.on_error is not None:
            self.on_error(error)

    # --- Persistence ---

    def save(self) -> bool:
        """Write all projects and the active id. False if the store failed."""
        blob = json.dumps({pid: project.to_dict() for pid, project in self.projects.items()})
        try:
            self.store.set(PROJECTS_KEY, blob)
            if self.active_project_id:
                self.store.set(ACTIVE_PROJECT_KEY, self.active_project_id)
            else:
                self.store.remove(ACTIVE_PROJECT_KEY)
        except OSError as e:
            logger.warning("Saving projects failed: %s", e)
            self._report(e)
            return False
        return True

    # --- Active project ---

    @property
    def active_project(self) -> Project | None:
        if self.active_project_id is None:
            return None
        return self.projects.get(self.active_project_id)

    @property
    def data(self) -> ProjectData | None:
        """The active project's data, repaired if needed."""
        project = self.active_project
        if project is None:
            return None
        if project.data is None:
            logger.warning("Project %s has missing data structure, resetting it", project.id)
            project.data = ProjectData.default()
        if len(project.data.columns) < MIN_COLUMNS:
            logger.warning("Project %s has too few columns, topping up", project.id)
            ensure_columns(project.data, MIN_COLUMNS - 1)
        self._watch(project)
        return project.data

    def _watch(self, project: Project) -> None:
        watched = self._watched.get(project.id)
        if watched is not None and watched[0] is project.data:
            return
        if watched is not None:
            watched[1]()
        unwatch = project.data.watch(lambda _data: self.touch(project.id))
        self._watched[project.id] = (project.data, unwatch)

    def touch(self, project_id: str) -> None:
        project = self.projects.get(project_id)
        if project is not None:
            project.last_modified = self.clock()

    # --- Project records ---

    def create_project(self, title: str = DEFAULT_TITLE, data: ProjectData | dict | None = None) -> Project:
        """Add a project. A dict ``data`` is imported if it validates."""
        project = Project(
            id=generate_id("proj_"),
            title=(title or "").strip() or DEFAULT_TITLE,
            last_modified=self.clock(),
        )
        if isinstance(data, ProjectData):
            project.data = data
        elif data is not None:
            if validate_project_data(data):
                project.data = ProjectData.from_dict(data)
                refresh_colors(project.data)
            else:
                logger.warning("Ignoring invalid project data for %r", project.title)
        self.projects[project.id] = project
        logger.debug("Project %s created", project.id)
        return project

    def delete_project(self, project_id: str) -> bool:
        """Remove a project, activating the most recent remaining one."""
        if project_id not in self.projects:
            return False
        del self.projects[project_id]
        watched = self._watched.pop(project_id, None)
        if watched is not None:
            watched[1]()
        if self.active_project_id == project_id:
            remaining = self.projects_by_recency()
            if remaining:
                self.active_project_id = remaining[0].id
            else:
                self.active_project_id = self.create_project(DEFAULT_TITLE).id
        logger.debug("Project %s deleted, active is %s", project_id, self.active_project_id)
        return True

    def switch_project(self, project_id: str) -> bool:
        if project_id not in self.projects or project_id == self.active_project_id:
            return False
        self.active_project_id = project_id
        return True

    def rename_project(self, project_id: str, title: str) -> bool:
        project = self.projects.get(project_id)
        title = (title or "").strip()
        if project is None or not title:
            return False
        project.title = title
        self.touch(project_id)
        return True

    def projects_by_recency(self) -> list[Project]:
        """Projects, most recently modified first."""
        return sorted(self.projects.values(), key=lambda p: p.last_modified, reverse=True)
