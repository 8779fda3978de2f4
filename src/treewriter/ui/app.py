"""Main Textual application for treewriter."""

from __future__ import annotations

import logging
from typing import Any

from textual.app import App

from treewriter.model.project import Workspace
from treewriter.ui.board import BoardScreen

logger = logging.getLogger(__name__)


class WriterApp(App):
    """Hierarchical multi-column card writing TUI."""

    CSS = """
    Tooltip {
        padding: 0 1;
        margin: 0;
    }
    """

    TITLE = "treewriter"
    BINDINGS = [("ctrl+q", "quit", "Quit")]

    def __init__(self, workspace: Workspace, config: dict[str, dict[str, Any]] | None = None):
        super().__init__()
        self.workspace = workspace
        self.config = config or {}
        self.workspace.on_error = self._on_store_error

    def on_mount(self) -> None:
        self.push_screen(BoardScreen(self.workspace, self.config))

    def _on_store_error(self, error: Exception) -> None:
        logger.error("Store error: %s", error)
        self.notify(f"Saving failed: {error}", severity="error")

    def action_quit(self) -> None:
        """Cancel any drag, save and quit."""
        screen = self.screen
        if isinstance(screen, BoardScreen):
            screen.action_cancel_drag()
        self.workspace.save()
        self.exit()
