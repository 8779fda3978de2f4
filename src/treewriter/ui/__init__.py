"""Textual UI for treewriter."""

from treewriter.ui.app import WriterApp

__all__ = ["WriterApp"]
