"""TUI views for DocDesk."""

from docdesk.tui.views.collection_screen import CollectionScreen

__all__ = ["CollectionScreen"]
