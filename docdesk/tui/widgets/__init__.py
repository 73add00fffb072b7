"""TUI widgets for DocDesk."""

from docdesk.tui.widgets.cell_editor import CellEditorModal
from docdesk.tui.widgets.document_tree_panel import DocumentTreePanel

__all__ = [
    "CellEditorModal",
    "DocumentTreePanel",
]
