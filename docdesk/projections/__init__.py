"""
View projections of the loaded document set.

Each projection is a pure rendering of the filtered, sorted documents plus
its own UI state: a table, an expandable tree and a structured JSON text.
"""

from docdesk.projections.table import (
    EMPTY_MARKER,
    MAX_VISIBLE_ROWS,
    TableModel,
    TableState,
    render_table,
)
from docdesk.projections.text import TextBuffer, render_text
from docdesk.projections.tree import NodeKind, TreeRow, render_tree

__all__ = [
    "EMPTY_MARKER",
    "MAX_VISIBLE_ROWS",
    "NodeKind",
    "TableModel",
    "TableState",
    "TextBuffer",
    "TreeRow",
    "render_table",
    "render_text",
    "render_tree",
]
