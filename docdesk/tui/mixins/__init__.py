"""Mixins for the TUI application."""

from docdesk.tui.mixins.data_table import DataTableMixin

__all__ = [
    "DataTableMixin",
]
