"""
DataTable Mixin for drawing a TableModel and reading cell keys back.

Provides reusable methods for:
- _load_table_model(): Rebuild a DataTable from a TableModel
- _cell_text(): Style a rendered cell for display
- _get_cell_keys(): Extract (document_id, column) from cell events
- _get_cursor_keys(): (document_id, column) under the table cursor

Usage:
    class MyScreen(DataTableMixin, Screen):
        def compose(self):
            yield DataTable(id="doc-table")

        def refresh_table(self):
            table = self.query_one("#doc-table", DataTable)
            self._load_table_model(table, engine.table(), sort=engine.sort)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.text import Text
from textual.widgets import DataTable
from textual.widgets.data_table import CellDoesNotExist, ColumnDoesNotExist, RowDoesNotExist

from docdesk.projections.table import DOC_ID_COLUMN, TableCell, TableModel

if TYPE_CHECKING:
    from docdesk.core.filtering import SortSpec


class DataTableMixin:
    """Mixin drawing document tables with a cell cursor."""

    def _configure_table(
        self,
        table: DataTable,
        *,
        cursor_type: str = "cell",
        zebra_stripes: bool = True,
    ) -> None:
        """Apply common settings to a DataTable.

        Args:
            table: The DataTable instance to configure.
            cursor_type: Cursor type ('row', 'cell', or 'none').
            zebra_stripes: Whether to enable zebra striping.
        """
        table.cursor_type = cursor_type
        table.zebra_stripes = zebra_stripes

    def _column_label(self, key: str, label: str, selected: bool, sort: SortSpec | None) -> Text:
        text = Text(label, style="bold reverse" if selected else "bold")
        if sort is not None and sort.field == key:
            text.append(" ↓" if sort.descending else " ↑")
        return text

    def _cell_text(self, cell: TableCell, row_selected: bool) -> Text:
        """Style a cell: missing fields dim, the edited cell reversed."""
        style = ""
        if cell.missing:
            style = "dim italic"
        if cell.field == DOC_ID_COLUMN:
            style = "bold"
        if row_selected:
            style = f"{style} on dark_blue".strip()
        if cell.editing:
            style = "reverse"
        return Text(cell.text, style=style, no_wrap=True)

    def _load_table_model(
        self,
        table: DataTable,
        model: TableModel,
        *,
        sort: SortSpec | None = None,
    ) -> None:
        """Rebuild the table from a model, keeping the cursor on the focused cell.

        Args:
            table: The DataTable to fill.
            model: The rendered table model.
            sort: Current sort, marked in the column header.
        """
        cursor = self._get_cursor_keys(table) if table.row_count else None

        table.clear(columns=True)
        for column in model.columns:
            table.add_column(
                self._column_label(column.key, column.label, column.selected, sort),
                key=column.key,
                width=column.width,
            )
        for row in model.rows:
            table.add_row(
                *(self._cell_text(cell, row.selected) for cell in row.cells),
                key=row.document_id,
            )

        focused = next(
            (
                (row.document_id, cell.field)
                for row in model.rows
                for cell in row.cells
                if cell.focused
            ),
            cursor,
        )
        if focused is not None:
            self._move_cursor_to(table, *focused)

    def _move_cursor_to(self, table: DataTable, document_id: str, column: str) -> None:
        try:
            row_index = table.get_row_index(document_id)
            column_index = table.get_column_index(column)
        except (RowDoesNotExist, ColumnDoesNotExist):
            # Row or column left the table (filtered, deleted or hidden)
            return
        table.move_cursor(row=row_index, column=column_index)

    def _get_cell_keys(
        self, event: DataTable.CellSelected | DataTable.CellHighlighted
    ) -> tuple[str, str] | None:
        """Extract (document_id, column_key) from a cell event.

        Args:
            event: The CellSelected or CellHighlighted event.

        Returns:
            The keys as strings, or None if the event has no row key.
        """
        cell_key = event.cell_key
        if cell_key.row_key.value is None or cell_key.column_key.value is None:
            return None
        return str(cell_key.row_key.value), str(cell_key.column_key.value)

    def _get_cursor_keys(self, table: DataTable) -> tuple[str, str] | None:
        """Return (document_id, column_key) under the cursor, or None."""
        if not table.row_count:
            return None
        try:
            cell_key = table.coordinate_to_cell_key(table.cursor_coordinate)
        except CellDoesNotExist:
            return None
        if cell_key.row_key.value is None or cell_key.column_key.value is None:
            return None
        return str(cell_key.row_key.value), str(cell_key.column_key.value)
