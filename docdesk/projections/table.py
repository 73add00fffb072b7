"""
Table projection: one row per document, one column per visible field.

render_table() is a pure function of the documents, the visible fields, the
edit session and the TableState (selection, focused cell, column widths).
The Textual DataTable in docdesk.tui only draws the TableModel it returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from docdesk.core.codec import MISSING, TypeTag, classify, format_value
from docdesk.core.documents import Document
from docdesk.core.edit_session import EditSessionController

# Maximum number of rows rendered; larger sets show a truncation notice
MAX_VISIBLE_ROWS = 100

# Column width bounds, in terminal cells
MIN_COLUMN_WIDTH = 4
DEFAULT_COLUMN_WIDTH = 16

# Rendered for a field the document does not have (distinct from "null")
EMPTY_MARKER = "—"

# Column key of the fixed document id column
DOC_ID_COLUMN = "__doc_id__"
DOC_ID_LABEL = "Doc ID"


@dataclass(frozen=True)
class TableColumn:
    key: str
    label: str
    width: int
    selected: bool = False


@dataclass(frozen=True)
class TableCell:
    """A rendered cell.

    Attributes:
        field: Field name, or DOC_ID_COLUMN for the id column.
        text: Display text.
        tag: Type tag of the value (UNDEFINED when missing).
        missing: Whether the document lacks this field.
        focused: Whether the cell has the focus highlight.
        editing: Whether the cell is the open edit session.
    """

    field: str
    text: str
    tag: TypeTag
    missing: bool = False
    focused: bool = False
    editing: bool = False


@dataclass(frozen=True)
class TableRow:
    document_id: str
    cells: tuple[TableCell, ...]
    selected: bool = False


@dataclass(frozen=True)
class TableModel:
    columns: tuple[TableColumn, ...]
    rows: tuple[TableRow, ...]
    total_rows: int
    notice: str | None = None

    @property
    def truncated(self) -> bool:
        return self.total_rows > len(self.rows)


@dataclass
class TableState:
    """UI state of the table that never reaches the document store.

    Row selection, column selection, the focused cell and the edit session
    are independent of each other.
    """

    selected_rows: set[str] = field(default_factory=set)
    selected_columns: set[str] = field(default_factory=set)
    focused: tuple[str, str] | None = None
    column_widths: dict[str, int] = field(default_factory=dict)

    def width_of(self, column: str) -> int:
        return self.column_widths.get(column, DEFAULT_COLUMN_WIDTH)

    def resize(self, column: str, width: int) -> int:
        """Set a column width, clamped to MIN_COLUMN_WIDTH. Returns the width."""
        clamped = max(MIN_COLUMN_WIDTH, width)
        self.column_widths[column] = clamped
        return clamped

    def resize_by(self, column: str, delta: int) -> int:
        return self.resize(column, self.width_of(column) + delta)

    def toggle_row(self, document_id: str) -> bool:
        """Toggle row selection. Returns True if the row is now selected."""
        if document_id in self.selected_rows:
            self.selected_rows.discard(document_id)
            return False
        self.selected_rows.add(document_id)
        return True

    def toggle_column(self, column: str) -> bool:
        if column in self.selected_columns:
            self.selected_columns.discard(column)
            return False
        self.selected_columns.add(column)
        return True

    def clear_selection(self) -> None:
        self.selected_rows.clear()
        self.selected_columns.clear()

    def focus(self, document_id: str, column: str) -> None:
        self.focused = (document_id, column)

    def clear_focus(self) -> None:
        self.focused = None

    def activate(self, document_id: str, column: str) -> bool:
        """Register an activation (click / Enter) on a cell.

        The first activation of a cell only focuses it; activating the
        already-focused cell again asks for an edit session. The document id
        column never starts an edit.

        Returns:
            True if an edit session should start on this cell.
        """
        if self.focused != (document_id, column):
            self.focus(document_id, column)
            return False
        return column != DOC_ID_COLUMN

    def prune(self, document_ids: Sequence[str]) -> None:
        """Drop selection and focus entries for documents no longer loaded."""
        alive = set(document_ids)
        self.selected_rows &= alive
        if self.focused and self.focused[0] not in alive:
            self.focused = None


def render_cell(document: Document, field_name: str) -> TableCell:
    """Render one field of a document without focus/edit decoration."""
    value: Any = document.get(field_name)
    if value is MISSING:
        return TableCell(field_name, EMPTY_MARKER, TypeTag.UNDEFINED, missing=True)
    tag = classify(value)
    return TableCell(field_name, format_value(value, tag), tag)


def render_table(
    documents: Sequence[Document],
    visible_fields: Sequence[str],
    session: EditSessionController,
    state: TableState,
    max_rows: int = MAX_VISIBLE_ROWS,
) -> TableModel:
    """Build the table model for the filtered, sorted documents.

    Args:
        documents: Documents in display order.
        visible_fields: Field columns in registry order, hidden ones removed.
        session: The shared edit session controller.
        state: Selection, focus and width state.
        max_rows: Row cap; rows beyond it are not rendered.

    Returns:
        The TableModel, with a notice when rows were truncated.
    """
    columns = [TableColumn(DOC_ID_COLUMN, DOC_ID_LABEL, state.width_of(DOC_ID_COLUMN))]
    for name in visible_fields:
        columns.append(
            TableColumn(name, name, state.width_of(name), selected=name in state.selected_columns)
        )

    rows: list[TableRow] = []
    for doc in documents[:max_rows]:
        id_cell = TableCell(
            DOC_ID_COLUMN,
            doc.id,
            TypeTag.STRING,
            focused=state.focused == (doc.id, DOC_ID_COLUMN),
        )
        cells = [id_cell]
        for name in visible_fields:
            cell = render_cell(doc, name)
            cells.append(
                TableCell(
                    cell.field,
                    cell.text,
                    cell.tag,
                    missing=cell.missing,
                    focused=state.focused == (doc.id, name),
                    editing=session.is_editing_cell(doc.id, (name,)),
                )
            )
        rows.append(TableRow(doc.id, tuple(cells), selected=doc.id in state.selected_rows))

    notice = None
    if len(documents) > max_rows:
        notice = f"Showing first {max_rows} of {len(documents)} rows"

    return TableModel(tuple(columns), tuple(rows), len(documents), notice)
