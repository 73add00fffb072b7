"""
Collection Screen for DocDesk.

Shows one collection through three tabs (Table, Tree, JSON) that all read
from and write to the same CollectionEngine. A filter bar and a quick search
narrow the visible documents; a status line reports counts, sort, the open
edit session and the JSON parse state.
"""

from __future__ import annotations

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.screen import Screen
from textual.widgets import (
    DataTable,
    Footer,
    Header,
    Input,
    Static,
    TabbedContent,
    TabPane,
    TextArea,
)
from textual.widgets.text_area import Selection

from docdesk.core.codec import classify
from docdesk.core.edit_session import Editing
from docdesk.core.errors import DocDeskError, DocumentParseError, EditValidationError, FilterSyntaxError
from docdesk.engine import CollectionEngine
from docdesk.projections.table import DOC_ID_COLUMN
from docdesk.tui.mixins.data_table import DataTableMixin
from docdesk.tui.widgets.cell_editor import CellEditorModal
from docdesk.tui.widgets.document_tree_panel import DocumentTreePanel

# Column width step for the resize bindings
RESIZE_STEP = 4


class CollectionScreen(DataTableMixin, Screen):
    """Screen that shows one collection in table, tree and JSON form."""

    CSS = """
    CollectionScreen {
        layout: vertical;
    }

    #query-bar {
        height: auto;
    }

    #filter-bar {
        width: 2fr;
    }

    #search-bar {
        width: 1fr;
    }

    #status-line {
        height: 1;
        padding: 0 1;
        background: $primary-darken-2;
        color: $text;
    }

    CollectionScreen TabbedContent {
        height: 1fr;
    }

    CollectionScreen TabPane {
        padding: 0;
    }

    #doc-table {
        height: 1fr;
        border: solid $primary;
    }

    #doc-tree {
        height: 1fr;
    }

    #json-search {
        height: auto;
    }

    #json-editor {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("n", "new_document", "New"),
        Binding("d", "delete_documents", "Delete"),
        Binding("h", "hide_column", "Hide Col"),
        Binding("H", "show_all_columns", "Show All", show=False),
        Binding("s", "cycle_sort", "Sort"),
        Binding("space", "toggle_row", "Select Row", show=False),
        Binding("c", "toggle_column_selection", "Select Col", show=False),
        Binding("plus", "widen_column", "Wider", show=False),
        Binding("minus", "narrow_column", "Narrower", show=False),
        Binding("ctrl+s", "save_json", "Save JSON", priority=True),
        Binding("ctrl+f", "focus_search", "Search", show=False, priority=True),
        Binding("f3", "next_match", "Next Match", show=False),
        Binding("shift+f3", "previous_match", "Previous Match", show=False),
    ]

    def __init__(
        self,
        engine: CollectionEngine,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        """Initialize the CollectionScreen.

        Args:
            engine: The engine owning the collection state.
            name: Optional name for the screen.
            id: Optional ID for the screen.
            classes: Optional CSS classes for the screen.
        """
        super().__init__(name=name, id=id, classes=classes)
        self.engine = engine
        self._notice: str | None = None

    def compose(self) -> ComposeResult:
        """Compose the screen layout."""
        yield Header()
        with Horizontal(id="query-bar"):
            yield Input(placeholder="Filter: age >= 30; name != Bo", id="filter-bar")
            yield Input(placeholder="Quick search", id="search-bar")
        yield Static("", id="status-line", markup=False)
        with TabbedContent(id="views"):
            with TabPane("Table", id="table-tab"):
                yield DataTable(id="doc-table")
            with TabPane("Tree", id="tree-tab"):
                yield DocumentTreePanel(self.engine.collection_path, id="doc-tree")
            with TabPane("JSON", id="json-tab"):
                yield Input(placeholder="Find in JSON (F3 / Shift+F3)", id="json-search")
                yield TextArea(id="json-editor")
        yield Footer()

    def on_mount(self) -> None:
        """Configure widgets and load the first page."""
        self.title = f"DocDesk - {self.engine.collection_path}"
        self._configure_table(self.query_one("#doc-table", DataTable))
        self.engine.set_expanded(self.engine.collection_path, True)
        self.refresh_views()
        self._refresh_documents()

    # --- Rendering ---

    @property
    def table(self) -> DataTable:
        return self.query_one("#doc-table", DataTable)

    @property
    def tree(self) -> DocumentTreePanel:
        return self.query_one("#doc-tree", DocumentTreePanel)

    @property
    def editor(self) -> TextArea:
        return self.query_one("#json-editor", TextArea)

    def refresh_views(self) -> None:
        """Redraw every projection from the engine state."""
        model = self.engine.table()
        self._notice = model.notice
        self._load_table_model(self.table, model, sort=self.engine.sort)
        self.tree.load_rows(self.engine.tree())
        self._sync_editor()
        self._update_status()

    def _sync_editor(self) -> None:
        buffer = self.engine.text()
        if not buffer.dirty and self.editor.text != buffer.text:
            self.editor.load_text(buffer.text)

    def _update_status(self) -> None:
        engine = self.engine
        parts = [f"{len(engine.documents)} of {len(engine.store)} documents"]
        if self._notice:
            parts.append(self._notice)
        if engine.sort is not None:
            arrow = "↓" if engine.sort.descending else "↑"
            parts.append(f"sort: {engine.sort.field} {arrow}")
        hidden = engine.visibility.hidden_fields() & set(engine.fields)
        if hidden:
            parts.append(f"{len(hidden)} hidden column(s)")
        selected = len(engine.table_state.selected_rows)
        if selected:
            parts.append(f"{selected} selected")
        state = engine.session.state
        if isinstance(state, Editing):
            parts.append(f"editing {state.document_id}.{state.field}")
        buffer = engine.text()
        if buffer.parse_error:
            parts.append(f"JSON: {buffer.parse_error}")
        elif buffer.dirty:
            parts.append("JSON: unsaved changes")
        if buffer.query:
            position = 0 if buffer.current is None else buffer.current + 1
            parts.append(f"match {position}/{len(buffer.matches)}")
        self.query_one("#status-line", Static).update(" | ".join(parts))

    # --- Filter bar ---

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "filter-bar":
            try:
                self.engine.set_filter_expression(event.value)
            except FilterSyntaxError as e:
                self.notify(str(e), severity="error")
                return
            self.refresh_views()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search-bar":
            self.engine.set_search(event.value)
            self.refresh_views()
        elif event.input.id == "json-search":
            self.engine.text().search(event.value)
            self._update_status()

    # --- Table ---

    def on_data_table_cell_highlighted(self, event: DataTable.CellHighlighted) -> None:
        """Moving the cursor off the focused cell drops the focus."""
        if event.coordinate != event.data_table.cursor_coordinate:
            # Posted by a rebuild before the cursor was restored
            return
        keys = self._get_cell_keys(event)
        if keys != self.engine.table_state.focused:
            self.engine.table_state.clear_focus()

    def on_data_table_cell_selected(self, event: DataTable.CellSelected) -> None:
        """Enter or click on the focused cell opens the cell editor."""
        keys = self._get_cell_keys(event)
        if keys is None:
            return
        document_id, column = keys
        if self.engine.table_state.activate(document_id, column):
            self._open_editor(document_id, (column,))

    def _table_keys(self) -> tuple[str, str] | None:
        """(document_id, column) under the table cursor while the Table tab is shown."""
        if self.query_one("#views", TabbedContent).active != "table-tab":
            return None
        return self._get_cursor_keys(self.table)

    def _current_column(self) -> str | None:
        keys = self._table_keys()
        if keys is None or keys[1] == DOC_ID_COLUMN:
            return None
        return keys[1]

    def action_hide_column(self) -> None:
        column = self._current_column()
        if column is None:
            return
        self.engine.toggle_column(column)
        self.notify(f"Hidden column {column} (H shows all)")
        self.refresh_views()

    def action_show_all_columns(self) -> None:
        self.engine.show_all_columns()
        self.refresh_views()

    def action_cycle_sort(self) -> None:
        column = self._current_column()
        if column is None:
            return
        self.engine.cycle_sort(column)
        self.refresh_views()

    def action_toggle_row(self) -> None:
        keys = self._table_keys()
        if keys is None:
            return
        self.engine.table_state.toggle_row(keys[0])
        self.refresh_views()

    def action_toggle_column_selection(self) -> None:
        column = self._current_column()
        if column is None:
            return
        self.engine.table_state.toggle_column(column)
        self.refresh_views()

    def action_widen_column(self) -> None:
        keys = self._table_keys()
        if keys is not None:
            self.engine.table_state.resize_by(keys[1], RESIZE_STEP)
            self.refresh_views()

    def action_narrow_column(self) -> None:
        keys = self._table_keys()
        if keys is not None:
            self.engine.table_state.resize_by(keys[1], -RESIZE_STEP)
            self.refresh_views()

    # --- Tree ---

    def on_document_tree_panel_node_toggled(self, event: DocumentTreePanel.NodeToggled) -> None:
        self.engine.set_expanded(event.node_path, event.expanded)
        self.tree.load_rows(self.engine.tree())

    def on_document_tree_panel_leaf_activated(self, event: DocumentTreePanel.LeafActivated) -> None:
        row = event.row
        if row.document_id is not None:
            self._open_editor(row.document_id, row.field_path)

    # --- Cell editing ---

    def _open_editor(
        self,
        document_id: str,
        field_path: tuple[str, ...],
        error: str | None = None,
    ) -> None:
        """Start (or resume after a validation error) an edit session."""
        engine = self.engine
        if error is None and not engine.begin_edit(document_id, field_path):
            self.notify("Finish the current edit first", severity="warning")
            return
        state = engine.session.state
        if not isinstance(state, Editing):
            return

        doc = engine.store.get(document_id)
        type_name = classify(doc.get_path(field_path)).value if doc is not None else "undefined"
        self.refresh_views()
        self.app.push_screen(
            CellEditorModal(document_id, state.field, type_name, state.raw_text, error=error),
            self._on_editor_closed,
        )

    def _on_editor_closed(self, result: str | None) -> None:
        if result is None:
            self.engine.cancel_edit()
            self.refresh_views()
            return
        self.engine.set_edit_text(result)
        self._commit_edit()

    @work(exclusive=False)
    async def _commit_edit(self) -> None:
        """Commit the open session and report the outcome."""
        state = self.engine.session.state
        try:
            result = await self.engine.commit_edit()
        except EditValidationError as e:
            # The session is still open; reopen the editor with the bad text
            if isinstance(state, Editing):
                self._open_editor(state.document_id, state.field_path, error=str(e))
            return
        except DocDeskError as e:
            self.notify(str(e), severity="error")
            self.refresh_views()
            return

        if result.attempted and not result.success:
            self.notify(f"Update failed: {result.message}", severity="error")
        elif result.attempted:
            self.notify(f"Updated {result.document.id}" if result.document else "Updated")
        self.refresh_views()

    # --- JSON ---

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if event.text_area.id != "json-editor":
            return
        self.engine.set_text(event.text_area.text)
        self._update_status()

    def action_save_json(self) -> None:
        buffer = self.engine.text()
        if not buffer.dirty:
            self.notify("No JSON changes to save")
            return
        self._save_json()

    @work(exclusive=True, group="save")
    async def _save_json(self) -> None:
        try:
            report = await self.engine.save_text()
        except DocumentParseError as e:
            self.notify(f"Cannot save: {e}", severity="error")
            if e.line is not None and e.column is not None:
                self.editor.move_cursor((e.line - 1, e.column - 1))
            return

        if report.success:
            self.notify(f"Saved {len(report.updated)} document(s)")
        else:
            failed = ", ".join(report.failed)
            self.notify(f"Saved {len(report.updated)}, failed: {failed}", severity="error")
        self.refresh_views()

    def action_focus_search(self) -> None:
        self.query_one("#views", TabbedContent).active = "json-tab"
        self.query_one("#json-search", Input).focus()

    def _select_match(self, offset: int | None) -> None:
        buffer = self.engine.text()
        if offset is None:
            self.notify("No matches", severity="warning")
            return
        start = buffer.offset_to_location(offset)
        end = buffer.offset_to_location(offset + len(buffer.query))
        self.editor.selection = Selection(start, end)
        self.editor.scroll_cursor_visible()
        self._update_status()

    def action_next_match(self) -> None:
        self._select_match(self.engine.text().next_match())

    def action_previous_match(self) -> None:
        self._select_match(self.engine.text().previous_match())

    # --- Collection actions ---

    def action_refresh(self) -> None:
        if self.engine.text().dirty:
            self.notify("Discarding unsaved JSON changes", severity="warning")
            self.engine.discard_text_changes()
        self._refresh_documents()

    @work(exclusive=True, group="refresh")
    async def _refresh_documents(self) -> None:
        try:
            count = await self.engine.refresh()
        except (OSError, ValueError) as e:
            self.notify(f"Error loading collection: {e}", severity="error")
            return
        self.sub_title = f"{count} documents loaded"
        self.refresh_views()

    def action_new_document(self) -> None:
        self._create_document()

    @work(exclusive=False)
    async def _create_document(self) -> None:
        try:
            doc = await self.engine.create_document({})
        except (OSError, ValueError) as e:
            self.notify(f"Create failed: {e}", severity="error")
            return
        self.notify(f"Created {doc.id}")
        self.refresh_views()

    def action_delete_documents(self) -> None:
        ids = sorted(self.engine.table_state.selected_rows)
        if not ids:
            keys = self._table_keys()
            if keys is None:
                return
            ids = [keys[0]]
        self._delete_documents(ids)

    @work(exclusive=False)
    async def _delete_documents(self, document_ids: list[str]) -> None:
        failed = await self.engine.delete_documents(document_ids)
        deleted = len(document_ids) - len(failed)
        if failed:
            self.notify(f"Deleted {deleted}, failed: {', '.join(failed)}", severity="error")
        else:
            self.notify(f"Deleted {deleted} document(s)")
        self.refresh_views()

    def action_quit(self) -> None:
        """Quit the application."""
        self.app.exit()
