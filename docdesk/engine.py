"""
Collection engine: the shared state behind every projection.

The CollectionEngine owns the document store and all derived and UI state
(field registry, column visibility, filters, search, sort, edit session,
table state, tree expansion and the text buffer). Projections read from it
and send intents to it; nothing else mutates this state.

Usage:
    engine = CollectionEngine(JsonFileClient("store.json"), "users")
    await engine.refresh()
    engine.begin_edit("u1", "age")
    engine.set_edit_text("31")
    result = await engine.commit_edit()
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from docdesk.clients.base import DocumentClient
from docdesk.core.codec import ParsePolicy
from docdesk.core.documents import Document, DocumentStore, document_path
from docdesk.core.edit_session import CommitResult, EditSessionController
from docdesk.core.fields import ColumnVisibility, compute_field_registry
from docdesk.core.filtering import (
    FilterClause,
    SortSpec,
    parse_filter_expression,
    process_documents,
)
from docdesk.core.reconciler import ReconcileReport, apply_plan, plan_reconciliation
from docdesk.projections.table import TableModel, TableState, render_table
from docdesk.projections.text import TextBuffer, render_text
from docdesk.projections.tree import TreeRow, render_tree, toggle_expansion

logger = logging.getLogger(__name__)

# Documents fetched per refresh
DEFAULT_LIMIT = 50


def _as_field_path(field: str | Sequence[str]) -> tuple[str, ...]:
    # A plain string is a single top-level field, even if it contains dots
    if isinstance(field, str):
        return (field,)
    return tuple(field)


class CollectionEngine:
    """State owner for one open collection.

    Attributes:
        client: The document client.
        collection_path: The collection being viewed.
        limit: Page size for refresh().
        store: Current immutable document snapshot.
        visibility: Hidden column flags.
        session: The single edit session controller.
        table_state: Table selection, focus and widths.
        expanded: Tree expansion map keyed by node path.
        text_buffer: The structured-text buffer.
    """

    def __init__(
        self,
        client: DocumentClient,
        collection_path: str,
        limit: int = DEFAULT_LIMIT,
        policy: ParsePolicy = ParsePolicy.STRICT,
    ) -> None:
        self.client = client
        self.collection_path = collection_path
        self.limit = limit
        self.store = DocumentStore()
        self.visibility = ColumnVisibility()
        self.session = EditSessionController(policy)
        self.table_state = TableState()
        self.expanded: dict[str, bool] = {}
        self.text_buffer = TextBuffer()
        self._fields: list[str] = []
        self._clauses: list[FilterClause] = []
        self._search_text = ""
        self._sort: SortSpec | None = None

    # --- Views ---

    @property
    def documents(self) -> list[Document]:
        """Loaded documents after filters, quick search and sort."""
        return process_documents(self.store, self._clauses, self._search_text, self._sort)

    @property
    def fields(self) -> list[str]:
        """The field registry of the loaded documents."""
        return list(self._fields)

    @property
    def visible_fields(self) -> list[str]:
        return self.visibility.visible_fields(self._fields)

    @property
    def filters(self) -> list[FilterClause]:
        return list(self._clauses)

    @property
    def search_text(self) -> str:
        return self._search_text

    @property
    def sort(self) -> SortSpec | None:
        return self._sort

    def table(self) -> TableModel:
        return render_table(self.documents, self.visible_fields, self.session, self.table_state)

    def tree(self) -> list[TreeRow]:
        return render_tree(self.collection_path, self.documents, self.expanded, self.session)

    def text(self) -> TextBuffer:
        return self.text_buffer

    # --- Internal state changes ---

    def _set_store(self, store: DocumentStore) -> None:
        """Swap in a new snapshot and recompute everything derived from it."""
        self.store = store
        self._fields = compute_field_registry(store)
        self.table_state.prune(store.ids())
        self._sync_text()

    def _sync_text(self) -> None:
        # Unsaved text edits are never overwritten by a refresh
        if not self.text_buffer.dirty:
            self.text_buffer.reset(render_text(self.documents))

    # --- Synchronous intents ---

    def set_filters(self, clauses: Iterable[FilterClause]) -> None:
        self._clauses = list(clauses)
        self._sync_text()

    def set_filter_expression(self, text: str) -> list[FilterClause]:
        """Parse and apply filter bar text.

        Raises:
            FilterSyntaxError: If the text is malformed; filters are unchanged.
        """
        clauses = parse_filter_expression(text)
        self.set_filters(clauses)
        return clauses

    def set_search(self, text: str) -> None:
        self._search_text = text
        self._sync_text()

    def set_sort(self, sort: SortSpec | None) -> None:
        self._sort = sort
        self._sync_text()

    def cycle_sort(self, field: str) -> SortSpec:
        """Sort by a field; sorting by the current field flips the direction."""
        if self._sort is not None and self._sort.field == field:
            sort = self._sort.reversed()
        else:
            sort = SortSpec(field, "asc")
        self.set_sort(sort)
        return sort

    def toggle_column(self, field: str) -> bool:
        """Hide or show a column. Returns True if it is now hidden."""
        return self.visibility.toggle(field)

    def show_all_columns(self) -> None:
        self.visibility.show_all()

    def toggle_node(self, path: str) -> bool:
        """Expand or collapse a tree node. Returns True if now expanded."""
        return toggle_expansion(self.expanded, path)

    def set_expanded(self, path: str, expanded: bool) -> None:
        self.expanded[path] = expanded

    def begin_edit(self, document_id: str, field: str | Sequence[str]) -> bool:
        """Open an edit session on a document field.

        Args:
            document_id: The document to edit.
            field: A top-level field name or a nested key path.

        Returns:
            False if the document is not loaded or a session is already open.
        """
        doc = self.store.get(document_id)
        if doc is None:
            return False
        field_path = _as_field_path(field)
        return self.session.begin(document_id, field_path, doc.get_path(field_path))

    def set_edit_text(self, text: str) -> None:
        self.session.set_text(text)

    def cancel_edit(self) -> None:
        self.session.cancel()

    def set_text(self, text: str) -> None:
        """Apply an edit to the structured-text buffer."""
        self.text_buffer.set_text(text)

    def discard_text_changes(self) -> None:
        self.text_buffer.dirty = False
        self._sync_text()

    # --- Asynchronous intents ---

    async def refresh(self) -> int:
        """Fetch the first page of the collection. Returns the document count."""
        documents = await self.client.fetch_documents(self.collection_path, self.limit)
        self._set_store(DocumentStore(documents))
        logger.info("Loaded %d document(s) from %s", len(documents), self.collection_path)
        return len(documents)

    async def commit_edit(self) -> CommitResult:
        """Commit the open edit session.

        On success the updated document replaces the old one in the store.

        Raises:
            EditValidationError: If the edit text is invalid (session stays open).
            DocumentNotFound: If the document is no longer loaded.
        """
        result = await self.session.commit(self.store, self.client)
        # The store may have been refreshed while the update was in flight
        if result.document is not None and result.document.id in self.store:
            self._set_store(self.store.replace(result.document))
        return result

    async def save_text(self) -> ReconcileReport:
        """Save the structured-text buffer through the bulk reconciler.

        Raises:
            DocumentParseError: If the buffer is invalid; nothing is written.
        """
        plan = plan_reconciliation(self.text_buffer.text, self.store)
        report = await apply_plan(plan, self.client)

        store = self.store
        for update in plan.updates:
            if update.document.id in report.updated and update.document.id in store:
                store = store.replace(update.document.with_data(update.data))
        if report.success:
            self.text_buffer.dirty = False
        self._set_store(store)
        return report

    async def create_document(
        self,
        data: dict[str, Any] | None = None,
        document_id: str | None = None,
    ) -> Document:
        """Create a document and append it to the loaded set."""
        data = dict(data or {})
        new_id = await self.client.create_document(self.collection_path, data, document_id)
        doc = Document(new_id, document_path(self.collection_path, new_id), data)
        self._set_store(DocumentStore([*self.store.remove(new_id), doc]))
        return doc

    async def delete_documents(self, document_ids: Iterable[str]) -> dict[str, str]:
        """Delete documents one by one.

        Returns:
            Failure messages keyed by document id; empty when all succeeded.
        """
        failed: dict[str, str] = {}
        for document_id in list(document_ids):
            doc = self.store.get(document_id)
            if doc is None:
                continue
            result = await self.client.delete_document(doc.path)
            if result.success:
                # Edits committed while the call was pending stay in the store
                self._set_store(self.store.remove(document_id))
            else:
                logger.warning("Delete of %s failed: %s", document_id, result.message)
                failed[document_id] = result.message
        return failed
