"""
Bulk reconciliation of whole-set JSON edits, plus export and batched import.

The structured-text projection edits every visible document at once as a
single JSON object ``{document_id: field_map}``. This module turns that text
into per-document whole-document updates:

    - ids matching a loaded document get one update each
    - ids with no loaded document are ignored (nothing is created)
    - loaded documents missing from the text are left untouched (nothing
      is deleted by omission)

Export writes the same shape (2-space indented); import writes it through
the client in batches of at most IMPORT_BATCH_SIZE documents.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Mapping

from docdesk.core.documents import Document
from docdesk.core.errors import BatchLimitError, DocumentParseError

if TYPE_CHECKING:
    from docdesk.clients.base import DocumentClient

logger = logging.getLogger(__name__)

# Maximum number of documents a single batched write may carry
IMPORT_BATCH_SIZE = 500


@dataclass(frozen=True)
class PlannedUpdate:
    """A whole-document overwrite derived from the edited text."""

    document: Document
    data: dict[str, Any]


@dataclass
class ReconcilePlan:
    """What a whole-set save will do.

    Attributes:
        updates: One entry per edited id that matches a loaded document.
        unknown_ids: Ids in the text with no loaded document (ignored).
        untouched_ids: Loaded ids absent from the text (left alone).
    """

    updates: list[PlannedUpdate] = field(default_factory=list)
    unknown_ids: list[str] = field(default_factory=list)
    untouched_ids: list[str] = field(default_factory=list)


@dataclass
class ReconcileReport:
    """Result of applying a plan."""

    updated: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failed


def parse_documents_json(text: str) -> dict[str, dict[str, Any]]:
    """Parse whole-set JSON text into an id to field-map mapping.

    Raises:
        DocumentParseError: On a syntax error (with line and column), when
            the top level is not an object, or when an entry is not an object.
    """
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentParseError(f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})", e.lineno, e.colno) from e
    return validate_documents_mapping(parsed)


def validate_documents_mapping(parsed: Any) -> dict[str, dict[str, Any]]:
    """Check that a parsed value has the ``{id: {field: value}}`` shape."""
    if not isinstance(parsed, dict):
        raise DocumentParseError(f"Expected an object of documents, got {type(parsed).__name__}")
    for document_id, data in parsed.items():
        if not isinstance(data, dict):
            raise DocumentParseError(
                f"Document {document_id!r} must be an object (got {type(data).__name__})"
            )
    return parsed


def plan_reconciliation(
    edited: str | Mapping[str, dict[str, Any]],
    documents: Iterable[Document],
) -> ReconcilePlan:
    """Diff edited whole-set data against the loaded documents.

    Args:
        edited: The structured-text buffer, or an already parsed mapping.
        documents: The canonical loaded documents.

    Returns:
        The ReconcilePlan. Every matching id gets an update, even when its
        data is unchanged, since the text is the full intended content.

    Raises:
        DocumentParseError: If the text is invalid; nothing is planned.
    """
    mapping = parse_documents_json(edited) if isinstance(edited, str) else validate_documents_mapping(dict(edited))
    loaded = {doc.id: doc for doc in documents}

    plan = ReconcilePlan()
    for document_id, data in mapping.items():
        doc = loaded.get(document_id)
        if doc is None:
            plan.unknown_ids.append(document_id)
            continue
        plan.updates.append(PlannedUpdate(doc, data))
    plan.untouched_ids = [doc_id for doc_id in loaded if doc_id not in mapping]
    return plan


async def apply_plan(plan: ReconcilePlan, client: DocumentClient) -> ReconcileReport:
    """Issue one whole-document update per planned entry, in order."""
    report = ReconcileReport()
    if plan.unknown_ids:
        logger.info("Ignoring %d unknown document id(s): %s", len(plan.unknown_ids), ", ".join(plan.unknown_ids))

    for update in plan.updates:
        result = await client.update_document(update.document.path, update.data)
        if result.success:
            report.updated.append(update.document.id)
        else:
            logger.warning("Update of %s failed: %s", update.document.id, result.message)
            report.failed[update.document.id] = result.message

    logger.info("Saved %d document(s), %d failed", len(report.updated), len(report.failed))
    return report


def export_documents(documents: Iterable[Document] | Mapping[str, dict[str, Any]]) -> str:
    """Serialize documents to the export format (2-space indented JSON)."""
    if isinstance(documents, Mapping):
        mapping = dict(documents)
    else:
        mapping = {doc.id: doc.data for doc in documents}
    return json.dumps(mapping, indent=2, ensure_ascii=False)


def chunk_documents(
    documents: Mapping[str, dict[str, Any]],
    size: int = IMPORT_BATCH_SIZE,
) -> Iterator[dict[str, dict[str, Any]]]:
    """Yield consecutive batches of at most size documents.

    Raises:
        BatchLimitError: If size is outside 1..IMPORT_BATCH_SIZE.
    """
    if not 1 <= size <= IMPORT_BATCH_SIZE:
        raise BatchLimitError(f"Batch size must be between 1 and {IMPORT_BATCH_SIZE}, got {size}")

    batch: dict[str, dict[str, Any]] = {}
    for document_id, data in documents.items():
        batch[document_id] = data
        if len(batch) >= size:
            yield batch
            batch = {}
    if batch:
        yield batch


async def import_documents(
    client: DocumentClient,
    collection_path: str,
    documents: Mapping[str, dict[str, Any]],
    *,
    batch_size: int = IMPORT_BATCH_SIZE,
    progress: Callable[[int, int], None] | None = None,
) -> int:
    """Write an imported ``{id: data}`` mapping in batches.

    Args:
        client: The document client.
        collection_path: Target collection.
        documents: Parsed import file content.
        batch_size: Documents per batch, at most IMPORT_BATCH_SIZE.
        progress: Optional callback(written_count, total_count) after each batch.

    Returns:
        The number of documents written.
    """
    mapping = validate_documents_mapping(dict(documents))
    total = len(mapping)
    written = 0
    for batch in chunk_documents(mapping, batch_size):
        await client.write_batch(collection_path, batch)
        written += len(batch)
        if progress is not None:
            progress(written, total)
    logger.info("Imported %d document(s) into %s", written, collection_path)
    return written
