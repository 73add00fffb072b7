"""
Abstract base class for document clients.

This module defines the DocumentClient interface: the storage collaborator
the engine fetches documents from and writes edits to. Transport,
authentication and connection management live behind this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from docdesk.core.documents import Document
from docdesk.core.reconciler import IMPORT_BATCH_SIZE


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of a write call.

    Attributes:
        success: Whether the store acknowledged the write.
        message: Failure description, empty on success.
    """

    success: bool
    message: str = ""

    @classmethod
    def ok(cls) -> UpdateResult:
        return cls(True)

    @classmethod
    def failed(cls, message: str) -> UpdateResult:
        return cls(False, message)


class DocumentClient(ABC):
    """Abstract base class for document storage clients.

    All clients must implement the async operations below. Write operations
    report collaborator failures through UpdateResult rather than raising,
    so callers can surface them without unwinding the UI.
    """

    @abstractmethod
    async def fetch_documents(
        self,
        collection_path: str,
        limit: int,
        cursor: str | None = None,
    ) -> list[Document]:
        """Fetch one page of documents from a collection.

        Args:
            collection_path: The collection to read.
            limit: Maximum number of documents to return.
            cursor: Id of the last document of the previous page, or None
                for the first page.

        Returns:
            The documents in the store's order.
        """

    @abstractmethod
    async def create_document(
        self,
        collection_path: str,
        data: dict[str, Any],
        document_id: str | None = None,
    ) -> str:
        """Create a document, generating an id when none is given.

        Returns:
            The id of the created document.
        """

    @abstractmethod
    async def update_document(self, path: str, data: dict[str, Any]) -> UpdateResult:
        """Overwrite the whole document at path with data."""

    @abstractmethod
    async def delete_document(self, path: str) -> UpdateResult:
        """Delete the document at path."""

    @abstractmethod
    async def write_batch(self, collection_path: str, documents: dict[str, dict[str, Any]]) -> None:
        """Write up to IMPORT_BATCH_SIZE documents atomically (set semantics).

        Raises:
            BatchLimitError: If more than IMPORT_BATCH_SIZE documents are given.
        """
