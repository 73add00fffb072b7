"""Pytest configuration and shared fixtures for docdesk tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from docdesk.clients.base import IMPORT_BATCH_SIZE, DocumentClient, UpdateResult
from docdesk.core.documents import Document, DocumentStore, document_path
from docdesk.core.errors import BatchLimitError


def make_document(document_id: str, data: dict[str, Any], collection: str = "users") -> Document:
    """Helper to build a Document in a collection."""
    return Document(document_id, document_path(collection, document_id), data)


class RecordingClient(DocumentClient):
    """In-memory DocumentClient that records every call.

    Attributes:
        collections: collection path -> {id: data}.
        updates: (path, data) of each update_document call, in order.
        deletes: Paths of each delete_document call.
        batches: (collection_path, documents) of each write_batch call.
        fail_updates: Update paths that report failure.
    """

    def __init__(self, collections: dict[str, dict[str, dict[str, Any]]] | None = None) -> None:
        self.collections = collections or {}
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.deletes: list[str] = []
        self.batches: list[tuple[str, dict[str, dict[str, Any]]]] = []
        self.created: list[tuple[str, str]] = []
        self.fail_updates: set[str] = set()
        self._counter = 0

    async def fetch_documents(self, collection_path, limit, cursor=None):
        collection = self.collections.get(collection_path, {})
        ids = sorted(doc_id for doc_id in collection if cursor is None or doc_id > cursor)
        return [
            Document(doc_id, document_path(collection_path, doc_id), collection[doc_id])
            for doc_id in ids[:limit]
        ]

    async def create_document(self, collection_path, data, document_id=None):
        if document_id is None:
            self._counter += 1
            document_id = f"new{self._counter}"
        self.collections.setdefault(collection_path, {})[document_id] = data
        self.created.append((collection_path, document_id))
        return document_id

    async def update_document(self, path, data):
        self.updates.append((path, data))
        if path in self.fail_updates:
            return UpdateResult.failed("permission denied")
        collection_path, _, document_id = path.rpartition("/")
        self.collections.setdefault(collection_path, {})[document_id] = data
        return UpdateResult.ok()

    async def delete_document(self, path):
        self.deletes.append(path)
        collection_path, _, document_id = path.rpartition("/")
        collection = self.collections.get(collection_path, {})
        if document_id not in collection:
            return UpdateResult.failed(f"No document at {path}")
        del collection[document_id]
        return UpdateResult.ok()

    async def write_batch(self, collection_path, documents):
        if len(documents) > IMPORT_BATCH_SIZE:
            raise BatchLimitError("too many documents")
        self.batches.append((collection_path, dict(documents)))
        self.collections.setdefault(collection_path, {}).update(documents)


@pytest.fixture
def users_data() -> dict[str, dict[str, Any]]:
    """Two users with overlapping fields and one nested map."""
    return {
        "u1": {"name": "Ann", "age": 30, "address": {"city": "Oslo", "zip": "0150"}},
        "u2": {"name": "Bo", "active": True},
    }


@pytest.fixture
def users_docs(users_data) -> list[Document]:
    """The users as Document objects."""
    return [make_document(doc_id, data) for doc_id, data in users_data.items()]


@pytest.fixture
def users_store(users_docs) -> DocumentStore:
    """The users in a DocumentStore."""
    return DocumentStore(users_docs)


@pytest.fixture
def recording_client(users_data) -> RecordingClient:
    """A recording fake client holding the users collection."""
    return RecordingClient({"users": json.loads(json.dumps(users_data))})


@pytest.fixture
def store_file(tmp_path: Path, users_data) -> Path:
    """A JSON store file holding the users collection."""
    path = tmp_path / "store.json"
    path.write_text(json.dumps({"users": users_data}, indent=2), encoding="utf-8")
    return path
