"""
JSON file document client.

This module provides the JsonFileClient class, a DocumentClient that keeps
collections in one local JSON file:

    {
      "users": {
        "u1": {"name": "Ann", "age": 30},
        "u2": {"name": "Bo"}
      }
    }

Each collection uses the export format (an object mapping document id to its
field map). The file is read and rewritten with aiofiles on every call, so
other tools can edit it between calls.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
import string
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from docdesk.clients.base import IMPORT_BATCH_SIZE, DocumentClient, UpdateResult
from docdesk.core.documents import Document, document_path
from docdesk.core.errors import BatchLimitError

logger = logging.getLogger(__name__)

# Length and alphabet of generated document ids
AUTO_ID_LENGTH = 20
AUTO_ID_ALPHABET = string.ascii_letters + string.digits


def generate_document_id() -> str:
    """Return a random 20-character alphanumeric document id."""
    return "".join(random.choices(AUTO_ID_ALPHABET, k=AUTO_ID_LENGTH))


def split_document_path(path: str) -> tuple[str, str]:
    """Split "collection/id" into its collection path and document id.

    Nested collection paths ("users/u1/orders/o7") keep everything before
    the last segment as the collection.

    Raises:
        ValueError: If the path has no collection part.
    """
    collection_path, sep, document_id = path.strip("/").rpartition("/")
    if not sep or not collection_path or not document_id:
        raise ValueError(f"Not a document path: {path!r}")
    return collection_path, document_id


class JsonFileClient(DocumentClient):
    """Document client backed by a single JSON file.

    A missing file is treated as an empty store and created on the first
    write. Reads and writes share one lock, and each write goes to a
    temporary file that replaces the store file, so a reader never sees a
    half-written file.

    Attributes:
        path: Location of the JSON file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def _read(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Load the whole file.

        Raises:
            ValueError: If the file is not an object of collections.
            json.JSONDecodeError: If the file contains invalid JSON.
        """
        if not self.path.exists():
            return {}
        async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
            content = await f.read()
        if not content.strip():
            return {}

        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError(
                f"Store file must contain an object of collections (got {type(data).__name__})"
            )
        for name, collection in data.items():
            if not isinstance(collection, dict):
                raise ValueError(
                    f"Collection {name!r} must be an object of documents (got {type(collection).__name__})"
                )
        return data

    async def _write(self, data: dict[str, dict[str, dict[str, Any]]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_name(f".{self.path.name}.tmp")
        async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(data, indent=2, ensure_ascii=False))
        await aiofiles.os.replace(temp_path, self.path)

    async def list_collections(self) -> list[str]:
        """Return the collection names stored in the file, sorted."""
        async with self._lock:
            return sorted(await self._read())

    async def fetch_documents(
        self,
        collection_path: str,
        limit: int,
        cursor: str | None = None,
    ) -> list[Document]:
        """Fetch a page of documents ordered by id.

        Args:
            collection_path: The collection to read.
            limit: Maximum number of documents to return.
            cursor: Only ids greater than this one are returned.

        Returns:
            Up to limit documents, ascending by id.
        """
        async with self._lock:
            collection = (await self._read()).get(collection_path, {})
        ids = sorted(collection)
        if cursor is not None:
            ids = [doc_id for doc_id in ids if doc_id > cursor]
        page = ids[:limit]
        logger.debug("Fetched %d document(s) from %s", len(page), collection_path)
        return [
            Document(doc_id, document_path(collection_path, doc_id), collection[doc_id])
            for doc_id in page
        ]

    async def create_document(
        self,
        collection_path: str,
        data: dict[str, Any],
        document_id: str | None = None,
    ) -> str:
        async with self._lock:
            store = await self._read()
            collection = store.setdefault(collection_path, {})
            if document_id is None:
                document_id = generate_document_id()
                while document_id in collection:
                    document_id = generate_document_id()
            collection[document_id] = data
            await self._write(store)
        logger.info("Created %s", document_path(collection_path, document_id))
        return document_id

    async def update_document(self, path: str, data: dict[str, Any]) -> UpdateResult:
        try:
            collection_path, document_id = split_document_path(path)
        except ValueError as e:
            return UpdateResult.failed(str(e))

        async with self._lock:
            store = await self._read()
            collection = store.get(collection_path)
            if collection is None or document_id not in collection:
                return UpdateResult.failed(f"No document at {path}")
            collection[document_id] = data
            await self._write(store)
        return UpdateResult.ok()

    async def delete_document(self, path: str) -> UpdateResult:
        try:
            collection_path, document_id = split_document_path(path)
        except ValueError as e:
            return UpdateResult.failed(str(e))

        async with self._lock:
            store = await self._read()
            collection = store.get(collection_path)
            if collection is None or document_id not in collection:
                return UpdateResult.failed(f"No document at {path}")
            del collection[document_id]
            await self._write(store)
        logger.info("Deleted %s", path)
        return UpdateResult.ok()

    async def write_batch(self, collection_path: str, documents: dict[str, dict[str, Any]]) -> None:
        if len(documents) > IMPORT_BATCH_SIZE:
            raise BatchLimitError(
                f"A batch holds at most {IMPORT_BATCH_SIZE} documents (got {len(documents)})"
            )
        async with self._lock:
            store = await self._read()
            store.setdefault(collection_path, {}).update(documents)
            await self._write(store)
