"""
Document records and the immutable document store.

A DocumentStore is a snapshot of one fetched page of a collection. Edits
never mutate a Document in place: a commit produces a new Document and a new
store with that document swapped in.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Sequence

from docdesk.core.codec import MISSING
from docdesk.core.errors import DocumentNotFound


@dataclass(frozen=True)
class Document:
    """A single record with a unique id and a schema-less field map.

    Attributes:
        id: Document id, unique within a loaded set.
        path: Fully-qualified location used by update calls ("users/u1").
        data: Field name to value mapping. Treat as read-only.
    """

    id: str
    path: str
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, field_name: str) -> Any:
        """Return a top-level field value, or MISSING when absent."""
        return self.data.get(field_name, MISSING)

    def get_path(self, field_path: Sequence[str]) -> Any:
        """Return the value at a nested key path, or MISSING when absent.

        List elements are addressed by their index written as a key ("0").
        """
        current: Any = self.data
        for key in field_path:
            if isinstance(current, dict):
                if key not in current:
                    return MISSING
                current = current[key]
            elif isinstance(current, list):
                if not key.isdigit() or int(key) >= len(current):
                    return MISSING
                current = current[int(key)]
            else:
                return MISSING
        return current

    def with_data(self, data: dict[str, Any]) -> Document:
        """Return a copy of this document carrying new data."""
        return Document(id=self.id, path=self.path, data=data)


def document_path(collection_path: str, document_id: str) -> str:
    """Build the fully-qualified path of a document in a collection."""
    return f"{collection_path.rstrip('/')}/{document_id}"


def set_path(data: dict[str, Any], field_path: Sequence[str], value: Any) -> dict[str, Any]:
    """Return a deep copy of data with the value at field_path replaced.

    Intermediate maps that do not exist are created. A list along the path is
    indexed by the key's integer value; appending one past the end is allowed.

    Args:
        data: The document data. Not modified.
        field_path: Keys from the top level down to the target field.
        value: The new value.

    Returns:
        The new data dictionary.

    Raises:
        KeyError: If the path is empty or crosses a scalar or an invalid index.
    """
    if not field_path:
        raise KeyError("empty field path")

    result = copy.deepcopy(data)
    current: Any = result
    for depth, key in enumerate(field_path):
        last = depth == len(field_path) - 1
        if isinstance(current, dict):
            if last:
                current[key] = value
            else:
                child = current.get(key)
                if not isinstance(child, (dict, list)):
                    child = {}
                    current[key] = child
                current = child
        elif isinstance(current, list):
            if not key.isdigit() or int(key) > len(current):
                raise KeyError(f"invalid list index {key!r} in {'.'.join(field_path)}")
            index = int(key)
            if last:
                if index == len(current):
                    current.append(value)
                else:
                    current[index] = value
            else:
                current = current[index]
        else:
            raise KeyError(f"cannot descend into scalar at {'.'.join(field_path[:depth])}")
    return result


class DocumentStore:
    """Immutable, ordered snapshot of loaded documents."""

    def __init__(self, documents: Iterable[Document] = ()) -> None:
        self._documents: tuple[Document, ...] = tuple(documents)
        self._index: dict[str, int] = {doc.id: i for i, doc in enumerate(self._documents)}

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._index

    @property
    def documents(self) -> tuple[Document, ...]:
        return self._documents

    def ids(self) -> list[str]:
        return [doc.id for doc in self._documents]

    def get(self, document_id: str) -> Document | None:
        index = self._index.get(document_id)
        return None if index is None else self._documents[index]

    def require(self, document_id: str) -> Document:
        """Return a document by id.

        Raises:
            DocumentNotFound: If no loaded document has this id.
        """
        doc = self.get(document_id)
        if doc is None:
            raise DocumentNotFound(document_id)
        return doc

    def replace(self, document: Document) -> DocumentStore:
        """Return a new store with the document of the same id swapped out."""
        if document.id not in self._index:
            raise DocumentNotFound(document.id)
        docs = list(self._documents)
        docs[self._index[document.id]] = document
        return DocumentStore(docs)

    def remove(self, document_id: str) -> DocumentStore:
        """Return a new store without the given document (no-op if absent)."""
        return DocumentStore(doc for doc in self._documents if doc.id != document_id)

    def to_mapping(self) -> dict[str, dict[str, Any]]:
        """Return the documents as an id to data mapping (the export shape)."""
        return {doc.id: doc.data for doc in self._documents}
