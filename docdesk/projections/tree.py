"""
Tree projection: collection → documents → nested fields.

Rows are produced by an explicit-stack, pre-order traversal rather than
recursion, so arbitrarily deep documents render without touching the
interpreter's recursion limit. Expansion state lives in a dictionary keyed by
node path; every node starts collapsed.

Node paths:
    - collection: the collection path            ("users")
    - document:   collection path + "/" + id      ("users/u1")
    - field:      parent path + "." + key         ("users/u1.address.city")

Array elements use their index as key ("users/u1.tags.0").
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from docdesk.core.codec import TypeTag, classify, format_value
from docdesk.core.documents import Document
from docdesk.core.edit_session import EditSessionController


class NodeKind(Enum):
    COLLECTION = "collection"
    DOCUMENT = "document"
    FIELD = "field"


@dataclass(frozen=True)
class TreeRow:
    """A visible tree node.

    Attributes:
        path: Stable node path, the key of the expansion map.
        key: The node's own key (collection path, document id or field key).
        depth: 0 for the collection, 1 for documents, 2+ for fields.
        kind: Collection, document or field.
        type_name: Type column text ("Collection", "Document" or the tag).
        display: Value column text (empty for collection/document nodes).
        expandable: Whether the node has a child level.
        expanded: Whether the node is expanded.
        document_id: Owning document, None for the collection node.
        field_path: Keys from the document data to this field (empty above fields).
        editing: Whether this node is the open edit session.
    """

    path: str
    key: str
    depth: int
    kind: NodeKind
    type_name: str
    display: str
    expandable: bool
    expanded: bool
    document_id: str | None = None
    field_path: tuple[str, ...] = ()
    editing: bool = False

    @property
    def editable(self) -> bool:
        """Only leaf field nodes may start an edit session."""
        return self.kind == NodeKind.FIELD and not self.expandable

    @property
    def label(self) -> str:
        """Label in the dataset viewer's JSON tree style."""
        if self.kind != NodeKind.FIELD:
            return self.key
        if self.type_name == TypeTag.MAP.value:
            return f"{{}} {self.key}"
        if self.type_name == TypeTag.ARRAY.value:
            return f"[] {self.key} ({self.display})"
        value = f'"{self.display}"' if self.type_name == TypeTag.STRING.value else self.display
        return f'"{self.key}": {value}'


def _children(value: Any) -> list[tuple[str, Any]]:
    if isinstance(value, dict):
        return [(str(k), v) for k, v in value.items()]
    return [(str(i), v) for i, v in enumerate(value)]


def _container_summary(value: Any, tag: TypeTag) -> str:
    count = len(value)
    if tag == TypeTag.ARRAY:
        return f"{count} item" if count == 1 else f"{count} items"
    return f"{count} field" if count == 1 else f"{count} fields"


def render_tree(
    collection_path: str,
    documents: Sequence[Document],
    expanded: dict[str, bool],
    session: EditSessionController,
) -> list[TreeRow]:
    """Flatten the visible part of the tree into rows, in display order.

    Args:
        collection_path: Path of the collection root node.
        documents: Documents in display order.
        expanded: Expansion map keyed by node path (absent means collapsed).
        session: The shared edit session controller.

    Returns:
        The rows of every node whose ancestors are all expanded.
    """
    root_expanded = expanded.get(collection_path, False)
    rows = [
        TreeRow(
            path=collection_path,
            key=collection_path,
            depth=0,
            kind=NodeKind.COLLECTION,
            type_name="Collection",
            display="",
            expandable=True,
            expanded=root_expanded,
        )
    ]
    if not root_expanded:
        return rows

    # Stack entries: (document, key, value, path, depth, field_path)
    stack: list[tuple[Document, str, Any, str, int, tuple[str, ...]]] = []
    for doc in reversed(documents):
        stack.append((doc, doc.id, doc.data, f"{collection_path}/{doc.id}", 1, ()))

    while stack:
        doc, key, value, path, depth, field_path = stack.pop()
        is_document = depth == 1

        if is_document:
            is_open = expanded.get(path, False)
            rows.append(
                TreeRow(
                    path=path,
                    key=key,
                    depth=depth,
                    kind=NodeKind.DOCUMENT,
                    type_name="Document",
                    display="",
                    expandable=True,
                    expanded=is_open,
                    document_id=doc.id,
                )
            )
        else:
            tag = classify(value)
            expandable = tag.is_container
            is_open = expandable and expanded.get(path, False)
            rows.append(
                TreeRow(
                    path=path,
                    key=key,
                    depth=depth,
                    kind=NodeKind.FIELD,
                    type_name=tag.value,
                    display=_container_summary(value, tag) if expandable else format_value(value, tag),
                    expandable=expandable,
                    expanded=is_open,
                    document_id=doc.id,
                    field_path=field_path,
                    editing=not expandable and session.is_editing_cell(doc.id, field_path),
                )
            )

        if is_open:
            for child_key, child_value in reversed(_children(value)):
                stack.append(
                    (
                        doc,
                        child_key,
                        child_value,
                        f"{path}.{child_key}",
                        depth + 1,
                        field_path + (child_key,),
                    )
                )

    return rows


def toggle_expansion(expanded: dict[str, bool], path: str) -> bool:
    """Flip a node's expansion flag. Returns the new state."""
    expanded[path] = not expanded.get(path, False)
    return expanded[path]
