"""
Field registry and column visibility.

The registry is the sorted union of top-level field names across the loaded
documents; it defines the table's column order. ColumnVisibility tracks which
of those columns the user has hidden.
"""

from __future__ import annotations

from typing import Iterable

from docdesk.core.documents import Document


def compute_field_registry(documents: Iterable[Document]) -> list[str]:
    """Return the sorted, case-sensitive union of field names.

    Args:
        documents: The loaded documents.

    Returns:
        Field names in code-point order.

    Examples:
        >>> docs = [Document("u1", "users/u1", {"name": "Ann", "age": 30}),
        ...         Document("u2", "users/u2", {"name": "Bo"})]
        >>> compute_field_registry(docs)
        ['age', 'name']
    """
    fields: set[str] = set()
    for doc in documents:
        fields.update(doc.data.keys())
    return sorted(fields)


class ColumnVisibility:
    """Hidden-flag map over registry fields. All fields start visible.

    Entries for fields that vanish from the registry are kept and ignored,
    so a column hidden before a refresh stays hidden if it comes back.
    """

    def __init__(self) -> None:
        self._hidden: dict[str, bool] = {}

    def toggle(self, field: str) -> bool:
        """Flip the hidden flag of a field.

        Returns:
            True if the field is now hidden.
        """
        self._hidden[field] = not self._hidden.get(field, False)
        return self._hidden[field]

    def is_hidden(self, field: str) -> bool:
        return self._hidden.get(field, False)

    def hidden_fields(self) -> set[str]:
        return {field for field, hidden in self._hidden.items() if hidden}

    def show_all(self) -> None:
        self._hidden.clear()

    def visible_fields(self, registry: list[str]) -> list[str]:
        """Return registry fields that are not hidden, in registry order."""
        return [field for field in registry if not self._hidden.get(field, False)]
