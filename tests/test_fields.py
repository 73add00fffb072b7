"""Tests for the field registry and column visibility."""

from __future__ import annotations

from docdesk.core.fields import ColumnVisibility, compute_field_registry

from conftest import make_document


class TestFieldRegistry:
    """Tests for compute_field_registry()."""

    def test_sorted_union(self, users_docs):
        """The registry is the sorted union of top-level keys."""
        assert compute_field_registry(users_docs) == ["active", "address", "age", "name"]

    def test_empty(self):
        assert compute_field_registry([]) == []

    def test_case_sensitive_code_point_order(self):
        """Upper-case names sort before lower-case ones."""
        docs = [make_document("a", {"b": 1, "B": 2, "a": 3})]
        assert compute_field_registry(docs) == ["B", "a", "b"]

    def test_no_duplicates(self):
        docs = [make_document("a", {"x": 1}), make_document("b", {"x": 2})]
        assert compute_field_registry(docs) == ["x"]


class TestColumnVisibility:
    """Tests for ColumnVisibility."""

    def test_all_visible_by_default(self):
        visibility = ColumnVisibility()
        assert visibility.visible_fields(["a", "b"]) == ["a", "b"]
        assert not visibility.is_hidden("a")

    def test_toggle_hides_and_shows(self):
        """Toggling twice restores the column."""
        visibility = ColumnVisibility()
        assert visibility.toggle("a") is True
        assert visibility.visible_fields(["a", "b"]) == ["b"]
        assert visibility.toggle("a") is False
        assert visibility.visible_fields(["a", "b"]) == ["a", "b"]

    def test_keeps_registry_order(self):
        visibility = ColumnVisibility()
        visibility.toggle("b")
        assert visibility.visible_fields(["a", "b", "c"]) == ["a", "c"]

    def test_stale_entries_ignored(self):
        """Hidden fields missing from the registry do not appear or break anything."""
        visibility = ColumnVisibility()
        visibility.toggle("gone")
        assert visibility.visible_fields(["a"]) == ["a"]
        assert visibility.is_hidden("gone")

    def test_show_all(self):
        visibility = ColumnVisibility()
        visibility.toggle("a")
        visibility.toggle("b")
        visibility.show_all()
        assert visibility.hidden_fields() == set()
        assert visibility.visible_fields(["a", "b"]) == ["a", "b"]
