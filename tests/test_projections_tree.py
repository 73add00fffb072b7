"""Tests for the tree projection."""

from __future__ import annotations

from docdesk.core.edit_session import EditSessionController
from docdesk.projections.tree import NodeKind, render_tree, toggle_expansion

from conftest import make_document


def paths(rows):
    return [row.path for row in rows]


class TestRenderTree:
    """Tests for render_tree()."""

    def test_collapsed_by_default(self, users_docs):
        """With an empty expansion map only the collection node shows."""
        rows = render_tree("users", users_docs, {}, EditSessionController())
        assert paths(rows) == ["users"]
        assert rows[0].kind == NodeKind.COLLECTION
        assert rows[0].expandable and not rows[0].expanded

    def test_documents_under_root(self, users_docs):
        rows = render_tree("users", users_docs, {"users": True}, EditSessionController())
        assert paths(rows) == ["users", "users/u1", "users/u2"]
        assert [row.kind for row in rows[1:]] == [NodeKind.DOCUMENT, NodeKind.DOCUMENT]
        assert rows[1].type_name == "Document"

    def test_nested_paths_pre_order(self, users_docs):
        """Fields appear in pre-order with dotted paths."""
        expanded = {"users": True, "users/u1": True, "users/u1.address": True}
        rows = render_tree("users", users_docs, expanded, EditSessionController())
        assert paths(rows) == [
            "users",
            "users/u1",
            "users/u1.name",
            "users/u1.age",
            "users/u1.address",
            "users/u1.address.city",
            "users/u1.address.zip",
            "users/u2",
        ]
        city = rows[5]
        assert city.depth == 3
        assert city.field_path == ("address", "city")
        assert city.document_id == "u1"

    def test_leaf_and_container_rows(self, users_docs):
        expanded = {"users": True, "users/u1": True}
        rows = {row.path: row for row in render_tree("users", users_docs, expanded, EditSessionController())}
        age = rows["users/u1.age"]
        assert age.type_name == "number"
        assert age.display == "30"
        assert age.editable
        address = rows["users/u1.address"]
        assert address.expandable and not address.editable
        assert address.display == "2 fields"
        assert address.label == "{} address"
        assert rows["users/u1.name"].label == '"name": "Ann"'

    def test_array_elements_use_index(self):
        docs = [make_document("a", {"tags": ["x", "y"]})]
        expanded = {"users": True, "users/a": True, "users/a.tags": True}
        rows = render_tree("users", docs, expanded, EditSessionController())
        assert paths(rows)[-2:] == ["users/a.tags.0", "users/a.tags.1"]
        assert rows[2].label == "[] tags (2 items)"
        assert rows[-1].field_path == ("tags", "1")

    def test_collapsed_parent_hides_expanded_child(self, users_docs):
        """A child's own flag does not matter while its parent is collapsed."""
        expanded = {"users": True, "users/u1.address": True}
        rows = render_tree("users", users_docs, expanded, EditSessionController())
        assert "users/u1.address.city" not in paths(rows)

    def test_editing_flag(self, users_docs):
        session = EditSessionController()
        session.begin("u1", ("address", "city"), "Oslo")
        expanded = {"users": True, "users/u1": True, "users/u1.address": True}
        rows = render_tree("users", users_docs, expanded, session)
        assert [row.path for row in rows if row.editing] == ["users/u1.address.city"]

    def test_deep_nesting(self):
        """Very deep documents render without recursion errors."""
        depth = 3000
        data = {}
        inner = data
        for _ in range(depth):
            inner["n"] = {}
            inner = inner["n"]
        docs = [make_document("deep", data)]

        expanded = {"users": True, "users/deep": True}
        path = "users/deep"
        for _ in range(depth):
            path += ".n"
            expanded[path] = True

        rows = render_tree("users", docs, expanded, EditSessionController())
        assert len(rows) == depth + 2
        assert rows[-1].depth == depth + 1


class TestToggleExpansion:
    """Tests for toggle_expansion()."""

    def test_toggle(self):
        expanded = {}
        assert toggle_expansion(expanded, "users") is True
        assert toggle_expansion(expanded, "users") is False
        assert expanded == {"users": False}
