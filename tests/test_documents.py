"""Tests for Document, set_path and DocumentStore."""

from __future__ import annotations

import pytest

from docdesk.core.codec import MISSING
from docdesk.core.documents import DocumentStore, document_path, set_path
from docdesk.core.errors import DocumentNotFound

from conftest import make_document


class TestDocument:
    """Tests for Document accessors."""

    def test_get_missing(self, users_docs):
        assert users_docs[1].get("age") is MISSING

    def test_get_path_nested(self, users_docs):
        assert users_docs[0].get_path(("address", "city")) == "Oslo"
        assert users_docs[0].get_path(("address", "street")) is MISSING
        assert users_docs[0].get_path(("name", "x")) is MISSING

    def test_get_path_list_index(self):
        doc = make_document("a", {"tags": ["x", "y"]})
        assert doc.get_path(("tags", "1")) == "y"
        assert doc.get_path(("tags", "2")) is MISSING

    def test_document_path(self):
        assert document_path("users", "u1") == "users/u1"
        assert document_path("users/", "u1") == "users/u1"


class TestSetPath:
    """Tests for set_path()."""

    def test_replaces_nested_in_place(self):
        """Only the addressed value changes; siblings are kept."""
        data = {"address": {"city": "Oslo", "zip": "0150"}}
        result = set_path(data, ("address", "city"), "Bergen")
        assert result == {"address": {"city": "Bergen", "zip": "0150"}}
        assert "address.city" not in result

    def test_does_not_mutate_input(self):
        data = {"address": {"city": "Oslo"}}
        set_path(data, ("address", "city"), "Bergen")
        assert data == {"address": {"city": "Oslo"}}

    def test_creates_intermediate_maps(self):
        assert set_path({}, ("a", "b"), 1) == {"a": {"b": 1}}

    def test_list_index_and_append(self):
        data = {"tags": ["x"]}
        assert set_path(data, ("tags", "0"), "z") == {"tags": ["z"]}
        assert set_path(data, ("tags", "1"), "y") == {"tags": ["x", "y"]}

    def test_invalid_paths(self):
        with pytest.raises(KeyError):
            set_path({}, (), 1)
        with pytest.raises(KeyError):
            set_path({"tags": ["x"]}, ("tags", "5"), 1)
        with pytest.raises(KeyError):
            set_path({"tags": ["x"]}, ("tags", "0", "deep"), 1)


class TestDocumentStore:
    """Tests for DocumentStore."""

    def test_lookup(self, users_store):
        assert len(users_store) == 2
        assert "u1" in users_store
        assert users_store.get("nope") is None
        assert users_store.ids() == ["u1", "u2"]

    def test_require_missing(self, users_store):
        with pytest.raises(DocumentNotFound):
            users_store.require("nope")

    def test_replace_returns_new_store(self, users_store):
        """replace() leaves the original snapshot untouched."""
        doc = users_store.require("u2").with_data({"name": "Bob"})
        new_store = users_store.replace(doc)
        assert new_store.require("u2").data == {"name": "Bob"}
        assert users_store.require("u2").data == {"name": "Bo", "active": True}
        assert new_store.ids() == ["u1", "u2"]

    def test_remove(self, users_store):
        assert users_store.remove("u1").ids() == ["u2"]
        assert users_store.remove("nope").ids() == ["u1", "u2"]

    def test_to_mapping(self, users_store, users_data):
        assert users_store.to_mapping() == users_data

    def test_empty(self):
        assert len(DocumentStore()) == 0
