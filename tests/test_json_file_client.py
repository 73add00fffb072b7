"""Tests for the JSON file document client."""

from __future__ import annotations

import asyncio
import json

import pytest

from docdesk.clients.json_file import (
    AUTO_ID_LENGTH,
    JsonFileClient,
    generate_document_id,
    split_document_path,
)
from docdesk.core.errors import BatchLimitError


def read_store(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestHelpers:
    """Tests for module-level helpers."""

    def test_generated_id(self):
        doc_id = generate_document_id()
        assert len(doc_id) == AUTO_ID_LENGTH
        assert doc_id.isalnum()

    def test_split_document_path(self):
        assert split_document_path("users/u1") == ("users", "u1")
        assert split_document_path("users/u1/orders/o7") == ("users/u1/orders", "o7")

    def test_split_rejects_bare_id(self):
        with pytest.raises(ValueError):
            split_document_path("u1")


class TestFetch:
    """Tests for fetch_documents() and list_collections()."""

    def test_fetch(self, store_file):
        client = JsonFileClient(store_file)
        docs = asyncio.run(client.fetch_documents("users", 10))
        assert [doc.id for doc in docs] == ["u1", "u2"]
        assert docs[0].path == "users/u1"
        assert docs[1].data == {"name": "Bo", "active": True}

    def test_limit_and_cursor(self, store_file):
        """Paging by cursor walks the collection in id order."""
        client = JsonFileClient(store_file)
        first = asyncio.run(client.fetch_documents("users", 1))
        second = asyncio.run(client.fetch_documents("users", 1, cursor=first[-1].id))
        assert [doc.id for doc in first + second] == ["u1", "u2"]
        assert asyncio.run(client.fetch_documents("users", 1, cursor="u2")) == []

    def test_missing_file_is_empty(self, tmp_path):
        client = JsonFileClient(tmp_path / "nope.json")
        assert asyncio.run(client.fetch_documents("users", 10)) == []
        assert asyncio.run(client.list_collections()) == []

    def test_unknown_collection(self, store_file):
        assert asyncio.run(JsonFileClient(store_file).fetch_documents("orders", 10)) == []

    def test_list_collections(self, store_file):
        assert asyncio.run(JsonFileClient(store_file).list_collections()) == ["users"]

    def test_bad_shape(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"users": [1, 2]}', encoding="utf-8")
        with pytest.raises(ValueError):
            asyncio.run(JsonFileClient(path).fetch_documents("users", 10))


class TestWrites:
    """Tests for create, update, delete and batched writes."""

    def test_create_generates_id(self, store_file):
        client = JsonFileClient(store_file)
        doc_id = asyncio.run(client.create_document("users", {"name": "Cy"}))
        assert len(doc_id) == AUTO_ID_LENGTH
        assert read_store(store_file)["users"][doc_id] == {"name": "Cy"}

    def test_create_with_id_new_collection(self, tmp_path):
        path = tmp_path / "sub" / "store.json"
        client = JsonFileClient(path)
        assert asyncio.run(client.create_document("orders", {}, "o1")) == "o1"
        assert read_store(path) == {"orders": {"o1": {}}}

    def test_update_overwrites_whole_document(self, store_file):
        client = JsonFileClient(store_file)
        result = asyncio.run(client.update_document("users/u2", {"name": "Bob"}))
        assert result.success
        assert read_store(store_file)["users"]["u2"] == {"name": "Bob"}

    def test_update_missing_fails(self, store_file):
        """Updates never create documents."""
        client = JsonFileClient(store_file)
        result = asyncio.run(client.update_document("users/zz", {"a": 1}))
        assert not result.success
        assert result.message == "No document at users/zz"
        assert "zz" not in read_store(store_file)["users"]

    def test_update_bad_path(self, store_file):
        result = asyncio.run(JsonFileClient(store_file).update_document("u1", {}))
        assert not result.success

    def test_delete(self, store_file):
        client = JsonFileClient(store_file)
        assert asyncio.run(client.delete_document("users/u1")).success
        assert list(read_store(store_file)["users"]) == ["u2"]
        assert not asyncio.run(client.delete_document("users/u1")).success

    def test_write_batch(self, store_file):
        client = JsonFileClient(store_file)
        asyncio.run(client.write_batch("users", {"u2": {"name": "B"}, "u3": {"name": "C"}}))
        users = read_store(store_file)["users"]
        assert users["u2"] == {"name": "B"}
        assert users["u3"] == {"name": "C"}
        assert "u1" in users

    def test_write_batch_limit(self, store_file):
        client = JsonFileClient(store_file)
        documents = {f"d{i}": {} for i in range(501)}
        with pytest.raises(BatchLimitError):
            asyncio.run(client.write_batch("users", documents))
        assert "d0" not in read_store(store_file)["users"]

    def test_concurrent_updates(self, store_file):
        """Writes through one client are serialized and none are lost."""
        client = JsonFileClient(store_file)

        async def run():
            await asyncio.gather(
                client.update_document("users/u1", {"n": 1}),
                client.update_document("users/u2", {"n": 2}),
            )

        asyncio.run(run())
        assert read_store(store_file)["users"] == {"u1": {"n": 1}, "u2": {"n": 2}}

    def test_write_leaves_no_temp_file(self, store_file):
        client = JsonFileClient(store_file)
        asyncio.run(client.update_document("users/u1", {"n": 1}))
        assert sorted(p.name for p in store_file.parent.iterdir()) == ["store.json"]

    def test_reads_during_writes(self, store_file):
        """Fetches running alongside writes always see a complete file."""
        client = JsonFileClient(store_file)

        async def run():
            writes = [client.update_document("users/u1", {"n": i}) for i in range(10)]
            reads = [client.fetch_documents("users", 10) for _ in range(10)]
            return await asyncio.gather(*writes, *reads)

        results = asyncio.run(run())
        assert all(result.success for result in results[:10])
        assert all([doc.id for doc in page] == ["u1", "u2"] for page in results[10:])
        assert read_store(store_file)["users"]["u1"] == {"n": 9}
