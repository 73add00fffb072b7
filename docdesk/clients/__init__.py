"""
Document clients.

Usage:
    from docdesk.clients import JsonFileClient

    client = JsonFileClient("store.json")
    docs = await client.fetch_documents("users", limit=50)
"""

from docdesk.clients.base import IMPORT_BATCH_SIZE, DocumentClient, UpdateResult
from docdesk.clients.json_file import JsonFileClient

__all__ = [
    "IMPORT_BATCH_SIZE",
    "DocumentClient",
    "JsonFileClient",
    "UpdateResult",
]
