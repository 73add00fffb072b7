"""
docdesk: administrative client for hierarchical document databases.

Loads a page of schema-less documents and keeps three projections of it
(table, tree, raw JSON) editable and in sync with the canonical records.

Usage:
    docdesk store.json users
    docdesk-io export store.json users users_export.json

Components:
    - docdesk.core: value codec, field registry, filters, edit sessions, reconciler
    - docdesk.projections: table, tree and structured-text renderers
    - docdesk.engine: CollectionEngine, the owner of all shared view state
    - docdesk.clients: document client interface and the JSON file client
    - docdesk.tui: the Textual application
"""

__version__ = "0.1.0"
