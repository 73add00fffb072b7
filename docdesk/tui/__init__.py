"""
DocDesk terminal UI.

A Textual-based terminal UI for browsing and editing one collection of a
document store through three synchronized views.

Usage:
    docdesk store.json users

Components:
    - DocDeskApp: Main application class
    - CollectionScreen: Table, tree and JSON tabs over one engine
    - DocumentTreePanel: Tree widget drawn from tree projection rows
    - CellEditorModal: Single-field editor
"""
