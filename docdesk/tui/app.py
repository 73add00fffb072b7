"""
Main Textual application for DocDesk.

Opens one collection of a document store and shows it in the collection
screen (table, tree and JSON views over the same engine).

Usage:
    docdesk store.json users
    docdesk store.json users --limit 200 --log-file docdesk.log
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from textual.app import App
from textual.binding import Binding

from docdesk.clients.base import DocumentClient
from docdesk.clients.json_file import JsonFileClient
from docdesk.core.codec import ParsePolicy
from docdesk.engine import DEFAULT_LIMIT, CollectionEngine
from docdesk.tui.views.collection_screen import CollectionScreen

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Send docdesk logs to a file.

    The terminal belongs to Textual while the app runs, so records only go
    to log_file. Without a log file, logging stays silent.

    Args:
        level: Level name ("DEBUG", "INFO", ...).
        log_file: Path of the log file, or None to disable logging.
    """
    if log_file is None:
        logging.getLogger("docdesk").addHandler(logging.NullHandler())
        return
    logging.basicConfig(
        filename=log_file,
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


class DocDeskApp(App):
    """A Textual app for viewing and editing one document collection."""

    TITLE = "DocDesk"

    CSS = """
    Screen {
        background: $surface;
    }

    Header {
        dock: top;
        height: 3;
        background: $primary;
        color: $text;
    }

    Footer {
        dock: bottom;
        height: 1;
        background: $primary-darken-2;
    }

    DataTable {
        height: 100%;
        background: $surface;
    }

    DataTable > .datatable--header {
        background: $primary-darken-1;
        color: $text;
        text-style: bold;
    }

    DataTable > .datatable--cursor {
        background: $secondary;
        color: $text;
    }

    Tree {
        background: $surface;
        padding: 1;
    }

    Tree > .tree--cursor {
        background: $secondary;
    }

    Tree > .tree--guides {
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
    ]

    def __init__(
        self,
        client: DocumentClient,
        collection_path: str,
        limit: int = DEFAULT_LIMIT,
        policy: ParsePolicy = ParsePolicy.STRICT,
        store_label: str = "",
    ):
        """Initialize the app with a client and a collection.

        Args:
            client: The document client to read from and write to.
            collection_path: The collection to open.
            limit: Number of documents fetched per refresh.
            policy: How invalid array/map edits are handled.
            store_label: Store name shown in the title.
        """
        super().__init__()
        self.engine = CollectionEngine(client, collection_path, limit=limit, policy=policy)
        self._store_label = store_label

    def on_mount(self) -> None:
        """Push the collection screen."""
        suffix = f" ({self._store_label})" if self._store_label else ""
        self.title = f"DocDesk - {self.engine.collection_path}{suffix}"
        self.push_screen(CollectionScreen(self.engine))


def main() -> None:
    """Parse arguments and run the application."""
    parser = argparse.ArgumentParser(
        description="Browse and edit a document collection in a terminal UI "
        "(table, tree and JSON views)."
    )
    parser.add_argument("store", help="Path to the JSON store file")
    parser.add_argument("collection", help="Collection path to open (e.g. users)")
    parser.add_argument(
        "-n",
        "--limit",
        type=int,
        default=DEFAULT_LIMIT,
        help=f"Documents fetched per refresh (default: {DEFAULT_LIMIT})",
    )
    parser.add_argument(
        "--lenient-edits",
        action="store_true",
        help="Keep invalid JSON typed into array/map cells as a string instead of rejecting it",
    )
    parser.add_argument("--log-file", default=None, help="Write logs to this file")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    args = parser.parse_args()

    if args.limit < 1:
        print("Error: --limit must be at least 1", file=sys.stderr)
        sys.exit(1)

    if os.path.exists(args.store) and not os.access(args.store, os.R_OK):
        print(f"Error: Permission denied: {args.store}", file=sys.stderr)
        sys.exit(1)

    configure_logging(args.log_level, args.log_file)

    app = DocDeskApp(
        JsonFileClient(args.store),
        args.collection,
        limit=args.limit,
        policy=ParsePolicy.LENIENT if args.lenient_edits else ParsePolicy.STRICT,
        store_label=os.path.basename(args.store),
    )
    app.run()


if __name__ == "__main__":
    main()
