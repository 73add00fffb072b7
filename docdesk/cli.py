#!/usr/bin/env python3
"""
DocDesk IO

Export a collection to a JSON file and import one back, in the
``{document_id: field_map}`` format used by the JSON view.

Usage:
    docdesk-io export <store> <collection> <output>          Export all documents
    docdesk-io import <store> <collection> <input> [-b N]     Import in batches of N (max 500)
    docdesk-io collections <store>                           List collections

Imports overwrite documents with the same id and never delete others.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any

import aiofiles
from tqdm.asyncio import tqdm

from docdesk.clients.base import DocumentClient
from docdesk.clients.json_file import JsonFileClient
from docdesk.core.documents import Document
from docdesk.core.errors import DocDeskError
from docdesk.core.reconciler import (
    IMPORT_BATCH_SIZE,
    export_documents,
    import_documents,
    parse_documents_json,
)

logger = logging.getLogger(__name__)

# Documents requested per page while exporting
EXPORT_PAGE_SIZE = 500


async def fetch_all_documents(
    client: DocumentClient,
    collection_path: str,
    page_size: int = EXPORT_PAGE_SIZE,
) -> list[Document]:
    """Fetch every document of a collection, page by page.

    Args:
        client: The document client.
        collection_path: The collection to read.
        page_size: Documents per fetch call.

    Returns:
        All documents in the client's order.
    """
    documents: list[Document] = []
    cursor: str | None = None
    while True:
        page = await client.fetch_documents(collection_path, page_size, cursor)
        documents.extend(page)
        if len(page) < page_size:
            return documents
        cursor = page[-1].id


async def export_collection(client: DocumentClient, collection_path: str, output: str) -> int:
    """Write a collection to a JSON file. Returns the document count."""
    documents = await fetch_all_documents(client, collection_path)
    async with aiofiles.open(output, "w", encoding="utf-8") as f:
        await f.write(export_documents(documents))
    logger.info("Exported %d document(s) from %s to %s", len(documents), collection_path, output)
    return len(documents)


async def import_collection(
    client: DocumentClient,
    collection_path: str,
    input_path: str,
    batch_size: int = IMPORT_BATCH_SIZE,
    show_progress: bool = True,
) -> int:
    """Import a JSON file into a collection. Returns the document count.

    Raises:
        DocumentParseError: If the file is not an object of documents.
        BatchLimitError: If batch_size exceeds the batch limit.
    """
    async with aiofiles.open(input_path, "r", encoding="utf-8") as f:
        content = await f.read()
    documents: dict[str, dict[str, Any]] = parse_documents_json(content)

    pbar = tqdm(
        total=len(documents),
        desc="Importing",
        unit="doc",
        disable=not show_progress,
        bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]",
    )

    def update(written: int, total: int) -> None:
        pbar.update(written - pbar.n)

    try:
        return await import_documents(
            client, collection_path, documents, batch_size=batch_size, progress=update
        )
    finally:
        pbar.close()


def cmd_export(args: argparse.Namespace) -> int:
    """Export command."""
    client = JsonFileClient(args.store)
    count = asyncio.run(export_collection(client, args.collection, args.output))
    print(f"Exported {count:,} documents to {args.output}")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    """Import command."""
    if not os.path.exists(args.input):
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1
    client = JsonFileClient(args.store)
    count = asyncio.run(
        import_collection(
            client,
            args.collection,
            args.input,
            batch_size=args.batch_size,
            show_progress=not args.quiet,
        )
    )
    print(f"Imported {count:,} documents into {args.collection}")
    return 0


def cmd_collections(args: argparse.Namespace) -> int:
    """List collections command."""
    client = JsonFileClient(args.store)
    for name in asyncio.run(client.list_collections()):
        print(name)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="DocDesk IO - export and import document collections",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Export command
    export_parser = subparsers.add_parser("export", help="Export a collection to a JSON file")
    export_parser.add_argument("store", help="Path to the JSON store file")
    export_parser.add_argument("collection", help="Collection path")
    export_parser.add_argument("output", help="Output JSON file")
    export_parser.set_defaults(func=cmd_export)

    # Import command
    import_parser = subparsers.add_parser("import", help="Import a JSON file into a collection")
    import_parser.add_argument("store", help="Path to the JSON store file")
    import_parser.add_argument("collection", help="Collection path")
    import_parser.add_argument("input", help="Input JSON file ({id: fields})")
    import_parser.add_argument(
        "-b",
        "--batch-size",
        type=int,
        default=IMPORT_BATCH_SIZE,
        help=f"Documents per batch (default and maximum: {IMPORT_BATCH_SIZE})",
    )
    import_parser.add_argument("-q", "--quiet", action="store_true", help="Hide the progress bar")
    import_parser.set_defaults(func=cmd_import)

    # Collections command
    collections_parser = subparsers.add_parser("collections", help="List collections in a store")
    collections_parser.add_argument("store", help="Path to the JSON store file")
    collections_parser.set_defaults(func=cmd_collections)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))

    try:
        sys.exit(args.func(args))
    except (DocDeskError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
