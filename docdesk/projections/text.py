"""
Structured-text projection: the visible document set as one JSON object.

TextBuffer holds the editable text together with its derived state. The
parse error and the search matches are recomputed on every text change, so
the UI never shows a stale error or a stale match count.
"""

from __future__ import annotations

import json
import re
from typing import Any, Sequence

from docdesk.core.documents import Document
from docdesk.core.errors import DocumentParseError
from docdesk.core.reconciler import export_documents, parse_documents_json


def render_text(documents: Sequence[Document]) -> str:
    """Render documents as ``{id: data}`` JSON with 2-space indentation."""
    return export_documents(documents)


class TextBuffer:
    """Editable whole-set JSON text with parse state and search.

    Attributes:
        text: Current buffer content.
        dirty: Whether the text was edited since the last reset.
        parse_error: Error message for the current text, or None when valid.
        error_location: (line, column) of the parse error, 1-based.
        query: Current search query.
        matches: Start offsets of every case-insensitive match, ascending.
        current: Index into matches of the selected match, or None.
    """

    def __init__(self, text: str = "{}") -> None:
        self.text = text
        self.dirty = False
        self.parse_error: str | None = None
        self.error_location: tuple[int, int] | None = None
        self.query = ""
        self.matches: list[int] = []
        self.current: int | None = None
        self._recompute()

    @property
    def is_valid(self) -> bool:
        return self.parse_error is None

    @property
    def current_offset(self) -> int | None:
        if self.current is None:
            return None
        return self.matches[self.current]

    def reset(self, text: str) -> None:
        """Reload the buffer from the store, discarding unsaved edits."""
        self.text = text
        self.dirty = False
        self._recompute()

    def set_text(self, text: str) -> None:
        """Apply a user edit."""
        if text == self.text:
            return
        self.text = text
        self.dirty = True
        self._recompute()

    def parse(self) -> dict[str, dict[str, Any]]:
        """Parse the buffer into an id to field-map mapping.

        Raises:
            DocumentParseError: While the text is invalid.
        """
        return parse_documents_json(self.text)

    def search(self, query: str) -> int:
        """Set the search query. Returns the number of matches."""
        self.query = query
        self._find_matches()
        return len(self.matches)

    def next_match(self) -> int | None:
        """Select the next match, wrapping to the first. Returns its offset."""
        if not self.matches:
            return None
        self.current = 0 if self.current is None else (self.current + 1) % len(self.matches)
        return self.matches[self.current]

    def previous_match(self) -> int | None:
        """Select the previous match, wrapping to the last. Returns its offset."""
        if not self.matches:
            return None
        if self.current is None:
            self.current = len(self.matches) - 1
        else:
            self.current = (self.current - 1) % len(self.matches)
        return self.matches[self.current]

    def offset_to_location(self, offset: int) -> tuple[int, int]:
        """Convert a character offset into a 0-based (row, column) pair."""
        offset = max(0, min(offset, len(self.text)))
        before = self.text[:offset]
        row = before.count("\n")
        column = offset - (before.rfind("\n") + 1)
        return row, column

    def _recompute(self) -> None:
        try:
            json.loads(self.text)
        except json.JSONDecodeError as e:
            self.parse_error = f"{e.msg} (line {e.lineno}, column {e.colno})"
            self.error_location = (e.lineno, e.colno)
        else:
            self.parse_error = None
            self.error_location = None
            # Valid JSON of the wrong shape is still an error for saving
            try:
                parse_documents_json(self.text)
            except DocumentParseError as e:
                self.parse_error = str(e)
        self._find_matches()

    def _find_matches(self) -> None:
        self.matches = []
        self.current = None
        if not self.query:
            return
        # Lookahead keeps overlapping matches; offsets index the original text
        pattern = re.compile(f"(?={re.escape(self.query)})", re.IGNORECASE)
        self.matches = [match.start() for match in pattern.finditer(self.text)]
