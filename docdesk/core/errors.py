"""Exception types raised by the synchronization engine."""

from __future__ import annotations


class DocDeskError(Exception):
    """Base class for all docdesk errors."""


class EditValidationError(DocDeskError):
    """Raised when edit text cannot be converted to a value of the field's type."""

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


class DocumentParseError(DocDeskError):
    """Raised when whole-set JSON text is malformed or has the wrong shape.

    Attributes:
        line: 1-based line of the syntax error, or None for shape errors.
        column: 1-based column of the syntax error, or None.
    """

    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        super().__init__(message)
        self.line = line
        self.column = column


class FilterSyntaxError(DocDeskError):
    """Raised when a filter expression cannot be parsed."""


class DocumentNotFound(DocDeskError):
    """Raised when an operation references a document id that is not loaded."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document not found: {document_id}")
        self.document_id = document_id


class BatchLimitError(DocDeskError):
    """Raised when a batched write exceeds the store's per-batch document limit."""
