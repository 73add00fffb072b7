"""
Core synchronization engine components.

Usage:
    from docdesk.core import classify, parse_edit, DocumentStore

    tag = classify({"_seconds": 0, "_nanoseconds": 0})  # TypeTag.TIMESTAMP
    value = parse_edit("31", original=30)  # 31 (int)
"""

from docdesk.core.codec import (
    MISSING,
    ParsePolicy,
    TypeTag,
    classify,
    format_value,
    parse_edit,
    serialize_for_edit,
    values_equal,
)
from docdesk.core.documents import Document, DocumentStore, document_path, set_path
from docdesk.core.edit_session import (
    CommitResult,
    EditSessionController,
    Editing,
    Idle,
)
from docdesk.core.errors import (
    BatchLimitError,
    DocDeskError,
    DocumentNotFound,
    DocumentParseError,
    EditValidationError,
    FilterSyntaxError,
)
from docdesk.core.fields import ColumnVisibility, compute_field_registry
from docdesk.core.filtering import (
    FilterClause,
    SortSpec,
    apply_filters,
    apply_search,
    apply_sort,
    parse_filter_expression,
    process_documents,
)
from docdesk.core.reconciler import (
    ReconcilePlan,
    ReconcileReport,
    apply_plan,
    chunk_documents,
    export_documents,
    import_documents,
    plan_reconciliation,
)

__all__ = [
    # Value codec
    "MISSING",
    "ParsePolicy",
    "TypeTag",
    "classify",
    "format_value",
    "parse_edit",
    "serialize_for_edit",
    "values_equal",
    # Documents
    "Document",
    "DocumentStore",
    "document_path",
    "set_path",
    # Edit session
    "CommitResult",
    "EditSessionController",
    "Editing",
    "Idle",
    # Errors
    "BatchLimitError",
    "DocDeskError",
    "DocumentNotFound",
    "DocumentParseError",
    "EditValidationError",
    "FilterSyntaxError",
    # Fields
    "ColumnVisibility",
    "compute_field_registry",
    # Filtering
    "FilterClause",
    "SortSpec",
    "apply_filters",
    "apply_search",
    "apply_sort",
    "parse_filter_expression",
    "process_documents",
    # Reconciler
    "ReconcilePlan",
    "ReconcileReport",
    "apply_plan",
    "chunk_documents",
    "export_documents",
    "import_documents",
    "plan_reconciliation",
]
