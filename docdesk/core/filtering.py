"""
Client-side filtering and sorting of the loaded document page.

Filters and sorts only ever apply to documents already fetched; they are
never sent to the document client.

Usage:
    clauses = parse_filter_expression("age >= 30; name != Bo")
    docs = process_documents(store.documents, clauses, "", SortSpec("age", "desc"))
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Callable, Iterable, Sequence

from docdesk.core.codec import MISSING, TypeTag, classify, format_value, parse_number
from docdesk.core.documents import Document
from docdesk.core.errors import FilterSyntaxError

OPERATORS = ("==", "!=", "<=", ">=", "<", ">")

# Longest operators first so "<=" is not read as "<"
_CLAUSE_PATTERN = re.compile(r"^\s*(?P<field>.+?)\s*(?P<op>==|!=|<=|>=|<|>)\s*(?P<value>.*?)\s*$")

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
}


@dataclass(frozen=True)
class FilterClause:
    """One predicate of a filter conjunction."""

    field: str
    operator: str
    value: Any

    def __post_init__(self) -> None:
        if self.operator not in _COMPARATORS:
            raise FilterSyntaxError(f"Unsupported operator: {self.operator!r}")


@dataclass(frozen=True)
class SortSpec:
    """Single-key sort order. direction is 'asc' or 'desc'."""

    field: str
    direction: str = "asc"

    @property
    def descending(self) -> bool:
        return self.direction == "desc"

    def reversed(self) -> SortSpec:
        return SortSpec(self.field, "asc" if self.descending else "desc")


def clause_matches(value: Any, clause: FilterClause) -> bool:
    """Evaluate one clause against a document value.

    A missing field fails every operator except "!=". Numeric document
    values are compared numerically when the clause value is numeric;
    everything else is compared as formatted text.
    """
    if value is MISSING:
        return clause.operator == "!="

    compare = _COMPARATORS[clause.operator]
    target = clause.value

    if classify(value) == TypeTag.NUMBER:
        number = target if classify(target) == TypeTag.NUMBER else parse_number(str(target))
        if number is not None:
            return compare(value, number)

    target_text = target if isinstance(target, str) else format_value(target)
    return compare(format_value(value), target_text)


def apply_filters(documents: Iterable[Document], clauses: Sequence[FilterClause]) -> list[Document]:
    """Keep documents that satisfy every clause.

    Clauses with an empty field name or an empty value are incomplete and
    match everything, so a half-typed clause does not hide rows.
    An empty clause list returns the documents unchanged.
    """
    active = [c for c in clauses if c.field and c.value != ""]
    if not active:
        return list(documents)
    return [
        doc for doc in documents
        if all(clause_matches(doc.get(c.field), c) for c in active)
    ]


def apply_search(documents: Iterable[Document], search_text: str) -> list[Document]:
    """Case-insensitive substring search across ids, field names and values."""
    needle = search_text.strip().lower()
    if not needle:
        return list(documents)

    def matches(doc: Document) -> bool:
        if needle in doc.id.lower():
            return True
        return any(
            needle in key.lower() or needle in format_value(value).lower()
            for key, value in doc.data.items()
        )

    return [doc for doc in documents if matches(doc)]


def _compare_values(left: Any, right: Any) -> int:
    left_empty = left is MISSING or left is None
    right_empty = right is MISSING or right is None
    if left_empty or right_empty:
        return 0 if left_empty and right_empty else (1 if left_empty else -1)

    if classify(left) == TypeTag.NUMBER and classify(right) == TypeTag.NUMBER:
        return (left > right) - (left < right)

    left_text, right_text = format_value(left), format_value(right)
    return (left_text > right_text) - (left_text < right_text)


def apply_sort(documents: Iterable[Document], sort: SortSpec | None) -> list[Document]:
    """Stable sort by a single field.

    Descending order negates the comparator, so ties keep their input order
    in both directions. Missing and null values always sort last.
    """
    docs = list(documents)
    if sort is None or not sort.field:
        return docs

    field = sort.field
    sign = -1 if sort.descending else 1

    def comparator(a: Document, b: Document) -> int:
        left, right = a.get(field), b.get(field)
        result = _compare_values(left, right)
        empty = left is MISSING or left is None or right is MISSING or right is None
        # Empty values stay at the end regardless of direction
        return result if empty else sign * result

    return sorted(docs, key=cmp_to_key(comparator))


def process_documents(
    documents: Iterable[Document],
    clauses: Sequence[FilterClause] = (),
    search_text: str = "",
    sort: SortSpec | None = None,
) -> list[Document]:
    """Apply filters, then the quick search, then the sort."""
    result = apply_filters(documents, clauses)
    result = apply_search(result, search_text)
    return apply_sort(result, sort)


def parse_filter_expression(text: str) -> list[FilterClause]:
    """Parse filter bar text into clauses.

    Clauses are separated by ";" and written as ``field op value``. Values
    may be quoted to keep surrounding spaces or semicolons.

    Args:
        text: The expression, e.g. ``age >= 30; name != "Bo"``.

    Returns:
        The parsed clauses, empty for blank text.

    Raises:
        FilterSyntaxError: If a clause has no operator or no field name.
    """
    clauses: list[FilterClause] = []
    for part in _split_clauses(text):
        if not part.strip():
            continue
        match = _CLAUSE_PATTERN.match(part)
        if not match or not match.group("field"):
            raise FilterSyntaxError(f"Expected 'field op value', got {part.strip()!r}")
        value = match.group("value")
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        clauses.append(FilterClause(match.group("field"), match.group("op"), value))
    return clauses


def _split_clauses(text: str) -> list[str]:
    """Split on semicolons that are not inside quotes."""
    parts: list[str] = []
    current: list[str] = []
    quote: str | None = None
    for char in text:
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == ";":
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    if quote:
        raise FilterSyntaxError(f"Unbalanced quotes in filter: {text!r}")
    parts.append("".join(current))
    return parts
