"""Tests for client-side filtering, quick search and sorting."""

from __future__ import annotations

import pytest

from docdesk.core.errors import FilterSyntaxError
from docdesk.core.filtering import (
    FilterClause,
    SortSpec,
    apply_filters,
    apply_search,
    apply_sort,
    parse_filter_expression,
    process_documents,
)

from conftest import make_document


@pytest.fixture
def people():
    """Documents with numbers, strings, nulls and a missing age."""
    return [
        make_document("p1", {"name": "Ann", "age": 30}),
        make_document("p2", {"name": "Bo", "age": 25}),
        make_document("p3", {"name": "Cy", "age": None}),
        make_document("p4", {"name": "Di"}),
        make_document("p5", {"name": "Ed", "age": 30}),
    ]


def ids(documents):
    return [doc.id for doc in documents]


class TestApplyFilters:
    """Tests for apply_filters()."""

    def test_empty_is_identity(self, people):
        assert ids(apply_filters(people, [])) == ids(people)

    def test_numeric_comparison(self, people):
        """Number values compare numerically with numeric clause text."""
        result = apply_filters(people, [FilterClause("age", ">=", "30")])
        assert ids(result) == ["p1", "p5"]

    def test_numeric_not_lexicographic(self):
        docs = [make_document("a", {"n": 9}), make_document("b", {"n": 10})]
        assert ids(apply_filters(docs, [FilterClause("n", ">", "9")])) == ["b"]

    def test_string_equality(self, people):
        assert ids(apply_filters(people, [FilterClause("name", "==", "Bo")])) == ["p2"]

    def test_missing_fails_except_not_equal(self, people):
        """A missing field fails every operator except !=."""
        assert "p4" not in ids(apply_filters(people, [FilterClause("age", "==", "30")]))
        assert "p4" not in ids(apply_filters(people, [FilterClause("age", "<", "100")]))
        assert "p4" in ids(apply_filters(people, [FilterClause("age", "!=", "30")]))

    def test_null_compares_as_text(self, people):
        assert ids(apply_filters(people, [FilterClause("age", "==", "null")])) == ["p3"]

    def test_conjunction(self, people):
        """Every clause must hold."""
        clauses = [FilterClause("age", "==", "30"), FilterClause("name", "!=", "Ann")]
        assert ids(apply_filters(people, clauses)) == ["p5"]

    def test_conjunction_equals_sequential(self, people):
        """Filtering by [A, B] equals filtering by A then B."""
        a = FilterClause("age", ">", "20")
        b = FilterClause("name", "!=", "Ed")
        assert ids(apply_filters(people, [a, b])) == ids(apply_filters(apply_filters(people, [a]), [b]))

    def test_incomplete_clause_passes(self, people):
        """A clause with no field name does not filter anything."""
        assert ids(apply_filters(people, [FilterClause("", "==", "x")])) == ids(people)

    def test_empty_value_passes(self, people):
        """A clause whose value is still empty does not filter anything."""
        assert ids(apply_filters(people, [FilterClause("name", "==", "")])) == ids(people)
        clauses = [FilterClause("name", "==", ""), FilterClause("name", "==", "Bo")]
        assert ids(apply_filters(people, clauses)) == ["p2"]

    def test_unknown_operator(self):
        with pytest.raises(FilterSyntaxError):
            FilterClause("age", "=~", "1")


class TestApplySearch:
    """Tests for apply_search()."""

    def test_matches_values_case_insensitive(self, people):
        assert ids(apply_search(people, "ann")) == ["p1"]

    def test_matches_ids_and_field_names(self, people):
        assert ids(apply_search(people, "P2")) == ["p2"]
        assert ids(apply_search(people, "age")) == ["p1", "p2", "p3", "p5"]

    def test_blank_is_identity(self, people):
        assert ids(apply_search(people, "  ")) == ids(people)


class TestApplySort:
    """Tests for apply_sort()."""

    def test_ascending_numeric(self, people):
        """Empty values go last; ties keep input order."""
        assert ids(apply_sort(people, SortSpec("age"))) == ["p2", "p1", "p5", "p3", "p4"]

    def test_descending(self, people):
        """Descending negates the comparator; ties stay stable, empties stay last."""
        assert ids(apply_sort(people, SortSpec("age", "desc"))) == ["p1", "p5", "p2", "p3", "p4"]

    def test_lexicographic(self, people):
        assert ids(apply_sort(people, SortSpec("name", "desc"))) == ["p5", "p4", "p3", "p2", "p1"]

    def test_idempotent(self, people):
        once = apply_sort(people, SortSpec("age"))
        assert ids(apply_sort(once, SortSpec("age"))) == ids(once)

    def test_reversal_on_distinct_keys(self):
        """With distinct values, desc is the reverse of asc."""
        docs = [make_document(str(i), {"n": n}) for i, n in enumerate([3, 1, 2])]
        asc = ids(apply_sort(docs, SortSpec("n")))
        desc = ids(apply_sort(docs, SortSpec("n", "desc")))
        assert desc == list(reversed(asc))

    def test_no_sort(self, people):
        assert ids(apply_sort(people, None)) == ids(people)
        assert ids(apply_sort(people, SortSpec(""))) == ids(people)

    def test_reversed_sort(self):
        assert SortSpec("a").reversed() == SortSpec("a", "desc")
        assert SortSpec("a", "desc").reversed() == SortSpec("a", "asc")


class TestProcessDocuments:
    """Tests for process_documents()."""

    def test_filter_search_sort(self, people):
        result = process_documents(
            people, [FilterClause("age", "!=", "25")], "", SortSpec("name", "desc")
        )
        assert ids(result) == ["p5", "p4", "p3", "p1"]


class TestParseFilterExpression:
    """Tests for parse_filter_expression()."""

    def test_single_clause(self):
        assert parse_filter_expression("age >= 30") == [FilterClause("age", ">=", "30")]

    def test_multiple_clauses(self):
        clauses = parse_filter_expression("age >= 30; name != Bo")
        assert clauses == [FilterClause("age", ">=", "30"), FilterClause("name", "!=", "Bo")]

    def test_quoted_value_keeps_semicolon(self):
        clauses = parse_filter_expression('note == "a; b"')
        assert clauses == [FilterClause("note", "==", "a; b")]

    def test_trailing_empty_value(self):
        assert parse_filter_expression("name == ") == [FilterClause("name", "==", "")]

    def test_blank(self):
        assert parse_filter_expression("") == []
        assert parse_filter_expression(" ; ") == []

    def test_missing_operator(self):
        with pytest.raises(FilterSyntaxError):
            parse_filter_expression("age 30")

    def test_unbalanced_quotes(self):
        with pytest.raises(FilterSyntaxError):
            parse_filter_expression('name == "Bo')
