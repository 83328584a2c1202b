from __future__ import annotations

import pytest

from contract.columns import (
    CSV_HEADER,
    ELLIPSIS,
    MAX_SNIPPET_LEN,
    csv_quote,
    flatten_whitespace,
    truncate_snippet,
)


def test_snippet_of_exactly_max_length_is_unmodified() -> None:
    snippet = "x" * MAX_SNIPPET_LEN

    assert truncate_snippet(snippet) == snippet


def test_snippet_one_over_max_length_is_cut_with_ellipsis() -> None:
    snippet = "a" * MAX_SNIPPET_LEN + "b"

    truncated = truncate_snippet(snippet)

    assert truncated == "a" * MAX_SNIPPET_LEN + ELLIPSIS
    assert len(truncated) == MAX_SNIPPET_LEN + len(ELLIPSIS)


def test_truncation_is_idempotent() -> None:
    once = truncate_snippet("f(" + "arg, " * 100 + ")")

    assert truncate_snippet(once) == once


def test_truncation_counts_characters_not_bytes() -> None:
    snippet = "é" * MAX_SNIPPET_LEN

    assert truncate_snippet(snippet) == snippet


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("plain", '"plain"'),
        ('say "hi"', '"say ""hi"""'),
        ("a,b", '"a,b"'),
        ("", '""'),
        ("line1\nline2", '"line1\nline2"'),
    ],
)
def test_csv_quote_only_doubles_quotes(raw: str, expected: str) -> None:
    assert csv_quote(raw) == expected


def test_flatten_whitespace_collapses_newlines() -> None:
    assert flatten_whitespace("  foo(\n    a,\t b)\n") == "foo( a, b)"


def test_header_column_order_is_fixed() -> None:
    assert CSV_HEADER == (
        "file,line,col,kind,qualified-name,noexcept,signature,callee-source"
    )
