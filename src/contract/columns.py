"""Output contract for call-site records.

This module defines the stable column layout and text rules every output
format shares. Consumers parse against these constants.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# Fixed CSV column order (header row spelling).
CSV_COLUMNS: tuple[str, ...] = (
    "file",
    "line",
    "col",
    "kind",
    "qualified-name",
    "noexcept",
    "signature",
    "callee-source",
)
CSV_HEADER = ",".join(CSV_COLUMNS)

# Location sentinel used when the front end cannot resolve a position.
UNKNOWN_FILE = "<unknown>"

# Snippet truncation: character count over the extracted text.
MAX_SNIPPET_LEN = 200
ELLIPSIS = "..."

STD_NAMESPACE_PREFIX = "std::"

OUTPUT_FORMATS = ("csv", "jsonl")


@dataclass(frozen=True)
class ColumnSpec:
    """One output column: header label, record attribute, quoting rule."""

    header: str
    field: str
    quoted: bool


RECORD_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec(header="file", field="file", quoted=True),
    ColumnSpec(header="line", field="line", quoted=False),
    ColumnSpec(header="col", field="col", quoted=False),
    ColumnSpec(header="kind", field="kind", quoted=True),
    ColumnSpec(header="qualified-name", field="qualified_name", quoted=True),
    ColumnSpec(header="noexcept", field="exception_guarantee", quoted=False),
    ColumnSpec(header="signature", field="signature", quoted=True),
    ColumnSpec(header="callee-source", field="snippet", quoted=True),
)

_WHITESPACE_RUN = re.compile(r"\s+")


def flatten_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) to a single space.

    Leading and trailing whitespace is stripped.
    """
    return _WHITESPACE_RUN.sub(" ", text.strip())


def truncate_snippet(text: str) -> str:
    """Bound a snippet to ``MAX_SNIPPET_LEN`` characters plus ``ELLIPSIS``.

    A string that is already ``MAX_SNIPPET_LEN`` characters followed by the
    marker is returned as is, so applying this twice is a no-op.
    """
    if len(text) <= MAX_SNIPPET_LEN:
        return text
    if len(text) == MAX_SNIPPET_LEN + len(ELLIPSIS) and text.endswith(ELLIPSIS):
        return text
    return text[:MAX_SNIPPET_LEN] + ELLIPSIS


def csv_quote(value: str) -> str:
    """Wrap a free-text field in double quotes, doubling inner quotes."""
    return '"' + value.replace('"', '""') + '"'


__all__ = [
    "CSV_COLUMNS",
    "CSV_HEADER",
    "ELLIPSIS",
    "MAX_SNIPPET_LEN",
    "OUTPUT_FORMATS",
    "RECORD_COLUMNS",
    "STD_NAMESPACE_PREFIX",
    "UNKNOWN_FILE",
    "ColumnSpec",
    "csv_quote",
    "flatten_whitespace",
    "truncate_snippet",
]
