from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

import orjson

from artifacts.models.artifacts.call_sites import OutputRecord
from contract.columns import (
    CSV_HEADER,
    RECORD_COLUMNS,
    UNKNOWN_FILE,
    csv_quote,
    flatten_whitespace,
    truncate_snippet,
)

if TYPE_CHECKING:
    from typing import TextIO

    from artifacts.models.artifacts.call_sites import CalleeIdentity
    from frontend.model import SourceModel
    from parse.matcher import InvocationSite
    from rules.config import OutputFormat


def _field_text(record: OutputRecord, field: str) -> str:
    value = getattr(record, field)
    if isinstance(value, Enum):
        return value.value
    return str(value)


def format_csv_row(record: OutputRecord) -> str:
    """Render a record as one CSV line (without the line terminator).

    Free-text columns are quoted with inner quotes doubled; line, column and
    the guarantee label are written bare. No other escaping is applied.
    """
    cells = []
    for column in RECORD_COLUMNS:
        text = _field_text(record, column.field)
        cells.append(csv_quote(text) if column.quoted else text)
    return ",".join(cells)


def format_jsonl_row(record: OutputRecord) -> str:
    payload = record.model_dump(mode="json")
    return orjson.dumps(payload, option=orjson.OPT_SORT_KEYS).decode("utf-8")


class RecordEmitter:
    """Builds output records and writes each one to the stream immediately."""

    def __init__(
        self,
        stream: TextIO,
        *,
        output_format: OutputFormat = "csv",
        flatten_snippets: bool = False,
    ) -> None:
        self._stream = stream
        self._output_format = output_format
        self._flatten_snippets = flatten_snippets
        self.count = 0

    def write_header(self) -> None:
        """Write the fixed column header; JSON lines carry their own keys."""
        if self._output_format == "csv":
            self._stream.write(CSV_HEADER + "\n")

    def build_record(
        self,
        model: SourceModel,
        site: InvocationSite,
        identity: CalleeIdentity,
    ) -> OutputRecord:
        location = model.presumed_location(site.node)
        if location is None:
            file, line, col = UNKNOWN_FILE, 0, 0
        else:
            file, line, col = location.filename, location.line, location.column

        snippet = model.source_text(site.node)
        if self._flatten_snippets:
            snippet = flatten_whitespace(snippet)

        return OutputRecord(
            file=file,
            line=line,
            col=col,
            kind=site.kind,
            qualified_name=identity.qualified_name,
            exception_guarantee=identity.exception_guarantee,
            signature=identity.signature,
            snippet=truncate_snippet(snippet),
        )

    def write(self, record: OutputRecord) -> None:
        if self._output_format == "jsonl":
            line = format_jsonl_row(record)
        else:
            line = format_csv_row(record)
        self._stream.write(line + "\n")
        self.count += 1

    def emit(
        self,
        model: SourceModel,
        site: InvocationSite,
        identity: CalleeIdentity,
    ) -> OutputRecord:
        record = self.build_record(model, site, identity)
        self.write(record)
        return record


__all__ = ["RecordEmitter", "format_csv_row", "format_jsonl_row"]
