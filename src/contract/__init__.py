"""Stable output contract for callscan records.

Treat these exports as the authoritative boundary for anything that parses
callscan output.
"""

from contract.columns import (
    CSV_COLUMNS,
    CSV_HEADER,
    ELLIPSIS,
    MAX_SNIPPET_LEN,
    OUTPUT_FORMATS,
    RECORD_COLUMNS,
    STD_NAMESPACE_PREFIX,
    UNKNOWN_FILE,
    ColumnSpec,
)


def __getattr__(name: str) -> object:
    if name in {"InvocationKind", "ExceptionGuarantee", "OutputRecord"}:
        from artifacts.models.artifacts.call_sites import (
            ExceptionGuarantee,
            InvocationKind,
            OutputRecord,
        )

        return {
            "ExceptionGuarantee": ExceptionGuarantee,
            "InvocationKind": InvocationKind,
            "OutputRecord": OutputRecord,
        }[name]

    msg = f"module 'contract' has no attribute {name!r}"
    raise AttributeError(msg)


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
    "ExceptionGuarantee",
    "InvocationKind",
    "OutputRecord",
]
