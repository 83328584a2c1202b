"""Record construction and output writers."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import TextIO

    from artifacts.write import RecordEmitter
    from rules.config import ScanConfig


def build_emitter(stream: TextIO, config: ScanConfig) -> RecordEmitter:
    """Build an emitter via lazy import to avoid package import cycles."""
    from artifacts.write import RecordEmitter

    return RecordEmitter(
        stream,
        output_format=config.output_format,
        flatten_snippets=config.flatten_snippets,
    )


__all__ = ["build_emitter"]
