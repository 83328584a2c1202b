"""Per-translation-unit call-site pipeline.

Every matched node flows synchronously through resolve, filter and emit
before the next node is visited; nothing is accumulated across sites.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from frontend.model import FrontendError
from parse.matcher import iter_sites
from parse.resolver import resolve
from rules.filters import accept

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path
    from typing import TextIO

    from artifacts.write import RecordEmitter
    from frontend.model import Frontend, SourceModel
    from rules.config import FilterConfig

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    units: int = 0
    rows: int = 0
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class CallScanner:
    """Runs the match, resolve, filter, emit chain over Source Models."""

    def __init__(
        self,
        emitter: RecordEmitter,
        filters: FilterConfig,
        *,
        include_system_headers: bool = False,
    ) -> None:
        self._emitter = emitter
        self._filters = filters
        self._include_system_headers = include_system_headers

    def scan_model(self, model: SourceModel) -> int:
        """Emit every accepted call site of one unit; return the row count."""
        rows = 0
        for site in iter_sites(
            model, include_system_headers=self._include_system_headers
        ):
            identity = resolve(model, site)
            if identity is None:
                continue
            if not accept(identity, self._filters):
                continue
            self._emitter.emit(model, site, identity)
            rows += 1
        return rows


def run_scan(
    frontend: Frontend,
    paths: Iterable[Path],
    scanner: CallScanner,
    *,
    errors: TextIO | None = None,
) -> ScanResult:
    """Scan translation units in the order given.

    A unit the front end cannot build is reported on ``errors`` and marked
    failed; the scan continues with the next one. Error diagnostics of a
    unit that did build also mark it failed, but its tree is still scanned.
    Rows already written are never retracted.
    """
    errors = errors if errors is not None else sys.stderr
    result = ScanResult()

    for path in paths:
        result.units += 1
        try:
            unit = frontend.load(path)
        except FrontendError as exc:
            errors.write(f"{path}: error: {exc}\n")
            result.failed.append(str(path))
            continue

        for diag in unit.diagnostics:
            errors.write(diag.render() + "\n")
        if unit.has_errors:
            result.failed.append(str(path))

        rows = scanner.scan_model(unit.model)
        result.rows += rows
        logger.debug("%s: %d call sites emitted", path, rows)

    return result


__all__ = ["CallScanner", "ScanResult", "run_scan"]
