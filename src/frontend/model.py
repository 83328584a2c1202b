"""Source Model capability consumed by the call-site pipeline.

The pipeline never touches a concrete parser. Any front end that can answer
the queries in ``SourceModel`` for one translation unit is interchangeable;
node and declaration handles are opaque to the core.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from artifacts.models.artifacts.call_sites import InvocationKind


class ExceptionSpec(str, Enum):
    """Resolved exception specification of a function type."""

    NONE = "none"
    DYNAMIC_NONE = "dynamic_none"  # throw()
    DYNAMIC = "dynamic"  # throw(X, Y)
    MS_ANY = "ms_any"  # throw(...)
    BASIC_NOEXCEPT = "basic_noexcept"  # noexcept
    NOEXCEPT_TRUE = "noexcept_true"
    NOEXCEPT_FALSE = "noexcept_false"
    DEPENDENT_NOEXCEPT = "dependent_noexcept"
    NO_THROW = "no_throw"  # __declspec(nothrow)
    UNEVALUATED = "unevaluated"
    UNINSTANTIATED = "uninstantiated"
    UNPARSED = "unparsed"
    UNKNOWN = "unknown"  # not a prototype with exception info


@dataclass(frozen=True)
class PresumedLocation:
    """File/line/column after macro-expansion resolution (1-based)."""

    filename: str
    line: int
    column: int


@dataclass(frozen=True)
class Diagnostic:
    """One front-end diagnostic for a translation unit."""

    severity: str
    message: str
    location: PresumedLocation | None = None

    @property
    def is_error(self) -> bool:
        return self.severity in {"error", "fatal"}

    def render(self) -> str:
        if self.location is None:
            return f"{self.severity}: {self.message}"
        loc = self.location
        prefix = f"{loc.filename}:{loc.line}:{loc.column}"
        return f"{prefix}: {self.severity}: {self.message}"


class FrontendError(Exception):
    """Raised when a translation unit cannot be built at all."""


class SourceModel(Protocol):
    """Query surface over one parsed, type-resolved translation unit."""

    @property
    def name(self) -> str: ...

    def iter_invocations(self) -> Iterator[tuple[InvocationKind, Any]]:
        """Yield ``(kind, node)`` for every invocation node in traversal order."""
        ...

    def is_in_system_header(self, node: Any) -> bool: ...

    def direct_callee(self, node: Any) -> Any | None: ...

    def presumed_location(self, node: Any) -> PresumedLocation | None: ...

    def source_text(self, node: Any) -> str: ...

    def qualified_name(self, decl: Any) -> str: ...

    def parent_qualified_name(self, decl: Any) -> str: ...

    def plain_name(self, decl: Any) -> str: ...

    def is_constructor(self, decl: Any) -> bool: ...

    def pretty_signature(self, decl: Any) -> str: ...

    def exception_spec(self, decl: Any) -> ExceptionSpec: ...


@dataclass
class LoadedUnit:
    """A translation unit handed back by a front end, with its diagnostics."""

    model: SourceModel
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(diag.is_error for diag in self.diagnostics)


class Frontend(Protocol):
    """Builds a ``SourceModel`` for one source file."""

    def load(self, path: Path) -> LoadedUnit: ...


__all__ = [
    "Diagnostic",
    "ExceptionSpec",
    "Frontend",
    "FrontendError",
    "LoadedUnit",
    "PresumedLocation",
    "SourceModel",
]
