"""libclang-backed Source Model.

Translation units are parsed with ``clang.cindex``; call-like expressions
all surface as ``CALL_EXPR`` cursors there, so the four invocation kinds are
recovered from the referenced declaration and the shape of the callee
reference.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from clang.cindex import (
    Config,
    Cursor,
    CursorKind,
    Index,
    LibclangError,
    TranslationUnitLoadError,
)

from artifacts.models.artifacts.call_sites import InvocationKind
from frontend.compdb import database_args, find_database_dir, load_database
from frontend.model import (
    Diagnostic,
    ExceptionSpec,
    FrontendError,
    LoadedUnit,
    PresumedLocation,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from clang.cindex import CompilationDatabase, SourceLocation, TranslationUnit

logger = logging.getLogger(__name__)

_FUNCTION_KINDS = frozenset(
    {
        CursorKind.FUNCTION_DECL,
        CursorKind.CXX_METHOD,
        CursorKind.CONSTRUCTOR,
        CursorKind.DESTRUCTOR,
        CursorKind.CONVERSION_FUNCTION,
        CursorKind.FUNCTION_TEMPLATE,
    }
)
_RECORD_KINDS = frozenset(
    {
        CursorKind.CLASS_DECL,
        CursorKind.STRUCT_DECL,
        CursorKind.UNION_DECL,
        CursorKind.ENUM_DECL,
    }
)
_TEMPLATE_KINDS = frozenset(
    {
        CursorKind.CLASS_TEMPLATE,
        CursorKind.CLASS_TEMPLATE_PARTIAL_SPECIALIZATION,
    }
)
_REFERENCE_KINDS = frozenset(
    {
        CursorKind.DECL_REF_EXPR,
        CursorKind.MEMBER_REF_EXPR,
        CursorKind.OVERLOADED_DECL_REF,
    }
)

_SEVERITY_NAMES = {2: "warning", 3: "error", 4: "fatal"}

_EXCEPTION_SPECS = {
    "NONE": ExceptionSpec.NONE,
    "DYNAMIC_NONE": ExceptionSpec.DYNAMIC_NONE,
    "DYNAMIC": ExceptionSpec.DYNAMIC,
    "MS_ANY": ExceptionSpec.MS_ANY,
    "BASIC_NOEXCEPT": ExceptionSpec.BASIC_NOEXCEPT,
    "NOTHROW": ExceptionSpec.NO_THROW,
    "UNEVALUATED": ExceptionSpec.UNEVALUATED,
    "UNINSTANTIATED": ExceptionSpec.UNINSTANTIATED,
    "UNPARSED": ExceptionSpec.UNPARSED,
}

_NOEXCEPT_OPERAND = re.compile(r"\bnoexcept\(")
_STATIC_ASSERT_FAILED = re.compile(r"static[_ ]assert(?:ion)? failed")


@dataclass(frozen=True)
class ClangNode:
    """A matched ``CALL_EXPR`` with its callee and the reference naming it."""

    kind: InvocationKind
    cursor: Cursor
    callee: Cursor | None
    reference: Cursor | None


def _presumed(location: SourceLocation) -> PresumedLocation | None:
    if location.file is None:
        return None
    return PresumedLocation(
        filename=location.file.name,
        line=location.line,
        column=location.column,
    )


def _noexcept_operand(type_spelling: str) -> str | None:
    """Return the operand text of the last ``noexcept(...)`` in a printed type."""
    matches = list(_NOEXCEPT_OPERAND.finditer(type_spelling))
    if not matches:
        return None

    depth = 1
    start = matches[-1].end()
    for pos in range(start, len(type_spelling)):
        char = type_spelling[pos]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return type_spelling[start:pos].strip() or None
    return None


class ClangSourceModel:
    """Source Model over one libclang translation unit."""

    def __init__(
        self,
        tu: TranslationUnit,
        *,
        prune_system_headers: bool = True,
        index: Index | None = None,
        args: Sequence[str] = (),
    ) -> None:
        self._tu = tu
        self._prune_system_headers = prune_system_headers
        self._index = index
        self._args = list(args)
        self._sources: dict[str, bytes] = {}
        self._noexcept_operands: dict[tuple[str, str], ExceptionSpec] = {}

    @property
    def name(self) -> str:
        return self._tu.spelling

    def _read(self, filename: str) -> bytes:
        if filename not in self._sources:
            try:
                self._sources[filename] = Path(filename).read_bytes()
            except OSError:
                self._sources[filename] = b""
        return self._sources[filename]

    def _extent_text(self, cursor: Cursor) -> str:
        extent = cursor.extent
        start, end = extent.start, extent.end
        if start.file is None or end.file is None:
            return ""
        if start.file.name != end.file.name or end.offset < start.offset:
            return ""
        data = self._read(start.file.name)
        return data[start.offset : end.offset].decode("utf-8", errors="replace")

    # -- node queries -----------------------------------------------------

    def _top_level(self) -> Iterator[Cursor]:
        for child in self._tu.cursor.get_children():
            if self._prune_system_headers and child.location.is_in_system_header:
                continue
            yield child

    def _callee_reference(self, cursor: Cursor, callee: Cursor) -> Cursor | None:
        """Find the expression naming ``callee`` among the call's operands."""
        pending = list(cursor.get_children())
        while pending:
            child = pending.pop(0)
            if child.kind in _REFERENCE_KINDS and child.referenced == callee:
                return child
            if child.kind == CursorKind.UNEXPOSED_EXPR:
                pending[0:0] = list(child.get_children())
        return None

    def _classify(
        self, callee: Cursor | None, reference: Cursor | None
    ) -> InvocationKind:
        if callee is None:
            return InvocationKind.CALL
        if callee.kind == CursorKind.CONSTRUCTOR:
            return InvocationKind.CONSTRUCT
        if reference is not None and reference.kind == CursorKind.MEMBER_REF_EXPR:
            return InvocationKind.MEMBER_CALL
        if callee.spelling.startswith("operator"):
            # An explicitly spelled ``operator+(a, b)`` names the operator.
            if reference is None or "operator" not in self._extent_text(reference):
                return InvocationKind.OPERATOR_CALL
        if reference is None and callee.kind in {
            CursorKind.CXX_METHOD,
            CursorKind.CONVERSION_FUNCTION,
            CursorKind.DESTRUCTOR,
        }:
            if not callee.is_static_method():
                return InvocationKind.MEMBER_CALL
        return InvocationKind.CALL

    def iter_invocations(self) -> Iterator[tuple[InvocationKind, ClangNode]]:
        for top in self._top_level():
            for cursor in top.walk_preorder():
                if cursor.kind != CursorKind.CALL_EXPR:
                    continue
                referenced = cursor.referenced
                callee = (
                    referenced
                    if referenced is not None and referenced.kind in _FUNCTION_KINDS
                    else None
                )
                reference = (
                    self._callee_reference(cursor, callee)
                    if callee is not None
                    else None
                )
                node = ClangNode(
                    kind=self._classify(callee, reference),
                    cursor=cursor,
                    callee=callee,
                    reference=reference,
                )
                yield node.kind, node

    def is_in_system_header(self, node: ClangNode) -> bool:
        return bool(node.cursor.location.is_in_system_header)

    def direct_callee(self, node: ClangNode) -> Cursor | None:
        return node.callee

    def presumed_location(self, node: ClangNode) -> PresumedLocation | None:
        """Location of the expression anchor.

        Member calls anchor on the member name and operator calls on the
        operator token; other calls anchor on the expression start.
        """
        anchor = node.cursor
        if node.reference is not None and node.kind in {
            InvocationKind.MEMBER_CALL,
            InvocationKind.OPERATOR_CALL,
        }:
            anchor = node.reference
        # Implicit conversion calls have a reference without a file.
        return _presumed(anchor.location) or _presumed(node.cursor.location)

    def source_text(self, node: ClangNode) -> str:
        return self._extent_text(node.cursor)

    # -- declaration queries ----------------------------------------------

    def _is_inline_namespace(self, cursor: Cursor) -> bool:
        start = cursor.extent.start
        if start.file is None:
            return False
        data = self._read(start.file.name)
        return data[start.offset : start.offset + 6] == b"inline"

    def _scope_parts(self, decl: Cursor) -> list[str]:
        parts: list[str] = []
        parent = decl.semantic_parent
        while parent is not None and parent.kind != CursorKind.TRANSLATION_UNIT:
            if parent.kind == CursorKind.NAMESPACE:
                if not self._is_inline_namespace(parent):
                    parts.append(parent.spelling or "(anonymous namespace)")
            elif parent.kind in _RECORD_KINDS:
                parts.append(parent.displayname or parent.spelling or "(anonymous)")
            elif parent.kind in _TEMPLATE_KINDS:
                parts.append(parent.spelling)
            elif parent.kind != CursorKind.LINKAGE_SPEC:
                parts.append(parent.displayname or parent.spelling)
            parent = parent.semantic_parent
        parts.reverse()
        return parts

    def qualified_name(self, decl: Cursor) -> str:
        if not decl.spelling:
            return ""
        return "::".join([*self._scope_parts(decl), decl.spelling])

    def parent_qualified_name(self, decl: Cursor) -> str:
        parent = decl.semantic_parent
        if parent is None or parent.kind == CursorKind.TRANSLATION_UNIT:
            return ""
        own = parent.spelling if parent.kind in _TEMPLATE_KINDS else parent.displayname
        return "::".join([*self._scope_parts(parent), own or parent.spelling])

    def plain_name(self, decl: Cursor) -> str:
        return decl.spelling

    def is_constructor(self, decl: Cursor) -> bool:
        return decl.kind == CursorKind.CONSTRUCTOR

    def pretty_signature(self, decl: Cursor) -> str:
        """Render ``[static|virtual] <result> <qualified name>(<params>) <quals>``."""
        if decl.kind == CursorKind.CONSTRUCTOR:
            name = f"{self.parent_qualified_name(decl)}::{decl.spelling}"
        else:
            name = self.qualified_name(decl)

        result = decl.result_type.spelling
        fn_type = decl.type.spelling
        if result and fn_type.startswith(result):
            tail = fn_type[len(result) :].lstrip()
        else:
            params = ", ".join(arg.type.spelling for arg in decl.get_arguments())
            tail = f"({params})"

        if decl.kind in {CursorKind.CONSTRUCTOR, CursorKind.DESTRUCTOR}:
            return f"{name}{tail}"

        prefix = ""
        if decl.kind == CursorKind.CXX_METHOD:
            if decl.is_static_method():
                prefix = "static "
            elif decl.is_virtual_method():
                prefix = "virtual "
        return f"{prefix}{result} {name}{tail}"

    def _namespace_scope(self, decl: Cursor) -> tuple[str, str]:
        """Opening and closing text for the namespaces enclosing ``decl``."""
        opens: list[str] = []
        parent = decl.semantic_parent
        while parent is not None and parent.kind != CursorKind.TRANSLATION_UNIT:
            if parent.kind == CursorKind.NAMESPACE:
                keyword = (
                    "inline namespace"
                    if self._is_inline_namespace(parent)
                    else "namespace"
                )
                opens.append(f"{keyword} {parent.spelling} {{")
            parent = parent.semantic_parent
        opens.reverse()
        return " ".join(opens), "}" * len(opens)

    def _evaluate_noexcept(self, decl: Cursor, operand: str) -> ExceptionSpec:
        opens, closes = self._namespace_scope(decl)
        key = (opens, operand)
        if key not in self._noexcept_operands:
            self._noexcept_operands[key] = self._check_operand(opens, operand, closes)
        return self._noexcept_operands[key]

    def _check_operand(self, opens: str, operand: str, closes: str) -> ExceptionSpec:
        """Decide a ``noexcept`` operand by re-parsing the unit with assertions.

        ``static_assert((op))`` and ``static_assert(!(op))`` are appended to the
        main file on two lines. Exactly one of them must fail with a static
        assertion failure; any other outcome leaves the operand undecided.
        """
        if self._index is None:
            return ExceptionSpec.DEPENDENT_NOEXCEPT

        main = self._tu.spelling
        text = self._read(main).decode("utf-8", errors="replace")
        if text and not text.endswith("\n"):
            text += "\n"
        holds_line = text.count("\n") + 1
        text += f'{opens} static_assert(({operand}), ""); {closes}\n'
        text += f'{opens} static_assert(!({operand}), ""); {closes}\n'

        try:
            checked = self._index.parse(
                main, args=self._args, unsaved_files=[(main, text)]
            )
        except TranslationUnitLoadError:
            logger.debug("%s: could not re-parse to evaluate %r", main, operand)
            return ExceptionSpec.DEPENDENT_NOEXCEPT

        main_file = Path(main).resolve()
        errors: dict[int, list[str]] = {holds_line: [], holds_line + 1: []}
        for diag in checked.diagnostics:
            location = diag.location
            if diag.severity < 3 or location.file is None:
                continue
            if location.line not in errors:
                continue
            if Path(location.file.name).resolve() != main_file:
                continue
            errors[location.line].append(diag.spelling)

        def failed_assertion(line: int) -> bool:
            messages = errors[line]
            return len(messages) == 1 and bool(
                _STATIC_ASSERT_FAILED.search(messages[0])
            )

        if failed_assertion(holds_line + 1) and not errors[holds_line]:
            return ExceptionSpec.NOEXCEPT_TRUE
        if failed_assertion(holds_line) and not errors[holds_line + 1]:
            return ExceptionSpec.NOEXCEPT_FALSE
        logger.debug("%s: noexcept operand %r left undecided", main, operand)
        return ExceptionSpec.DEPENDENT_NOEXCEPT

    def exception_spec(self, decl: Cursor) -> ExceptionSpec:
        try:
            kind_name = decl.exception_specification_kind.name
        except ValueError:
            return ExceptionSpec.UNKNOWN
        if kind_name != "COMPUTED_NOEXCEPT":
            return _EXCEPTION_SPECS.get(kind_name, ExceptionSpec.UNKNOWN)

        operand = _noexcept_operand(decl.type.spelling)
        if operand is None:
            return ExceptionSpec.DEPENDENT_NOEXCEPT
        if operand == "true":
            return ExceptionSpec.NOEXCEPT_TRUE
        if operand == "false":
            return ExceptionSpec.NOEXCEPT_FALSE
        return self._evaluate_noexcept(decl, operand)


class ClangFrontend:
    """Loads source files into ``ClangSourceModel`` instances.

    Compiler flags come from, in order of precedence: the fixed flags given
    after ``--``, the compilation database under ``build_path``, or one
    auto-detected in an ancestor of the source file.
    """

    def __init__(
        self,
        *,
        build_path: Path | None = None,
        fixed_args: Sequence[str] | None = None,
        extra_args: Sequence[str] = (),
        prune_system_headers: bool = True,
        library_file: str | None = None,
    ) -> None:
        self._build_path = build_path
        self._fixed_args = list(fixed_args) if fixed_args is not None else None
        self._extra_args = list(extra_args)
        self._prune_system_headers = prune_system_headers
        self._library_file = library_file
        self._index: Index | None = None
        self._databases: dict[Path, CompilationDatabase] = {}

    def _get_index(self) -> Index:
        if self._index is None:
            if self._library_file and not Config.loaded:
                Config.set_library_file(self._library_file)
            try:
                self._index = Index.create()
            except LibclangError as exc:
                msg = f"libclang is not available: {exc}"
                raise FrontendError(msg) from exc
        return self._index

    def _database(self, directory: Path) -> CompilationDatabase:
        if directory not in self._databases:
            logger.debug("loading compilation database from %s", directory)
            self._databases[directory] = load_database(directory)
        return self._databases[directory]

    def compile_args(self, path: Path) -> list[str]:
        if self._fixed_args is not None:
            return [*self._fixed_args, *self._extra_args]

        directory = self._build_path or find_database_dir(path)
        if directory is None:
            logger.warning(
                "%s: no compilation database found; running without flags", path
            )
            return list(self._extra_args)

        args = database_args(self._database(directory), path)
        if args is None:
            logger.warning("%s: not in compilation database %s", path, directory)
            return list(self._extra_args)
        return [*args, *self._extra_args]

    def load(self, path: Path) -> LoadedUnit:
        if not path.is_file():
            msg = f"no such file: {path}"
            raise FrontendError(msg)

        index = self._get_index()
        args = self.compile_args(path)
        logger.debug("parsing %s with %s", path, args)
        # Database entries run under -working-directory; relative paths would
        # be looked up there.
        source = str(path.resolve())
        try:
            tu = index.parse(source, args=args)
        except TranslationUnitLoadError as exc:
            msg = f"failed to parse: {exc}"
            raise FrontendError(msg) from exc

        diagnostics = [
            Diagnostic(
                severity=_SEVERITY_NAMES[diag.severity],
                message=diag.spelling,
                location=_presumed(diag.location),
            )
            for diag in tu.diagnostics
            if diag.severity in _SEVERITY_NAMES
        ]
        model = ClangSourceModel(
            tu,
            prune_system_headers=self._prune_system_headers,
            index=index,
            args=args,
        )
        return LoadedUnit(model=model, diagnostics=diagnostics)


__all__ = ["ClangFrontend", "ClangNode", "ClangSourceModel"]
