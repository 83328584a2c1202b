"""Compilation database lookup for translation units."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from clang.cindex import CompilationDatabase, CompilationDatabaseError

from frontend.model import FrontendError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

COMPILE_COMMANDS_JSON = "compile_commands.json"

# Driver options that only make sense for producing an object file.
_DROPPED_FLAGS = frozenset({"-c", "-S", "-E", "-M", "-MM", "-MD", "-MMD"})
_DROPPED_WITH_VALUE = frozenset({"-o", "-MF", "-MT", "-MQ"})


def find_database_dir(source: Path) -> Path | None:
    """Return the nearest ancestor directory holding compile_commands.json."""
    try:
        start = source.resolve().parent
    except OSError:
        return None
    for directory in (start, *start.parents):
        if (directory / COMPILE_COMMANDS_JSON).is_file():
            return directory
    return None


def load_database(build_path: Path) -> CompilationDatabase:
    try:
        return CompilationDatabase.fromDirectory(str(build_path))
    except CompilationDatabaseError as exc:
        msg = f"could not load compilation database from {build_path}"
        raise FrontendError(msg) from exc


def _strip_command(
    arguments: Sequence[str],
    source: Path,
    directory: Path,
) -> list[str]:
    """Drop the compiler, the source operand and output-only options."""
    stripped: list[str] = []
    skip_next = False
    for arg in arguments[1:]:
        if skip_next:
            skip_next = False
            continue
        if arg in _DROPPED_WITH_VALUE:
            skip_next = True
            continue
        if arg in _DROPPED_FLAGS or arg.startswith("-o"):
            continue
        if not arg.startswith("-") and _same_file(directory / arg, source):
            continue
        stripped.append(arg)
    return stripped


def _same_file(candidate: Path, source: Path) -> bool:
    try:
        return candidate.resolve() == source.resolve()
    except OSError:
        return False


def database_args(database: CompilationDatabase, source: Path) -> list[str] | None:
    """Compiler arguments recorded for ``source``, or None when it is absent."""
    commands = database.getCompileCommands(str(source.resolve()))
    if not commands:
        return None
    command = commands[0]
    directory = Path(command.directory)
    args = _strip_command(list(command.arguments), source, directory)
    return [f"-working-directory={directory}", *args]


__all__ = [
    "COMPILE_COMMANDS_JSON",
    "database_args",
    "find_database_dir",
    "load_database",
]
